"""
Gemini Protocol Domain Model

Typed representation of the generateContent request and response bodies of
the Gemini REST API. Content parts form a closed union; every function that
dispatches over Part ends with assert_never so an unhandled part kind is a
type error.
"""

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from typing_extensions import assert_never


class TurnRole(str, Enum):
    """Backend turn roles; turns must alternate between the two"""
    USER = "user"
    MODEL = "model"


# ============ Content Parts ============


@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class InlineDataPart:
    """Binary payload (images) sent inline, base64 encoded on the wire"""
    mime_type: str
    data: bytes


@dataclass(frozen=True)
class FunctionCallPart:
    name: str
    args: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FunctionResponsePart:
    name: str
    response: dict[str, Any] = field(default_factory=dict)


Part = Union[TextPart, InlineDataPart, FunctionCallPart, FunctionResponsePart]


def part_to_dict(part: Part) -> dict[str, Any]:
    """Serialize a part to its REST JSON shape."""
    if isinstance(part, TextPart):
        return {"text": part.text}
    if isinstance(part, InlineDataPart):
        return {
            "inlineData": {
                "mimeType": part.mime_type,
                "data": base64.b64encode(part.data).decode("ascii"),
            }
        }
    if isinstance(part, FunctionCallPart):
        return {"functionCall": {"name": part.name, "args": part.args}}
    if isinstance(part, FunctionResponsePart):
        return {"functionResponse": {"name": part.name, "response": part.response}}
    assert_never(part)


def part_from_dict(data: Any) -> Optional[Part]:
    """
    Parse a part from a response body

    Returns None for part kinds the gateway does not translate
    (e.g. executable code, thought signatures).
    """
    if not isinstance(data, dict):
        return None
    if isinstance(data.get("text"), str):
        return TextPart(text=data["text"])
    fc = data.get("functionCall")
    if isinstance(fc, dict) and isinstance(fc.get("name"), str):
        args = fc.get("args")
        return FunctionCallPart(name=fc["name"], args=args if isinstance(args, dict) else {})
    inline = data.get("inlineData")
    if isinstance(inline, dict) and isinstance(inline.get("data"), str):
        return InlineDataPart(
            mime_type=inline.get("mimeType") or "application/octet-stream",
            data=base64.b64decode(inline["data"]),
        )
    fr = data.get("functionResponse")
    if isinstance(fr, dict) and isinstance(fr.get("name"), str):
        response = fr.get("response")
        return FunctionResponsePart(
            name=fr["name"], response=response if isinstance(response, dict) else {}
        )
    return None


@dataclass
class Content:
    """One role-tagged turn of the conversation"""
    role: TurnRole
    parts: list[Part] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role.value, "parts": [part_to_dict(p) for p in self.parts]}


# ============ Tools ============


class SchemaType(str, Enum):
    UNSPECIFIED = "TYPE_UNSPECIFIED"
    STRING = "STRING"
    NUMBER = "NUMBER"
    INTEGER = "INTEGER"
    BOOLEAN = "BOOLEAN"
    ARRAY = "ARRAY"
    OBJECT = "OBJECT"


@dataclass
class Schema:
    """Typed parameter schema accepted by function declarations"""
    type: SchemaType = SchemaType.UNSPECIFIED
    format: Optional[str] = None
    description: Optional[str] = None
    nullable: bool = False
    enum: Optional[list[str]] = None
    items: Optional["Schema"] = None
    properties: Optional[dict[str, "Schema"]] = None
    required: Optional[list[str]] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type.value}
        if self.format:
            out["format"] = self.format
        if self.description:
            out["description"] = self.description
        if self.nullable:
            out["nullable"] = True
        if self.enum is not None:
            out["enum"] = list(self.enum)
        if self.items is not None:
            out["items"] = self.items.to_dict()
        if self.properties is not None:
            out["properties"] = {name: s.to_dict() for name, s in self.properties.items()}
        if self.required:
            out["required"] = list(self.required)
        return out


@dataclass
class FunctionDeclaration:
    name: str
    description: Optional[str] = None
    parameters: Optional[Schema] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name}
        if self.description:
            out["description"] = self.description
        if self.parameters is not None:
            out["parameters"] = self.parameters.to_dict()
        return out


class FunctionCallingMode(str, Enum):
    AUTO = "AUTO"
    ANY = "ANY"
    NONE = "NONE"


@dataclass
class ToolConfig:
    mode: FunctionCallingMode
    allowed_function_names: Optional[list[str]] = None

    def to_dict(self) -> dict[str, Any]:
        config: dict[str, Any] = {"mode": self.mode.value}
        if self.allowed_function_names:
            config["allowedFunctionNames"] = list(self.allowed_function_names)
        return {"functionCallingConfig": config}


# ============ Safety ============


class HarmCategory(str, Enum):
    HARASSMENT = "HARM_CATEGORY_HARASSMENT"
    HATE_SPEECH = "HARM_CATEGORY_HATE_SPEECH"
    SEXUALLY_EXPLICIT = "HARM_CATEGORY_SEXUALLY_EXPLICIT"
    DANGEROUS_CONTENT = "HARM_CATEGORY_DANGEROUS_CONTENT"


class HarmBlockThreshold(str, Enum):
    BLOCK_NONE = "BLOCK_NONE"
    BLOCK_ONLY_HIGH = "BLOCK_ONLY_HIGH"
    BLOCK_MEDIUM_AND_ABOVE = "BLOCK_MEDIUM_AND_ABOVE"
    BLOCK_LOW_AND_ABOVE = "BLOCK_LOW_AND_ABOVE"


@dataclass
class SafetySetting:
    category: HarmCategory
    threshold: HarmBlockThreshold

    def to_dict(self) -> dict[str, str]:
        return {"category": self.category.value, "threshold": self.threshold.value}


# ============ Request ============


@dataclass
class GenerationConfig:
    max_output_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    stop_sequences: Optional[list[str]] = None
    candidate_count: Optional[int] = None
    response_mime_type: Optional[str] = None
    response_schema: Optional[Schema] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.max_output_tokens is not None:
            out["maxOutputTokens"] = self.max_output_tokens
        if self.temperature is not None:
            out["temperature"] = self.temperature
        if self.top_p is not None:
            out["topP"] = self.top_p
        if self.stop_sequences:
            out["stopSequences"] = list(self.stop_sequences)
        if self.candidate_count is not None:
            out["candidateCount"] = self.candidate_count
        if self.response_mime_type:
            out["responseMimeType"] = self.response_mime_type
        if self.response_schema is not None:
            out["responseSchema"] = self.response_schema.to_dict()
        return out


@dataclass
class GenerateContentRequest:
    """
    Fully-formed backend call descriptor

    contents holds the history followed by the live prompt as the final user turn.
    """
    model: str
    contents: list[Content] = field(default_factory=list)
    generation_config: GenerationConfig = field(default_factory=GenerationConfig)
    function_declarations: list[FunctionDeclaration] = field(default_factory=list)
    tool_config: Optional[ToolConfig] = None
    safety_settings: list[SafetySetting] = field(default_factory=list)

    @property
    def history(self) -> list[Content]:
        return self.contents[:-1]

    @property
    def prompt(self) -> list[Part]:
        return self.contents[-1].parts if self.contents else []

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"contents": [c.to_dict() for c in self.contents]}
        generation_config = self.generation_config.to_dict()
        if generation_config:
            body["generationConfig"] = generation_config
        if self.function_declarations:
            body["tools"] = [
                {"functionDeclarations": [d.to_dict() for d in self.function_declarations]}
            ]
        if self.tool_config is not None:
            body["toolConfig"] = self.tool_config.to_dict()
        if self.safety_settings:
            body["safetySettings"] = [s.to_dict() for s in self.safety_settings]
        return body


# ============ Response ============


class FinishReason(str, Enum):
    UNSPECIFIED = "FINISH_REASON_UNSPECIFIED"
    STOP = "STOP"
    MAX_TOKENS = "MAX_TOKENS"
    SAFETY = "SAFETY"
    RECITATION = "RECITATION"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, value: Any) -> Optional["FinishReason"]:
        """Parse a wire value; unknown reasons (BLOCKLIST, MALFORMED_FUNCTION_CALL, ...) map to OTHER."""
        if not isinstance(value, str) or not value:
            return None
        try:
            reason = cls(value)
        except ValueError:
            return cls.OTHER
        return None if reason is cls.UNSPECIFIED else reason


@dataclass
class Candidate:
    index: int = 0
    parts: list[Part] = field(default_factory=list)
    finish_reason: Optional[FinishReason] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], position: int) -> "Candidate":
        content = data.get("content")
        raw_parts = content.get("parts") if isinstance(content, dict) else None
        parts: list[Part] = []
        if isinstance(raw_parts, list):
            for raw in raw_parts:
                part = part_from_dict(raw)
                if part is not None:
                    parts.append(part)
        index = data.get("index")
        return cls(
            index=index if isinstance(index, int) else position,
            parts=parts,
            finish_reason=FinishReason.parse(data.get("finishReason")),
        )


@dataclass
class UsageMetadata:
    prompt_token_count: int = 0
    candidates_token_count: int = 0
    total_token_count: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UsageMetadata":
        prompt = data.get("promptTokenCount") or 0
        completion = data.get("candidatesTokenCount") or 0
        total = data.get("totalTokenCount")
        return cls(
            prompt_token_count=prompt,
            candidates_token_count=completion,
            total_token_count=total if isinstance(total, int) else prompt + completion,
        )


@dataclass
class GenerateContentResponse:
    candidates: list[Candidate] = field(default_factory=list)
    usage_metadata: Optional[UsageMetadata] = None
    block_reason: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "GenerateContentResponse":
        if not isinstance(data, dict):
            return cls()
        raw_candidates = data.get("candidates")
        candidates = []
        if isinstance(raw_candidates, list):
            for position, raw in enumerate(raw_candidates):
                if isinstance(raw, dict):
                    candidates.append(Candidate.from_dict(raw, position))
        usage = data.get("usageMetadata")
        feedback = data.get("promptFeedback")
        block_reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
        return cls(
            candidates=candidates,
            usage_metadata=UsageMetadata.from_dict(usage) if isinstance(usage, dict) else None,
            block_reason=block_reason if isinstance(block_reason, str) else None,
        )
