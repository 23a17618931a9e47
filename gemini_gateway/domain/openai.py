"""
OpenAI Protocol Domain Model

Defines the request and response shapes of the OpenAI-compatible API served by the gateway.
"""

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing_extensions import Literal


MessageRole = Literal["system", "user", "assistant", "tool"]


# ============ Request Models ============


class ImageURL(BaseModel):
    """Image reference: a data URI or a remote URL"""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., min_length=1)
    detail: Optional[str] = None


class ContentPart(BaseModel):
    """One part of a multi-part message content"""

    model_config = ConfigDict(frozen=True)

    type: str
    text: Optional[str] = None
    image_url: Optional[Union[ImageURL, str]] = None

    @property
    def image_ref(self) -> Optional[str]:
        """Image URL regardless of the object or bare string form"""
        if isinstance(self.image_url, ImageURL):
            return self.image_url.url
        return self.image_url


class FunctionCall(BaseModel):
    """Function invocation inside a tool call"""

    model_config = ConfigDict(frozen=True)

    name: str
    # JSON encoded arguments
    arguments: str = ""


class ToolCall(BaseModel):
    """Tool call carried by an assistant message"""

    model_config = ConfigDict(frozen=True)

    id: str
    type: str = "function"
    function: FunctionCall
    # Present on streamed tool call deltas
    index: Optional[int] = None


class ChatMessage(BaseModel):
    """Chat message; content may be a bare string or a list of parts"""

    model_config = ConfigDict(frozen=True, extra="ignore")

    role: MessageRole
    content: Optional[Union[str, list[ContentPart]]] = None
    name: Optional[str] = None
    tool_calls: Optional[list[ToolCall]] = None
    tool_call_id: Optional[str] = None


class FunctionDefinition(BaseModel):
    """Function declared as a tool"""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    parameters: Optional[dict[str, Any]] = None


class Tool(BaseModel):
    """Tool declaration"""

    model_config = ConfigDict(frozen=True)

    type: str = "function"
    function: FunctionDefinition


class ResponseFormat(BaseModel):
    """Requested response format"""

    model_config = ConfigDict(frozen=True)

    type: str = "text"
    json_schema: Optional[dict[str, Any]] = None


class ChatCompletionRequest(BaseModel):
    """
    Chat Completion Request Model

    Created once per inbound call and immutable afterwards.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    model: str = Field(..., min_length=1)
    messages: list[ChatMessage] = Field(..., min_length=1)
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    n: Optional[int] = None
    stream: bool = False
    stop: Optional[list[str]] = None
    response_format: Optional[ResponseFormat] = None
    tools: Optional[list[Tool]] = None
    tool_choice: Optional[Union[str, dict[str, Any]]] = None

    @model_validator(mode="before")
    @classmethod
    def _accept_max_completion_tokens(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("max_tokens") is None:
            alias = data.get("max_completion_tokens")
            if alias is not None:
                data = {**data, "max_tokens": alias}
        return data

    @field_validator("stop", mode="before")
    @classmethod
    def _normalize_stop(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value


class EmbeddingRequest(BaseModel):
    """Embedding Request Model; a single input string is normalized to a list"""

    model_config = ConfigDict(frozen=True, extra="ignore")

    model: str = Field(..., min_length=1)
    input: list[str] = Field(..., min_length=1)

    @field_validator("input", mode="before")
    @classmethod
    def _normalize_input(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value


# ============ Response Models ============


class ChatCompletionMessage(BaseModel):
    """Message of a non-streaming choice"""

    role: str = "assistant"
    content: Optional[str] = None
    tool_calls: Optional[list[ToolCall]] = None


class DeltaMessage(BaseModel):
    """Message fragment of a streamed choice"""

    role: Optional[str] = None
    content: Optional[str] = None
    tool_calls: Optional[list[ToolCall]] = None


class CompletionChoice(BaseModel):
    """One choice of a completion or of a stream chunk"""

    index: int = 0
    message: Optional[ChatCompletionMessage] = None
    delta: Optional[DeltaMessage] = None
    finish_reason: Optional[str] = None


class Usage(BaseModel):
    """Token usage"""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class CompletionResponse(BaseModel):
    """
    Completion Response Model

    Used for both the non-streaming response ("chat.completion") and each
    streamed chunk ("chat.completion.chunk").
    """

    id: str
    object: str = "chat.completion"
    created: int
    model: str
    choices: list[CompletionChoice] = Field(default_factory=list)
    usage: Optional[Usage] = None

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize to the wire shape

        Unset optional fields are dropped, except that every choice keeps an
        explicit finish_reason (null while a stream is in progress).
        """
        data = self.model_dump(exclude_none=True)
        for choice in data["choices"]:
            choice.setdefault("finish_reason", None)
        return data


class ModelCard(BaseModel):
    """Entry of the model listing"""

    id: str
    object: str = "model"
    created: int = 0
    owned_by: str


class ModelList(BaseModel):
    object: str = "list"
    data: list[ModelCard] = Field(default_factory=list)


class EmbeddingData(BaseModel):
    object: str = "embedding"
    index: int
    embedding: list[float]


class EmbeddingResponse(BaseModel):
    object: str = "list"
    data: list[EmbeddingData] = Field(default_factory=list)
    model: str
    usage: Usage = Field(default_factory=Usage)
