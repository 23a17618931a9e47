"""
Content Converter

Turns OpenAI chat messages into Gemini turns. Gemini has no system role and
rejects two consecutive turns of the same role, so the converter synthesizes
filler turns where needed.
"""

import json
import logging
from typing import Any, Optional, Union

from gemini_gateway.adapter.image import ImageResolver
from gemini_gateway.common.errors import ValidationError
from gemini_gateway.domain.gemini import (
    Content,
    FunctionCallPart,
    FunctionResponsePart,
    InlineDataPart,
    Part,
    TextPart,
    TurnRole,
)
from gemini_gateway.domain.openai import ChatMessage, ContentPart, ToolCall

logger = logging.getLogger(__name__)

_ROLE_MAP: dict[str, TurnRole] = {
    "system": TurnRole.USER,
    "user": TurnRole.USER,
    "tool": TurnRole.USER,
    "assistant": TurnRole.MODEL,
}


def filler_turn(role: TurnRole) -> Content:
    """Empty placeholder turn"""
    return Content(role=role, parts=[TextPart(text="")])


def _opposite(role: TurnRole) -> TurnRole:
    return TurnRole.MODEL if role is TurnRole.USER else TurnRole.USER


def enforce_alternation(turns: list[Content]) -> list[Content]:
    """Insert a filler turn between any two consecutive turns of the same role."""
    result: list[Content] = []
    for turn in turns:
        if result and result[-1].role is turn.role:
            result.append(filler_turn(_opposite(turn.role)))
        result.append(turn)
    return result


def function_name_from_call_id(call_id: Optional[str]) -> Optional[str]:
    """
    Recover the function name from a tool call id

    Tool call ids issued by the gateway have the form "<function name>-<index>".

    Example:
        >>> function_name_from_call_id("get_weather-0")
        'get_weather'
    """
    if not call_id:
        return None
    name, sep, suffix = call_id.rpartition("-")
    if sep and name and suffix.isdigit():
        return name
    return None


def parse_tool_arguments(call: ToolCall) -> dict[str, Any]:
    """Decode the JSON arguments of a tool call; they must form an object."""
    raw = call.function.arguments
    if not raw or not raw.strip():
        return {}
    try:
        args = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError(
            f"Invalid arguments for tool call '{call.id}': {str(e)}",
            details={"tool_call_id": call.id},
        )
    if not isinstance(args, dict):
        raise ValidationError(
            f"Invalid arguments for tool call '{call.id}': expected a JSON object",
            details={"tool_call_id": call.id},
        )
    return args


def _text_of(content: Union[str, list[ContentPart], None]) -> str:
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    return "".join(part.text or "" for part in content if part.type == "text")


class ContentConverter:
    """
    Content Converter

    All messages but the last become history; the last message's parts are the
    live prompt. Any failure aborts the conversion.
    """

    def __init__(self, image_resolver: ImageResolver):
        self.image_resolver = image_resolver

    async def convert(self, messages: list[ChatMessage]) -> tuple[list[Content], list[Part]]:
        """
        Convert a conversation

        Args:
            messages: OpenAI messages (at least one)

        Returns:
            tuple: (history turns, live prompt parts)

        Raises:
            ValidationError: Unparseable content, tool arguments or image
        """
        if not messages:
            raise ValidationError("Request messages must not be empty")

        turns: list[Content] = []
        for message in messages[:-1]:
            parts = await self.message_parts(message)
            turns.append(Content(role=_ROLE_MAP[message.role], parts=parts))
            if message.role == "system":
                turns.append(filler_turn(TurnRole.MODEL))

        history = enforce_alternation(turns)
        if history and history[-1].role is not TurnRole.MODEL:
            history.append(filler_turn(TurnRole.MODEL))

        prompt = await self.message_parts(messages[-1])
        logger.debug("Converted %d messages into %d history turns", len(messages), len(history))
        return history, prompt

    async def message_parts(self, message: ChatMessage) -> list[Part]:
        parts: list[Part]
        if message.role == "tool":
            parts = [self._function_response(message)]
        else:
            parts = await self._content_parts(message.content)

        if message.role == "assistant" and message.tool_calls:
            for call in message.tool_calls:
                parts.append(FunctionCallPart(name=call.function.name, args=parse_tool_arguments(call)))

        if not parts:
            parts.append(TextPart(text=""))
        return parts

    async def _content_parts(self, content: Union[str, list[ContentPart], None]) -> list[Part]:
        if content is None:
            return []
        if isinstance(content, str):
            return [TextPart(text=content)] if content else []

        parts: list[Part] = []
        for item in content:
            if item.type == "text":
                parts.append(TextPart(text=item.text or ""))
            elif item.type == "image_url":
                ref = item.image_ref
                if not ref:
                    raise ValidationError("image_url content part is missing its url")
                image = await self.image_resolver.resolve(ref)
                parts.append(InlineDataPart(mime_type=image.mime_type, data=image.data))
            else:
                raise ValidationError(f"Unsupported content part type: {item.type}")
        return parts

    @staticmethod
    def _function_response(message: ChatMessage) -> FunctionResponsePart:
        name = function_name_from_call_id(message.tool_call_id) or message.name
        if not name:
            raise ValidationError(
                f"Cannot recover function name from tool_call_id: {message.tool_call_id!r}",
                details={"tool_call_id": message.tool_call_id},
            )

        text = _text_of(message.content)
        try:
            value: Any = json.loads(text)
        except json.JSONDecodeError:
            value = text
        return FunctionResponsePart(name=name, response={"content": value})
