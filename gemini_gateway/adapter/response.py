"""
Response Translator

Converts a complete Gemini response into an OpenAI chat completion.
"""

import json
import logging
from typing import Optional

from typing_extensions import assert_never

from gemini_gateway.common.utils import generate_response_id, unix_timestamp
from gemini_gateway.domain.gemini import (
    Candidate,
    FinishReason,
    FunctionCallPart,
    FunctionResponsePart,
    GenerateContentResponse,
    InlineDataPart,
    TextPart,
    UsageMetadata,
)
from gemini_gateway.domain.openai import (
    ChatCompletionMessage,
    CompletionChoice,
    CompletionResponse,
    FunctionCall,
    ToolCall,
    Usage,
)

logger = logging.getLogger(__name__)

FINISH_STOP = "stop"
FINISH_LENGTH = "length"
FINISH_CONTENT_FILTER = "content_filter"
FINISH_TOOL_CALLS = "tool_calls"


def map_finish_reason(reason: Optional[FinishReason]) -> str:
    if reason is FinishReason.MAX_TOKENS:
        return FINISH_LENGTH
    if reason is FinishReason.SAFETY or reason is FinishReason.RECITATION:
        return FINISH_CONTENT_FILTER
    return FINISH_STOP


def tool_call_from_part(part: FunctionCallPart, index: int) -> ToolCall:
    """Tool call with id "<function name>-<index>" and JSON encoded arguments"""
    return ToolCall(
        id=f"{part.name}-{index}",
        index=index,
        function=FunctionCall(name=part.name, arguments=json.dumps(part.args, ensure_ascii=False)),
    )


def usage_from_metadata(metadata: Optional[UsageMetadata]) -> Optional[Usage]:
    if metadata is None:
        return None
    return Usage(
        prompt_tokens=metadata.prompt_token_count,
        completion_tokens=metadata.candidates_token_count,
        total_tokens=metadata.total_token_count,
    )


def candidate_to_choice(candidate: Candidate) -> CompletionChoice:
    """
    Convert one candidate

    The message text is taken from the first text part. Function call parts
    become tool calls; when any are present the content is omitted and the
    finish reason is "tool_calls".
    """
    text: Optional[str] = None
    tool_calls: list[ToolCall] = []

    for index, part in enumerate(candidate.parts):
        if isinstance(part, TextPart):
            if text is None:
                text = part.text
        elif isinstance(part, FunctionCallPart):
            tool_calls.append(tool_call_from_part(part, index))
        elif isinstance(part, InlineDataPart):
            logger.debug("Dropping inline data part (%s) from response", part.mime_type)
        elif isinstance(part, FunctionResponsePart):
            logger.debug("Dropping function response part (%s) from response", part.name)
        else:
            assert_never(part)

    if tool_calls:
        return CompletionChoice(
            index=candidate.index,
            message=ChatCompletionMessage(tool_calls=tool_calls),
            finish_reason=FINISH_TOOL_CALLS,
        )
    return CompletionChoice(
        index=candidate.index,
        message=ChatCompletionMessage(content=text or ""),
        finish_reason=map_finish_reason(candidate.finish_reason),
    )


def translate_response(
    response: GenerateContentResponse,
    model: str,
    response_id: Optional[str] = None,
    created: Optional[int] = None,
) -> CompletionResponse:
    """
    Translate a non-streaming Gemini response

    Args:
        response: Parsed Gemini response
        model: Outward model name to report
        response_id: Completion id (generated when omitted)
        created: Creation timestamp (now when omitted)

    Returns:
        CompletionResponse: OpenAI chat completion
    """
    choices = [candidate_to_choice(c) for c in response.candidates]
    if not choices:
        # Prompt rejected before generation: one empty choice
        if response.block_reason:
            logger.warning("Gemini blocked the prompt: %s", response.block_reason)
        choices.append(
            CompletionChoice(
                index=0,
                message=ChatCompletionMessage(content=""),
                finish_reason=FINISH_CONTENT_FILTER if response.block_reason else FINISH_STOP,
            )
        )

    return CompletionResponse(
        id=response_id or generate_response_id(),
        object="chat.completion",
        created=created if created is not None else unix_timestamp(),
        model=model,
        choices=choices,
        usage=usage_from_metadata(response.usage_metadata),
    )
