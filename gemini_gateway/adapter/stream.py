"""
Stream Translator

Turns a sequence of incremental Gemini responses into OpenAI chat completion
chunks followed by the [DONE] sentinel.

Text policy: until the per-stream character budget is used up, text is sent
one character per chunk; after that, text goes out as whole blocks. Text that
arrives in the increment carrying the finish reason is buffered and flushed as
a single block before the next tool call chunk or the finish chunk.
"""

import json
import logging
from enum import Enum
from typing import Any, AsyncGenerator, AsyncIterator, Optional

from typing_extensions import assert_never

from gemini_gateway.adapter.errors import map_error
from gemini_gateway.adapter.response import (
    FINISH_CONTENT_FILTER,
    FINISH_STOP,
    FINISH_TOOL_CALLS,
    map_finish_reason,
    usage_from_metadata,
)
from gemini_gateway.common.sse import DONE_SENTINEL
from gemini_gateway.common.utils import generate_response_id, unix_timestamp
from gemini_gateway.domain.gemini import (
    Candidate,
    FunctionCallPart,
    FunctionResponsePart,
    GenerateContentResponse,
    InlineDataPart,
    TextPart,
)
from gemini_gateway.domain.openai import (
    CompletionChoice,
    CompletionResponse,
    DeltaMessage,
    FunctionCall,
    ToolCall,
    Usage,
)

logger = logging.getLogger(__name__)


class StreamState(str, Enum):
    STREAMING = "streaming"
    FINISHING = "finishing"
    DONE = "done"


class StreamTranslator:
    """
    Per-request stream state machine

    STREAMING -> FINISHING when a finish reason (or the end of the backend
    sequence) is observed -> DONE once the finish chunk or an error chunk has
    been produced. Exactly one finish chunk is produced per stream, and nothing
    but the sentinel follows an error chunk.
    """

    def __init__(
        self,
        model: str,
        char_budget: int = 1000,
        response_id: Optional[str] = None,
        created: Optional[int] = None,
    ):
        """
        Args:
            model: Outward model name reported in every chunk
            char_budget: Characters sent one at a time before switching to blocks
            response_id: Completion id shared by all chunks
            created: Creation timestamp shared by all chunks
        """
        self.model = model
        self.char_budget = max(char_budget, 0)
        self.response_id = response_id or generate_response_id()
        self.created = created if created is not None else unix_timestamp()
        self.state = StreamState.STREAMING

        self._chars_sent = 0
        self._role_sent: set[int] = set()
        self._tool_call_count = 0
        self._finish_reason: Optional[str] = None
        self._finish_index = 0
        self._usage: Optional[Usage] = None

    # ============ Chunk builders ============

    def _chunk(
        self,
        index: int,
        delta: DeltaMessage,
        finish_reason: Optional[str] = None,
        usage: Optional[Usage] = None,
    ) -> dict[str, Any]:
        if index not in self._role_sent:
            delta.role = "assistant"
            self._role_sent.add(index)
        return CompletionResponse(
            id=self.response_id,
            object="chat.completion.chunk",
            created=self.created,
            model=self.model,
            choices=[CompletionChoice(index=index, delta=delta, finish_reason=finish_reason)],
            usage=usage,
        ).to_dict()

    def _text_chunk(self, index: int, text: str) -> dict[str, Any]:
        return self._chunk(index, DeltaMessage(content=text))

    def _tool_call_chunk(self, index: int, part: FunctionCallPart) -> dict[str, Any]:
        position = self._tool_call_count
        self._tool_call_count += 1
        call = ToolCall(
            id=f"{part.name}-{position}",
            index=position,
            function=FunctionCall(name=part.name, arguments=json.dumps(part.args, ensure_ascii=False)),
        )
        return self._chunk(index, DeltaMessage(tool_calls=[call]))

    # ============ Transitions ============

    def _stream_text(self, index: int, text: str) -> list[dict[str, Any]]:
        chunks = []
        remaining = self.char_budget - self._chars_sent
        if remaining > 0:
            head = text[:remaining]
            chunks.extend(self._text_chunk(index, char) for char in head)
            self._chars_sent += len(head)
            text = text[len(head):]
        if text:
            chunks.append(self._text_chunk(index, text))
        return chunks

    def _feed_candidate(self, candidate: Candidate) -> list[dict[str, Any]]:
        terminal = candidate.finish_reason is not None
        chunks: list[dict[str, Any]] = []
        buffered: list[str] = []

        for part in candidate.parts:
            if isinstance(part, TextPart):
                if not part.text:
                    continue
                if terminal:
                    buffered.append(part.text)
                else:
                    chunks.extend(self._stream_text(candidate.index, part.text))
            elif isinstance(part, FunctionCallPart):
                # Buffered text precedes the call in generation order
                if buffered:
                    chunks.append(self._text_chunk(candidate.index, "".join(buffered)))
                    buffered = []
                chunks.append(self._tool_call_chunk(candidate.index, part))
            elif isinstance(part, InlineDataPart):
                logger.debug("Dropping inline data part (%s) from stream", part.mime_type)
            elif isinstance(part, FunctionResponsePart):
                logger.debug("Dropping function response part (%s) from stream", part.name)
            else:
                assert_never(part)

        if buffered:
            chunks.append(self._text_chunk(candidate.index, "".join(buffered)))
        if terminal and self._finish_reason is None:
            self._finish_reason = map_finish_reason(candidate.finish_reason)
            self._finish_index = candidate.index
        return chunks

    def feed(self, response: GenerateContentResponse) -> list[dict[str, Any]]:
        """
        Translate one backend increment

        Returns:
            list: Chunk payloads, in generation order
        """
        if response.usage_metadata is not None:
            self._usage = usage_from_metadata(response.usage_metadata)

        if self.state is not StreamState.STREAMING:
            if response.candidates:
                logger.debug("Ignoring stream increment received after the finish reason")
            return []

        if not response.candidates and response.block_reason:
            logger.warning("Gemini blocked the prompt: %s", response.block_reason)
            self._finish_reason = FINISH_CONTENT_FILTER
            self.state = StreamState.FINISHING
            return []

        chunks: list[dict[str, Any]] = []
        for candidate in response.candidates:
            chunks.extend(self._feed_candidate(candidate))
        if self._finish_reason is not None:
            self.state = StreamState.FINISHING
        return chunks

    def finish(self) -> list[dict[str, Any]]:
        """
        Produce the single finish chunk

        A stream that ended without a finish reason finishes with "stop".
        Usage observed on the stream is attached.
        """
        if self.state is StreamState.DONE:
            return []
        if self._tool_call_count:
            reason = FINISH_TOOL_CALLS
        else:
            reason = self._finish_reason or FINISH_STOP
        chunk = self._chunk(self._finish_index, DeltaMessage(), finish_reason=reason, usage=self._usage)
        self.state = StreamState.DONE
        return [chunk]

    def fail(self, exc: BaseException) -> dict[str, Any]:
        """Produce the error chunk that terminates the stream."""
        error = map_error(exc)
        self.state = StreamState.DONE
        return error.to_dict(include_details=False)

    async def translate(
        self, responses: AsyncIterator[GenerateContentResponse]
    ) -> AsyncGenerator[str, None]:
        """
        Drive the state machine over a backend sequence

        Yields:
            str: JSON payload of each chunk, then the [DONE] sentinel
        """
        try:
            async for response in responses:
                for chunk in self.feed(response):
                    yield dump_chunk(chunk)
        except Exception as e:
            logger.error("Gemini stream error: %s", e)
            yield dump_chunk(self.fail(e))
        else:
            for chunk in self.finish():
                yield dump_chunk(chunk)
        finally:
            aclose = getattr(responses, "aclose", None)
            if aclose is not None:
                await aclose()
        yield DONE_SENTINEL


def dump_chunk(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
