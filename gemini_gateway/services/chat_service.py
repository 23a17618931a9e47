"""
Chat Service Module

Orchestrates model routing, request translation, the backend call and the
response translation for every OpenAI-compatible endpoint.
"""

import asyncio
import contextlib
import logging
from typing import AsyncGenerator, Optional

from gemini_gateway.adapter.content import ContentConverter
from gemini_gateway.adapter.embedding import build_batch_embed_request, translate_embeddings
from gemini_gateway.adapter.image import ImageResolver
from gemini_gateway.adapter.models import ModelRouter
from gemini_gateway.adapter.request import RequestTranslator
from gemini_gateway.adapter.response import translate_response
from gemini_gateway.adapter.stream import StreamTranslator, dump_chunk
from gemini_gateway.common.errors import RequestCancelledError
from gemini_gateway.common.sse import DONE_SENTINEL, encode_sse_data
from gemini_gateway.config import Settings, get_settings
from gemini_gateway.domain.gemini import GenerateContentRequest
from gemini_gateway.domain.openai import (
    ChatCompletionRequest,
    CompletionResponse,
    EmbeddingRequest,
    EmbeddingResponse,
    ModelCard,
    ModelList,
)
from gemini_gateway.providers.gemini_client import GeminiClient

logger = logging.getLogger(__name__)


class ChatService:
    """
    Chat Service

    Stateless per request; the ModelRouter cache is the only shared state.
    """

    def __init__(
        self,
        client: GeminiClient,
        router: ModelRouter,
        settings: Optional[Settings] = None,
        image_resolver: Optional[ImageResolver] = None,
    ):
        """
        Initialize service

        Args:
            client: Gemini API client
            router: Process-wide model router
            settings: Application settings (defaults to get_settings())
            image_resolver: Resolver for image content parts
        """
        self.client = client
        self.router = router
        self.settings = settings or get_settings()
        resolver = image_resolver or ImageResolver(timeout=self.settings.IMAGE_FETCH_TIMEOUT)
        self.translator = RequestTranslator(ContentConverter(resolver))

    @property
    def mapping_enabled(self) -> bool:
        return self.settings.model_mapping_enabled

    async def _ensure_models(self, api_key: str) -> None:
        # The discovered list only matters when names are passed through
        if not self.mapping_enabled:
            await self.router.ensure_models(lambda: self.client.list_models(api_key))

    async def _prepare(
        self, api_key: str, request: ChatCompletionRequest
    ) -> tuple[GenerateContentRequest, str]:
        await self._ensure_models(api_key)
        backend_model = self.router.resolve(request.model, self.mapping_enabled)
        gemini_request = await self.translator.build(request, backend_model)
        outward_model = self.router.unresolve(backend_model, self.mapping_enabled)
        logger.info(
            "Chat completion: requested=%s backend=%s stream=%s",
            request.model,
            backend_model,
            request.stream,
        )
        return gemini_request, outward_model

    async def create_chat_completion(
        self, api_key: str, request: ChatCompletionRequest
    ) -> CompletionResponse:
        """
        Non-streaming chat completion

        Raises:
            ValidationError, UnsupportedOperationError: Untranslatable request
            GeminiAPIError: Backend failure
        """
        gemini_request, model = await self._prepare(api_key, request)
        response = await self.client.generate_content(api_key, gemini_request)
        return translate_response(response, model)

    async def open_stream(
        self, api_key: str, request: ChatCompletionRequest
    ) -> AsyncGenerator[bytes, None]:
        """
        Start a streaming chat completion

        The request is translated before the first byte is written, so an
        untranslatable request still fails as a plain JSON error.

        Returns:
            AsyncGenerator: SSE frames, ending with "data: [DONE]"
        """
        gemini_request, model = await self._prepare(api_key, request)
        translator = StreamTranslator(model, char_budget=self.settings.STREAM_CHAR_BUDGET)
        return self._stream(api_key, gemini_request, translator)

    async def _stream(
        self,
        api_key: str,
        gemini_request: GenerateContentRequest,
        translator: StreamTranslator,
    ) -> AsyncGenerator[bytes, None]:
        queue: asyncio.Queue[str] = asyncio.Queue(maxsize=self.settings.STREAM_QUEUE_SIZE)
        producer = asyncio.create_task(self._produce(api_key, gemini_request, translator, queue))
        try:
            while True:
                payload = await queue.get()
                yield encode_sse_data(payload)
                if payload == DONE_SENTINEL:
                    break
        finally:
            # Consumer gone: stop the producer and with it the backend stream
            if not producer.done():
                producer.cancel()
                await asyncio.wait([producer])

    async def _produce(
        self,
        api_key: str,
        gemini_request: GenerateContentRequest,
        translator: StreamTranslator,
        queue: asyncio.Queue[str],
    ) -> None:
        """Background unit of work feeding translated chunks into the queue."""
        chunks = translator.translate(self.client.stream_generate_content(api_key, gemini_request))
        try:
            async for payload in chunks:
                await queue.put(payload)
        except asyncio.CancelledError:
            logger.info("Stream cancelled: id=%s", translator.response_id)
            with contextlib.suppress(asyncio.QueueFull):
                queue.put_nowait(dump_chunk(translator.fail(RequestCancelledError())))
                queue.put_nowait(DONE_SENTINEL)
            raise
        finally:
            await chunks.aclose()

    async def create_embeddings(self, api_key: str, request: EmbeddingRequest) -> EmbeddingResponse:
        """
        Compute embeddings

        Raises:
            UnsupportedOperationError: The model resolves to a chat model
            GeminiAPIError: Backend failure
        """
        await self._ensure_models(api_key)
        backend_model = self.router.resolve_embedding(request.model, self.mapping_enabled)
        body = build_batch_embed_request(request, backend_model)
        logger.info("Embeddings: requested=%s backend=%s inputs=%d", request.model, backend_model, len(request.input))
        result = await self.client.batch_embed_contents(api_key, backend_model, body)
        return translate_embeddings(result, self.router.unresolve(backend_model, self.mapping_enabled))

    async def list_models(self, api_key: str) -> ModelList:
        await self._ensure_models(api_key)
        return ModelList(data=self.router.list_models(self.mapping_enabled))

    async def retrieve_model(self, api_key: str, model_id: str) -> ModelCard:
        """
        Raises:
            NotFoundError: Unknown model
        """
        await self._ensure_models(api_key)
        return self.router.get_model(model_id, self.mapping_enabled)
