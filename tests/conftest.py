"""
Test Configuration Module
"""

import asyncio
from typing import Any, Optional

import pytest

from gemini_gateway.adapter.models import ModelRouter
from gemini_gateway.config import Settings
from gemini_gateway.domain.gemini import GenerateContentRequest, GenerateContentResponse


def text_response(text: str, finish_reason: Optional[str] = None, usage: Optional[dict] = None) -> GenerateContentResponse:
    """Build a single-candidate Gemini response"""
    candidate: dict[str, Any] = {"index": 0, "content": {"role": "model", "parts": [{"text": text}]}}
    if finish_reason:
        candidate["finishReason"] = finish_reason
    body: dict[str, Any] = {"candidates": [candidate]}
    if usage:
        body["usageMetadata"] = usage
    return GenerateContentResponse.from_dict(body)


class FakeGeminiClient:
    """In-memory stand-in for GeminiClient"""

    def __init__(self):
        self.models = ["gemini-1.5-flash-002", "gemini-1.5-pro-latest", "text-embedding-004"]
        self.list_calls = 0
        self.list_error: Optional[Exception] = None
        self.response = text_response(
            "Hello!",
            "STOP",
            {"promptTokenCount": 3, "candidatesTokenCount": 2, "totalTokenCount": 5},
        )
        self.error: Optional[Exception] = None
        self.stream_responses: list[GenerateContentResponse] = [
            text_response("Hel"),
            text_response("lo", "STOP"),
        ]
        self.stream_error: Optional[Exception] = None
        self.stream_forever = False
        self.stream_closed = False
        self.requests: list[GenerateContentRequest] = []
        self.api_keys: list[str] = []
        self.embed_calls: list[tuple[str, dict]] = []

    async def list_models(self, api_key: str) -> list[str]:
        self.list_calls += 1
        if self.list_error:
            raise self.list_error
        return list(self.models)

    async def generate_content(self, api_key: str, request: GenerateContentRequest) -> GenerateContentResponse:
        self.api_keys.append(api_key)
        self.requests.append(request)
        if self.error:
            raise self.error
        return self.response

    async def stream_generate_content(self, api_key: str, request: GenerateContentRequest):
        self.api_keys.append(api_key)
        self.requests.append(request)
        try:
            if self.stream_forever:
                while True:
                    yield text_response("x")
                    await asyncio.sleep(0.01)
            for response in self.stream_responses:
                yield response
            if self.stream_error:
                raise self.stream_error
        finally:
            self.stream_closed = True

    async def batch_embed_contents(self, api_key: str, model: str, body: dict) -> dict:
        self.embed_calls.append((model, body))
        return {"embeddings": [{"values": [0.1, 0.2, 0.3]} for _ in body["requests"]]}


@pytest.fixture
def settings() -> Settings:
    """Settings with model mapping enabled"""
    return Settings(DISABLE_MODEL_MAPPING=False, STREAM_CHAR_BUDGET=1000, STREAM_QUEUE_SIZE=4)


@pytest.fixture
def unmapped_settings() -> Settings:
    """Settings with model mapping disabled"""
    return Settings(DISABLE_MODEL_MAPPING=True, STREAM_CHAR_BUDGET=1000, STREAM_QUEUE_SIZE=4)


@pytest.fixture
def fake_client() -> FakeGeminiClient:
    return FakeGeminiClient()


@pytest.fixture
def router() -> ModelRouter:
    return ModelRouter()
