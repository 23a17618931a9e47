import json

import pytest
from httpx import ASGITransport, AsyncClient

from gemini_gateway.api.deps import get_chat_service
from gemini_gateway.config import Settings
from gemini_gateway.main import app
from gemini_gateway.providers.gemini_client import GeminiAPIError
from gemini_gateway.services.chat_service import ChatService

AUTH = {"Authorization": "Bearer sk-test"}


@pytest.fixture
def service(fake_client, router, settings):
    chat_service = ChatService(fake_client, router, settings)
    app.dependency_overrides[get_chat_service] = lambda: chat_service
    yield chat_service
    app.dependency_overrides = {}


async def _post(path: str, body, headers=AUTH):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        if isinstance(body, (dict, list)):
            return await ac.post(path, json=body, headers=headers)
        return await ac.post(path, content=body, headers={**headers, "Content-Type": "application/json"})


async def _get(path: str, headers=AUTH):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        return await ac.get(path, headers=headers)


def _chat_body(**overrides):
    body = {"model": "gpt-4", "messages": [{"role": "user", "content": "hi"}]}
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_missing_credential_is_rejected(service):
    resp = await _post("/v1/chat/completions", _chat_body(), headers={})
    assert resp.status_code == 401
    assert resp.json()["error"]["type"] == "authentication_error"

    resp = await _post("/v1/chat/completions", _chat_body(), headers={"Authorization": "Basic abc"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_chat_completion(service, fake_client):
    resp = await _post("/v1/chat/completions", _chat_body())

    assert resp.status_code == 200
    data = resp.json()
    assert data["object"] == "chat.completion"
    assert data["model"] == "gpt-4"
    assert data["choices"][0]["message"] == {"role": "assistant", "content": "Hello!"}
    assert data["choices"][0]["finish_reason"] == "stop"
    assert data["usage"] == {"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5}
    assert fake_client.api_keys == ["sk-test"]


@pytest.mark.asyncio
async def test_invalid_body(service):
    resp = await _post("/v1/chat/completions", {"model": "gpt-4"})
    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["type"] == "invalid_request_error"
    assert "messages" in error["message"]
    assert "details" not in error


@pytest.mark.asyncio
async def test_invalid_body_details_in_debug(service, monkeypatch):
    monkeypatch.setattr("gemini_gateway.api.proxy.openai.get_settings", lambda: Settings(DEBUG=True))
    resp = await _post("/v1/chat/completions", {"model": "gpt-4"})
    assert resp.status_code == 400
    assert resp.json()["error"]["details"]["errors"][0]["loc"] == ["messages"]


@pytest.mark.asyncio
async def test_malformed_json(service):
    resp = await _post("/v1/chat/completions", b"{not json")
    assert resp.status_code == 400
    assert resp.json()["error"]["type"] == "invalid_request_error"


@pytest.mark.asyncio
async def test_malformed_tool_arguments(service, fake_client):
    body = _chat_body(
        messages=[
            {
                "role": "assistant",
                "tool_calls": [{"id": "f-0", "type": "function", "function": {"name": "f", "arguments": "{oops"}}],
            },
            {"role": "user", "content": "go"},
        ]
    )
    resp = await _post("/v1/chat/completions", body)
    assert resp.status_code == 400
    assert fake_client.requests == []


@pytest.mark.asyncio
async def test_backend_rate_limit(service, fake_client):
    fake_client.error = GeminiAPIError(429, "quota")
    resp = await _post("/v1/chat/completions", _chat_body())
    assert resp.status_code == 429
    assert resp.json()["error"]["type"] == "rate_limit_error"


@pytest.mark.asyncio
async def test_streaming_chat_completion(service):
    resp = await _post("/v1/chat/completions", _chat_body(stream=True))

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")
    assert resp.headers["cache-control"] == "no-cache"
    assert resp.headers["x-accel-buffering"] == "no"

    frames = [f for f in resp.text.split("\n\n") if f]
    assert frames[-1] == "data: [DONE]"
    chunks = [json.loads(f[len("data: "):]) for f in frames[:-1]]
    assert "".join(c["choices"][0]["delta"].get("content", "") for c in chunks) == "Hello"
    assert [c["choices"][0]["finish_reason"] for c in chunks if c["choices"][0]["finish_reason"]] == ["stop"]


@pytest.mark.asyncio
async def test_streaming_rate_limit(service, fake_client):
    fake_client.stream_responses = []
    fake_client.stream_error = GeminiAPIError(429, "quota")

    resp = await _post("/v1/chat/completions", _chat_body(stream=True))

    assert resp.status_code == 200
    frames = [f for f in resp.text.split("\n\n") if f]
    assert frames[-1] == "data: [DONE]"
    assert json.loads(frames[0][len("data: "):])["error"]["type"] == "rate_limit_error"


@pytest.mark.asyncio
async def test_list_models(service):
    resp = await _get("/v1/models")
    assert resp.status_code == 200
    data = resp.json()
    assert data["object"] == "list"
    assert "gpt-4" in [m["id"] for m in data["data"]]


@pytest.mark.asyncio
async def test_retrieve_model(service):
    resp = await _get("/v1/models/gpt-4o")
    assert resp.status_code == 200
    assert resp.json()["id"] == "gpt-4o"

    resp = await _get("/v1/models/unknown-model")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "model_not_found"


@pytest.mark.asyncio
async def test_embeddings(service, fake_client):
    resp = await _post("/v1/embeddings", {"model": "text-embedding-ada-002", "input": "hello"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["model"] == "text-embedding-ada-002"
    assert data["data"] == [{"object": "embedding", "index": 0, "embedding": [0.1, 0.2, 0.3]}]
    assert fake_client.embed_calls[0][0] == "text-embedding-004"


@pytest.mark.asyncio
async def test_health():
    resp = await _get("/health", headers={})
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy"}
