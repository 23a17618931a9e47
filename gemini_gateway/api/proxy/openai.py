"""
OpenAI Compatible API

Serves the OpenAI chat completion, embedding and model endpoints on top of Gemini.
"""

import json
import logging
from typing import Any, TypeVar

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from gemini_gateway.adapter.errors import error_response
from gemini_gateway.api.deps import ApiKey, ChatServiceDep
from gemini_gateway.common.errors import AppError, ValidationError
from gemini_gateway.config import get_settings
from gemini_gateway.domain.openai import ChatCompletionRequest, EmbeddingRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Proxy - OpenAI"])

# Disable caching and proxy buffering on the event stream
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

ModelT = TypeVar("ModelT", bound=BaseModel)


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError(f"Invalid JSON body: {str(e)}")


def _parse(model_cls: type[ModelT], body: Any) -> ModelT:
    """Validate a request body, reporting failures as a 400 ValidationError."""
    try:
        return model_cls.model_validate(body)
    except PydanticValidationError as e:
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        first = errors[0] if errors else {}
        location = ".".join(str(p) for p in first.get("loc", ()))
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg", "Invalid request"))
        raise ValidationError(message, details={"errors": errors})


def _error_response(exc: Exception) -> JSONResponse:
    status_code, body = error_response(exc, include_details=get_settings().DEBUG)
    if not isinstance(exc, AppError) and status_code >= 500:
        logger.error("Request failed: %s", exc, exc_info=True)
    return JSONResponse(content=body, status_code=status_code)


@router.get("/v1/models")
async def list_models(api_key: ApiKey, service: ChatServiceDep):
    """
    OpenAI Models API (List)

    Returns the outward aliases when mapping is enabled, the discovered Gemini
    models otherwise.
    """
    try:
        models = await service.list_models(api_key)
        return models.model_dump()
    except Exception as e:
        return _error_response(e)


@router.get("/v1/models/{model_id}")
async def retrieve_model(model_id: str, api_key: ApiKey, service: ChatServiceDep):
    """OpenAI Models API (Retrieve)"""
    try:
        model = await service.retrieve_model(api_key, model_id)
        return model.model_dump()
    except Exception as e:
        return _error_response(e)


@router.post("/v1/chat/completions")
async def chat_completions(request: Request, api_key: ApiKey, service: ChatServiceDep):
    """
    OpenAI Chat Completions API

    Streams Server-Sent Events when "stream" is true.
    """
    try:
        chat_request = _parse(ChatCompletionRequest, await _read_json(request))
        if chat_request.stream:
            stream = await service.open_stream(api_key, chat_request)
            return StreamingResponse(
                stream,
                media_type="text/event-stream",
                headers=SSE_HEADERS,
            )
        response = await service.create_chat_completion(api_key, chat_request)
        return JSONResponse(content=response.to_dict())
    except Exception as e:
        return _error_response(e)


@router.post("/v1/embeddings")
async def embeddings(request: Request, api_key: ApiKey, service: ChatServiceDep):
    """OpenAI Embeddings API"""
    try:
        embedding_request = _parse(EmbeddingRequest, await _read_json(request))
        response = await service.create_embeddings(api_key, embedding_request)
        return JSONResponse(content=response.model_dump())
    except Exception as e:
        return _error_response(e)
