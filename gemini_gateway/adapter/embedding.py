"""
Embedding Translator

Converts OpenAI embedding requests into Gemini batchEmbedContents calls and
the resulting embeddings back into the OpenAI list shape.
"""

from typing import Any

from gemini_gateway.adapter.models import is_embedding_model
from gemini_gateway.common.errors import UnsupportedOperationError
from gemini_gateway.domain.openai import EmbeddingData, EmbeddingRequest, EmbeddingResponse


def build_batch_embed_request(request: EmbeddingRequest, backend_model: str) -> dict[str, Any]:
    """
    Build the batchEmbedContents body, one entry per input string

    Raises:
        UnsupportedOperationError: backend_model is a chat model
    """
    if not is_embedding_model(backend_model):
        raise UnsupportedOperationError(
            f"Embedding is not supported for chat model {request.model}"
        )
    model_name = backend_model if backend_model.startswith("models/") else f"models/{backend_model}"
    return {
        "requests": [
            {"model": model_name, "content": {"parts": [{"text": text}]}}
            for text in request.input
        ]
    }


def translate_embeddings(body: Any, model: str) -> EmbeddingResponse:
    """Map {"embeddings": [{"values": [...]}, ...]} onto an OpenAI embedding list."""
    embeddings = body.get("embeddings") if isinstance(body, dict) else None
    data = []
    for index, embedding in enumerate(embeddings or []):
        values = embedding.get("values") if isinstance(embedding, dict) else None
        data.append(EmbeddingData(index=index, embedding=values or []))
    return EmbeddingResponse(data=data, model=model)
