"""
Domain Model Module Initialization
"""

from gemini_gateway.domain.openai import (
    ChatCompletionRequest,
    ChatMessage,
    CompletionResponse,
    EmbeddingRequest,
    EmbeddingResponse,
    ModelCard,
    ModelList,
)
from gemini_gateway.domain.gemini import (
    Content,
    GenerateContentRequest,
    GenerateContentResponse,
    Part,
    TurnRole,
)

__all__ = [
    # OpenAI
    "ChatCompletionRequest",
    "ChatMessage",
    "CompletionResponse",
    "EmbeddingRequest",
    "EmbeddingResponse",
    "ModelCard",
    "ModelList",
    # Gemini
    "Content",
    "GenerateContentRequest",
    "GenerateContentResponse",
    "Part",
    "TurnRole",
]
