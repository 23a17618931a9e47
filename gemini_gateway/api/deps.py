"""
API Dependency Injection Module

Provides dependencies required by FastAPI routes.
"""

from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Header

from gemini_gateway.adapter.models import ModelRouter
from gemini_gateway.common.errors import AuthenticationError
from gemini_gateway.config import get_settings
from gemini_gateway.providers.gemini_client import GeminiClient
from gemini_gateway.services.chat_service import ChatService


# ============ Global Singletons ============


@lru_cache()
def get_gemini_client() -> GeminiClient:
    """Get Gemini client (Singleton)"""
    return GeminiClient()


@lru_cache()
def get_model_router() -> ModelRouter:
    """
    Get model router (Singleton)

    Holds the process-wide discovered model cache.
    """
    settings = get_settings()
    return ModelRouter(vision_model=settings.GPT_4_VISION_PREVIEW)


# ============ Service Dependencies ============


def get_chat_service() -> ChatService:
    """Get chat service"""
    return ChatService(get_gemini_client(), get_model_router(), get_settings())


ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]


# ============ Authentication Dependencies ============


async def get_api_key(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> str:
    """
    Extract the credential forwarded to Gemini

    The gateway does not validate the key; it only requires one to be present.

    Args:
        authorization: Authorization header (Bearer <key>)

    Returns:
        str: API key

    Raises:
        AuthenticationError: Missing or malformed Authorization header
    """
    if not authorization:
        raise AuthenticationError("Missing Authorization header")

    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("Authorization header must be 'Bearer <api key>'")
    return token


ApiKey = Annotated[str, Depends(get_api_key)]
