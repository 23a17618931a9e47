"""
API Router Module Initialization
"""

from gemini_gateway.api.deps import get_api_key, get_chat_service

__all__ = [
    "get_api_key",
    "get_chat_service",
]
