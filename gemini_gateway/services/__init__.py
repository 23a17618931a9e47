"""
Service Layer Module Initialization
"""

from gemini_gateway.services.chat_service import ChatService

__all__ = [
    "ChatService",
]
