"""
Backend Provider Module Initialization
"""

from gemini_gateway.providers.gemini_client import GeminiAPIError, GeminiClient

__all__ = [
    "GeminiAPIError",
    "GeminiClient",
]
