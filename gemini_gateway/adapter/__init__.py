"""
OpenAI to Gemini Translation Module Initialization
"""

from gemini_gateway.adapter.content import ContentConverter
from gemini_gateway.adapter.errors import error_response, map_error
from gemini_gateway.adapter.image import ImageResolver
from gemini_gateway.adapter.models import ModelRouter
from gemini_gateway.adapter.request import RequestTranslator
from gemini_gateway.adapter.response import translate_response
from gemini_gateway.adapter.stream import StreamTranslator

__all__ = [
    "ContentConverter",
    "ImageResolver",
    "ModelRouter",
    "RequestTranslator",
    "StreamTranslator",
    "error_response",
    "map_error",
    "translate_response",
]
