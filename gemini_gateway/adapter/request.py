"""
Request Translator

Builds a Gemini generateContent request from an OpenAI chat completion request.
"""

import logging
from typing import Any, Optional

from gemini_gateway.adapter.content import ContentConverter
from gemini_gateway.adapter.models import is_embedding_model
from gemini_gateway.adapter.schema import convert_schema, convert_tools
from gemini_gateway.common.errors import UnsupportedOperationError
from gemini_gateway.domain.gemini import (
    Content,
    FunctionCallingMode,
    GenerateContentRequest,
    GenerationConfig,
    HarmBlockThreshold,
    HarmCategory,
    SafetySetting,
    ToolConfig,
    TurnRole,
)
from gemini_gateway.domain.openai import ChatCompletionRequest, ResponseFormat

logger = logging.getLogger(__name__)

_JSON_RESPONSE_FORMATS = {"json_object", "json_schema", "json"}

# Filtering policy is left to the caller
SAFETY_SETTINGS: tuple[SafetySetting, ...] = tuple(
    SafetySetting(category=category, threshold=HarmBlockThreshold.BLOCK_NONE)
    for category in (
        HarmCategory.HARASSMENT,
        HarmCategory.HATE_SPEECH,
        HarmCategory.SEXUALLY_EXPLICIT,
        HarmCategory.DANGEROUS_CONTENT,
    )
)


def tool_choice_to_config(tool_choice: Any) -> Optional[ToolConfig]:
    """
    Map an OpenAI tool_choice onto a Gemini function calling config

    Returns None when no mode applies, leaving the backend default in place.
    """
    if isinstance(tool_choice, str):
        mode = {
            "none": FunctionCallingMode.NONE,
            "auto": FunctionCallingMode.AUTO,
            "required": FunctionCallingMode.ANY,
        }.get(tool_choice)
        return ToolConfig(mode=mode) if mode else None

    if isinstance(tool_choice, dict):
        function = tool_choice.get("function")
        if isinstance(function, dict):
            name = function.get("name")
            if isinstance(name, str) and name:
                return ToolConfig(mode=FunctionCallingMode.ANY, allowed_function_names=[name])
    return None


def build_generation_config(request: ChatCompletionRequest) -> GenerationConfig:
    """Zero or absent values mean "backend default" and are left unset."""
    config = GenerationConfig()
    if request.max_tokens:
        config.max_output_tokens = request.max_tokens
    if request.temperature:
        config.temperature = request.temperature
    if request.top_p:
        config.top_p = request.top_p
    if request.stop:
        config.stop_sequences = list(request.stop)
    if request.n and request.n > 1 and not request.stream:
        config.candidate_count = request.n
    _apply_response_format(config, request.response_format)
    return config


def _apply_response_format(config: GenerationConfig, response_format: Optional[ResponseFormat]) -> None:
    if response_format is None or response_format.type not in _JSON_RESPONSE_FORMATS:
        return
    config.response_mime_type = "application/json"
    json_schema = response_format.json_schema or {}
    schema = json_schema.get("schema")
    if isinstance(schema, dict):
        config.response_schema = convert_schema(schema)


class RequestTranslator:
    """Request Translator; performs no I/O beyond image resolution"""

    def __init__(self, content_converter: ContentConverter):
        self.content_converter = content_converter

    async def build(self, request: ChatCompletionRequest, backend_model: str) -> GenerateContentRequest:
        """
        Build the Gemini call descriptor

        Args:
            request: Parsed chat completion request
            backend_model: Gemini model resolved by the ModelRouter

        Returns:
            GenerateContentRequest: Request ready to send

        Raises:
            UnsupportedOperationError: backend_model is an embedding model
            ValidationError: The messages cannot be converted
        """
        if is_embedding_model(backend_model):
            raise UnsupportedOperationError(
                f"Chat Completion is not supported for embedding model {request.model}"
            )

        history, prompt = await self.content_converter.convert(request.messages)
        gemini_request = GenerateContentRequest(
            model=backend_model,
            contents=[*history, Content(role=TurnRole.USER, parts=prompt)],
            generation_config=build_generation_config(request),
            safety_settings=list(SAFETY_SETTINGS),
        )

        if request.tools:
            gemini_request.function_declarations = convert_tools(request.tools)
            if gemini_request.function_declarations:
                gemini_request.tool_config = tool_choice_to_config(request.tool_choice)

        logger.debug(
            "Built Gemini request: model=%s turns=%d tools=%d",
            backend_model,
            len(gemini_request.contents),
            len(gemini_request.function_declarations),
        )
        return gemini_request
