"""
Model Router

Maps outward (OpenAI) model names to Gemini model names and back, and owns the
process-wide cache of models discovered from the backend.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from gemini_gateway.common.errors import NotFoundError
from gemini_gateway.domain.openai import ModelCard

logger = logging.getLogger(__name__)

# Gemini model names
GEMINI_1_5_PRO = "gemini-1.5-pro-latest"
GEMINI_1_5_FLASH = "gemini-1.5-flash-002"
GEMINI_1_0_PRO_VISION = "gemini-1.0-pro-vision-latest"
GEMINI_2_0_FLASH_EXP = "gemini-2.0-flash-exp"
TEXT_EMBEDDING_004 = "text-embedding-004"

# Outward aliases
GPT_4_VISION_PREVIEW = "gpt-4-vision-preview"
GPT_4_TURBO_PREVIEW = "gpt-4-turbo-preview"
GPT_4_1106_PREVIEW = "gpt-4-1106-preview"
GPT_4_0125_PREVIEW = "gpt-4-0125-preview"
GPT_4 = "gpt-4"
GPT_4O = "gpt-4o"
GPT_3_5_TURBO = "gpt-3.5-turbo"
TEXT_EMBEDDING_ADA_002 = "text-embedding-ada-002"

DEFAULT_CHAT_MODEL = GEMINI_1_5_FLASH
DEFAULT_EMBEDDING_MODEL = TEXT_EMBEDDING_004

# Installed when the backend model list cannot be fetched
DEFAULT_MODELS: tuple[str, ...] = (
    GEMINI_1_5_PRO,
    GEMINI_1_5_FLASH,
    GEMINI_1_0_PRO_VISION,
    GEMINI_2_0_FLASH_EXP,
    TEXT_EMBEDDING_004,
)

# Aliases advertised by the model listing while mapping is enabled
OUTWARD_MODELS: tuple[str, ...] = (
    GPT_3_5_TURBO,
    GPT_4,
    GPT_4_TURBO_PREVIEW,
    GPT_4_VISION_PREVIEW,
    GPT_4O,
    TEXT_EMBEDDING_ADA_002,
)

ModelFetcher = Callable[[], Awaitable[list[str]]]


@dataclass(frozen=True)
class MappingRule:
    """Exact or prefix match of an outward name onto a Gemini model"""
    pattern: str
    target: str
    prefix: bool = False

    def matches(self, name: str) -> bool:
        if self.prefix:
            return name.startswith(self.pattern)
        return name == self.pattern


# Evaluated top to bottom, first match wins. The gpt-4 prefix rule shadows the
# gpt-4o rule below it, so gpt-4o resolves to flash.
MAPPING_RULES: tuple[MappingRule, ...] = (
    MappingRule(GPT_4_VISION_PREVIEW, GEMINI_1_0_PRO_VISION),
    MappingRule(GPT_4_TURBO_PREVIEW, GEMINI_1_5_PRO),
    MappingRule(GPT_4_1106_PREVIEW, GEMINI_1_5_PRO),
    MappingRule(GPT_4_0125_PREVIEW, GEMINI_1_5_PRO),
    MappingRule(GPT_4, GEMINI_1_5_FLASH, prefix=True),
    MappingRule(TEXT_EMBEDDING_ADA_002, TEXT_EMBEDDING_004),
    MappingRule(GPT_4O, GEMINI_2_0_FLASH_EXP),
)

_REVERSE_MAPPING: dict[str, str] = {
    GEMINI_1_5_PRO: GPT_4_TURBO_PREVIEW,
    GEMINI_1_5_FLASH: GPT_4,
    GEMINI_2_0_FLASH_EXP: GPT_4O,
    TEXT_EMBEDDING_004: TEXT_EMBEDDING_ADA_002,
}


def convert_model(name: str) -> str:
    """Apply the mapping rules to an outward model name."""
    for rule in MAPPING_RULES:
        if rule.matches(name):
            return rule.target
    return DEFAULT_CHAT_MODEL


def is_embedding_model(name: str) -> bool:
    return "embedding" in name


class ModelRouter:
    """
    Model Router

    resolve() is a pure function of the requested name, the mapping flag and
    the cached model list. The cache is populated at most once; concurrent first
    callers wait on the single in-flight fetch.
    """

    def __init__(self, vision_model: Optional[str] = None):
        """
        Args:
            vision_model: Gemini model serving the vision alias (defaults to flash)
        """
        self.vision_model = vision_model or GEMINI_1_5_FLASH
        self._models: tuple[str, ...] = ()
        self._initialized = False
        self._lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def available_models(self) -> tuple[str, ...]:
        """Discovered models, or the default set before the first fetch"""
        return self._models or DEFAULT_MODELS

    def is_available(self, name: str) -> bool:
        return name in self.available_models

    async def ensure_models(self, fetch: ModelFetcher) -> tuple[str, ...]:
        """
        Populate the model cache once

        Args:
            fetch: Coroutine function returning Gemini model names

        Returns:
            tuple: Available model names
        """
        if not self._initialized:
            async with self._lock:
                if not self._initialized:
                    await self._load(fetch)
        return self.available_models

    async def refresh(self, fetch: ModelFetcher) -> tuple[str, ...]:
        """Re-fetch the model list unconditionally."""
        async with self._lock:
            await self._load(fetch)
        return self.available_models

    async def _load(self, fetch: ModelFetcher) -> None:
        try:
            models = await fetch()
        except Exception as e:
            # Fail open: the router keeps working on the default set
            logger.warning("Failed to fetch Gemini models, using defaults: %s", e)
            self._models = DEFAULT_MODELS
        else:
            self._models = tuple(models) if models else DEFAULT_MODELS
            logger.info("Initialized Gemini models: %s", ", ".join(self._models))
        self._initialized = True

    def resolve(self, requested: str, mapping_enabled: bool) -> str:
        """
        Resolve the Gemini model for a chat request

        Args:
            requested: Model name sent by the client
            mapping_enabled: Whether OpenAI names are mapped

        Returns:
            str: Gemini model name
        """
        if mapping_enabled:
            if requested == GPT_4_VISION_PREVIEW:
                return self.vision_model
            return convert_model(requested)

        if requested == GEMINI_1_0_PRO_VISION:
            return self.vision_model
        if self.is_available(requested):
            return requested
        logger.warning("Invalid model: %s, falling back to %s", requested, DEFAULT_CHAT_MODEL)
        return DEFAULT_CHAT_MODEL

    def resolve_embedding(self, requested: str, mapping_enabled: bool) -> str:
        """Resolve the Gemini model for an embedding request."""
        if mapping_enabled:
            return convert_model(requested)
        if self.is_available(requested):
            return requested
        logger.warning(
            "Invalid embedding model: %s, falling back to %s", requested, DEFAULT_EMBEDDING_MODEL
        )
        return DEFAULT_EMBEDDING_MODEL

    @staticmethod
    def unresolve(backend_model: str, mapping_enabled: bool) -> str:
        """Outward model name reported in responses."""
        if not mapping_enabled:
            return backend_model
        return _REVERSE_MAPPING.get(backend_model, GPT_3_5_TURBO)

    def list_models(self, mapping_enabled: bool) -> list[ModelCard]:
        if mapping_enabled:
            return [ModelCard(id=name, owned_by="openai") for name in OUTWARD_MODELS]
        return [ModelCard(id=name, owned_by="google") for name in self.available_models]

    def get_model(self, model_id: str, mapping_enabled: bool) -> ModelCard:
        for card in self.list_models(mapping_enabled):
            if card.id == model_id:
                return card
        raise NotFoundError(
            message=f"The model '{model_id}' does not exist",
            code="model_not_found",
        )
