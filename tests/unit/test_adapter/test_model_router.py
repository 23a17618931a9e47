"""
Model Router Unit Tests
"""

import asyncio

import pytest

from gemini_gateway.adapter.models import (
    DEFAULT_MODELS,
    GEMINI_1_0_PRO_VISION,
    GEMINI_1_5_FLASH,
    GEMINI_1_5_PRO,
    GEMINI_2_0_FLASH_EXP,
    TEXT_EMBEDDING_004,
    ModelRouter,
    convert_model,
)
from gemini_gateway.common.errors import NotFoundError


@pytest.mark.parametrize(
    "requested,expected",
    [
        ("gpt-4-turbo-preview", GEMINI_1_5_PRO),
        ("gpt-4-1106-preview", GEMINI_1_5_PRO),
        ("gpt-4-0125-preview", GEMINI_1_5_PRO),
        ("gpt-4", GEMINI_1_5_FLASH),
        ("gpt-4-32k", GEMINI_1_5_FLASH),
        ("text-embedding-ada-002", TEXT_EMBEDDING_004),
        ("gpt-3.5-turbo", GEMINI_1_5_FLASH),
        ("anything-else", GEMINI_1_5_FLASH),
    ],
)
def test_mapping_rules(router, requested, expected):
    assert router.resolve(requested, mapping_enabled=True) == expected


def test_gpt_4o_is_shadowed_by_gpt_4_prefix_rule(router):
    assert convert_model("gpt-4o") == GEMINI_1_5_FLASH
    assert router.resolve("gpt-4o", mapping_enabled=True) == GEMINI_1_5_FLASH
    assert GEMINI_2_0_FLASH_EXP != router.resolve("gpt-4o", mapping_enabled=True)


def test_vision_alias_uses_override():
    assert ModelRouter().resolve("gpt-4-vision-preview", True) == GEMINI_1_5_FLASH
    router = ModelRouter(vision_model=GEMINI_1_5_PRO)
    assert router.resolve("gpt-4-vision-preview", True) == GEMINI_1_5_PRO
    assert router.resolve(GEMINI_1_0_PRO_VISION, False) == GEMINI_1_5_PRO


def test_unmapped_known_model_passes_through(router):
    assert router.resolve(GEMINI_1_5_PRO, mapping_enabled=False) == GEMINI_1_5_PRO


def test_unmapped_unknown_model_falls_back_to_default(router):
    assert router.resolve("m", mapping_enabled=False) == GEMINI_1_5_FLASH


def test_resolve_is_deterministic(router):
    for name in ["m", "gpt-4", "gpt-4o", GEMINI_1_5_PRO]:
        for mapping_enabled in (True, False):
            assert router.resolve(name, mapping_enabled) == router.resolve(name, mapping_enabled)


def test_resolve_embedding():
    router = ModelRouter()
    assert router.resolve_embedding("text-embedding-ada-002", True) == TEXT_EMBEDDING_004
    assert router.resolve_embedding(TEXT_EMBEDDING_004, False) == TEXT_EMBEDDING_004
    assert router.resolve_embedding("unknown-embedder", False) == TEXT_EMBEDDING_004


@pytest.mark.parametrize(
    "backend,expected",
    [
        (GEMINI_1_5_PRO, "gpt-4-turbo-preview"),
        (GEMINI_1_5_FLASH, "gpt-4"),
        (GEMINI_2_0_FLASH_EXP, "gpt-4o"),
        (TEXT_EMBEDDING_004, "text-embedding-ada-002"),
        ("gemini-exotic", "gpt-3.5-turbo"),
    ],
)
def test_unresolve_with_mapping(backend, expected):
    assert ModelRouter.unresolve(backend, mapping_enabled=True) == expected


def test_unresolve_without_mapping_is_identity():
    assert ModelRouter.unresolve("gemini-exotic", mapping_enabled=False) == "gemini-exotic"


@pytest.mark.asyncio
async def test_ensure_models_fetches_once_for_concurrent_callers():
    router = ModelRouter()
    calls = 0

    async def fetch():
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.01)
        return ["gemini-custom"]

    results = await asyncio.gather(*(router.ensure_models(fetch) for _ in range(10)))

    assert calls == 1
    assert all(r == ("gemini-custom",) for r in results)
    assert router.resolve("gemini-custom", mapping_enabled=False) == "gemini-custom"
    # Discovered set replaces the defaults
    assert router.resolve(GEMINI_1_5_PRO, mapping_enabled=False) == GEMINI_1_5_FLASH


@pytest.mark.asyncio
async def test_ensure_models_falls_back_on_fetch_failure():
    router = ModelRouter()
    calls = 0

    async def fetch():
        nonlocal calls
        calls += 1
        raise RuntimeError("boom")

    models = await router.ensure_models(fetch)
    assert models == DEFAULT_MODELS
    assert router.initialized

    await router.ensure_models(fetch)
    assert calls == 1
    assert router.resolve(GEMINI_1_5_PRO, mapping_enabled=False) == GEMINI_1_5_PRO


@pytest.mark.asyncio
async def test_refresh_refetches():
    router = ModelRouter()
    lists = [["gemini-a"], ["gemini-b"]]

    async def fetch():
        return lists.pop(0)

    assert await router.ensure_models(fetch) == ("gemini-a",)
    assert await router.refresh(fetch) == ("gemini-b",)
    assert router.is_available("gemini-b")
    assert not router.is_available("gemini-a")


def test_list_models_with_mapping(router):
    cards = router.list_models(mapping_enabled=True)
    ids = [card.id for card in cards]
    assert "gpt-4" in ids
    assert "text-embedding-ada-002" in ids
    assert all(card.owned_by == "openai" for card in cards)


def test_list_models_without_mapping(router):
    cards = router.list_models(mapping_enabled=False)
    assert [card.id for card in cards] == list(DEFAULT_MODELS)
    assert all(card.owned_by == "google" for card in cards)


def test_get_model(router):
    assert router.get_model("gpt-4", mapping_enabled=True).id == "gpt-4"
    with pytest.raises(NotFoundError) as exc_info:
        router.get_model("gpt-99", mapping_enabled=True)
    assert exc_info.value.status_code == 404
