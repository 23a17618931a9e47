"""
Image Resolver Unit Tests
"""

import base64

import httpx
import pytest

from gemini_gateway.adapter.image import ImageResolver
from gemini_gateway.common.errors import ValidationError


@pytest.mark.asyncio
async def test_decode_data_uri():
    payload = base64.b64encode(b"jpeg-bytes").decode()
    image = await ImageResolver().resolve(f"data:image/jpeg;base64,{payload}")
    assert image.data == b"jpeg-bytes"
    assert image.format == "jpeg"
    assert image.mime_type == "image/jpeg"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "ref",
    [
        "data:text/plain;base64,aGVsbG8=",
        "data:image/png;base64",
        "data:image/;base64,aGVsbG8=",
    ],
)
async def test_invalid_data_uri(ref):
    with pytest.raises(ValidationError):
        await ImageResolver().resolve(ref)


@pytest.mark.asyncio
async def test_fetch_remote_image():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, headers={"content-type": "image/webp; charset=binary"}, content=b"webp")

    resolver = ImageResolver(transport=httpx.MockTransport(handler))
    image = await resolver.resolve("https://example.com/cat.webp")

    assert seen == ["https://example.com/cat.webp"]
    assert image.data == b"webp"
    assert image.format == "webp"


@pytest.mark.asyncio
async def test_fetch_rejects_malformed_content_type():
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, headers={"content-type": "binary"}, content=b"x")
    )
    with pytest.raises(ValidationError):
        await ImageResolver(transport=transport).resolve("https://example.com/x")


@pytest.mark.asyncio
async def test_fetch_http_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(500))
    with pytest.raises(ValidationError) as exc_info:
        await ImageResolver(transport=transport).resolve("https://example.com/x.png")
    assert "500" in exc_info.value.message


@pytest.mark.asyncio
async def test_fetch_connection_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ValidationError):
        await ImageResolver(transport=httpx.MockTransport(handler)).resolve("https://example.com/x.png")


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", ["@@@@!!!!", "aGVsbG8=!!", "aGVsbG8"])
async def test_corrupt_base64_payload(payload):
    with pytest.raises(ValidationError):
        await ImageResolver().resolve(f"data:image/png;base64,{payload}")
