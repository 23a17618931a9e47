"""
Image Resolver

Turns an image reference (data URI or remote URL) into raw bytes plus a format tag.
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from gemini_gateway.common.errors import ValidationError

logger = logging.getLogger(__name__)

_DATA_URI_PREFIX = "data:image/"


@dataclass(frozen=True)
class ResolvedImage:
    """Decoded image; format is the subtype of the MIME type (png, jpeg, ...)"""
    data: bytes
    format: str

    @property
    def mime_type(self) -> str:
        return f"image/{self.format}"


class ImageResolver:
    """
    Image Resolver

    Data URIs are decoded locally; any other reference is fetched over HTTP.
    Every failure is reported as a ValidationError so the whole request aborts.
    """

    def __init__(self, timeout: float = 30, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self._transport = transport

    async def resolve(self, ref: str) -> ResolvedImage:
        if ref.startswith("data:"):
            return self._decode_data_uri(ref)
        return await self._fetch(ref)

    @staticmethod
    def _decode_data_uri(ref: str) -> ResolvedImage:
        if not ref.startswith(_DATA_URI_PREFIX):
            raise ValidationError("Invalid image data URI: expected data:image/<format>;base64,...")
        header, sep, payload = ref.partition(",")
        if not sep:
            raise ValidationError("Invalid image data URI: missing payload")
        image_format = header[len(_DATA_URI_PREFIX):].split(";", 1)[0]
        if not image_format:
            raise ValidationError("Invalid image data URI: missing image format")
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationError(f"Invalid image data URI: {str(e)}")
        return ResolvedImage(data=data, format=image_format)

    async def _fetch(self, url: str) -> ResolvedImage:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport, follow_redirects=True
            ) as client:
                response = await client.get(url)
        except httpx.TimeoutException as e:
            raise ValidationError(f"Image download timeout: {str(e)}")
        except (httpx.RequestError, httpx.InvalidURL) as e:
            raise ValidationError(f"Image download failed: {str(e)}")

        if response.status_code >= 400:
            raise ValidationError(
                f"Image download failed: {url} returned HTTP {response.status_code}"
            )

        content_type = response.headers.get("content-type", "").split(";", 1)[0].strip()
        kind, _, subtype = content_type.partition("/")
        if not kind or not subtype:
            raise ValidationError(f"Invalid image content type: {content_type!r}")

        logger.debug("Fetched image: url=%s type=%s size=%d", url, content_type, len(response.content))
        return ResolvedImage(data=response.content, format=subtype)
