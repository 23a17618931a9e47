"""
Google Gemini REST API Client

Performs generateContent, streamGenerateContent, batchEmbedContents and model
listing calls against the Gemini generativelanguage API.
"""

import json
import logging
from typing import Any, AsyncGenerator, Optional

import httpx

from gemini_gateway.common.sse import SSEDecoder
from gemini_gateway.config import get_settings
from gemini_gateway.domain.gemini import GenerateContentRequest, GenerateContentResponse

logger = logging.getLogger(__name__)

_MODEL_PREFIX = "models/"


class GeminiAPIError(Exception):
    """
    Gemini vendor error

    Carries the HTTP status of the failed call (504 for timeouts, 502 for
    connection failures) and the vendor's message.
    """

    def __init__(self, status_code: int, message: str, status: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.status = status

    def __str__(self) -> str:
        return f"Gemini API error {self.status_code}: {self.message}"


class GeminiClient:
    """Google Gemini REST API client"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_version: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.GEMINI_BASE_URL).rstrip("/")
        self.api_version = api_version or settings.GEMINI_API_VERSION
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    @staticmethod
    def _prepare_headers(api_key: str) -> dict[str, str]:
        return {"x-goog-api-key": api_key, "Content-Type": "application/json"}

    @staticmethod
    def _strip_model_prefix(name: str) -> str:
        if name.startswith(_MODEL_PREFIX):
            return name[len(_MODEL_PREFIX):]
        return name

    def _build_url(self, path: str) -> str:
        cleaned_path = path if path.startswith("/") else f"/{path}"
        return f"{self.base_url}/{self.api_version}{cleaned_path}"

    def _model_url(self, model: str, method: str) -> str:
        return self._build_url(f"/models/{self._strip_model_prefix(model)}:{method}")

    @staticmethod
    def _api_error(response: httpx.Response) -> GeminiAPIError:
        """Build an error from Google's {"error": {"code", "message", "status"}} body."""
        message = response.text or response.reason_phrase
        status = None
        try:
            body = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            body = None
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            error = body["error"]
            message = error.get("message") or message
            status = error.get("status")
        return GeminiAPIError(response.status_code, message, status)

    async def _post_json(self, url: str, api_key: str, body: dict[str, Any]) -> Any:
        logger.debug("Gemini Request: url=%s body=%s", url, json.dumps(body, ensure_ascii=False))
        try:
            async with self._client() as client:
                response = await client.post(url, headers=self._prepare_headers(api_key), json=body)
        except httpx.TimeoutException as e:
            raise GeminiAPIError(504, f"Request timeout: {str(e)}")
        except httpx.RequestError as e:
            raise GeminiAPIError(502, f"Request error: {str(e)}")

        if response.status_code >= 400:
            error = self._api_error(response)
            logger.error("Gemini request failed: url=%s status=%d message=%s", url, error.status_code, error.message)
            raise error
        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise GeminiAPIError(502, f"Invalid response body: {str(e)}")

    async def generate_content(
        self, api_key: str, request: GenerateContentRequest
    ) -> GenerateContentResponse:
        """
        Non-streaming generation

        Raises:
            GeminiAPIError: Non-success status, timeout or connection failure
        """
        body = await self._post_json(
            self._model_url(request.model, "generateContent"), api_key, request.to_dict()
        )
        return GenerateContentResponse.from_dict(body)

    async def stream_generate_content(
        self, api_key: str, request: GenerateContentRequest
    ) -> AsyncGenerator[GenerateContentResponse, None]:
        """
        Streaming generation

        Yields one parsed response per SSE event. Closing the generator closes
        the underlying HTTP stream.

        Raises:
            GeminiAPIError: Non-success status, timeout, connection failure or
                an error object inside the stream
        """
        url = self._model_url(request.model, "streamGenerateContent")
        body = request.to_dict()
        logger.debug("Gemini Stream Request: url=%s body=%s", url, json.dumps(body, ensure_ascii=False))

        try:
            async with self._client() as client:
                async with client.stream(
                    "POST",
                    url,
                    params={"alt": "sse"},
                    headers=self._prepare_headers(api_key),
                    json=body,
                ) as response:
                    if response.status_code >= 400:
                        await response.aread()
                        error = self._api_error(response)
                        logger.error(
                            "Gemini stream failed: url=%s status=%d message=%s",
                            url,
                            error.status_code,
                            error.message,
                        )
                        raise error

                    decoder = SSEDecoder()
                    async for chunk in response.aiter_bytes():
                        for payload in decoder.feed(chunk):
                            yield self._parse_stream_payload(payload)
                    for payload in decoder.flush():
                        yield self._parse_stream_payload(payload)
        except httpx.TimeoutException as e:
            raise GeminiAPIError(504, f"Request timeout: {str(e)}")
        except httpx.RequestError as e:
            raise GeminiAPIError(502, f"Request error: {str(e)}")

    @staticmethod
    def _parse_stream_payload(payload: str) -> GenerateContentResponse:
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise GeminiAPIError(502, f"Invalid stream payload: {str(e)}")
        if isinstance(data, dict) and isinstance(data.get("error"), dict):
            error = data["error"]
            code = error.get("code")
            raise GeminiAPIError(
                code if isinstance(code, int) else 500,
                error.get("message") or "Unknown stream error",
                error.get("status"),
            )
        return GenerateContentResponse.from_dict(data)

    async def batch_embed_contents(self, api_key: str, model: str, body: dict[str, Any]) -> Any:
        """Compute embeddings for a batch of contents in one call."""
        return await self._post_json(self._model_url(model, "batchEmbedContents"), api_key, body)

    async def list_models(self, api_key: str) -> list[str]:
        """
        List model names visible to the credential

        Follows pagination and strips the "models/" prefix from every name.
        """
        url = self._build_url("/models")
        headers = self._prepare_headers(api_key)
        names: list[str] = []
        page_token: Optional[str] = None

        try:
            async with self._client() as client:
                while True:
                    params: dict[str, Any] = {"pageSize": 1000}
                    if page_token:
                        params["pageToken"] = page_token
                    response = await client.get(url, headers=headers, params=params)
                    if response.status_code >= 400:
                        raise self._api_error(response)

                    body = response.json()
                    for model in body.get("models") or []:
                        name = model.get("name") if isinstance(model, dict) else None
                        if isinstance(name, str):
                            names.append(self._strip_model_prefix(name))

                    page_token = body.get("nextPageToken")
                    if not page_token:
                        break
        except httpx.TimeoutException as e:
            raise GeminiAPIError(504, f"Request timeout: {str(e)}")
        except httpx.RequestError as e:
            raise GeminiAPIError(502, f"Request error: {str(e)}")

        return names
