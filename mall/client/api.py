import logging
from typing import Any, Dict, Optional

import httpx

from mall.client.exceptions import ApiConfigurationError, ApiError
from mall.configuration.settings import Configuration

configuration = Configuration()

DEFAULT_API_URL = "http://localhost:3001"


def normalize_base_url(url: Optional[str]) -> str:
    url = (url or DEFAULT_API_URL).strip().rstrip("/")
    if not url.startswith("http://") and not url.startswith("https://"):
        url = f"http://{url}"
    return url


class ApiClient:
    """Shared HTTP session for the storefront services; keeps the auth cookie jar."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.base_url = normalize_base_url(base_url or configuration.api_url)
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            transport=transport,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )

    @property
    def cookies(self) -> httpx.Cookies:
        return self._client.cookies

    async def request(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        return await self._client.request(method, endpoint, **kwargs)

    def parse_json(self, response: httpx.Response) -> Dict[str, Any]:
        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            logging.error(
                f"API >>> Non-JSON response from {response.request.url} "
                f"status={response.status_code} preview={response.text[:200]!r}"
            )
            raise ApiConfigurationError(
                f"Expected JSON but received {content_type or 'no content type'}. "
                f"Check if the API URL is correct: {self.base_url}",
                response.status_code,
            )
        return response.json()

    @staticmethod
    def error_message(payload: Dict[str, Any], status_code: int) -> str:
        message = payload.get("message") if isinstance(payload, dict) else None
        if not message and isinstance(payload, dict):
            message = payload.get("detail") if isinstance(payload.get("detail"), str) else None
        return message or f"HTTP error! status: {status_code}"

    def raise_for_error(self, response: httpx.Response, payload: Dict[str, Any]) -> None:
        if not response.is_success:
            raise ApiError(self.error_message(payload, response.status_code), response.status_code)

    async def close(self):
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()
