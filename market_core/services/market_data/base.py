"""
Base classes for market data providers.
Provides HTTP client management, provider error types, and sanitization utilities.
"""

import re
from typing import Any

import httpx
import structlog

from ...core.config import Settings

logger = structlog.get_logger(__name__)


class ProviderError(Exception):
    """Upstream provider failed (transport, timeout, malformed payload)."""

    def __init__(self, message: str, provider: str, symbol: str | None = None):
        super().__init__(message)
        self.provider = provider
        self.symbol = symbol


class SymbolNotFoundError(ProviderError):
    """Provider reports the symbol as unknown or returned no usable data."""


class HttpProviderBase:
    """
    Base class for HTTP (JSON) provider interactions.

    Provides:
    - HTTP client with connection pooling
    - API key management
    - URL/text sanitization (removes API keys from logs)
    - Resource cleanup
    """

    provider_name = "http"

    # Class-level compiled regex pattern for API key sanitization
    _API_KEY_PATTERN = re.compile(r"(api[\s_-]?key=)[^&\s]+", flags=re.IGNORECASE)

    def __init__(
        self,
        settings: Settings,
        api_key: str,
        base_url: str,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize provider with API key and persistent HTTP client.

        Args:
            settings: Application settings
            api_key: Provider API key (empty string disables the provider)
            base_url: Provider base URL without trailing slash
            client: Optional pre-built client (tests inject a mock transport)
        """
        self.settings = settings
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

        # Persistent HTTP client with connection pooling
        self.client = client or httpx.AsyncClient(
            timeout=settings.provider_timeout_seconds,
            limits=httpx.Limits(
                max_keepalive_connections=5,
                max_connections=10,
                keepalive_expiry=30.0,
            ),
        )

        if not self.api_key:
            logger.warning("Provider API key not configured", provider=self.provider_name)

        logger.info(
            "Market data provider initialized",
            provider=self.provider_name,
            api_key_configured=bool(self.api_key),
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def close(self) -> None:
        """Close HTTP client and cleanup resources."""
        await self.client.aclose()
        logger.info("Market data provider closed", provider=self.provider_name)

    def _sanitize_text(self, text: str) -> str:
        """Remove API key from text strings before logging or raising exceptions."""
        text = self._API_KEY_PATTERN.sub(r"\1****", text)
        if self.api_key and self.api_key in text:
            text = text.replace(self.api_key, "****")
        return text

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """
        GET a JSON document relative to the base URL.

        Raises:
            ProviderError: Non-200 status, transport failure, or undecodable body
        """
        query = dict(params or {})
        query["apikey"] = self.api_key
        url = f"{self.base_url}/{path.lstrip('/')}"

        try:
            response = await self.client.get(url, params=query)
        except httpx.HTTPError as e:
            raise ProviderError(
                self._sanitize_text(f"Request failed: {e}"), provider=self.provider_name
            ) from e

        if response.status_code != 200:
            raise ProviderError(
                f"HTTP {response.status_code} for {path}", provider=self.provider_name
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(
                f"Invalid JSON for {path}", provider=self.provider_name
            ) from e
