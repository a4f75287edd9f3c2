"""HTTP client for the summarisation backend.

The backend proxies the LLM providers and answers ``POST /api/summarize``
with takeaways plus ``<mark>``-annotated text.  Transport errors, non-2xx
statuses, error bodies and unparseable JSON all surface as
``NetworkFailureError`` so the session can fall back to a placeholder.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

import httpx
from pydantic import ValidationError

from skimlight.backend.payload import (
    SummaryResponse,
    SummaryResult,
    placeholder_result,
)

if TYPE_CHECKING:
    from skimlight.config import BackendConfig

logger = logging.getLogger(__name__)

SUMMARIZE_PATH = "/api/summarize"


class NetworkFailureError(RuntimeError):
    """The backend could not produce a summary."""


class BackendTimeoutError(NetworkFailureError):
    """The backend did not answer within the request timeout."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Backend did not respond within {timeout:g}s")


class Summarizer(Protocol):
    """Anything that can turn selected text into a SummaryResult."""

    async def summarize(self, text: str, provider: str) -> SummaryResult: ...


class SummaryClient:
    """Async client for the ``/api/summarize`` endpoint."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        *,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client.

        Args:
            base_url: Backend root, e.g. ``https://reader.example.com``.
            api_key: Value sent in the ``X-API-Key`` header.
            timeout: Seconds to wait for a response.
            client: Shared ``httpx.AsyncClient``; one is created per request
                when omitted.
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_config(cls, config: BackendConfig) -> SummaryClient:
        return cls(
            config.base_url,
            config.api_key.get_secret_value(),
            timeout=config.timeout,
        )

    async def summarize(self, text: str, provider: str) -> SummaryResult:
        """Request a summary of *text* from *provider*.

        Raises:
            BackendTimeoutError: The request timed out.
            NetworkFailureError: Any other transport, status or payload error.
        """
        owns_client = self._client is None
        client = self._client or httpx.AsyncClient(timeout=self.timeout)
        headers = {"X-API-Key": self.api_key} if self.api_key else {}
        try:
            response = await client.post(
                f"{self.base_url}{SUMMARIZE_PATH}",
                json={"text": text, "provider": provider},
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as exc:
            raise BackendTimeoutError(self.timeout) from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            msg = f"HTTP {status}: {exc.response.reason_phrase}"
            raise NetworkFailureError(msg) from exc
        except httpx.HTTPError as exc:
            raise NetworkFailureError(str(exc) or type(exc).__name__) from exc
        except ValueError as exc:
            msg = "Backend returned invalid JSON"
            raise NetworkFailureError(msg) from exc
        finally:
            if owns_client:
                await client.aclose()

        if not isinstance(data, dict) or data.get("error"):
            message = data.get("message") if isinstance(data, dict) else None
            msg = f"Backend reported an error: {message or 'unknown'}"
            raise NetworkFailureError(msg)
        try:
            parsed = SummaryResponse.model_validate(data)
        except ValidationError as exc:
            msg = "Backend response has an unexpected shape"
            raise NetworkFailureError(msg) from exc

        logger.info(
            "Summary received: provider=%s, request=%s",
            parsed.provider or provider,
            parsed.request_id,
        )
        return SummaryResult.from_response(parsed)


class OfflineSummarizer:
    """Summarizer that never touches the network.

    Always answers with the degraded placeholder result.
    """

    async def summarize(self, text: str, provider: str) -> SummaryResult:
        return placeholder_result(text, provider)
