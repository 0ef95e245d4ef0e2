"""Shared HTTP plumbing for the OAuth1 and OAuth2 protocol clients."""

import logging
from typing import Any
from urllib.parse import parse_qsl

import httpx

from oauth_handshake.config import DEFAULT_TIMEOUT
from oauth_handshake.exceptions import ProviderUnavailableError, TokenExchangeError

logger = logging.getLogger(__name__)


def parse_token_body(response: httpx.Response) -> dict[str, Any]:
    """Parse a token endpoint body.

    OAuth1 providers answer form-encoded; OAuth2 providers usually answer JSON
    but some (GitHub without an Accept header, older Facebook) use form encoding.
    """
    content_type = response.headers.get("Content-Type", "")
    if "json" in content_type:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    text = response.text.strip()
    if text.startswith("{"):
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            return data

    return dict(parse_qsl(text, keep_blank_values=True))


class ProtocolClient:
    """Base class for provider-facing protocol clients.

    Network calls are never retried here: a token exchange consumes a one-time
    code or verifier, so retrying is left to the caller.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._http_client = http_client
        self.timeout = timeout

    def set_http_client(self, http_client: httpx.AsyncClient | None) -> None:
        """Set the shared HTTP client for connection pooling."""
        self._http_client = http_client

    async def _post(
        self,
        url: str,
        *,
        stage: str,
        headers: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
    ) -> httpx.Response:
        """POST to a provider endpoint.

        Raises:
            ProviderUnavailableError: On timeout or transport failure.
        """
        logger.debug("Request: POST %s (%s)", url, stage)

        try:
            if self._http_client is not None:
                # Use shared connection pool
                return await self._http_client.post(
                    url, headers=headers, data=data, timeout=self.timeout
                )

            # Fallback: create per-request client (no pooling)
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                return await client.post(url, headers=headers, data=data)
        except httpx.TimeoutException as e:
            raise ProviderUnavailableError(
                f"Timed out after {self.timeout}s calling {url}", stage=stage
            ) from e
        except httpx.TransportError as e:
            raise ProviderUnavailableError(f"Could not reach {url}: {e}", stage=stage) from e

    def _handle_response(self, response: httpx.Response, *, stage: str) -> dict[str, Any]:
        """Parse a token response, raising on provider-reported failure."""
        body = parse_token_body(response)

        if response.status_code >= 400:
            error_msg = (
                body.get("error_description")
                or body.get("error")
                or body.get("oauth_problem")
                or response.text
                or f"HTTP {response.status_code}"
            )
            raise TokenExchangeError(
                f"Token request failed ({response.status_code}): {error_msg}",
                stage=stage,
                status_code=response.status_code,
                response_body=body or response.text,
            )

        # Some OAuth2 providers report errors with a 200 status
        if "error" in body:
            error_msg = body.get("error_description") or body["error"]
            raise TokenExchangeError(
                f"Token request failed: {error_msg}",
                stage=stage,
                status_code=response.status_code,
                response_body=body,
            )

        return body
