"""OAuth 1.0a (RFC 5849) request-token and access-token legs."""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import secrets
import time
from typing import TYPE_CHECKING
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

from pydantic import ValidationError

from oauth_handshake.auth.base import ProtocolClient
from oauth_handshake.exceptions import TokenExchangeError
from oauth_handshake.models.auth import AccessToken, RequestToken

if TYPE_CHECKING:
    from oauth_handshake.config import Credentials
    from oauth_handshake.providers import ProviderDescriptor

logger = logging.getLogger(__name__)


def percent_encode(value: str) -> str:
    """Percent-encode per RFC 3986 (only ``A-Z a-z 0-9 - . _ ~`` left as-is)."""
    return quote(str(value), safe="~")


class OAuth1Client(ProtocolClient):
    """Drives the signed legs of an OAuth 1.0a flow.

    1. Get request token (temporary credentials)
    2. User authorization (browser redirect, built by ``authorization_url``)
    3. Exchange verifier for access token
    """

    async def get_request_token(
        self,
        descriptor: ProviderDescriptor,
        credentials: Credentials,
    ) -> RequestToken:
        """Step 1: Obtain a request token, registering the callback URL."""
        url = descriptor.request_token_url or ""

        oauth_params = self._build_oauth_params(credentials, descriptor)
        oauth_params["oauth_callback"] = credentials.redirect_uri

        oauth_params["oauth_signature"] = self._generate_signature(
            method="POST",
            url=url,
            oauth_params=oauth_params,
            consumer_secret=credentials.client_secret,
            token_secret="",
        )

        headers = {"Authorization": self._build_auth_header(oauth_params)}
        response = await self._post(url, stage="request_token", headers=headers)
        data = self._handle_response(response, stage="request_token")

        token = data.get("oauth_token")
        token_secret = data.get("oauth_token_secret")
        if not token or not token_secret:
            raise TokenExchangeError(
                "Invalid request token response",
                stage="request_token",
                status_code=response.status_code,
                response_body=data,
            )

        logger.info("Obtained OAuth1 request token from %s", descriptor.name)

        return RequestToken(
            token=token,
            token_secret=token_secret,
            callback_confirmed=data.get("oauth_callback_confirmed") == "true",
        )

    def authorization_url(self, descriptor: ProviderDescriptor, request_token: str) -> str:
        """Step 2: URL the user visits to authorize the request token.

        OAuth1 has no state parameter; only ``oauth_token`` is sent.
        """
        params = {**descriptor.authorization_params, "oauth_token": request_token}
        separator = "&" if "?" in descriptor.authorization_url else "?"
        return f"{descriptor.authorization_url}{separator}{urlencode(params)}"

    async def get_access_token(
        self,
        descriptor: ProviderDescriptor,
        credentials: Credentials,
        *,
        request_token: str,
        request_token_secret: str,
        verifier: str | None,
    ) -> AccessToken:
        """Step 3: Exchange the authorized request token for an access token."""
        url = descriptor.token_url

        oauth_params = self._build_oauth_params(credentials, descriptor)
        oauth_params["oauth_token"] = request_token
        if verifier:
            oauth_params["oauth_verifier"] = verifier

        oauth_params["oauth_signature"] = self._generate_signature(
            method="POST",
            url=url,
            oauth_params=oauth_params,
            consumer_secret=credentials.client_secret,
            token_secret=request_token_secret,
        )

        headers = {"Authorization": self._build_auth_header(oauth_params)}
        response = await self._post(url, stage="access_token", headers=headers)
        data = self._handle_response(response, stage="access_token")

        if not data.get("oauth_token") or not data.get("oauth_token_secret"):
            raise TokenExchangeError(
                "Invalid access token response",
                stage="access_token",
                status_code=response.status_code,
                response_body=data,
            )

        try:
            token = AccessToken.from_oauth1_response(descriptor.name, data)
        except (ValueError, OverflowError, ValidationError) as e:
            raise TokenExchangeError(
                f"Invalid access token response: {e}",
                status_code=response.status_code,
                response_body=data,
            ) from e

        logger.info("Exchanged OAuth1 verifier for access token with %s", descriptor.name)

        return token

    def _build_oauth_params(
        self, credentials: Credentials, descriptor: ProviderDescriptor
    ) -> dict[str, str]:
        """Build base OAuth parameters."""
        return {
            "oauth_consumer_key": credentials.client_id,
            "oauth_nonce": secrets.token_hex(16),
            "oauth_signature_method": descriptor.signature_method,
            "oauth_timestamp": str(int(time.time())),
            "oauth_version": "1.0",
        }

    def _generate_signature(
        self,
        method: str,
        url: str,
        oauth_params: dict[str, str],
        consumer_secret: str,
        token_secret: str,
    ) -> str:
        """Generate OAuth 1.0a HMAC-SHA1 signature.

        Query parameters on ``url`` are folded into the signed parameter set
        and stripped from the base string URI.
        """
        parts = urlsplit(url)
        base_url = urlunsplit((parts.scheme.lower(), parts.netloc.lower(), parts.path, "", ""))

        # Sort and encode parameters
        all_params = [*parse_qsl(parts.query, keep_blank_values=True), *oauth_params.items()]
        encoded = sorted((percent_encode(k), percent_encode(v)) for k, v in all_params)
        param_string = "&".join(f"{k}={v}" for k, v in encoded)

        # Build signature base string
        base_string = "&".join(
            [
                method.upper(),
                percent_encode(base_url),
                percent_encode(param_string),
            ]
        )

        # Build signing key
        signing_key = f"{percent_encode(consumer_secret)}&{percent_encode(token_secret)}"

        signature = hmac.new(
            signing_key.encode(),
            base_string.encode(),
            hashlib.sha1,
        ).digest()

        return base64.b64encode(signature).decode()

    def _build_auth_header(self, oauth_params: dict[str, str]) -> str:
        """Build OAuth Authorization header."""
        auth_parts = [f'{k}="{percent_encode(v)}"' for k, v in sorted(oauth_params.items())]
        return "OAuth " + ", ".join(auth_parts)
