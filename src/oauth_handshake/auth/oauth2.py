"""OAuth 2.0 (RFC 6749) authorization-code grant."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING
from urllib.parse import urlencode

from pydantic import ValidationError

from oauth_handshake.auth.base import ProtocolClient
from oauth_handshake.exceptions import TokenExchangeError
from oauth_handshake.models.auth import AccessToken

if TYPE_CHECKING:
    from oauth_handshake.config import Credentials
    from oauth_handshake.providers import ProviderDescriptor

logger = logging.getLogger(__name__)


class OAuth2Client(ProtocolClient):
    """Builds authorization URLs and exchanges authorization codes."""

    def authorization_url(
        self,
        descriptor: ProviderDescriptor,
        credentials: Credentials,
        *,
        state: str,
        scopes: Sequence[str] = (),
    ) -> str:
        """Build the authorization endpoint URL carrying ``state``."""
        params: dict[str, str] = {
            "response_type": "code",
            "client_id": credentials.client_id,
            "redirect_uri": credentials.redirect_uri,
        }
        if scopes:
            params["scope"] = descriptor.scope_separator.join(scopes)
        params.update(descriptor.authorization_params)
        params["state"] = state

        separator = "&" if "?" in descriptor.authorization_url else "?"
        return f"{descriptor.authorization_url}{separator}{urlencode(params)}"

    async def exchange_code(
        self,
        descriptor: ProviderDescriptor,
        credentials: Credentials,
        code: str,
    ) -> AccessToken:
        """Exchange an authorization code for an access token.

        Raises:
            TokenExchangeError: If the provider rejects the code.
            ProviderUnavailableError: On timeout or transport failure.
        """
        payload = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": credentials.redirect_uri,
            "client_id": credentials.client_id,
            "client_secret": credentials.client_secret,
        }
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/x-www-form-urlencoded",
        }

        logger.debug(
            "OAuth2 code exchange with %s: client_id=%s, redirect_uri=%s, code length=%d",
            descriptor.name,
            credentials.client_id,
            credentials.redirect_uri,
            len(code),
        )

        response = await self._post(
            descriptor.token_url, stage="access_token", headers=headers, data=payload
        )
        data = self._handle_response(response, stage="access_token")

        if not data.get("access_token"):
            raise TokenExchangeError(
                "Token response did not include an access_token",
                status_code=response.status_code,
                response_body=data,
            )

        try:
            token = AccessToken.from_oauth2_response(descriptor.name, data)
        except (ValueError, OverflowError, ValidationError) as e:
            raise TokenExchangeError(
                f"Invalid access token response: {e}",
                status_code=response.status_code,
                response_body=data,
            ) from e

        logger.info("Exchanged OAuth2 authorization code for access token with %s", descriptor.name)

        return token
