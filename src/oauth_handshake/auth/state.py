"""Round-trip state encoding."""

import base64
import binascii
import json
import re
from collections.abc import Mapping
from typing import Any

from oauth_handshake.exceptions import MalformedStateError

_TOKEN_PATTERN = re.compile(r"[A-Za-z0-9_-]+={0,2}")


class StateCodec:
    """Encodes state payloads into URL-safe tokens and back.

    Tokens are compact JSON wrapped in unpadded URL-safe base64, so they only
    contain ``A-Z a-z 0-9 - _`` and can be placed in a query string as-is.
    """

    def encode(self, payload: Mapping[str, Any]) -> str:
        """Encode a JSON-compatible mapping into a state token."""
        data = json.dumps(dict(payload), separators=(",", ":"), sort_keys=True)
        return base64.urlsafe_b64encode(data.encode()).decode().rstrip("=")

    def decode(self, token: str) -> dict[str, Any]:
        """Decode a state token.

        Raises:
            MalformedStateError: If the token does not reverse to a JSON object.
        """
        if not isinstance(token, str) or not token:
            raise MalformedStateError("State token is empty or not a string")

        if not _TOKEN_PATTERN.fullmatch(token):
            raise MalformedStateError("State token is not URL-safe base64")

        data = token.rstrip("=")
        try:
            raw = base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))
            # Non-canonical trailing bits would let two tokens decode alike
            if base64.urlsafe_b64encode(raw).decode().rstrip("=") != data:
                raise ValueError("non-canonical encoding")
            payload = json.loads(raw.decode())
        except (binascii.Error, UnicodeError, ValueError) as e:
            raise MalformedStateError(f"State token could not be decoded: {e}") from None

        if not isinstance(payload, dict):
            raise MalformedStateError("State token does not contain an object")

        return payload


_default_codec = StateCodec()


def encode_state(payload: Mapping[str, Any]) -> str:
    """Encode state with the default codec."""
    return _default_codec.encode(payload)


def decode_state(token: str) -> dict[str, Any]:
    """Decode state with the default codec."""
    return _default_codec.decode(token)
