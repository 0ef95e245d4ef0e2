"""OAuth protocol clients, state codec and pending-authorization storage."""

from oauth_handshake.auth.oauth1 import OAuth1Client
from oauth_handshake.auth.oauth2 import OAuth2Client
from oauth_handshake.auth.pending import (
    FileBackend,
    MemoryBackend,
    PendingAuthorization,
    PendingAuthorizationStore,
    PendingBackend,
    RedisBackend,
)
from oauth_handshake.auth.state import StateCodec, decode_state, encode_state

__all__ = [
    "FileBackend",
    "MemoryBackend",
    "OAuth1Client",
    "OAuth2Client",
    "PendingAuthorization",
    "PendingAuthorizationStore",
    "PendingBackend",
    "RedisBackend",
    "StateCodec",
    "decode_state",
    "encode_state",
]
