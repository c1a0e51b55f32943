"""Caller authentication

Bearer token → stable caller id. The id is a short digest so raw tokens
never reach logs or rate-limit keys.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Iterable, Optional

from trainsurf.models.errors import AuthError

logger = logging.getLogger("trainsurf.utils.auth")

_BEARER = "bearer "
MAX_TOKEN_LENGTH = 512


def caller_id_for(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()[:16]


class BearerAuthenticator:
    """Checks Authorization headers against a fixed token set

    An empty token set accepts any well-formed bearer token.
    """

    def __init__(self, tokens: Iterable[str] = ()) -> None:
        self._tokens = frozenset(tokens)
        if not self._tokens:
            logger.warning("No API tokens configured: accepting any bearer token")

    def authenticate(self, header: Optional[str]) -> str:
        if not header or not header.lower().startswith(_BEARER):
            raise AuthError("Missing bearer token")
        token = header[len(_BEARER):].strip()
        if not token or len(token) > MAX_TOKEN_LENGTH:
            raise AuthError("Malformed bearer token")
        raw = token.encode("utf-8")
        if self._tokens and not any(hmac.compare_digest(raw, t.encode("utf-8")) for t in self._tokens):
            raise AuthError("Invalid bearer token")
        return caller_id_for(token)
