"""HMAC-signed bearer tokens identifying the record owner.

Token format:  ``{owner_id}.{hmac_hex}`` where
``hmac_hex = HMAC-SHA256(AUTH_SECRET, owner_id)``.

Issuing and verifying is stateless; there is no login flow here.  Tokens
are minted out of band with ``python -m src.cli.links token <owner>``.

When ``AUTH_SECRET`` is empty (local development) the bearer value is
taken verbatim as the owner id.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Annotated

from fastapi import Depends, Request

from src.utils.errors import AuthenticationError

_BEARER_PREFIX = "bearer "


def _sign(owner_id: str, secret: str) -> str:
    return hmac.new(
        secret.encode("utf-8"),
        owner_id.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def issue_token(owner_id: str, secret: str) -> str:
    """Return a bearer token for *owner_id*.

    With an empty *secret* the owner id itself is the token.
    """
    if not owner_id or not owner_id.strip():
        raise AuthenticationError("Owner id must not be empty")
    if not secret:
        return owner_id
    return f"{owner_id}.{_sign(owner_id, secret)}"


def verify_token(token: str, secret: str) -> str:
    """Return the owner id a token was issued for.

    Raises
    ------
    AuthenticationError
        If the token is empty, malformed, or its signature does not match.
    """
    token = (token or "").strip()
    if not token:
        raise AuthenticationError("Missing bearer token")
    if not secret:
        return token

    # Owner ids may themselves contain dots; the signature never does.
    owner_id, sep, signature = token.rpartition(".")
    if not sep or not owner_id or not signature:
        raise AuthenticationError("Malformed bearer token")
    if not hmac.compare_digest(signature, _sign(owner_id, secret)):
        raise AuthenticationError("Invalid bearer token")
    return owner_id


def get_owner_id(request: Request) -> str:
    """FastAPI dependency: authenticate the request and return its owner id."""
    header = request.headers.get("authorization", "")
    if not header.lower().startswith(_BEARER_PREFIX):
        raise AuthenticationError("Missing bearer token")
    secret: str = getattr(request.app.state, "auth_secret", "")
    return verify_token(header[len(_BEARER_PREFIX):], secret)


OwnerDep = Annotated[str, Depends(get_owner_id)]
