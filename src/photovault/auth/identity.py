"""Resolve the authenticated requester from a bearer token.

Authentication itself happens upstream (session login issues the token);
the object routes only need a verified principal id to authorize against.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import ExpiredSignatureError
from jwt import InvalidTokenError as PyJWTInvalidTokenError

from ..api.errors import unauthorized_error

security = HTTPBearer(auto_error=False)


@dataclass(slots=True)
class RequesterTokens:
    """Issue and validate HS256 tokens whose ``sub`` is the principal id."""

    signing_key: str
    token_ttl: timedelta = timedelta(hours=24)

    def issue(self, principal_id: str, issued_at: datetime | None = None) -> str:
        issued_at = issued_at or datetime.now(tz=timezone.utc)
        payload: dict[str, Any] = {
            "sub": principal_id,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.token_ttl).timestamp()),
        }
        return jwt.encode(payload, self.signing_key, algorithm="HS256")

    def principal_from(self, token: str) -> str:
        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                self.signing_key,
                algorithms=["HS256"],
                options={"require": ["exp", "iat", "sub"]},
            )
        except ExpiredSignatureError as exc:
            raise unauthorized_error("Token expired") from exc
        except PyJWTInvalidTokenError as exc:
            raise unauthorized_error("Invalid token") from exc
        return str(payload["sub"])


def get_requester_tokens(request: Request) -> RequesterTokens:
    try:
        return request.app.state.requester_tokens  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - wiring error
        raise RuntimeError("RequesterTokens is not configured") from exc


def get_requester_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    tokens: RequesterTokens = Depends(get_requester_tokens),
) -> str:
    if credentials is None:
        raise unauthorized_error("Authentication required")
    return tokens.principal_from(credentials.credentials)


__all__ = ["RequesterTokens", "get_requester_id", "get_requester_tokens", "security"]
