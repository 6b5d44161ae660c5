import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, status, Request

import settings
from errors import Expired, InvalidSignature
from tokens import validate_token

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "token"


@dataclass(frozen=True)
class AuthContext:
    user_id: Optional[int]
    is_authenticated: bool


ANONYMOUS = AuthContext(user_id=None, is_authenticated=False)


def _token_from_request(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization") or ""
    if header.lower().startswith("bearer "):
        return header[7:].strip()
    return request.cookies.get(TOKEN_COOKIE)


async def optional_auth(request: Request) -> AuthContext:
    """Resolve the caller from a bearer token or the token cookie.

    A missing, tampered or expired token means an anonymous caller.
    """
    token = _token_from_request(request)
    if not token:
        return ANONYMOUS
    try:
        claims = validate_token(token, settings.SECRET_KEY)
    except (InvalidSignature, Expired) as e:
        logger.info("rejected token: %s", e)
        return ANONYMOUS
    return AuthContext(user_id=claims.user_id, is_authenticated=True)


async def require_auth(request: Request) -> AuthContext:
    """Require a valid token."""
    ctx = await optional_auth(request)
    if not ctx.is_authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or missing token")
    return ctx
