"""Signed, time-bound identity tokens (HS256 JWTs).

A token is Issued, stays Valid until its embedded expiry, and is Expired
afterwards. Validation checks the signature and the expiry separately, so a
tampered token is rejected even when it has not expired yet.
"""
import binascii
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt.utils import base64url_decode, base64url_encode

from errors import Expired, InvalidSignature
from models import User

ALGORITHM = "HS256"
DEFAULT_TTL = timedelta(hours=3)


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    username: str
    expires: datetime


def _now() -> datetime:
    return datetime.now(timezone.utc)


def issue_token(user: User, secret: str, ttl: timedelta = DEFAULT_TTL, now: Optional[datetime] = None) -> str:
    now = now or _now()
    payload = {
        "sub": str(user.id),
        "uid": user.id,
        "username": user.username,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def _is_canonical(token: str) -> bool:
    # base64url tolerates flipped padding bits; re-encoding catches them
    parts = token.split(".")
    if len(parts) != 3:
        return False
    try:
        return all(base64url_encode(base64url_decode(p)).decode("ascii") == p for p in parts)
    except (binascii.Error, ValueError):
        return False


def validate_token(token: str, secret: str, now: Optional[datetime] = None) -> TokenClaims:
    if not token or not _is_canonical(token):
        raise InvalidSignature("malformed token")
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            # time checks happen below against our own clock
            options={"verify_exp": False, "verify_iat": False, "require": ["exp", "uid", "username"]},
        )
    except jwt.InvalidTokenError as e:
        raise InvalidSignature(str(e)) from e

    expires = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    if (now or _now()) >= expires:
        raise Expired(f"token expired at {expires.isoformat()}")

    return TokenClaims(user_id=int(payload["uid"]), username=payload["username"], expires=expires)
