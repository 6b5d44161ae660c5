import logging
import sqlite3
from datetime import timedelta

from fastapi import Request, Depends, Response
from fastapi.responses import ORJSONResponse
from pydantic import ValidationError

import base62
import settings
from auth import AuthContext, TOKEN_COOKIE, optional_auth, require_auth
from db_sqlalchemy import database
from errors import (ConstraintViolation, Expired, IdentifierExhausted, InvalidExpirationFormat, InvalidIdentifier,
                    InvalidSignature, NotFound, PasteError, StorageUnavailable, Unauthorized, ValidationFailed)
from models import Privacy
from pastes import PasteLifecycleService
from schemas import PasteForm, PasteOut, TokenOut, UserLogin, UserRegister
from store import PasteStore, UserStore
from tokens import validate_token
from users import UserService

logger = logging.getLogger(__name__)

# One generator for the whole process
_allocator = base62.IdentifierAllocator()

_STATUS = {
    NotFound: 404,
    InvalidIdentifier: 404,
    InvalidExpirationFormat: 400,
    ValidationFailed: 400,
    ConstraintViolation: 409,
    Unauthorized: 401,
    InvalidSignature: 401,
    Expired: 401,
    IdentifierExhausted: 503,
    StorageUnavailable: 503,
}


async def paste_error_handler(request: Request, exc: PasteError):
    code = _STATUS.get(type(exc), 500)
    if code == 404:
        # unknown, expired and malformed ids all look the same
        return ORJSONResponse(status_code=404, content={"message": "paste not found"})
    if code >= 500:
        logger.error("%s %s failed: %r", request.method, request.url.path, exc)
    return ORJSONResponse(status_code=code, content={"message": str(exc)})


def get_paste_service() -> PasteLifecycleService:
    return PasteLifecycleService(
        PasteStore(database),
        allocator=_allocator,
        max_id_attempts=settings.ID_MAX_ATTEMPTS,
        hash_rounds=settings.PASSWORD_HASH_ROUNDS,
    )


def get_user_service() -> UserService:
    return UserService(
        UserStore(database),
        token_ttl=timedelta(minutes=settings.TOKEN_TTL_MINUTES),
        hash_rounds=settings.PASSWORD_HASH_ROUNDS,
    )


def _paste_json(paste):
    return PasteOut.from_paste(paste).model_dump(mode="json")


async def create_paste_handler(
    request: Request,
    auth: AuthContext = Depends(optional_auth),
    svc: PasteLifecycleService = Depends(get_paste_service),
):
    content_type = request.headers.get("content-type", "")
    if content_type and not content_type.startswith("application/json"):
        return ORJSONResponse(status_code=415, content={"message": "wrong Content-Type header, expect application/json"})

    # --- Read the body, refusing anything over the cap ---
    max_bytes = settings.MAX_BODY_BYTES
    body_bytes = bytearray()
    async for chunk in request.stream():
        body_bytes.extend(chunk)
        if len(body_bytes) > max_bytes:
            return ORJSONResponse(status_code=400, content={"message": f"Request body must not be larger than {max_bytes} bytes"})

    if not body_bytes.strip():
        return ORJSONResponse(status_code=400, content={"message": "Request body must not be empty"})
    try:
        form = PasteForm.model_validate_json(bytes(body_bytes))
    except ValidationError as e:
        errs = e.errors()
        if any(err["type"] == "extra_forbidden" for err in errs):
            fields = ", ".join(str(err["loc"][-1]) for err in errs if err["type"] == "extra_forbidden")
            return ORJSONResponse(status_code=400, content={"message": f"Request body contains unknown field {fields}"})
        return ORJSONResponse(status_code=400, content={"message": "Request body contains an invalid value", "errors": [
            {"loc": list(err["loc"]), "msg": err["msg"]} for err in errs
        ]})

    paste = await svc.create(form, owner_id=auth.user_id)
    return ORJSONResponse(status_code=201, content=_paste_json(paste), headers={"Location": paste.url})


async def get_paste_handler(
    code: str,
    request: Request,
    auth: AuthContext = Depends(optional_auth),
    svc: PasteLifecycleService = Depends(get_paste_service),
):
    paste_id = base62.decode(code)
    paste = await svc.lookup(paste_id)
    if paste.privacy == Privacy.private and paste.owner_id != auth.user_id:
        raise NotFound(f"paste {code} not found")
    paste = await svc.get(paste_id, request.headers.get("X-Paste-Password", ""))
    return ORJSONResponse(content=_paste_json(paste))


async def delete_paste_handler(
    code: str,
    auth: AuthContext = Depends(require_auth),
    svc: PasteLifecycleService = Depends(get_paste_service),
):
    paste_id = base62.decode(code)
    paste = await svc.lookup(paste_id)
    if paste.owner_id is not None and paste.owner_id != auth.user_id:
        if paste.privacy == Privacy.private:
            # same answer as for a missing id
            raise NotFound(f"paste {code} not found")
        return ORJSONResponse(status_code=403, content={"message": "Forbidden"})
    await svc.delete(paste_id)
    return Response(status_code=204)


async def list_pastes_handler(
    auth: AuthContext = Depends(optional_auth),
    svc: PasteLifecycleService = Depends(get_paste_service),
):
    result = await svc.list(auth.user_id)
    if not auth.is_authenticated:
        result = [p for p in result if p.privacy == Privacy.public]
    return ORJSONResponse(content=[_paste_json(p) for p in result])


async def register_handler(user: UserRegister, svc: UserService = Depends(get_user_service)):
    created = await svc.register(user)
    return ORJSONResponse(status_code=201, content={"id": created.id, "username": created.username})


async def login_handler(login: UserLogin, svc: UserService = Depends(get_user_service)):
    token, user = await svc.authenticate(login, settings.SECRET_KEY)
    claims = validate_token(token, settings.SECRET_KEY)
    out = TokenOut(token=token, userID=user.id, username=user.username, expires=claims.expires)
    response = ORJSONResponse(content=out.model_dump(mode="json"))
    response.set_cookie(
        TOKEN_COOKIE, token, httponly=True, samesite="lax", max_age=settings.TOKEN_TTL_MINUTES * 60
    )
    return response


async def logout_handler():
    response = Response(status_code=200)
    response.delete_cookie(TOKEN_COOKIE)
    return response


async def health_handler():
    if not database.is_connected:
        return ORJSONResponse(status_code=500, content={"message": {"status": "error", "db_status": "disconnected"}})
    try:
        await database.fetch_val("SELECT 1")
    except (sqlite3.Error, OSError) as e:
        logger.error("health check failed: %s", e)
        return ORJSONResponse(status_code=500, content={"message": {"status": "error", "db_status": "unavailable"}})
    return {"status": "ok", "db_status": "ok"}
