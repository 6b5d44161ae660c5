"""Persistence for pastes and users on top of `databases` + SQLAlchemy Core.

Instants are stored as naive UTC and come back as aware UTC. Expired pastes
are filtered out of every read, whether or not a sweep has removed them yet.
"""
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import and_, delete, exists, insert, or_, select
from sqlalchemy.exc import IntegrityError, OperationalError

from db_sqlalchemy import pastes, users
from errors import ConstraintViolation, DuplicateIdentifier, StorageUnavailable
from models import Paste, Privacy, User

logger = logging.getLogger(__name__)

_INTEGRITY_ERRORS = (sqlite3.IntegrityError, IntegrityError)
_CONNECTIVITY_ERRORS = (sqlite3.OperationalError, OperationalError, OSError)


def _to_db(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _from_db(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _alive(now: datetime):
    return or_(pastes.c.expires == None, pastes.c.expires > _to_db(now))  # noqa: E711


@contextmanager
def _storage_errors(op: str):
    try:
        yield
    except _CONNECTIVITY_ERRORS as e:
        logger.error("%s: storage unavailable: %s", op, e)
        raise StorageUnavailable(f"{op}: {e}") from e


class PasteStore:
    def __init__(self, db):
        self._db = db

    def _check_connected(self, op: str):
        if not self._db.is_connected:
            raise StorageUnavailable(f"{op}: no database connection")

    async def insert(self, paste: Paste) -> None:
        """Insert a new paste.

        Raises DuplicateIdentifier if the id is taken and ConstraintViolation
        if owner_id does not reference an existing user.
        """
        self._check_connected("insert")
        with _storage_errors("insert"):
            if paste.owner_id is not None:
                q = select(exists().where(users.c.id == paste.owner_id))
                if not await self._db.fetch_val(q):
                    raise ConstraintViolation(f"owner {paste.owner_id} does not exist")
            values = dict(
                id=paste.id,
                title=paste.title,
                body=paste.body,
                created=_to_db(paste.created),
                expires=_to_db(paste.expires),
                delete_after_read=paste.delete_after_read,
                privacy=paste.privacy.value,
                password_hash=paste.password,
                syntax=paste.syntax,
            )
            # anonymous pastes leave owner_id out entirely
            if paste.owner_id is not None:
                values["owner_id"] = paste.owner_id
            try:
                await self._db.execute(insert(pastes).values(**values))
            except _INTEGRITY_ERRORS as e:
                if "foreign key" in str(e).lower():
                    raise ConstraintViolation(str(e)) from e
                raise DuplicateIdentifier(f"paste id {paste.id} already exists") from e

    async def fetch_by_id(self, paste_id: int, now: datetime) -> Optional[Paste]:
        """Return the paste with its owner's username attached, or None if it
        is missing or expired."""
        self._check_connected("fetch")
        q = (
            select(pastes, users.c.username.label("owner_name"))
            .select_from(pastes.outerjoin(users, pastes.c.owner_id == users.c.id))
            .where(and_(pastes.c.id == paste_id, _alive(now)))
        )
        with _storage_errors("fetch"):
            row = await self._db.fetch_one(q)
        if not row:
            return None
        return self._row_to_paste(row, row["owner_name"])

    async def delete_by_id(self, paste_id: int) -> None:
        self._check_connected("delete")
        with _storage_errors("delete"):
            await self._db.execute(delete(pastes).where(pastes.c.id == paste_id))

    async def list_by_owner(self, owner_id: Optional[int], now: datetime) -> List[Paste]:
        """List live pastes of one owner, newest first. None lists only
        ownerless pastes."""
        self._check_connected("list")
        if owner_id is None:
            cond = pastes.c.owner_id == None  # noqa: E711
        else:
            cond = pastes.c.owner_id == owner_id
        q = select(pastes).where(and_(cond, _alive(now))).order_by(pastes.c.created.desc())
        with _storage_errors("list"):
            rows = await self._db.fetch_all(q)
        return [self._row_to_paste(r) for r in rows]

    async def purge_expired(self, now: datetime) -> int:
        self._check_connected("purge")
        cutoff = _to_db(now)
        with _storage_errors("purge"):
            rows = await self._db.fetch_all(
                select(pastes.c.id).where(pastes.c.expires != None).where(pastes.c.expires <= cutoff)  # noqa: E711
            )
            ids = [r["id"] for r in rows]
            if ids:
                await self._db.execute(delete(pastes).where(pastes.c.id.in_(ids)))
        return len(ids)

    @staticmethod
    def _row_to_paste(row, owner_name=None) -> Paste:
        return Paste(
            id=row["id"],
            title=row["title"] or "",
            body=row["body"] or "",
            created=_from_db(row["created"]),
            expires=_from_db(row["expires"]),
            delete_after_read=bool(row["delete_after_read"]),
            privacy=Privacy(row["privacy"]),
            password=row["password_hash"] or "",
            syntax=row["syntax"] or "",
            owner_id=row["owner_id"],
            owner_name=owner_name,
        )


class UserStore:
    def __init__(self, db):
        self._db = db

    async def insert(self, username: str, email: str, password_hash: str, created: datetime) -> User:
        """Insert a user. The UNIQUE constraints on username and email make
        concurrent registrations of the same name fail with ConstraintViolation."""
        if not self._db.is_connected:
            raise StorageUnavailable("insert user: no database connection")
        q = insert(users).values(
            username=username, email=email, password_hash=password_hash, created_at=_to_db(created)
        )
        with _storage_errors("insert user"):
            try:
                user_id = await self._db.execute(q)
            except _INTEGRITY_ERRORS as e:
                raise ConstraintViolation("username or email already registered") from e
        return User(id=user_id, username=username, email=email, password_hash=password_hash, created=created)

    async def _find(self, cond) -> Optional[User]:
        if not self._db.is_connected:
            raise StorageUnavailable("find user: no database connection")
        with _storage_errors("find user"):
            row = await self._db.fetch_one(select(users).where(cond))
        if not row:
            return None
        return User(
            id=row["id"],
            username=row["username"],
            email=row["email"],
            password_hash=row["password_hash"],
            created=_from_db(row["created_at"]),
        )

    async def find_by_id(self, user_id: int) -> Optional[User]:
        return await self._find(users.c.id == user_id)

    async def find_by_username(self, username: str) -> Optional[User]:
        return await self._find(users.c.username == username)

    async def find_by_email(self, email: str) -> Optional[User]:
        return await self._find(users.c.email == email)
