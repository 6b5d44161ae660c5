"""Paste lifecycle: create, read (with burn-after-read), delete, list.

Burn-after-read is best effort. The delete runs after the paste has been
read and fully built, as a separate store call, so two reads racing each
other may both succeed. A failed burn is logged and does not fail the read.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from base62 import IdentifierAllocator
from credentials import hash_password, verify_password
from errors import (DuplicateIdentifier, IdentifierExhausted, NotFound, StorageUnavailable, Unauthorized,
                    ValidationFailed)
from expiration import compute_expiration
from models import Paste, Privacy
from schemas import PasteForm
from store import PasteStore

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PasteLifecycleService:
    def __init__(
        self,
        store: PasteStore,
        allocator: Optional[IdentifierAllocator] = None,
        clock: Callable[[], datetime] = utcnow,
        max_id_attempts: int = 5,
        hash_rounds=None,
    ):
        self.store = store
        self.allocator = allocator or IdentifierAllocator()
        self.clock = clock
        self.max_id_attempts = max_id_attempts
        self.hash_rounds = hash_rounds

    async def create(self, form: PasteForm, owner_id: Optional[int] = None) -> Paste:
        """Validate the form, then store a new paste under a fresh random id.

        Id collisions are retried up to max_id_attempts times before giving
        up with IdentifierExhausted.
        """
        if not form.body and not form.title.strip():
            raise ValidationFailed("body may only be empty when a title is given")
        if form.privacy == Privacy.private and owner_id is None:
            raise ValidationFailed("private pastes need an owner")

        created = self.clock()
        expires = compute_expiration(form.expires, created)
        try:
            password = hash_password(form.password, self.hash_rounds)
        except ValueError as e:
            # bcrypt refuses passwords over 72 bytes
            raise ValidationFailed(str(e)) from e

        for attempt in range(1, self.max_id_attempts + 1):
            paste = Paste(
                id=self.allocator.allocate(),
                title=form.title,
                body=form.body,
                created=created,
                expires=expires,
                delete_after_read=form.deleteAfterRead,
                privacy=form.privacy,
                password=password,
                syntax=form.syntax,
                owner_id=owner_id,
            )
            try:
                await self.store.insert(paste)
            except DuplicateIdentifier:
                logger.warning("paste id collision on attempt %d/%d", attempt, self.max_id_attempts)
                continue
            logger.info("created paste %s (owner=%s, expires=%s)", paste.code, owner_id, expires)
            return paste

        raise IdentifierExhausted(f"no free paste id after {self.max_id_attempts} attempts")

    async def lookup(self, paste_id: int) -> Paste:
        """Fetch a live paste without checking its password or burning it."""
        paste = await self.store.fetch_by_id(paste_id, self.clock())
        if paste is None:
            raise NotFound(f"paste {paste_id} not found")
        return paste

    async def get(self, paste_id: int, password: str = "") -> Paste:
        paste = await self.lookup(paste_id)
        if not verify_password(password, paste.password):
            raise Unauthorized("wrong paste password")

        if paste.delete_after_read:
            try:
                await self.store.delete_by_id(paste.id)
            except StorageUnavailable:
                logger.exception("failed to burn paste %s after read", paste.code)
            else:
                logger.info("burned paste %s after read", paste.code)
        return paste

    async def delete(self, paste_id: int) -> None:
        # Callers decide who may delete; this only checks existence.
        await self.lookup(paste_id)
        await self.store.delete_by_id(paste_id)
        logger.info("deleted paste %d", paste_id)

    async def list(self, owner_id: Optional[int]) -> List[Paste]:
        return await self.store.list_by_owner(owner_id, self.clock())

    async def purge_expired(self) -> int:
        n = await self.store.purge_expired(self.clock())
        if n:
            logger.info("purged %d expired pastes", n)
        return n
