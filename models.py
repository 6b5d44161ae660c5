from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

import base62


class Privacy(str, Enum):
    public = "public"
    unlisted = "unlisted"
    private = "private"


@dataclass(frozen=True)
class Paste:
    id: int
    title: str
    body: str
    created: datetime
    expires: Optional[datetime]  # None means never
    delete_after_read: bool
    privacy: Privacy
    password: str  # bcrypt hash, "" when no password is set
    syntax: str
    owner_id: Optional[int] = None
    owner_name: Optional[str] = None

    @property
    def code(self) -> str:
        return base62.encode(self.id)

    @property
    def url(self) -> str:
        return f"/paste/{self.code}"

    @property
    def has_password(self) -> bool:
        return bool(self.password)


@dataclass(frozen=True)
class User:
    id: int
    username: str
    email: str
    password_hash: str
    created: Optional[datetime] = None
