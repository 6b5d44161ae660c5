from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

from models import Paste, Privacy


class PasteForm(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = ""
    body: str = ""
    expires: str = "never"
    deleteAfterRead: bool = False
    privacy: Privacy = Privacy.public
    password: str = ""
    syntax: str = ""


class PasteOut(BaseModel):
    id: int
    code: str
    url: str
    title: str
    body: str
    created: datetime
    expires: Optional[datetime]
    deleteAfterRead: bool
    privacy: Privacy
    hasPassword: bool
    syntax: str
    ownerID: Optional[int]
    ownerName: Optional[str]

    @classmethod
    def from_paste(cls, p: Paste) -> "PasteOut":
        return cls(
            id=p.id,
            code=p.code,
            url=p.url,
            title=p.title,
            body=p.body,
            created=p.created,
            expires=p.expires,
            deleteAfterRead=p.delete_after_read,
            privacy=p.privacy,
            hasPassword=p.has_password,
            syntax=p.syntax,
            ownerID=p.owner_id,
            ownerName=p.owner_name,
        )


class UserRegister(BaseModel):
    username: str
    email: str
    password: str
    repassword: str


class UserLogin(BaseModel):
    username: str
    password: str


class TokenOut(BaseModel):
    token: str
    userID: int
    username: str
    expires: datetime
