import logging
from datetime import timedelta
from typing import Tuple

from credentials import hash_password, verify_password
from errors import Unauthorized, ValidationFailed
from models import User
from pastes import utcnow
from schemas import UserLogin, UserRegister
from store import UserStore
from tokens import DEFAULT_TTL, issue_token

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, store: UserStore, token_ttl: timedelta = DEFAULT_TTL, clock=utcnow, hash_rounds=None):
        self.store = store
        self.token_ttl = token_ttl
        self.clock = clock
        self.hash_rounds = hash_rounds

    async def register(self, form: UserRegister) -> User:
        username = form.username.strip()
        email = form.email.strip()
        if not username:
            raise ValidationFailed("username is required")
        if not email:
            raise ValidationFailed("email is required")
        if not form.password:
            raise ValidationFailed("password is required")
        if form.password != form.repassword:
            raise ValidationFailed("passwords don't match")
        try:
            hashed = hash_password(form.password, self.hash_rounds)
        except ValueError as e:
            raise ValidationFailed(str(e)) from e

        user = await self.store.insert(username, email, hashed, self.clock())
        logger.info("registered user %s (id=%d)", user.username, user.id)
        return user

    async def authenticate(self, login: UserLogin, secret: str) -> Tuple[str, User]:
        """Check the credentials and issue a token for the user."""
        user = await self.store.find_by_username(login.username)
        if user is None:
            raise Unauthorized("invalid credentials")
        if not verify_password(login.password, user.password_hash):
            raise Unauthorized("invalid credentials")
        token = issue_token(user, secret, self.token_ttl, now=self.clock())
        return token, user
