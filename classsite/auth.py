"""
Admin authentication: credential checks and stateless bearer tokens.

There is no server-side session store. A token stays valid until it
expires; logging out only discards it on the client.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from classsite.errors import AuthenticationError, InvalidTokenError, MissingTokenError
from classsite.security import (
    create_access_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from classsite.store import AdminUser, UserStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserClaims:
    id: str
    username: str
    role: str

    def as_dict(self) -> dict:
        return {"id": self.id, "username": self.username, "role": self.role}


class CredentialStore:
    """Holds the admin identity and checks passwords against its hash."""

    def __init__(self, users: UserStore, bcrypt_rounds: int = 10):
        self.users = users
        self.bcrypt_rounds = bcrypt_rounds

    def verify(self, username: str, password: str) -> AdminUser:
        user = self.users.get_by_username(username)
        if user is None:
            logger.info("Login rejected: unknown user %r", username)
            raise AuthenticationError()
        if not verify_password(password, user.password_hash):
            logger.info("Login rejected: wrong password for %r", username)
            raise AuthenticationError()
        return user

    def bootstrap(self, username: str, password: str) -> AdminUser:
        """Create the admin user unless one with this username exists."""
        existing = self.users.get_by_username(username)
        if existing is not None:
            logger.info("Admin user '%s' already exists.", username)
            return existing
        user = self.users.create(
            username, get_password_hash(password, self.bcrypt_rounds), role="admin"
        )
        logger.info("Admin user '%s' created.", username)
        return user


class AuthGate:
    """Issues signed, time-limited tokens and validates them on protected routes."""

    def __init__(
        self,
        credentials: CredentialStore,
        secret: str,
        algorithm: str = "HS256",
        expires_in: timedelta = timedelta(hours=24),
    ):
        self.credentials = credentials
        self.secret = secret
        self.algorithm = algorithm
        self.expires_in = expires_in

    def login(self, username: str, password: str) -> dict:
        user = self.credentials.verify(username, password)
        claims = UserClaims(id=user.id, username=user.username, role=user.role)
        token = create_access_token(
            claims.as_dict(), self.secret, self.algorithm, self.expires_in
        )
        return {"message": "Login successful", "token": token, "user": claims.as_dict()}

    def authorize(self, token: Optional[str]) -> UserClaims:
        if not token:
            raise MissingTokenError()
        payload = decode_token(token, self.secret, self.algorithm)
        try:
            return UserClaims(
                id=str(payload["id"]),
                username=payload["username"],
                role=payload["role"],
            )
        except KeyError as exc:
            logger.warning("Token is missing claim %s", exc)
            raise InvalidTokenError() from exc
