"""
Authentication: password hashing (PBKDF2-SHA256) and JWT access/refresh tokens.
"""

import base64
import binascii
import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from app.config import Settings
from app.exceptions import ConflictError, UnauthorizedError
from domain.models import User
from repositories import UserRepository

logger = logging.getLogger("recipemanager.auth")

PBKDF2_ITERATIONS = 260_000
HASH_PREFIX = "pbkdf2_sha256"


def hash_password(password: str, salt: Optional[bytes] = None) -> str:
    """Encode as ``pbkdf2_sha256$<iterations>$<salt>$<hash>`` (base64 parts)."""
    salt = salt or secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, PBKDF2_ITERATIONS)
    return "$".join(
        [
            HASH_PREFIX,
            str(PBKDF2_ITERATIONS),
            base64.b64encode(salt).decode(),
            base64.b64encode(digest).decode(),
        ]
    )


def verify_password(password: str, encoded: str) -> bool:
    try:
        prefix, iterations, salt, expected = encoded.split("$")
    except ValueError:
        return False
    if prefix != HASH_PREFIX:
        return False
    try:
        digest = hashlib.pbkdf2_hmac(
            "sha256", password.encode(), base64.b64decode(salt, validate=True), int(iterations)
        )
    except (ValueError, OverflowError, binascii.Error):
        logger.warning("Stored password hash is malformed")
        return False
    return hmac.compare_digest(base64.b64encode(digest).decode(), expected)


class AuthService:
    def __init__(self, users: UserRepository, settings: Settings):
        self.users = users
        self.settings = settings

    # ------------------ Tokens ------------------
    def _encode(self, user: User, secret: str, minutes: int, kind: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user.id,
            "role": user.role,
            "type": kind,
            "iat": now,
            "exp": now + timedelta(minutes=minutes),
            # unique per token so two tokens issued in the same second differ
            "jti": secrets.token_hex(8),
        }
        return jwt.encode(payload, secret, algorithm=self.settings.jwt_algorithm)

    def create_access_token(self, user: User) -> str:
        return self._encode(
            user, self.settings.jwt_secret, self.settings.jwt_expire_minutes, "access"
        )

    def create_refresh_token(self, user: User) -> str:
        return self._encode(
            user,
            self.settings.jwt_refresh_secret,
            self.settings.jwt_refresh_expire_minutes,
            "refresh",
        )

    def decode_token(self, token: str, refresh: bool = False) -> Dict[str, Any]:
        secret = self.settings.jwt_refresh_secret if refresh else self.settings.jwt_secret
        try:
            payload = jwt.decode(token, secret, algorithms=[self.settings.jwt_algorithm])
        except jwt.ExpiredSignatureError:
            raise UnauthorizedError("Token expired") from None
        except jwt.InvalidTokenError:
            raise UnauthorizedError("Invalid token") from None
        if payload.get("type") != ("refresh" if refresh else "access"):
            raise UnauthorizedError("Invalid token type")
        return payload

    def _issue(self, user: User) -> Dict[str, Any]:
        return {
            "token": self.create_access_token(user),
            "refreshToken": self.create_refresh_token(user),
            "user": user,
        }

    # ------------------ Use cases ------------------
    async def register(self, username: str, email: str, password: str) -> Dict[str, Any]:
        if await self.users.get_by_email(email) or await self.users.get_by_username(username):
            raise ConflictError("User with that email or username already exists")
        user = await self.users.insert(
            User(username=username, email=email, password_hash=hash_password(password))
        )
        tokens = self._issue(user)
        await self.users.record_login(user.id, tokens["refreshToken"])
        logger.info(f"Registered user {user.username}")
        return tokens

    async def login(self, login: str, password: str) -> Dict[str, Any]:
        user = await self.users.get_by_login(login)
        if user is None or not verify_password(password, user.password_hash):
            raise UnauthorizedError("Invalid credentials")
        if not user.is_active:
            raise UnauthorizedError("Account is not active")
        tokens = self._issue(user)
        await self.users.record_login(user.id, tokens["refreshToken"])
        logger.info(f"User {user.username} logged in")
        return tokens

    async def refresh(self, refresh_token: str) -> Dict[str, Any]:
        payload = self.decode_token(refresh_token, refresh=True)
        user = await self.users.get_by_id(payload.get("sub"))
        if user is None or user.refresh_token != refresh_token:
            raise UnauthorizedError("Invalid refresh token")
        if not user.is_active:
            raise UnauthorizedError("Account is not active")
        tokens = self._issue(user)
        await self.users.set_refresh_token(user.id, tokens["refreshToken"])
        return tokens

    async def logout(self, user: User) -> None:
        await self.users.set_refresh_token(user.id, None)
        logger.info(f"User {user.username} logged out")

    async def authenticate(self, token: str) -> User:
        """Resolve a bearer access token to an active user."""
        payload = self.decode_token(token)
        user = await self.users.get_by_id(payload.get("sub"))
        if user is None:
            raise UnauthorizedError("User not found")
        if not user.is_active:
            raise UnauthorizedError("Account is not active")
        return user
