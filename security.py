"""
Admin credentials: salted PBKDF2 password hashes and JWT session tokens.
"""
import secrets
from datetime import datetime, timedelta, timezone
from typing import NamedTuple, Optional

import jwt
from passlib.crypto.digest import pbkdf2_hmac
from passlib.utils import consteq

from config import get_settings
from errors import AuthError, HashError

HASH_DIGEST = "sha512"
HASH_ROUNDS = 100000
HASH_KEY_LENGTH = 64
SALT_BYTES = 16


class PasswordHash(NamedTuple):
    hash: str
    salt: str


def generate_salt() -> str:
    return secrets.token_hex(SALT_BYTES)


def hash_password(password: str, salt: Optional[str] = None) -> PasswordHash:
    """Derive a hex-encoded hash; a fresh random salt is used when none is given."""
    if salt is None:
        salt = generate_salt()
    try:
        derived = pbkdf2_hmac(HASH_DIGEST, password, salt, HASH_ROUNDS, HASH_KEY_LENGTH)
    except (TypeError, ValueError) as exc:
        raise HashError(f"password hashing failed: {exc}") from exc
    return PasswordHash(hash=derived.hex(), salt=salt)


def verify_password(password: str, hashed: str, salt: str) -> bool:
    return consteq(hash_password(password, salt).hash, hashed)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def decode_access_token(token: str) -> dict:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except jwt.ExpiredSignatureError as exc:
        raise AuthError("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthError("Could not validate credentials") from exc
