"""
Tests for password hashing and admin session tokens.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from errors import AuthError, HashError
from security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


def test_hash_password_generates_hex_salt():
    hashed = hash_password("admin123")
    assert len(hashed.salt) == 32
    int(hashed.salt, 16)
    # 64-byte key, hex encoded
    assert len(hashed.hash) == 128
    int(hashed.hash, 16)


def test_hash_password_is_deterministic_for_same_salt():
    first = hash_password("secret", "00ff" * 8)
    second = hash_password("secret", "00ff" * 8)
    assert first == second
    assert first.salt == "00ff" * 8


def test_fresh_salts_differ():
    assert hash_password("secret").salt != hash_password("secret").salt


def test_verify_password():
    hashed = hash_password("admin123")
    assert verify_password("admin123", hashed.hash, hashed.salt) is True
    assert verify_password("admin124", hashed.hash, hashed.salt) is False
    assert verify_password("admin123", hashed.hash, "0" * 32) is False


def test_verify_password_non_ascii():
    hashed = hash_password("пароль")
    assert verify_password("пароль", hashed.hash, hashed.salt)


def test_access_token_round_trip(data_file):
    token = create_access_token({"sub": "admin"})
    assert decode_access_token(token)["sub"] == "admin"


def test_expired_token_rejected(data_file):
    token = create_access_token({"sub": "admin"}, expires_delta=timedelta(seconds=-10))
    with pytest.raises(AuthError, match="expired"):
        decode_access_token(token)


def test_garbage_token_rejected(data_file):
    with pytest.raises(AuthError):
        decode_access_token("not-a-token")


def test_hash_password_rejects_non_string_input():
    with pytest.raises(HashError):
        hash_password(12345)
    with pytest.raises(HashError):
        hash_password("secret", salt=42)
