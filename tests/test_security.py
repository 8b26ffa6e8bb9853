from __future__ import annotations

from datetime import timedelta

import pytest
from jose import JWTError

from reportdesk.core.security import create_access_token, decode_token, get_password_hash, verify_password


def test_token_carries_user_and_role():
    claims = decode_token(create_access_token(42, role="supervisor"))
    assert claims["sub"] == "42"
    assert claims["role"] == "supervisor"
    assert claims["exp"] > claims["iat"]


def test_expired_token_is_rejected():
    token = create_access_token(42, expires_delta=timedelta(seconds=-5))
    with pytest.raises(JWTError):
        decode_token(token)


def test_password_checks():
    hashed = get_password_hash("secret")
    assert verify_password("secret", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("secret", "not-a-hash")
    assert not verify_password("secret", "")
