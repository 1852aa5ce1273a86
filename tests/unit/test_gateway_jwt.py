"""Unit tests for JWT handler."""

from datetime import timedelta

import pytest
from jose import jwt

from config.settings import settings
from src.gc_common.errors import InvalidTokenError
from src.gc_gateway.auth.jwt_handler import create_access_token, decode_access_token


def test_access_token_contains_correct_claims() -> None:
    token = create_access_token("emp-123")
    payload = jwt.get_unverified_claims(token)
    assert payload["sub"] == "emp-123"
    assert payload["type"] == "access"


def test_decode_valid_access_token() -> None:
    payload = decode_access_token(create_access_token("emp-abc"))
    assert payload["sub"] == "emp-abc"


def test_expired_token_rejected() -> None:
    token = create_access_token("emp-abc", expires_in=timedelta(seconds=-1))
    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


def test_wrong_secret_rejected() -> None:
    token = jwt.encode({"sub": "emp-abc", "type": "access"}, "other-secret", algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


def test_non_access_token_rejected() -> None:
    token = jwt.encode(
        {"sub": "emp-abc", "type": "refresh"}, settings.JWT_SECRET, algorithm="HS256"
    )
    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


def test_missing_subject_rejected() -> None:
    token = jwt.encode({"type": "access"}, settings.JWT_SECRET, algorithm="HS256")
    with pytest.raises(InvalidTokenError) as exc_info:
        decode_access_token(token)
    assert exc_info.value.http_status == 401


def test_garbage_rejected() -> None:
    with pytest.raises(InvalidTokenError):
        decode_access_token("not.a.jwt")
