import time

import jwt
import pytest

from viandas.auth import (
    create_access_token,
    decode_access_token,
    extract_bearer_token,
    hash_password,
    validate_password_strength,
    verify_password,
)
from viandas.utils import format_file_size, paginate


def test_hash_and_verify_round_trip():
    hashed = hash_password("Secret123", rounds=1000)
    assert hashed != "Secret123"
    assert verify_password("Secret123", hashed)
    assert not verify_password("Secret124", hashed)
    assert not verify_password("secret123", hashed)


def test_hash_is_salted():
    assert hash_password("Secret123", rounds=1000) != hash_password("Secret123", rounds=1000)


@pytest.mark.parametrize("password,ok", [
    ("Secret123", True),
    ("secret123", False),
    ("SECRET123", False),
    ("SecretABC", False),
    ("Sec12", False),
    ("", False),
])
def test_password_strength(password, ok):
    assert validate_password_strength(password) is ok


def test_token_round_trip():
    token = create_access_token(7, "a@example.com", "admin", secret="s3cret")
    claims = decode_access_token(token, "s3cret")
    assert claims["sub"] == "7"
    assert claims["email"] == "a@example.com"
    assert claims["role"] == "admin"
    assert claims["exp"] > time.time()


def test_token_rejected_with_other_secret():
    token = create_access_token(7, "a@example.com", "user", secret="s3cret")
    with pytest.raises(jwt.PyJWTError):
        decode_access_token(token, "another-secret")


def test_expired_token_rejected():
    token = create_access_token(7, "a@example.com", "user", secret="s3cret", expires_delta=-10)
    with pytest.raises(jwt.ExpiredSignatureError):
        decode_access_token(token, "s3cret")


@pytest.mark.parametrize("header,expected", [
    ("Bearer abc.def.ghi", "abc.def.ghi"),
    ("bearer abc", None),
    ("Token abc", None),
    ("Bearer ", None),
    ("", None),
    (None, None),
])
def test_extract_bearer_token(header, expected):
    assert extract_bearer_token(header) == expected


def test_paginate_metadata():
    assert paginate(1, 10, 25) == {
        "page": 1, "limit": 10, "total": 25, "totalPages": 3, "hasNext": True, "hasPrev": False,
    }
    last = paginate(3, 10, 25)
    assert last["hasNext"] is False and last["hasPrev"] is True
    assert paginate(1, 10, 0)["totalPages"] == 0


def test_format_file_size():
    assert format_file_size(0) == "0 Bytes"
    assert format_file_size(512) == "512 Bytes"
    assert format_file_size(1536) == "1.5 KB"
    assert format_file_size(10 * 1024 * 1024) == "10 MB"
