"""
Unit tests for password hashing and token handling.

BCRYPT_ROUNDS=4 is set in conftest.py, so hashing here is fast; the cost
factor itself is checked against the configured value.
"""
import datetime as dt

import bcrypt
import jwt
import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from esgtracker.auth.security import (
    get_current_user_id,
    hash_password,
    issue_token,
    verify_login_password,
    verify_password,
    verify_token,
)
from esgtracker.config import settings


# ---------------------------------------------------------------------------
# Test Group 1: passwords
# ---------------------------------------------------------------------------

def test_hash_then_verify() -> None:
    hashed = hash_password("abcdef")

    assert hashed != "abcdef"
    assert verify_password("abcdef", hashed) is True
    assert verify_password("abcdeg", hashed) is False


def test_hash_uses_configured_cost() -> None:
    hashed = hash_password("abcdef")
    assert hashed.startswith(f"$2b${settings.bcrypt_rounds:02d}$")


def test_hash_is_salted() -> None:
    assert hash_password("same-password") != hash_password("same-password")


def test_malformed_hash_never_matches() -> None:
    assert verify_password("abcdef", "not-a-bcrypt-hash") is False


def test_long_password_does_not_raise() -> None:
    long_password = "x" * 200
    hashed = hash_password(long_password)
    assert verify_password(long_password, hashed) is True


def test_login_password_for_unknown_email_runs_bcrypt(monkeypatch) -> None:
    checked = []
    real_checkpw = bcrypt.checkpw

    def recording_checkpw(password: bytes, hashed: bytes) -> bool:
        checked.append(hashed)
        return real_checkpw(password, hashed)

    monkeypatch.setattr(bcrypt, "checkpw", recording_checkpw)

    assert verify_login_password("abcdef", None) is False
    assert len(checked) == 1
    assert checked[0].startswith(f"$2b${settings.bcrypt_rounds:02d}$".encode())


def test_login_password_for_known_email() -> None:
    hashed = hash_password("abcdef")

    assert verify_login_password("abcdef", hashed) is True
    assert verify_login_password("abcdeg", hashed) is False


# ---------------------------------------------------------------------------
# Test Group 2: tokens
# ---------------------------------------------------------------------------

def test_issue_then_verify() -> None:
    token = issue_token("user-123")
    assert verify_token(token) == "user-123"


def test_token_lifetime_is_seven_days() -> None:
    now = dt.datetime(2026, 1, 1, tzinfo=dt.timezone.utc)
    token = issue_token("user-123", now=now)

    claims = jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        options={"verify_exp": False},
    )
    assert claims["exp"] - claims["iat"] == 7 * 24 * 3600


def test_expired_token_rejected() -> None:
    issued = dt.datetime.now(dt.timezone.utc) - dt.timedelta(days=8)
    assert verify_token(issue_token("user-123", now=issued)) is None


def test_token_signed_with_other_secret_rejected() -> None:
    forged = jwt.encode(
        {"sub": "user-123", "exp": dt.datetime.now(dt.timezone.utc) + dt.timedelta(days=1)},
        "some-other-secret-value-of-decent-length",
        algorithm="HS256",
    )
    assert verify_token(forged) is None


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_token_rejected(token: str) -> None:
    assert verify_token(token) is None


def test_token_without_subject_rejected() -> None:
    token = jwt.encode(
        {"exp": dt.datetime.now(dt.timezone.utc) + dt.timedelta(days=1)},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    assert verify_token(token) is None


# ---------------------------------------------------------------------------
# Test Group 3: dependency
# ---------------------------------------------------------------------------

def test_dependency_without_credentials_is_401() -> None:
    with pytest.raises(HTTPException) as exc_info:
        get_current_user_id(None)
    assert exc_info.value.status_code == 401


def test_dependency_with_bad_token_is_401() -> None:
    creds = HTTPAuthorizationCredentials(scheme="Bearer", credentials="garbage")
    with pytest.raises(HTTPException) as exc_info:
        get_current_user_id(creds)
    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Invalid or expired token."


def test_dependency_resolves_user_id() -> None:
    creds = HTTPAuthorizationCredentials(scheme="Bearer", credentials=issue_token("user-9"))
    assert get_current_user_id(creds) == "user-9"
