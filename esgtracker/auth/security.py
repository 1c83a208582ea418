"""
security.py — password hashing and bearer-token handling.

  hash_password / verify_password   bcrypt, cost factor from settings (default 12)
  verify_login_password             verify_password that also accepts None for an unknown email
  issue_token / verify_token        HS256 JWT, sub = user id, fixed 7-day lifetime
  get_current_user_id               FastAPI dependency for authenticated routes

verify_token never raises: any structural, signature or expiry failure is None.
Tokens and passwords are never logged.
"""
from __future__ import annotations

import datetime as dt
import logging
from functools import lru_cache
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from esgtracker.config import settings

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes; newer releases raise instead of truncating
_BCRYPT_MAX_BYTES = 72

INVALID_TOKEN_MESSAGE = "Invalid or expired token."
MISSING_TOKEN_MESSAGE = "Authentication token required."

scheme = HTTPBearer(auto_error=False)


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Salted bcrypt hash of password, as a str suitable for the users.password column."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """True if password matches the stored hash. A malformed hash never matches."""
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


@lru_cache(maxsize=1)
def _unknown_account_hash() -> str:
    return hash_password("unknown-account-placeholder")


def verify_login_password(password: str, password_hash: Optional[str]) -> bool:
    """
    verify_password for the login route. password_hash is None when the email
    is unknown; the password is then checked against a placeholder hash and
    the result is always False, so both failures cost one bcrypt check.
    """
    if password_hash is None:
        verify_password(password, _unknown_account_hash())
        return False
    return verify_password(password, password_hash)


def issue_token(subject_id: str, now: Optional[dt.datetime] = None) -> str:
    """Sign a token for subject_id that expires settings.token_ttl_days after now."""
    issued_at = now or dt.datetime.now(dt.timezone.utc)
    payload = {
        "sub": subject_id,
        "iat": issued_at,
        "exp": issued_at + dt.timedelta(days=settings.token_ttl_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> Optional[str]:
    """Return the subject id of a valid token, or None for any failure."""
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.PyJWTError as exc:
        logger.debug("Token rejected: %s", type(exc).__name__)
        return None

    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject:
        return None
    return subject


def get_current_user_id(
    creds: HTTPAuthorizationCredentials | None = Depends(scheme),  # noqa: B008
) -> str:
    """Resolve the bearer token to a user id, or answer 401."""
    if creds is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=MISSING_TOKEN_MESSAGE)
    user_id = verify_token(creds.credentials)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_TOKEN_MESSAGE)
    return user_id
