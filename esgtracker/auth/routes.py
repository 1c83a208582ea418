"""
Auth HTTP routes — POST /api/auth/signup, POST /api/auth/login, GET /api/auth/me

Login failures use one generic message whether the email is unknown or the
password is wrong, and an unknown email still costs one bcrypt check.
bcrypt work runs in the threadpool so the event loop stays free.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from esgtracker.auth.schemas import (
    LoginRequest,
    LoginResponse,
    SignupRequest,
    SignupResponse,
    UserOut,
)
from esgtracker.auth.security import (
    INVALID_TOKEN_MESSAGE,
    get_current_user_id,
    hash_password,
    issue_token,
    verify_login_password,
)
from esgtracker.database import get_db
from esgtracker.store import DuplicateEmailError, create_user, get_user, get_user_by_email

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials."


@router.post("/signup")
async def signup(
    body: SignupRequest,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """
    Create an account.

    Returns:
        201: {message, userId, name}
        400: missing name / email / password
        409: email already registered (no row created)
    """
    password_hash = await run_in_threadpool(hash_password, body.password)
    try:
        user = await create_user(db, body.name, body.email, password_hash)
    except DuplicateEmailError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists.",
        ) from None

    response = SignupResponse(user_id=user.id, name=user.name)
    return JSONResponse(status_code=201, content=response.model_dump(by_alias=True))


@router.post("/login")
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """
    Exchange email + password for a bearer token valid for 7 days.

    Returns:
        200: {message, token, user: {id, name, email}}
        401: unknown email or wrong password (same message for both)
    """
    user = await get_user_by_email(db, body.email)
    stored_hash = user.password if user is not None else None
    password_ok = await run_in_threadpool(verify_login_password, body.password, stored_hash)
    if user is None or not password_ok:
        logger.info("Login rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS_MESSAGE,
        )

    token = issue_token(user.id)
    logger.info("Login succeeded user_id=%s", user.id)
    response = LoginResponse(token=token, user=UserOut(id=user.id, name=user.name, email=user.email))
    return JSONResponse(status_code=200, content=response.model_dump())


@router.get("/me")
async def me(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Profile of the token's user. A token for a deleted user is treated as invalid."""
    user = await get_user(db, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_TOKEN_MESSAGE)
    return JSONResponse(status_code=200, content=UserOut(id=user.id, name=user.name, email=user.email).model_dump())
