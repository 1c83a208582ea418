"""
store.py — Data access facade for ESG Tracker.

Users and their yearly questionnaire rows. Routes call these coroutines and
never build queries themselves.

  - every function takes the request AsyncSession and only flush()es;
    get_db() commits or rolls back
  - log lines carry user_id, year and counts, never emails, hashes or answers
  - results are Pydantic records (UserRecord, YearRecord), not ORM rows
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from esgtracker.models.esg_response import ESGResponseORM
from esgtracker.models.user import UserORM
from esgtracker.questionnaire.metrics import compute_metrics
from esgtracker.questionnaire.schemas import (
    DERIVED_FIELDS,
    RAW_FIELDS,
    ESGRawData,
    YearRecord,
)

logger = logging.getLogger(__name__)

_COUNT_FIELDS = ("total_employees", "female_employees")

# Dialect insert constructs that support ON CONFLICT ... DO UPDATE
_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class DuplicateEmailError(Exception):
    """Raised by create_user when the email is already registered."""


class UserRecord(BaseModel):
    """Stored user, including the password hash (never serialised to clients)."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    password: str


def _to_year_record(orm: ESGResponseORM) -> YearRecord:
    values = {name: getattr(orm, name) for name in RAW_FIELDS + DERIVED_FIELDS}
    return YearRecord(year=orm.year, **values)


# ---------------------------------------------------------------------------
# User operations
# ---------------------------------------------------------------------------

async def create_user(
    db: AsyncSession,
    name: str,
    email: str,
    password_hash: str,
) -> UserRecord:
    """
    Persist a new user.

    Raises:
        DuplicateEmailError: the email is taken. Checked up front, and again via
            the unique index in case two signups race for the same address.
    """
    existing = await get_user_by_email(db, email)
    if existing is not None:
        raise DuplicateEmailError(email)

    orm = UserORM(name=name, email=email, password=password_hash)
    db.add(orm)
    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        raise DuplicateEmailError(email) from exc

    logger.info("Created user user_id=%s", orm.id)
    return UserRecord.model_validate(orm)


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[UserRecord]:
    """Returns None if no user has this email (caller answers 401 / proceeds with signup)."""
    result = await db.execute(select(UserORM).where(UserORM.email == email))
    orm = result.scalar_one_or_none()
    if orm is None:
        return None
    return UserRecord.model_validate(orm)


async def get_user(db: AsyncSession, user_id: str) -> Optional[UserRecord]:
    result = await db.execute(select(UserORM).where(UserORM.id == user_id))
    orm = result.scalar_one_or_none()
    if orm is None:
        return None
    return UserRecord.model_validate(orm)


async def delete_user(db: AsyncSession, user_id: str) -> bool:
    """
    Delete a user. esg_responses rows go with it via ON DELETE CASCADE.
    Returns False if the user did not exist.
    """
    result = await db.execute(delete(UserORM).where(UserORM.id == user_id))
    await db.flush()
    deleted = result.rowcount > 0
    logger.info("Deleted user user_id=%s found=%s", user_id, deleted)
    return deleted


# ---------------------------------------------------------------------------
# Yearly response operations
# ---------------------------------------------------------------------------

async def upsert_year(
    db: AsyncSession,
    user_id: str,
    year: int,
    data: ESGRawData,
) -> YearRecord:
    """
    Create or update the (user_id, year) row.

    Derived metrics are computed here, in the same write as the raw answers,
    so the stored ratios always correspond to the stored inputs.

    The write is a single INSERT ... ON CONFLICT (user_id, year) DO UPDATE, so
    two requests saving the same new year both succeed and the later one wins.
    """
    raw = data.model_dump(include=set(RAW_FIELDS))
    for name in _COUNT_FIELDS:
        if raw[name] is not None:
            raw[name] = int(raw[name])
    values = {**raw, **compute_metrics(data).model_dump()}
    now = datetime.now(timezone.utc)

    insert = _INSERTS[db.get_bind().dialect.name]
    stmt = insert(ESGResponseORM).values(
        id=str(uuid.uuid4()),
        user_id=user_id,
        year=year,
        created_at=now,
        updated_at=now,
        **values,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "year"],
        set_={**values, "updated_at": now},
    )
    await db.execute(stmt)

    record = await get_year(db, user_id, year)
    logger.info("Upserted ESG response user_id=%s year=%d", user_id, year)
    return record


async def get_year(
    db: AsyncSession,
    user_id: str,
    year: int,
) -> Optional[YearRecord]:
    result = await db.execute(
        select(ESGResponseORM)
        .where(
            ESGResponseORM.user_id == user_id,
            ESGResponseORM.year == year,
        )
        .execution_options(populate_existing=True)
    )
    orm = result.scalar_one_or_none()
    if orm is None:
        return None
    return _to_year_record(orm)


async def list_years(db: AsyncSession, user_id: str) -> dict[int, YearRecord]:
    """
    All stored years for a user, keyed by year in ascending order.
    Returns an empty dict if the user has no responses.
    """
    result = await db.execute(
        select(ESGResponseORM)
        .where(ESGResponseORM.user_id == user_id)
        .order_by(ESGResponseORM.year.asc())
        .execution_options(populate_existing=True)
    )
    return {orm.year: _to_year_record(orm) for orm in result.scalars().all()}


async def delete_year(db: AsyncSession, user_id: str, year: int) -> bool:
    """Delete one year. Returns False if nothing was stored for it (caller raises 404)."""
    result = await db.execute(
        delete(ESGResponseORM).where(
            ESGResponseORM.user_id == user_id,
            ESGResponseORM.year == year,
        )
    )
    await db.flush()
    deleted = result.rowcount > 0
    logger.info("Deleted ESG response user_id=%s year=%d found=%s", user_id, year, deleted)
    return deleted
