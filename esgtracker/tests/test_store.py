"""
Store-level tests against the throwaway SQLite database.

Each test gets fresh tables (conftest.tables). The store only flushes, so
these tests see their own writes inside one session without committing.
"""
import pytest
from sqlalchemy import func, select

from esgtracker.database import AsyncSessionLocal
from esgtracker.models.esg_response import ESGResponseORM
from esgtracker.questionnaire.metrics import compute_metrics
from esgtracker.questionnaire.schemas import ESGRawData
from esgtracker.store import (
    DuplicateEmailError,
    create_user,
    delete_user,
    delete_year,
    get_user,
    get_user_by_email,
    get_year,
    list_years,
    upsert_year,
)
from esgtracker.tests.demo_data import VALID_2023, VALID_2024, with_changes


def _raw(data: dict) -> ESGRawData:
    return ESGRawData.model_validate(data)


async def _make_user(db, email: str = "a@b.com"):
    return await create_user(db, "A B", email, "$2b$04$placeholderhashplaceholderhashplaceholderhash")


# ---------------------------------------------------------------------------
# Test Group 1: users
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_and_fetch_user(db) -> None:
    user = await _make_user(db)

    assert user.id
    assert (await get_user(db, user.id)).email == "a@b.com"
    assert (await get_user_by_email(db, "a@b.com")).id == user.id


@pytest.mark.asyncio
async def test_unknown_user_is_none(db) -> None:
    assert await get_user(db, "missing") is None
    assert await get_user_by_email(db, "nobody@example.com") is None


@pytest.mark.asyncio
async def test_duplicate_email_rejected(db) -> None:
    await _make_user(db)
    with pytest.raises(DuplicateEmailError):
        await _make_user(db)


# ---------------------------------------------------------------------------
# Test Group 2: yearly responses
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_upsert_then_list_round_trip(db) -> None:
    """Stored derived fields equal the Metrics Engine output for the stored raw answers."""
    user = await _make_user(db)
    raw = _raw(VALID_2023)

    await upsert_year(db, user.id, 2023, raw)
    records = await list_years(db, user.id)

    assert list(records) == [2023]
    record = records[2023]
    assert record.year == 2023
    assert record.metrics == compute_metrics(raw)
    assert record.raw == raw


@pytest.mark.asyncio
async def test_upsert_replaces_existing_year(db) -> None:
    user = await _make_user(db)
    await upsert_year(db, user.id, 2023, _raw(VALID_2023))
    await upsert_year(db, user.id, 2023, _raw(with_changes(VALID_2023, femaleEmployees=5)))

    count = await db.scalar(select(func.count()).select_from(ESGResponseORM))
    record = await get_year(db, user.id, 2023)

    assert count == 1
    assert record.female_employees == 5
    assert record.diversity_ratio == pytest.approx(50.0)


@pytest.mark.asyncio
async def test_upsert_clears_derived_when_divisor_becomes_zero(db) -> None:
    user = await _make_user(db)
    await upsert_year(db, user.id, 2023, _raw(VALID_2023))
    await upsert_year(db, user.id, 2023, _raw(with_changes(VALID_2023, totalRevenue=0)))

    record = await get_year(db, user.id, 2023)
    assert record.carbon_intensity is None
    assert record.community_spend_ratio is None


@pytest.mark.asyncio
async def test_list_years_ascending_and_scoped(db) -> None:
    alice = await _make_user(db, "alice@example.com")
    bob = await _make_user(db, "bob@example.com")
    await upsert_year(db, alice.id, 2024, _raw(VALID_2024))
    await upsert_year(db, alice.id, 2023, _raw(VALID_2023))
    await upsert_year(db, bob.id, 2022, _raw(VALID_2023))

    assert list(await list_years(db, alice.id)) == [2023, 2024]
    assert list(await list_years(db, bob.id)) == [2022]


@pytest.mark.asyncio
async def test_employee_counts_stored_as_integers(db) -> None:
    user = await _make_user(db)
    record = await upsert_year(db, user.id, 2023, _raw(with_changes(VALID_2023, totalEmployees=10.0)))

    assert record.total_employees == 10
    assert isinstance(record.total_employees, int)


@pytest.mark.asyncio
async def test_delete_year(db) -> None:
    user = await _make_user(db)
    await upsert_year(db, user.id, 2023, _raw(VALID_2023))

    assert await delete_year(db, user.id, 2023) is True
    assert await delete_year(db, user.id, 2023) is False
    assert await list_years(db, user.id) == {}


@pytest.mark.asyncio
async def test_delete_user_cascades_to_responses(db) -> None:
    user = await _make_user(db)
    await upsert_year(db, user.id, 2023, _raw(VALID_2023))
    await upsert_year(db, user.id, 2024, _raw(VALID_2024))

    assert await delete_user(db, user.id) is True

    remaining = await db.scalar(select(func.count()).select_from(ESGResponseORM))
    assert remaining == 0
    assert await get_user(db, user.id) is None


@pytest.mark.asyncio
async def test_same_year_saved_from_two_sessions_is_last_write_wins(tables) -> None:
    """Both sessions start with no 2023 row; the second commit replaces the first."""
    async with AsyncSessionLocal() as setup:
        user = await _make_user(setup)
        await setup.commit()

    async with AsyncSessionLocal() as first, AsyncSessionLocal() as second:
        assert await list_years(first, user.id) == {}
        assert await list_years(second, user.id) == {}

        await upsert_year(first, user.id, 2023, _raw(VALID_2023))
        await first.commit()

        record = await upsert_year(second, user.id, 2023, _raw(with_changes(VALID_2023, femaleEmployees=5)))
        await second.commit()

    assert record.female_employees == 5
    async with AsyncSessionLocal() as check:
        count = await check.scalar(select(func.count()).select_from(ESGResponseORM))
        stored = await get_year(check, user.id, 2023)

    assert count == 1
    assert stored.female_employees == 5
    assert stored.diversity_ratio == pytest.approx(50.0)


@pytest.mark.asyncio
async def test_upsert_refreshes_rows_already_loaded_in_session(db) -> None:
    user = await _make_user(db)
    await upsert_year(db, user.id, 2023, _raw(VALID_2023))
    assert (await list_years(db, user.id))[2023].female_employees == 4

    record = await upsert_year(db, user.id, 2023, _raw(with_changes(VALID_2023, femaleEmployees=5)))

    assert record.female_employees == 5
    assert (await list_years(db, user.id))[2023].female_employees == 5
