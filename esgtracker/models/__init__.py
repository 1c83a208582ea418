"""
models/__init__.py — imports all ORM models so Alembic's env.py
sees them via Base.metadata when generating migrations.

Import order matters: esg_responses has a foreign key into users.
"""
from esgtracker.models.user import UserORM
from esgtracker.models.esg_response import ESGResponseORM

__all__ = ["UserORM", "ESGResponseORM"]
