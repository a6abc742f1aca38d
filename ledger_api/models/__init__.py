"""
SQLAlchemy ORM models package.

All models are imported here so that Base.metadata knows every table
before create_all() runs at startup.
"""

from ledger_api.models.account import Account  # noqa: F401
