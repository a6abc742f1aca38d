"""
Tests for the ledger under concurrent load, and for store failure handling.

These run against a file-backed SQLite database so each transfer gets its
own connection and its own transaction, the way concurrent requests do.

These tests verify:
  - N concurrent transfers from one source with N * amount > balance never
    drive the balance negative, and exactly the successful ones are applied
  - Opposite-direction transfers between the same pair conserve the total
  - A store call that exceeds its timeout surfaces as StorageUnavailableError
  - Driver-level operational errors surface as StorageUnavailableError
  - A party deleted before the transfer runs fails with AccountNotFoundError
"""

import asyncio

import pytest
import pytest_asyncio
from sqlalchemy.exc import OperationalError

from helpers import TEST_SECRET_KEY
from ledger_api.config import Settings
from ledger_api.database import (
    STORAGE_TIMEOUT_KEY,
    Base,
    build_engine,
    build_sessionmaker,
    storage_call,
)
from ledger_api.exceptions import (
    AccountNotFoundError,
    InsufficientFundsError,
    StorageUnavailableError,
)
from ledger_api.models.account import Account
from ledger_api.services import account_service, transfer_service


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    settings = Settings(
        _env_file=None,
        SECRET_KEY=TEST_SECRET_KEY,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
        DB_TIMEOUT_SECONDS=30,
    )
    engine = build_engine(settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield build_sessionmaker(engine, settings)
    await engine.dispose()


async def _open_account(session_factory, name: str, balance: int) -> Account:
    async with session_factory() as session:
        account = await account_service.create_account(session, name, "Test", "pw")
        if balance:
            account = await transfer_service.deposit(session, account.id, balance)
        return account


async def _balance(session_factory, account_id: int) -> int:
    async with session_factory() as session:
        account = await session.get(Account, account_id)
        return account.balance


async def _try_transfer(session_factory, source_id: int, dest_number: int, amount: int) -> bool:
    async with session_factory() as session:
        try:
            await transfer_service.transfer(session, source_id, dest_number, amount)
        except InsufficientFundsError:
            return False
        return True


class TestConcurrentTransfers:

    async def test_overdraw_race(self, session_factory):
        """Ten transfers of 30 race for a balance of 100: three can win."""
        source = await _open_account(session_factory, "Source", 100)
        dest = await _open_account(session_factory, "Dest", 0)

        results = await asyncio.gather(
            *(_try_transfer(session_factory, source.id, dest.number, 30) for _ in range(10))
        )
        succeeded = sum(results)

        source_balance = await _balance(session_factory, source.id)
        dest_balance = await _balance(session_factory, dest.id)
        assert succeeded == 3
        assert source_balance == 100 - 30 * succeeded
        assert source_balance >= 0
        assert dest_balance == 30 * succeeded

    async def test_opposite_directions_conserve_total(self, session_factory):
        a = await _open_account(session_factory, "A", 500)
        b = await _open_account(session_factory, "B", 500)

        jobs = []
        for _ in range(10):
            jobs.append(_try_transfer(session_factory, a.id, b.number, 20))
            jobs.append(_try_transfer(session_factory, b.id, a.number, 30))
        results = await asyncio.gather(*jobs)

        assert all(results)
        a_balance = await _balance(session_factory, a.id)
        b_balance = await _balance(session_factory, b.id)
        assert a_balance + b_balance == 1000
        assert a_balance == 500 - 10 * 20 + 10 * 30


class TestStorageFailures:

    async def test_timeout_becomes_storage_unavailable(self, session_factory):
        async with session_factory() as session:
            session.info[STORAGE_TIMEOUT_KEY] = 0.01
            with pytest.raises(StorageUnavailableError):
                async with storage_call(session):
                    await asyncio.sleep(1)

    async def test_operational_error_becomes_storage_unavailable(self, session_factory):
        async with session_factory() as session:
            with pytest.raises(StorageUnavailableError) as excinfo:
                async with storage_call(session):
                    raise OperationalError("SELECT 1", {}, Exception("database is locked"))
            # The driver error is kept for the log, not for the client
            assert isinstance(excinfo.value.__cause__, OperationalError)
            assert "locked" not in excinfo.value.detail

    async def test_business_errors_pass_through(self, session_factory):
        source = await _open_account(session_factory, "Poor", 5)
        dest = await _open_account(session_factory, "Rich", 0)
        async with session_factory() as session:
            with pytest.raises(InsufficientFundsError):
                await transfer_service.transfer(session, source.id, dest.number, 6)
        assert await _balance(session_factory, source.id) == 5


class TestMissingParties:

    async def test_deleted_source(self, session_factory):
        """A source deleted after the guard ran fails cleanly, crediting no one."""
        source = await _open_account(session_factory, "Gone", 50)
        dest = await _open_account(session_factory, "Stays", 7)
        async with session_factory() as session:
            await account_service.delete_account(session, await session.get(Account, source.id))

        async with session_factory() as session:
            with pytest.raises(AccountNotFoundError):
                await transfer_service.transfer(session, source.id, dest.number, 10)
        assert await _balance(session_factory, dest.id) == 7

    async def test_deleted_destination(self, session_factory):
        source = await _open_account(session_factory, "Payer", 50)
        dest = await _open_account(session_factory, "Gone", 0)
        async with session_factory() as session:
            await account_service.delete_account(session, await session.get(Account, dest.id))

        async with session_factory() as session:
            with pytest.raises(AccountNotFoundError):
                await transfer_service.transfer(session, source.id, dest.number, 10)
        assert await _balance(session_factory, source.id) == 50
