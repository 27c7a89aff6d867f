from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from uuid import uuid4

import pytest
from sqlalchemy.exc import DBAPIError

from app.repos.unit_of_work import SqlUnitOfWork
from app.services.errors import StorageFailure


class _FakeSession:
    def __init__(self, execute_error: Exception | None = None) -> None:
        self._execute_error = execute_error
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True
        return False

    @asynccontextmanager
    async def begin(self):
        yield

    async def execute(self, stmt):
        if self._execute_error is not None:
            raise self._execute_error


class _UnreachableSession:
    async def __aenter__(self):
        raise OSError("connection refused")

    async def __aexit__(self, *exc_info):
        return False


def test_connection_error_becomes_storage_failure() -> None:
    uow = SqlUnitOfWork(lambda: _UnreachableSession())

    async def scenario():
        async with uow.snapshot():
            pass

    with pytest.raises(StorageFailure) as exc:
        asyncio.run(scenario())
    assert isinstance(exc.value.__cause__, OSError)
    assert exc.value.code == "storage_failure"


def test_driver_error_inside_session_becomes_storage_failure() -> None:
    session = _FakeSession()
    uow = SqlUnitOfWork(lambda: session)
    err = DBAPIError("SELECT 1", {}, Exception("connection reset"))

    async def scenario():
        async with uow.snapshot():
            raise err

    with pytest.raises(StorageFailure) as exc:
        asyncio.run(scenario())
    assert exc.value.__cause__ is err
    assert session.closed


def test_row_lock_failure_becomes_storage_failure() -> None:
    err = DBAPIError("SELECT ... FOR UPDATE", {}, Exception("lock timeout"))
    uow = SqlUnitOfWork(lambda: _FakeSession(execute_error=err))

    async def scenario():
        async with uow.begin(uuid4()):
            pytest.fail("session body must not run without the row lock")

    with pytest.raises(StorageFailure) as exc:
        asyncio.run(scenario())
    assert exc.value.__cause__ is err


def test_other_errors_pass_through_unchanged() -> None:
    uow = SqlUnitOfWork(lambda: _FakeSession())

    async def scenario():
        async with uow.snapshot():
            raise KeyError("not a storage error")

    with pytest.raises(KeyError):
        asyncio.run(scenario())
