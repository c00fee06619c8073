"""Tests for the SQL repository helpers that need no database."""

import pytest
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError

from app.domain.exceptions import StoreUnavailableError
from app.infrastructure.database.repository import store_call


def _failing(exc):
    @store_call
    async def call():
        raise exc

    return call


@pytest.mark.parametrize(
    "exc",
    [
        OperationalError("SELECT 1", {}, Exception("connection refused")),
        InterfaceError("SELECT 1", {}, Exception("connection is closed")),
        ConnectionRefusedError("connect call failed"),
    ],
    ids=["operational", "interface", "os"],
)
async def test_connectivity_errors_become_store_unavailable(exc):
    with pytest.raises(StoreUnavailableError) as info:
        await _failing(exc)()

    assert info.value.__cause__ is exc


async def test_other_database_errors_propagate_unchanged():
    exc = IntegrityError("INSERT", {}, Exception("duplicate key"))

    with pytest.raises(IntegrityError):
        await _failing(exc)()


async def test_successful_call_passes_result_through():
    @store_call
    async def call(value):
        return value * 2

    assert await call(21) == 42
    assert call.__name__ == "call"
