"""Tests for the in-memory account service."""

import asyncio
from decimal import Decimal

import pytest

from core.accounts import AccountJournal, InMemoryAccountService
from core.errors import AccountNotFound, DuplicatePlayerName, InsufficientFunds


@pytest.mark.asyncio
async def test_create_with_starting_money():
    service = InMemoryAccountService(starting_money=Decimal("250"))
    account = await service.create("alice")
    assert account.money == Decimal("250")
    assert await service.get(account.id) == account


@pytest.mark.asyncio
async def test_duplicate_name_rejected(accounts):
    with pytest.raises(DuplicatePlayerName):
        await accounts.create("alice")


@pytest.mark.asyncio
async def test_get_or_create(accounts, ids):
    assert (await accounts.get_or_create("alice")).id == ids["alice"]
    dave = await accounts.get_or_create("dave")
    assert await accounts.find_by_name("dave") == dave


@pytest.mark.asyncio
async def test_unknown_account(accounts):
    with pytest.raises(AccountNotFound, match="No player with id: ghost"):
        await accounts.get("ghost")
    with pytest.raises(AccountNotFound):
        await accounts.credit("ghost", Decimal("1"))


@pytest.mark.asyncio
async def test_debit_and_credit(accounts, ids):
    alice = ids["alice"]
    await accounts.debit(alice, Decimal("300"))
    account = await accounts.credit(alice, Decimal("12.5"))
    assert account.money == Decimal("712.5")


@pytest.mark.asyncio
async def test_overdraw_rejected(accounts, ids):
    alice = ids["alice"]
    with pytest.raises(InsufficientFunds) as exc_info:
        await accounts.debit(alice, Decimal("1000.01"))
    assert exc_info.value.available == Decimal("1000")
    assert (await accounts.get(alice)).money == Decimal("1000")


@pytest.mark.asyncio
async def test_concurrent_debits_never_overdraw(accounts, ids):
    alice = ids["alice"]
    results = await asyncio.gather(
        *(accounts.debit(alice, Decimal("300")) for _ in range(5)),
        return_exceptions=True,
    )
    assert sum(isinstance(r, InsufficientFunds) for r in results) == 2
    assert (await accounts.get(alice)).money == Decimal("100")


@pytest.mark.asyncio
async def test_rename(accounts, ids):
    account = await accounts.rename(ids["alice"], "alicia")
    assert account.name == "alicia"
    assert await accounts.find_by_name("alice") is None
    with pytest.raises(DuplicatePlayerName):
        await accounts.rename(ids["bob"], "alicia")
    # Renaming to the current name is a no-op
    assert (await accounts.rename(ids["alice"], "alicia")).name == "alicia"


@pytest.mark.asyncio
async def test_ranking(accounts, ids):
    await accounts.credit(ids["carol"], Decimal("5"))
    await accounts.debit(ids["alice"], Decimal("5"))
    assert [a.name for a in await accounts.ranking()] == ["carol", "bob", "alice"]


@pytest.mark.asyncio
async def test_journal_rollback_reverses_moves(accounts, ids):
    alice, bob = ids["alice"], ids["bob"]
    journal = AccountJournal(accounts)
    await journal.debit(alice, Decimal("50"))
    await journal.credit(bob, Decimal("75"))
    assert journal.moves == [(alice, Decimal("-50")), (bob, Decimal("75"))]

    await journal.rollback()

    assert (await accounts.get(alice)).money == Decimal("1000")
    assert (await accounts.get(bob)).money == Decimal("1000")
    assert journal.moves == []
    # A second rollback has nothing left to undo
    await journal.rollback()
    assert (await accounts.get(alice)).money == Decimal("1000")


@pytest.mark.asyncio
async def test_journal_skips_failed_moves(accounts, ids):
    journal = AccountJournal(accounts)
    with pytest.raises(InsufficientFunds):
        await journal.debit(ids["alice"], Decimal("5000"))
    assert journal.moves == []


@pytest.mark.asyncio
async def test_journal_rollback_continues_past_failed_reversal(accounts, ids):
    alice, bob = ids["alice"], ids["bob"]
    journal = AccountJournal(accounts)
    await journal.debit(bob, Decimal("10"))
    await journal.credit(alice, Decimal("100"))
    # alice spends the payout elsewhere before the rollback
    await accounts.debit(alice, Decimal("1050"))

    await journal.rollback()

    assert (await accounts.get(alice)).money == Decimal("50")
    assert (await accounts.get(bob)).money == Decimal("1000")
