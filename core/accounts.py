"""Player accounts and the balance contract the table core depends on."""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from decimal import Decimal
from uuid import uuid4

from core.errors import AccountError, AccountNotFound, DuplicatePlayerName, InsufficientFunds

logger = logging.getLogger(__name__)

DEFAULT_STARTING_MONEY = Decimal("1000")


@dataclass(frozen=True)
class Account:
    """A registered player and their balance."""

    id: str
    name: str
    money: Decimal


class AccountService(ABC):
    """Abstract account store.

    ``debit`` and ``credit`` are the only calls the turn engine and the
    settlement pass make; the rest serves the lobby and the HTTP layer.
    """

    def __init__(self, starting_money: Decimal = DEFAULT_STARTING_MONEY) -> None:
        self.starting_money = starting_money

    @abstractmethod
    async def create(self, name: str) -> Account:
        """Register a new player with the starting balance."""
        ...

    @abstractmethod
    async def get(self, player_id: str) -> Account:
        """Get an account, raising AccountNotFound if missing."""
        ...

    @abstractmethod
    async def find_by_name(self, name: str) -> Account | None:
        """Look an account up by player name."""
        ...

    @abstractmethod
    async def rename(self, player_id: str, new_name: str) -> Account:
        """Change a player's name."""
        ...

    @abstractmethod
    async def ranking(self) -> list[Account]:
        """All accounts, richest first."""
        ...

    @abstractmethod
    async def debit(self, player_id: str, amount: Decimal) -> Account:
        """Take ``amount`` from the balance."""
        ...

    @abstractmethod
    async def credit(self, player_id: str, amount: Decimal) -> Account:
        """Add ``amount`` to the balance."""
        ...

    async def get_or_create(self, name: str) -> Account:
        """Return the account called ``name``, registering it if needed."""
        account = await self.find_by_name(name)
        if account is None:
            account = await self.create(name)
        return account


class InMemoryAccountService(AccountService):
    """In-memory account store for local development and tests."""

    def __init__(self, starting_money: Decimal = DEFAULT_STARTING_MONEY) -> None:
        super().__init__(starting_money)
        self._accounts: dict[str, Account] = {}
        self._lock = asyncio.Lock()

    async def create(self, name: str) -> Account:
        async with self._lock:
            if self._by_name(name) is not None:
                raise DuplicatePlayerName(f"Player name already taken: {name}")
            account = Account(id=str(uuid4()), name=name, money=self.starting_money)
            self._accounts[account.id] = account
        logger.info("Registered player %s (%s)", name, account.id)
        return account

    async def get(self, player_id: str) -> Account:
        if player_id not in self._accounts:
            raise AccountNotFound(player_id)
        return self._accounts[player_id]

    async def find_by_name(self, name: str) -> Account | None:
        return self._by_name(name)

    async def rename(self, player_id: str, new_name: str) -> Account:
        async with self._lock:
            account = await self.get(player_id)
            other = self._by_name(new_name)
            if other is not None and other.id != player_id:
                raise DuplicatePlayerName(f"Player name already taken: {new_name}")
            account = replace(account, name=new_name)
            self._accounts[player_id] = account
        return account

    async def ranking(self) -> list[Account]:
        return sorted(self._accounts.values(), key=lambda a: a.money, reverse=True)

    async def debit(self, player_id: str, amount: Decimal) -> Account:
        async with self._lock:
            account = await self.get(player_id)
            if account.money < amount:
                raise InsufficientFunds(player_id, amount, account.money)
            account = replace(account, money=account.money - amount)
            self._accounts[player_id] = account
        logger.debug("Debited %s from %s", amount, player_id)
        return account

    async def credit(self, player_id: str, amount: Decimal) -> Account:
        async with self._lock:
            account = await self.get(player_id)
            account = replace(account, money=account.money + amount)
            self._accounts[player_id] = account
        logger.debug("Credited %s to %s", amount, player_id)
        return account

    def _by_name(self, name: str) -> Account | None:
        for account in self._accounts.values():
            if account.name == name:
                return account
        return None


class AccountJournal(AccountService):
    """
    Records the debits and credits of one play so they can be undone.

    Lookups and renames go straight to the wrapped service. ``rollback``
    reverses every recorded move, newest first, and forgets them.
    """

    def __init__(self, accounts: AccountService) -> None:
        super().__init__(accounts.starting_money)
        self._accounts = accounts
        self._moves: list[tuple[str, Decimal]] = []

    async def create(self, name: str) -> Account:
        return await self._accounts.create(name)

    async def get(self, player_id: str) -> Account:
        return await self._accounts.get(player_id)

    async def find_by_name(self, name: str) -> Account | None:
        return await self._accounts.find_by_name(name)

    async def rename(self, player_id: str, new_name: str) -> Account:
        return await self._accounts.rename(player_id, new_name)

    async def ranking(self) -> list[Account]:
        return await self._accounts.ranking()

    async def debit(self, player_id: str, amount: Decimal) -> Account:
        account = await self._accounts.debit(player_id, amount)
        self._moves.append((player_id, -amount))
        return account

    async def credit(self, player_id: str, amount: Decimal) -> Account:
        account = await self._accounts.credit(player_id, amount)
        self._moves.append((player_id, amount))
        return account

    @property
    def moves(self) -> list[tuple[str, Decimal]]:
        """Signed balance changes recorded so far, oldest first."""
        return list(self._moves)

    async def rollback(self) -> None:
        """Undo every recorded move. A reversal that fails is logged and skipped."""
        moves, self._moves = self._moves, []
        for player_id, amount in reversed(moves):
            try:
                if amount < 0:
                    await self._accounts.credit(player_id, -amount)
                else:
                    await self._accounts.debit(player_id, amount)
            except AccountError as exc:
                logger.error(
                    "Could not reverse %s for %s, needs a manual correction: %s",
                    amount, player_id, exc,
                )
