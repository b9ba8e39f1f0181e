"""Pytest fixtures for blackjack table tests."""

import pytest
import pytest_asyncio
from decimal import Decimal
from random import Random

from core.accounts import InMemoryAccountService
from core.cards import Deck
from core.game import InMemoryGameRepository, RoundOrchestrator
from core.rules import TableRules
from tests.helpers import cards


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def deck(rng):
    """A shuffled single deck."""
    return Deck(rng=rng)


@pytest.fixture
def rules():
    """Default table rules."""
    return TableRules()


@pytest.fixture
def h17_rules():
    """Croupier hits soft 17."""
    return TableRules(dealer_hits_soft_17=True)


@pytest.fixture
def blackjack_hand():
    """A natural blackjack (A-K)."""
    return cards("AS", "KH")


@pytest.fixture
def soft_17_hand():
    """A soft 17 (A-6)."""
    return cards("AS", "6H")


@pytest.fixture
def hard_16_hand():
    """A hard 16 (10-6)."""
    return cards("10S", "6H")


@pytest.fixture
def pair_8s_hand():
    """A pair of 8s."""
    return cards("8S", "8H")


@pytest.fixture
def bust_hand():
    """A busted hand (10-6-K)."""
    return cards("10S", "6H", "KC")


@pytest_asyncio.fixture
async def accounts():
    """Account service holding players alice, bob and carol, 1000 each."""
    service = InMemoryAccountService(starting_money=Decimal("1000"))
    for name in ("alice", "bob", "carol"):
        await service.create(name)
    return service


@pytest_asyncio.fixture
async def ids(accounts):
    """Player ids keyed by name."""
    return {a.name: a.id for a in await accounts.ranking()}


@pytest.fixture
def repository():
    """Empty in-memory game store."""
    return InMemoryGameRepository()


@pytest.fixture
def orchestrator(repository, accounts, rules):
    """Orchestrator over in-memory stores."""
    return RoundOrchestrator(repository, accounts, rules)
