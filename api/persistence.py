"""Game and account storage with Redis backend and in-memory fallback."""

import json
import logging
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any, AsyncIterator
from uuid import uuid4

import redis.asyncio as redis
from redis.exceptions import RedisError, WatchError

from config import config
from core.accounts import Account, AccountService, InMemoryAccountService
from core.cards import Card, Deck, Rank, Suit
from core.errors import (
    AccountNotFound,
    DuplicatePlayerName,
    GameNotFound,
    InsufficientFunds,
    StorageError,
)
from core.game.models import Game, Outcome, PlayerInGame
from core.game.orchestrator import RoundOrchestrator
from core.game.repository import GameRepository, InMemoryGameRepository
from core.game.state import GamePhase, PlayerStatus

logger = logging.getLogger(__name__)


def serialize_card(card: Card) -> dict[str, int]:
    """Serialize a card to a dict."""
    return {"rank": card.rank.value, "suit": card.suit.value}


def deserialize_card(data: dict[str, int]) -> Card:
    """Deserialize a card from a dict."""
    return Card(Rank(data["rank"]), Suit(data["suit"]))


def serialize_participant(participant: PlayerInGame) -> dict[str, Any]:
    """Serialize a participant to a dict."""
    return {
        "player_id": participant.player_id,
        "name": participant.name,
        "cards": [serialize_card(c) for c in participant.cards],
        "bet": participant.bet,
        "status": participant.status.name,
        "outcome": participant.outcome.name if participant.outcome else None,
        "payout": str(participant.payout),
    }


def deserialize_participant(data: dict[str, Any]) -> PlayerInGame:
    """Deserialize a participant from a dict."""
    return PlayerInGame(
        player_id=data["player_id"],
        name=data["name"],
        cards=[deserialize_card(c) for c in data["cards"]],
        bet=data["bet"],
        status=PlayerStatus[data["status"]],
        outcome=Outcome[data["outcome"]] if data["outcome"] else None,
        payout=Decimal(data["payout"]),
    )


def serialize_game(game: Game) -> dict[str, Any]:
    """Serialize a game for storage; only undealt cards of the deck are kept."""
    return {
        "id": game.id,
        "phase": game.phase.name,
        "concluded": game.concluded,
        "active_player_index": game.active_player_index,
        "players": [serialize_participant(p) for p in game.players],
        "croupier_cards": [serialize_card(c) for c in game.croupier_cards],
        "deck": {
            "num_decks": game.deck.num_decks,
            "cards": [serialize_card(c) for c in game.deck.remaining()],
        },
    }


def deserialize_game(data: dict[str, Any]) -> Game:
    """Restore a game from storage."""
    deck_data = data["deck"]
    return Game(
        id=data["id"],
        players=[deserialize_participant(p) for p in data["players"]],
        active_player_index=data["active_player_index"],
        croupier_cards=[deserialize_card(c) for c in data["croupier_cards"]],
        deck=Deck.stacked(
            (deserialize_card(c) for c in deck_data["cards"]),
            num_decks=deck_data["num_decks"],
        ),
        phase=GamePhase[data["phase"]],
        concluded=data["concluded"],
    )


@asynccontextmanager
async def _storage_errors() -> AsyncIterator[None]:
    """Surface Redis failures as StorageError."""
    try:
        yield
    except RedisError as exc:
        raise StorageError(f"Redis operation failed: {exc}") from exc


class RedisGameRepository(GameRepository):
    """Redis-backed game store (one JSON document per game)."""

    def __init__(self, redis_client: "redis.Redis") -> None:
        self._redis = redis_client
        self._prefix = "blackjack:game:"

    def _key(self, game_id: str) -> str:
        """Get Redis key for a game."""
        return f"{self._prefix}{game_id}"

    async def find(self, game_id: str) -> Game:
        async with _storage_errors():
            data = await self._redis.get(self._key(game_id))
        if data is None:
            raise GameNotFound(game_id)
        return deserialize_game(json.loads(data))

    async def find_all(self) -> list[Game]:
        async with _storage_errors():
            keys = [key async for key in self._redis.scan_iter(match=f"{self._prefix}*")]
            documents = await self._redis.mget(keys) if keys else []
        return [deserialize_game(json.loads(doc)) for doc in documents if doc is not None]

    async def save(self, game: Game) -> Game:
        async with _storage_errors():
            await self._redis.set(self._key(game.id), json.dumps(serialize_game(game)))
        return game

    async def delete(self, game_id: str) -> None:
        async with _storage_errors():
            removed = await self._redis.delete(self._key(game_id))
        if not removed:
            raise GameNotFound(game_id)


class RedisAccountService(AccountService):
    """
    Redis-backed account store.

    Each account is a hash; a name index hash keeps names unique and a
    sorted set keeps the ranking. Balance changes use WATCH/MULTI so
    concurrent debits on the same account never overdraw it.
    """

    NAMES_KEY = "blackjack:player-names"
    RANKING_KEY = "blackjack:ranking"

    def __init__(
        self,
        redis_client: "redis.Redis",
        starting_money: Decimal = Decimal("1000"),
    ) -> None:
        super().__init__(starting_money)
        self._redis = redis_client
        self._prefix = "blackjack:player:"

    def _key(self, player_id: str) -> str:
        """Get Redis key for an account."""
        return f"{self._prefix}{player_id}"

    async def create(self, name: str) -> Account:
        player_id = str(uuid4())
        async with _storage_errors():
            if not await self._redis.hsetnx(self.NAMES_KEY, name, player_id):
                raise DuplicatePlayerName(f"Player name already taken: {name}")
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.hset(
                    self._key(player_id),
                    mapping={"id": player_id, "name": name, "money": str(self.starting_money)},
                )
                pipe.zadd(self.RANKING_KEY, {player_id: float(self.starting_money)})
                await pipe.execute()
        logger.info("Registered player %s (%s)", name, player_id)
        return Account(id=player_id, name=name, money=self.starting_money)

    async def get(self, player_id: str) -> Account:
        async with _storage_errors():
            data = await self._redis.hgetall(self._key(player_id))
        if not data:
            raise AccountNotFound(player_id)
        return Account(id=data["id"], name=data["name"], money=Decimal(data["money"]))

    async def find_by_name(self, name: str) -> Account | None:
        async with _storage_errors():
            player_id = await self._redis.hget(self.NAMES_KEY, name)
        if player_id is None:
            return None
        return await self.get(player_id)

    async def rename(self, player_id: str, new_name: str) -> Account:
        account = await self.get(player_id)
        if account.name == new_name:
            return account
        async with _storage_errors():
            if not await self._redis.hsetnx(self.NAMES_KEY, new_name, player_id):
                raise DuplicatePlayerName(f"Player name already taken: {new_name}")
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.hdel(self.NAMES_KEY, account.name)
                pipe.hset(self._key(player_id), "name", new_name)
                await pipe.execute()
        return Account(id=player_id, name=new_name, money=account.money)

    async def ranking(self) -> list[Account]:
        async with _storage_errors():
            player_ids = await self._redis.zrevrange(self.RANKING_KEY, 0, -1)
        return [await self.get(player_id) for player_id in player_ids]

    async def debit(self, player_id: str, amount: Decimal) -> Account:
        return await self._adjust(player_id, -amount)

    async def credit(self, player_id: str, amount: Decimal) -> Account:
        return await self._adjust(player_id, amount)

    async def _adjust(self, player_id: str, delta: Decimal) -> Account:
        """Apply a balance change in an optimistic transaction."""
        key = self._key(player_id)
        async with _storage_errors():
            async with self._redis.pipeline(transaction=True) as pipe:
                while True:
                    try:
                        await pipe.watch(key)
                        data = await pipe.hgetall(key)
                        if not data:
                            raise AccountNotFound(player_id)
                        balance = Decimal(data["money"])
                        if balance + delta < 0:
                            raise InsufficientFunds(player_id, -delta, balance)

                        new_balance = balance + delta
                        pipe.multi()
                        pipe.hset(key, "money", str(new_balance))
                        pipe.zadd(self.RANKING_KEY, {player_id: float(new_balance)})
                        await pipe.execute()
                    except WatchError:
                        logger.debug("Balance of %s changed concurrently, retrying", player_id)
                        continue
                    return Account(id=player_id, name=data["name"], money=new_balance)


# Global stores, created on first use
_accounts: AccountService | None = None
_orchestrator: RoundOrchestrator | None = None


async def _connect_redis() -> "redis.Redis | None":
    """Connect to Redis when enabled; None means use in-memory stores."""
    if not config.redis.enabled:
        return None

    client = redis.from_url(config.redis.url, decode_responses=True)
    try:
        await client.ping()
    except RedisError as exc:
        logger.warning("Redis unavailable at %s (%s); using in-memory stores",
                       config.redis.url, exc)
        return None
    return client


async def _init_backend() -> None:
    global _accounts, _orchestrator

    client = await _connect_redis()
    if client is not None:
        repository: GameRepository = RedisGameRepository(client)
        _accounts = RedisAccountService(client, config.table.starting_money)
    else:
        repository = InMemoryGameRepository()
        _accounts = InMemoryAccountService(config.table.starting_money)

    _orchestrator = RoundOrchestrator(repository, _accounts, config.table.to_rules())
    logger.info("Storage backend: %s", type(repository).__name__)


async def get_orchestrator() -> RoundOrchestrator:
    """Get or create the round orchestrator."""
    if _orchestrator is None:
        await _init_backend()
    return _orchestrator  # type: ignore[return-value]


async def get_account_service() -> AccountService:
    """Get or create the account service."""
    if _accounts is None:
        await _init_backend()
    return _accounts  # type: ignore[return-value]


def reset_backend() -> None:
    """Forget the global stores so the next request builds fresh ones."""
    global _accounts, _orchestrator
    _accounts = None
    _orchestrator = None
