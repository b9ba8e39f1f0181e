"""Tests for game storage (serialization and the Redis stores)."""

import json
from decimal import Decimal

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from api.persistence import (
    RedisAccountService,
    RedisGameRepository,
    deserialize_card,
    deserialize_game,
    deserialize_participant,
    serialize_card,
    serialize_game,
    serialize_participant,
)
from core.cards import Card, Rank, Suit
from core.errors import AccountNotFound, GameNotFound, StorageError
from core.game import Outcome, PlayerStatus
from tests.helpers import cards, make_game, seat


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the game repository."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.hashes: dict[str, dict[str, str]] = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise RedisConnectionError("connection refused")

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def set(self, key, value):
        self._check()
        self.data[key] = value

    async def delete(self, key):
        self._check()
        return 1 if self.data.pop(key, None) is not None else 0

    async def mget(self, keys):
        self._check()
        return [self.data.get(key) for key in keys]

    async def scan_iter(self, match):
        self._check()
        prefix = match.rstrip("*")
        for key in list(self.data):
            if key.startswith(prefix):
                yield key

    async def hgetall(self, key):
        self._check()
        return dict(self.hashes.get(key, {}))

    async def hget(self, key, field):
        self._check()
        return self.hashes.get(key, {}).get(field)


class TestCardSerialization:
    """Tests for card serialization."""

    def test_serialize_card_structure(self):
        """Test that serialized card has expected structure."""
        serialized = serialize_card(Card(Rank.SEVEN, Suit.DIAMONDS))

        assert serialized == {"rank": Rank.SEVEN.value, "suit": Suit.DIAMONDS.value}

    def test_deserialize_card_preserves_rank_suit(self):
        """Test that deserialization preserves rank and suit values."""
        for card in cards("2C", "10D", "JH", "QS", "KC", "AH"):
            assert deserialize_card(serialize_card(card)) == card, f"Mismatch for {card}"


class TestParticipantSerialization:
    """Tests for participant serialization."""

    def test_settled_participant(self):
        """Test that outcome and payout survive storage."""
        participant = seat("p1", cards("AS", "KH"), bet=20, status=PlayerStatus.STAND)
        participant.outcome = Outcome.BLACKJACK_WIN
        participant.payout = Decimal("50.0")

        serialized = serialize_participant(participant)
        restored = deserialize_participant(json.loads(json.dumps(serialized)))

        assert serialized["status"] == "STAND"
        assert serialized["payout"] == "50.0"
        assert restored == participant

    def test_unsettled_participant(self):
        """Test that a participant without outcome is stored as such."""
        participant = seat("p1", name="alice")
        restored = deserialize_participant(serialize_participant(participant))
        assert restored.outcome is None
        assert restored.name == "alice"
        assert restored.status is PlayerStatus.PENDING_BET


class TestGameSerialization:
    """Tests for game serialization."""

    @pytest.fixture
    def game(self):
        """A game midway through a split round."""
        return make_game(
            seat("p1", cards("8S", "3C"), bet=10, status=PlayerStatus.STAND),
            seat("p1", cards("8H", "2D"), bet=10, status=PlayerStatus.PLAYING),
            seat("p2", cards("10S", "9H"), bet=30, status=PlayerStatus.PLAYING),
            croupier=cards("9C", "7D"),
            deck=cards("2H", "3H", "4H"),
            active=1,
        )

    def test_game_roundtrip(self, game):
        """Test that a stored game restores to an equal game."""
        restored = deserialize_game(json.loads(json.dumps(serialize_game(game))))
        assert restored == game

    def test_only_undealt_cards_are_stored(self, game):
        """Test that the deck is stored from its cursor onwards."""
        game.deck.deal()

        serialized = serialize_game(game)
        restored = deserialize_game(serialized)

        assert len(serialized["deck"]["cards"]) == 2
        assert restored.deck.deal() == Card(Rank.THREE, Suit.HEARTS)

    def test_phase_and_conclusion_stored(self, game):
        """Test that phase and concluded flag are kept."""
        game.concluded = True
        serialized = serialize_game(game)
        assert serialized["phase"] == game.phase.name
        assert deserialize_game(serialized).concluded is True


class TestRedisGameRepository:
    """Tests for the Redis game store against a fake client."""

    @pytest.fixture
    def client(self):
        return FakeRedis()

    @pytest.fixture
    def repository(self, client):
        return RedisGameRepository(client)

    @pytest.mark.asyncio
    async def test_save_and_find(self, repository, client):
        game = make_game(seat("p1"), deck=cards("2H"))

        await repository.save(game)

        assert f"blackjack:game:{game.id}" in client.data
        assert await repository.find(game.id) == game

    @pytest.mark.asyncio
    async def test_find_missing(self, repository):
        with pytest.raises(GameNotFound):
            await repository.find("nope")

    @pytest.mark.asyncio
    async def test_find_all(self, repository, client):
        first = make_game(seat("p1"))
        second = make_game(seat("p2"))
        await repository.save(first)
        await repository.save(second)
        client.data["unrelated"] = "x"

        found = await repository.find_all()

        assert sorted(g.id for g in found) == sorted([first.id, second.id])

    @pytest.mark.asyncio
    async def test_delete(self, repository):
        game = make_game(seat("p1"))
        await repository.save(game)

        await repository.delete(game.id)

        with pytest.raises(GameNotFound):
            await repository.delete(game.id)

    @pytest.mark.asyncio
    async def test_redis_errors_become_storage_errors(self, repository, client):
        client.fail = True
        with pytest.raises(StorageError):
            await repository.save(make_game(seat("p1")))
        with pytest.raises(StorageError):
            await repository.find("any")


class TestRedisAccountLookups:
    """Tests for account reads against a fake client."""

    @pytest.mark.asyncio
    async def test_get_existing_account(self):
        client = FakeRedis()
        client.hashes["blackjack:player:p1"] = {"id": "p1", "name": "alice", "money": "950.5"}
        service = RedisAccountService(client)

        account = await service.get("p1")

        assert account.name == "alice"
        assert account.money == Decimal("950.5")

    @pytest.mark.asyncio
    async def test_get_missing_account(self):
        with pytest.raises(AccountNotFound):
            await RedisAccountService(FakeRedis()).get("ghost")

    @pytest.mark.asyncio
    async def test_find_by_name(self):
        client = FakeRedis()
        client.hashes[RedisAccountService.NAMES_KEY] = {"alice": "p1"}
        client.hashes["blackjack:player:p1"] = {"id": "p1", "name": "alice", "money": "1000"}
        service = RedisAccountService(client)

        assert (await service.find_by_name("alice")).id == "p1"
        assert await service.find_by_name("bob") is None
