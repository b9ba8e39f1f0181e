"""Round orchestration: the serialized pipeline around the turn engine."""

import asyncio
import logging
import weakref
from dataclasses import dataclass, field

from core.accounts import Account, AccountJournal, AccountService
from core.cards import Deck
from core.errors import BlackjackError, GameNotFound, GameNotJoinable, StorageError
from core.game.croupier import resolve_croupier_hand
from core.game.engine import TurnEngine
from core.game.events import EventEmitter, EventType, GameEvent
from core.game.models import Game, PlayerInGame, PlayRequest
from core.game.repository import GameRepository
from core.game.settlement import Settlement, settle_round
from core.game.state import PlayerStatus
from core.rules import TableRules

logger = logging.getLogger(__name__)

JOINABLE_STATUSES = frozenset({PlayerStatus.PENDING_BET, PlayerStatus.WAITING_FOR_DEAL})


def _not_joinable(game_id: str, reason: str) -> GameNotJoinable:
    logger.warning("Game %s: join rejected: %s", game_id, reason)
    return GameNotJoinable(reason)


@dataclass(frozen=True)
class PlayResult:
    """Saved game after a play, plus the settlements if the round ended."""

    game: Game
    settlements: list[Settlement] = field(default_factory=list)


class GameLocks:
    """One asyncio.Lock per game id, dropped once nobody holds or awaits it."""

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def get(self, game_id: str) -> asyncio.Lock:
        lock = self._locks.get(game_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[game_id] = lock
        return lock


class RoundOrchestrator:
    """
    Runs every state change of a game under that game's lock.

    A play is looked up, applied by the turn engine, and, when it ends the
    round, followed by the croupier and the settlement pass before the
    game is saved. Events produced along the way are buffered and only
    published on ``events`` after the save, so subscribers never see a
    state that was not committed.
    """

    def __init__(
        self,
        repository: GameRepository,
        accounts: AccountService,
        rules: TableRules | None = None,
        events: EventEmitter | None = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            repository: Game store
            accounts: Account service for debits and payouts
            rules: Table rules (uses defaults if not provided)
            events: Public emitter for committed events
        """
        self.rules = rules or TableRules()
        self.events = events or EventEmitter(keep_history=False)
        self._repository = repository
        self._accounts = accounts
        self._engine = TurnEngine(accounts)
        self._locks = GameLocks()

    async def create_game(self, player_name: str) -> Game:
        """Open a new table seating ``player_name``."""
        account = await self._accounts.get_or_create(player_name)
        game = Game(deck=Deck(num_decks=self.rules.num_decks))
        game.players.append(PlayerInGame(player_id=account.id, name=account.name))
        await self._repository.save(game)
        logger.info("Game %s created by %s", game.id, account.name)
        return game

    async def get_game(self, game_id: str) -> Game:
        return await self._repository.find(game_id)

    async def join_game(self, game_id: str, player_name: str) -> Game:
        """
        Seat another participant at a table that has not been dealt yet.

        Raises:
            GameNotFound: No such game
            GameNotJoinable: The round started, the table is full, or the
                player already holds the maximum number of positions
        """
        async with self._locks.get(game_id):
            game = await self._repository.find(game_id)
            if any(p.status not in JOINABLE_STATUSES for p in game.players):
                raise _not_joinable(
                    game_id, "The game is in progress; no new players can join"
                )
            if len(game.players) >= self.rules.playing_positions:
                raise _not_joinable(
                    game_id,
                    "All the playing positions are occupied. No more players accepted.",
                )

            account = await self._accounts.get_or_create(player_name)
            if len(game.positions_of(account.id)) >= self.rules.simultaneous_bets_allowed:
                raise _not_joinable(
                    game_id,
                    "The player has reached the number of bets limit for a single game.",
                )

            game.players.append(PlayerInGame(player_id=account.id, name=account.name))
            await self._repository.save(game)

        logger.info("Game %s: %s joined (%d seated)", game_id, account.name, len(game.players))
        self.events.emit(
            GameEvent(EventType.PLAYER_JOINED, game_id=game_id, data={"player_id": account.id})
        )
        return game

    async def delete_game(self, game_id: str) -> None:
        async with self._locks.get(game_id):
            await self._repository.delete(game_id)
        logger.info("Game %s deleted", game_id)

    async def execute_play(self, game_id: str, request: PlayRequest) -> PlayResult:
        """
        Apply a play to a stored game and save the result.

        Every debit and credit made for the play goes through one
        ``AccountJournal``. If any step up to and including the save fails,
        the journal is rolled back, so retrying the play never charges or
        pays a player twice.

        Raises:
            GameNotFound: No such game
            InvalidPlay: The play was rejected
            AccountError: A debit failed
            DeckExhausted: The deck ran out mid-round
            StorageError: The new state could not be saved
        """
        async with self._locks.get(game_id):
            game = await self._repository.find(game_id)
            pending = EventEmitter(game.id)
            journal = AccountJournal(self._accounts)

            game = await self._engine.apply(game, request, pending, journal)

            settlements: list[Settlement] = []
            try:
                if game.concluded:
                    resolve_croupier_hand(game, self.rules, pending)
                    settlements = await settle_round(game, journal, self.rules, pending)
                await self._repository.save(game)
            except StorageError:
                logger.error(
                    "Game %s: could not save after %s (settled=%s), reversing %d account moves",
                    game.id, request.play.name, bool(settlements), len(journal.moves),
                )
                await journal.rollback()
                raise
            except BlackjackError:
                await journal.rollback()
                raise
            pending.emit_new(EventType.GAME_SAVED, concluded=game.concluded)

        pending.replay_into(self.events)
        return PlayResult(game=game, settlements=settlements)

    async def update_player_name_in_games(self, account: Account) -> int:
        """Refresh the name snapshot in every game seating ``account``."""
        updated = 0
        for stored in await self._repository.find_all():
            if not stored.positions_of(account.id):
                continue
            async with self._locks.get(stored.id):
                try:
                    game = await self._repository.find(stored.id)
                except GameNotFound:
                    continue
                for participant in game.players:
                    if participant.player_id == account.id:
                        participant.name = account.name
                await self._repository.save(game)
            updated += 1
        return updated
