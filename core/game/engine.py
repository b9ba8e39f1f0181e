"""Turn engine: validates and applies one play to one game."""

import copy
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Awaitable, Callable

from core.accounts import AccountJournal, AccountService
from core.cards import Card
from core.errors import BlackjackError, DeckExhausted, InvalidPlay
from core.game.events import EventEmitter, EventType
from core.game.models import Game, Play, PlayerInGame, PlayRequest
from core.game.state import GamePhase, PlayerStatus, RoundPhaseMachine, is_valid_transition
from core.hand import BLACKJACK, hand_value, is_bust, is_pair

logger = logging.getLogger(__name__)


@dataclass
class _Turn:
    """Working state for a single play."""

    game: Game
    request: PlayRequest
    phases: RoundPhaseMachine
    events: EventEmitter
    accounts: AccountJournal

    @property
    def participant(self) -> PlayerInGame:
        return self.game.active_player


class TurnEngine:
    """
    Blackjack turn engine.

    ``apply`` never mutates the game it is given. The play runs against a
    deep copy that is returned only if every step succeeded, so a rejected
    play, a declined debit or an exhausted deck leaves the caller's game
    exactly as it was. Account debits are awaited before the copy is
    touched and recorded in an ``AccountJournal``; if the play fails after
    a debit, the journal is rolled back before the error propagates.
    """

    def __init__(self, accounts: AccountService) -> None:
        """
        Initialize the engine.

        Args:
            accounts: Account service debited for bets, doubles and splits
        """
        self._accounts = accounts
        self._handlers: dict[Play, Callable[[_Turn], Awaitable[None]]] = {
            Play.INITIAL_BET: self._initial_bet,
            Play.HIT: self._hit,
            Play.STAND: self._stand,
            Play.DOUBLE: self._double,
            Play.SPLIT: self._split,
            Play.SURRENDER: self._surrender,
        }

    async def apply(
        self,
        game: Game,
        request: PlayRequest,
        events: EventEmitter | None = None,
        journal: AccountJournal | None = None,
    ) -> Game:
        """
        Apply one play and return the resulting game.

        Args:
            game: Current game (left untouched)
            request: The requested play
            events: Emitter receiving the events produced by this play
            journal: Journal recording this play's debits. The caller owns
                it and may roll it back if a later step fails.

        Returns:
            The updated game. ``concluded`` is set when no participant is
            left to act; the croupier and settlement run after that.

        Raises:
            InvalidPlay: A precondition failed
            AccountError: The debit for a bet, double or split failed
            DeckExhausted: The deck ran out while dealing; the debit made
                for the play has been refunded
        """
        self._check_preconditions(game, request)

        working = copy.deepcopy(game)
        turn = _Turn(
            game=working,
            request=request,
            phases=RoundPhaseMachine(working.derived_phase()),
            events=events if events is not None else EventEmitter(game.id),
            accounts=journal if journal is not None else AccountJournal(self._accounts),
        )
        logger.debug(
            "Game %s: %s by %s (seat %d)",
            game.id, request.play.name, request.player_id, game.active_player_index,
        )

        try:
            await self._handlers[request.play](turn)
        except DeckExhausted:
            logger.error("Game %s: deck exhausted during %s", game.id, request.play.name)
            await turn.accounts.rollback()
            raise
        except BlackjackError:
            await turn.accounts.rollback()
            raise

        working.phase = turn.phases.phase
        working.concluded = working.phase is GamePhase.CONCLUDED
        return working

    def _check_preconditions(self, game: Game, request: PlayRequest) -> None:
        if game.concluded:
            raise InvalidPlay("round already concluded")
        if game.active_player.player_id != request.player_id:
            raise InvalidPlay("not this player's turn")
        if game.active_player.bet == 0 and request.play is not Play.INITIAL_BET:
            raise InvalidPlay("must place a bet first")

    # Plays

    async def _initial_bet(self, turn: _Turn) -> None:
        participant = turn.participant
        amount = turn.request.amount
        if amount <= 0:
            raise InvalidPlay("bet must be greater than zero")
        if participant.bet != 0:
            raise InvalidPlay("bet already placed")
        self._require_transition(participant, PlayerStatus.WAITING_FOR_DEAL)

        await turn.accounts.debit(participant.player_id, Decimal(amount))

        participant.bet = amount
        self._set_status(participant, PlayerStatus.WAITING_FOR_DEAL)
        turn.events.emit_new(
            EventType.BET_PLACED, player_id=participant.player_id, amount=amount,
        )

        next_index = self._find_next(turn.game, PlayerStatus.PENDING_BET)
        if next_index is not None:
            turn.game.active_player_index = next_index
        else:
            self._deal_round(turn)

    async def _hit(self, turn: _Turn) -> None:
        participant = self._require_playing(turn)
        self._deal_to(turn, participant.cards)
        value = hand_value(participant.cards)
        turn.events.emit_new(
            EventType.PLAYER_HIT, player_id=participant.player_id, hand_value=value,
        )

        if is_bust(participant.cards):
            self._bust(turn, participant)
            self._end_turn(turn)
        elif value == BLACKJACK:
            self._set_status(participant, PlayerStatus.STAND)
            self._end_turn(turn)

    async def _stand(self, turn: _Turn) -> None:
        participant = self._require_playing(turn)
        self._set_status(participant, PlayerStatus.STAND)
        turn.events.emit_new(
            EventType.PLAYER_STAND,
            player_id=participant.player_id,
            hand_value=hand_value(participant.cards),
        )
        self._end_turn(turn)

    async def _surrender(self, turn: _Turn) -> None:
        participant = self._require_playing(turn, two_cards=True)
        self._set_status(participant, PlayerStatus.SURRENDER)
        turn.events.emit_new(EventType.PLAYER_SURRENDER, player_id=participant.player_id)
        self._end_turn(turn)

    async def _double(self, turn: _Turn) -> None:
        participant = self._require_playing(turn, two_cards=True)

        await turn.accounts.debit(participant.player_id, Decimal(participant.bet))

        participant.bet *= 2
        self._deal_to(turn, participant.cards)
        turn.events.emit_new(
            EventType.PLAYER_DOUBLE,
            player_id=participant.player_id,
            hand_value=hand_value(participant.cards),
            new_bet=participant.bet,
        )

        if is_bust(participant.cards):
            self._bust(turn, participant)
        else:
            self._set_status(participant, PlayerStatus.STAND)
        self._end_turn(turn)

    async def _split(self, turn: _Turn) -> None:
        participant = self._require_playing(turn)
        if not is_pair(participant.cards):
            raise InvalidPlay("split requires a matching pair")

        await turn.accounts.debit(participant.player_id, Decimal(participant.bet))

        hands = [
            PlayerInGame(
                player_id=participant.player_id,
                name=participant.name,
                cards=[card],
                bet=participant.bet,
                status=PlayerStatus.PLAYING,
            )
            for card in participant.cards
        ]
        for hand in hands:
            self._deal_to(turn, hand.cards)

        index = turn.game.active_player_index
        turn.game.players[index:index + 1] = hands
        turn.events.emit_new(
            EventType.PLAYER_SPLIT,
            player_id=participant.player_id,
            hand1_value=hand_value(hands[0].cards),
            hand2_value=hand_value(hands[1].cards),
        )

    # Turn flow

    def _deal_round(self, turn: _Turn) -> None:
        """Deal two cards to every betting participant and the croupier."""
        game = turn.game
        turn.phases.deal()

        betting = [p for p in game.players if p.status is PlayerStatus.WAITING_FOR_DEAL]
        for _ in range(2):
            for participant in betting:
                self._deal_to(turn, participant.cards)
            self._deal_to(turn, game.croupier_cards)

        for participant in betting:
            self._set_status(participant, PlayerStatus.PLAYING)

        game.active_player_index = next(
            i for i, p in enumerate(game.players) if p.status is PlayerStatus.PLAYING
        )
        turn.events.emit_new(
            EventType.CARDS_DEALT,
            participants=len(betting),
            croupier_showing=str(game.croupier_cards[0]),
        )
        logger.info("Game %s: dealt %d hands", game.id, len(betting))

    def _end_turn(self, turn: _Turn) -> None:
        """Move to the next PLAYING participant or conclude the round."""
        game = turn.game
        next_index = self._find_next(game, PlayerStatus.PLAYING)

        if next_index is None:
            turn.phases.conclude()
            turn.events.emit_new(EventType.ROUND_CONCLUDED)
            logger.info("Game %s: all turns finished", game.id)
            return

        game.active_player_index = next_index
        turn.events.emit_new(
            EventType.TURN_ADVANCED,
            player_id=game.active_player.player_id,
            index=next_index,
        )

    @staticmethod
    def _find_next(game: Game, status: PlayerStatus) -> int | None:
        """Circular search from the seat after the active one."""
        count = len(game.players)
        for step in range(1, count + 1):
            index = (game.active_player_index + step) % count
            if game.players[index].status is status:
                return index
        return None

    # Helpers

    def _require_playing(self, turn: _Turn, two_cards: bool = False) -> PlayerInGame:
        participant = turn.participant
        play = turn.request.play.name
        if participant.status is not PlayerStatus.PLAYING:
            raise InvalidPlay(f"cannot {play} while {participant.status}")
        if two_cards and len(participant.cards) != 2:
            raise InvalidPlay(f"{play} is only allowed on the first two cards")
        return participant

    @staticmethod
    def _require_transition(participant: PlayerInGame, status: PlayerStatus) -> None:
        if not is_valid_transition(participant.status, status):
            raise InvalidPlay(f"cannot go from {participant.status} to {status}")

    def _set_status(self, participant: PlayerInGame, status: PlayerStatus) -> None:
        self._require_transition(participant, status)
        participant.status = status

    def _bust(self, turn: _Turn, participant: PlayerInGame) -> None:
        self._set_status(participant, PlayerStatus.BUST)
        turn.events.emit_new(
            EventType.PLAYER_BUSTS,
            player_id=participant.player_id,
            hand_value=hand_value(participant.cards),
        )

    @staticmethod
    def _deal_to(turn: _Turn, cards: list[Card]) -> None:
        cards.append(turn.game.deck.deal())
