"""Game phase and participant status enumerations."""

from enum import Enum, auto
from typing import Iterable

from transitions import Machine


class GamePhase(Enum):
    """
    Round phases.

    Flow: BETTING → ACTING → CONCLUDED
    """

    # Players are placing their initial bets
    BETTING = auto()

    # Cards are out, participants act in turn
    ACTING = auto()

    # Every turn has ended (terminal)
    CONCLUDED = auto()

    def __str__(self) -> str:
        return self.name.title()


class PlayerStatus(Enum):
    """Status of one participant during a round."""

    PENDING_BET = auto()
    WAITING_FOR_DEAL = auto()
    PLAYING = auto()

    # Turn-terminal statuses, scored during settlement
    STAND = auto()
    BUST = auto()
    SURRENDER = auto()

    @property
    def is_finished(self) -> bool:
        """Check if the participant's turn is over for this round."""
        return self in FINISHED_STATUSES

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()


FINISHED_STATUSES = frozenset(
    {PlayerStatus.STAND, PlayerStatus.BUST, PlayerStatus.SURRENDER}
)

# Valid status transitions
VALID_STATUS_TRANSITIONS: dict[PlayerStatus, list[PlayerStatus]] = {
    PlayerStatus.PENDING_BET: [PlayerStatus.WAITING_FOR_DEAL],
    PlayerStatus.WAITING_FOR_DEAL: [PlayerStatus.PLAYING],
    PlayerStatus.PLAYING: [PlayerStatus.STAND, PlayerStatus.BUST, PlayerStatus.SURRENDER],
    PlayerStatus.STAND: [],
    PlayerStatus.BUST: [],
    PlayerStatus.SURRENDER: [],
}


def is_valid_transition(from_status: PlayerStatus, to_status: PlayerStatus) -> bool:
    """
    Check if a status transition is valid.

    Args:
        from_status: Current status
        to_status: Desired status

    Returns:
        True if the transition is allowed
    """
    return to_status in VALID_STATUS_TRANSITIONS[from_status]


def derive_phase(statuses: Iterable[PlayerStatus], concluded: bool) -> GamePhase:
    """Work out the round phase from the participants' statuses."""
    if concluded:
        return GamePhase.CONCLUDED
    if any(status is PlayerStatus.PLAYING or status.is_finished for status in statuses):
        return GamePhase.ACTING
    return GamePhase.BETTING


class RoundPhaseMachine:
    """
    State machine guarding phase changes within a single play.

    Built fresh from the game's current phase for every play; an illegal
    jump (e.g. concluding a round that was never dealt) raises
    ``transitions.MachineError``.
    """

    STATES = [phase.name.lower() for phase in GamePhase]

    TRANSITIONS = [
        {"trigger": "deal", "source": "betting", "dest": "acting"},
        {"trigger": "conclude", "source": "acting", "dest": "concluded"},
    ]

    def __init__(self, phase: GamePhase = GamePhase.BETTING) -> None:
        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial=phase.name.lower(),
            auto_transitions=False,
            model_attribute="_machine_state",
        )

    @property
    def phase(self) -> GamePhase:
        """Get the current phase as enum."""
        return GamePhase[self._machine_state.upper()]  # type: ignore[attr-defined]
