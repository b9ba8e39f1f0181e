"""Table events and the emitter that carries them."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Callable


class EventType(Enum):
    """Types of table events."""

    # Lobby
    PLAYER_JOINED = auto()

    # Betting and dealing
    BET_PLACED = auto()
    CARDS_DEALT = auto()

    # Participant actions
    PLAYER_HIT = auto()
    PLAYER_STAND = auto()
    PLAYER_DOUBLE = auto()
    PLAYER_SPLIT = auto()
    PLAYER_SURRENDER = auto()
    PLAYER_BUSTS = auto()

    # Turn flow
    TURN_ADVANCED = auto()
    ROUND_CONCLUDED = auto()

    # Croupier
    DEALER_HITS = auto()
    DEALER_STANDS = auto()
    DEALER_BUSTS = auto()

    # Settlement
    PAYOUT = auto()
    PAYOUT_FAILED = auto()

    # Persistence boundary
    GAME_SAVED = auto()


@dataclass(frozen=True)
class GameEvent:
    """
    Immutable table event.

    Events tell spectators what happened during a play; they are only
    published once the resulting game state has been saved.
    """

    event_type: EventType
    game_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.event_type.name}[{self.game_id}]: {self.data}"


# Type alias for event handlers
EventHandler = Callable[[GameEvent], None]


class EventEmitter:
    """
    Simple event emitter for table events.

    Allows subscribing to specific event types or all events.
    """

    def __init__(self, game_id: str | None = None, keep_history: bool = True) -> None:
        """
        Initialize the event emitter.

        Args:
            game_id: Game stamped on events created with ``emit_new``
            keep_history: Record emitted events (off for long-lived emitters)
        """
        self._game_id = game_id
        self._keep_history = keep_history
        self._handlers: dict[EventType | None, list[EventHandler]] = {}
        self._event_history: list[GameEvent] = []

    def subscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """
        Subscribe to events.

        Args:
            handler: Function to call when event occurs
            event_type: Specific event type to subscribe to, or None for all events
        """
        self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """Remove a handler; unknown handlers are ignored."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: GameEvent) -> None:
        """Record an event and pass it to matching and catch-all handlers."""
        if self._keep_history:
            self._event_history.append(event)

        for handler in self._handlers.get(event.event_type, []):
            handler(event)
        for handler in self._handlers.get(None, []):
            handler(event)

    def emit_new(self, event_type: EventType, **data: Any) -> GameEvent:
        """
        Create and emit a new event.

        Args:
            event_type: Type of event
            **data: Event data

        Returns:
            The created event
        """
        event = GameEvent(event_type=event_type, game_id=self._game_id, data=data)
        self.emit(event)
        return event

    def replay_into(self, other: "EventEmitter") -> None:
        """Emit this emitter's history, in order, on ``other``."""
        for event in self._event_history:
            other.emit(event)

    @property
    def history(self) -> list[GameEvent]:
        """Return the event history."""
        return self._event_history.copy()

    def clear_history(self) -> None:
        """Clear the event history."""
        self._event_history.clear()
