"""Turn engine, croupier, settlement and round orchestration."""

from core.game.events import GameEvent, EventType, EventEmitter
from core.game.state import GamePhase, PlayerStatus
from core.game.models import Game, Outcome, Play, PlayerInGame, PlayRequest
from core.game.engine import TurnEngine
from core.game.croupier import resolve_croupier_hand
from core.game.settlement import Settlement, classify, settle_round
from core.game.repository import GameRepository, InMemoryGameRepository
from core.game.orchestrator import PlayResult, RoundOrchestrator

__all__ = [
    "GameEvent",
    "EventType",
    "EventEmitter",
    "GamePhase",
    "PlayerStatus",
    "Game",
    "Outcome",
    "Play",
    "PlayerInGame",
    "PlayRequest",
    "TurnEngine",
    "resolve_croupier_hand",
    "Settlement",
    "classify",
    "settle_round",
    "GameRepository",
    "InMemoryGameRepository",
    "PlayResult",
    "RoundOrchestrator",
]
