"""Read-only WebSocket feed for spectators of a game."""

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from api.persistence import get_orchestrator
from api.routes.game import game_to_response
from core.errors import GameNotFound
from core.game.events import EventEmitter, EventType, GameEvent

logger = logging.getLogger(__name__)

router = APIRouter()

# Events that mark a new committed state worth a fresh snapshot
SNAPSHOT_EVENTS = frozenset({EventType.GAME_SAVED, EventType.PLAYER_JOINED})


class ConnectionManager:
    """Track spectator connections per game and queue committed events."""

    def __init__(self) -> None:
        self._queues: dict[str, dict[WebSocket, asyncio.Queue[GameEvent]]] = {}
        self._source: EventEmitter | None = None

    def attach(self, events: EventEmitter) -> None:
        """Listen to an orchestrator's public events (once per emitter)."""
        if self._source is events:
            return
        if self._source is not None:
            self._source.unsubscribe(self._queue_event)
        events.subscribe(self._queue_event)
        self._source = events

    async def connect(self, websocket: WebSocket, game_id: str) -> asyncio.Queue[GameEvent]:
        """Accept and register a spectator."""
        await websocket.accept()
        queue: asyncio.Queue[GameEvent] = asyncio.Queue(maxsize=100)
        self._queues.setdefault(game_id, {})[websocket] = queue
        return queue

    def disconnect(self, websocket: WebSocket, game_id: str) -> None:
        """Remove a spectator."""
        spectators = self._queues.get(game_id, {})
        spectators.pop(websocket, None)
        if not spectators:
            self._queues.pop(game_id, None)

    def _queue_event(self, event: GameEvent) -> None:
        """Queue an event for every spectator of its game."""
        for queue in self._queues.get(event.game_id or "", {}).values():
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning("Spectator queue full for game %s, dropping event", event.game_id)


# Global connection manager
manager = ConnectionManager()


def _event_to_message(event: GameEvent) -> dict[str, Any]:
    """Convert a table event to a WebSocket message."""
    return {
        "type": "event",
        "event_type": event.event_type.name,
        "data": event.data,
        "timestamp": event.timestamp.isoformat(),
    }


async def _snapshot_message(game_id: str) -> dict[str, Any]:
    orchestrator = await get_orchestrator()
    game = await orchestrator.get_game(game_id)
    return {"type": "state_update", "state": game_to_response(game).model_dump()}


@router.websocket("/games/{game_id}")
async def game_websocket(websocket: WebSocket, game_id: str) -> None:
    """
    WebSocket endpoint for spectators.

    Messages to client:
    - {"type": "state_update", "state": {...}} on connect and after every saved play
    - {"type": "event", "event_type": "...", "data": {...}, "timestamp": "..."}
    - {"type": "error", "message": "..."}

    The client sends nothing; the connection is read-only.
    """
    orchestrator = await get_orchestrator()
    manager.attach(orchestrator.events)
    queue = await manager.connect(websocket, game_id)

    try:
        await websocket.send_json(await _snapshot_message(game_id))
    except GameNotFound as exc:
        await websocket.send_json({"type": "error", "message": str(exc)})
        manager.disconnect(websocket, game_id)
        await websocket.close()
        return

    async def push_events() -> None:
        """Forward queued events, then a snapshot once the state is saved."""
        while True:
            event = await queue.get()
            await websocket.send_json(_event_to_message(event))
            if event.event_type in SNAPSHOT_EVENTS:
                await websocket.send_json(await _snapshot_message(game_id))

    pusher = asyncio.create_task(push_events())
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Spectator left game %s", game_id)
    finally:
        pusher.cancel()
        try:
            await pusher
        except asyncio.CancelledError:
            pass
        except GameNotFound:
            logger.info("Game %s was deleted while being watched", game_id)
        manager.disconnect(websocket, game_id)
