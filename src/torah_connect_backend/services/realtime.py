'''
Change notifications for chat clients.

Services queue "refetch" events on the database session while they work.
The events are sent only after the session commits and are dropped on
rollback, so a client is never told to reload data that was never saved.
Clients re-fetch the named scope in full; there are no deltas.
'''
import asyncio
import json
from typing import Iterable
from uuid import UUID

from fastapi import WebSocket
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from ..common.logger import log

PENDING_EVENTS_KEY = "pending_chat_events"

# Scope names a client may receive
CONVERSATIONS_SCOPE = "conversations"


def conversation_scope(conversation_id: UUID) -> str:
    return f"conversation:{conversation_id}"


class ChatEventManager:
    """Tracks open WebSocket connections per user and pushes refetch events to them."""

    def __init__(self):
        self._connections: dict[UUID, set[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, user_id: UUID):
        await websocket.accept()
        self._connections.setdefault(user_id, set()).add(websocket)
        log.info(f"Chat client connected for user {user_id}.")

    def disconnect(self, websocket: WebSocket, user_id: UUID):
        if user_id in self._connections:
            self._connections[user_id].discard(websocket)
            if not self._connections[user_id]:
                del self._connections[user_id]
        log.info(f"Chat client disconnected for user {user_id}.")

    def connection_count(self, user_id: UUID) -> int:
        return len(self._connections.get(user_id, ()))

    async def send_to_user(self, user_id: UUID, payload: dict):
        if user_id not in self._connections:
            return

        message = json.dumps(payload)
        disconnected = set()
        for websocket in list(self._connections[user_id]):
            try:
                await websocket.send_text(message)
            except Exception as e:
                log.warning(f"Failed to push chat event to user {user_id}: {e}")
                disconnected.add(websocket)

        for websocket in disconnected:
            self.disconnect(websocket, user_id)

    async def notify_refetch(self, user_ids: Iterable[UUID], scopes: Iterable[str]):
        scopes = list(scopes)
        for user_id in user_ids:
            for scope in scopes:
                await self.send_to_user(user_id, {"type": "refetch", "scope": scope})


chat_event_manager = ChatEventManager()

# Strong references so dispatch tasks are not garbage collected mid-flight
_background_tasks: set[asyncio.Task] = set()


def queue_refetch(db: AsyncSession, user_ids: Iterable[UUID], scopes: Iterable[str]) -> None:
    """Records an event to send once the current transaction commits."""
    db.info.setdefault(PENDING_EVENTS_KEY, []).append((tuple(user_ids), tuple(scopes)))


def pending_events(db: AsyncSession) -> list:
    return list(db.info.get(PENDING_EVENTS_KEY, []))


@event.listens_for(Session, "after_commit")
def _dispatch_after_commit(session: Session):
    events = session.info.pop(PENDING_EVENTS_KEY, None)
    if not events:
        return
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        log.warning(f"No running event loop; dropping {len(events)} chat notifications.")
        return
    for user_ids, scopes in events:
        task = loop.create_task(chat_event_manager.notify_refetch(user_ids, scopes))
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)


@event.listens_for(Session, "after_soft_rollback")
def _discard_after_rollback(session: Session, previous_transaction):
    session.info.pop(PENDING_EVENTS_KEY, None)
