"""
Session registry: the single source of "who is signed in".
Sessions are documents in the primary store; listeners subscribe to sign-in
and sign-out events and get back a callable that unsubscribes them.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, Union
import inspect
import logging

from app.documents import DocumentStore

logger = logging.getLogger(__name__)

SIGNED_IN = "signed_in"
SIGNED_OUT = "signed_out"


@dataclass(frozen=True)
class SessionEvent:
    """A sign-in or sign-out."""

    kind: str
    user_id: str
    session_id: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


SessionListener = Callable[[SessionEvent], Union[None, Awaitable[None]]]


class SessionEvents:
    """Process-wide list of session listeners."""

    def __init__(self):
        self._listeners: List[SessionListener] = []

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register a listener.

        Args:
            listener: Called with every SessionEvent; may be a coroutine function

        Returns:
            Callable that removes the listener; calling it twice is harmless
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def emit(self, event: SessionEvent) -> None:
        """Deliver an event to every listener; a failing listener does not stop the others."""
        for listener in list(self._listeners):
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Session listener failed on {event.kind} for user {event.user_id}")


session_events = SessionEvents()


def log_session_event(event: SessionEvent) -> None:
    """Listener that records sign-ins and sign-outs in the application log."""
    logger.info(f"Session {event.session_id} {event.kind.replace('_', ' ')} for user {event.user_id}")


class SessionRegistry:
    """
    Opens, checks, and closes sessions stored in the ``sessions`` collection.
    """

    COLLECTION = "sessions"

    def __init__(self, store: DocumentStore, events: Optional[SessionEvents] = None):
        self.store = store
        self.events = events or session_events

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Subscribe to session events; returns the unsubscribe callable."""
        return self.events.subscribe(listener)

    async def open(self, user_id: str) -> str:
        """
        Start a session for a user.

        Returns:
            The new session id
        """
        document = await self.store.add(self.COLLECTION, {
            "userId": user_id,
            "createdAt": datetime.now(timezone.utc).isoformat(),
        })
        await self.events.emit(SessionEvent(SIGNED_IN, user_id, document.id))
        return document.id

    async def is_active(self, session_id: str, user_id: str) -> bool:
        """Check that a session exists and belongs to the user."""
        try:
            document = await self.store.get(self.COLLECTION, session_id)
        except ValueError:
            return False
        return document is not None and document.data.get("userId") == user_id

    async def close(self, session_id: str) -> bool:
        """
        End a session. Tokens carrying its id stop working.

        Returns:
            True if the session existed
        """
        document = await self.store.get(self.COLLECTION, session_id)
        if document is None:
            return False

        await self.store.delete(self.COLLECTION, session_id)
        await self.events.emit(SessionEvent(SIGNED_OUT, document.data.get("userId", ""), session_id))
        return True
