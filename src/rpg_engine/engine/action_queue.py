"""Per-session action queue.

Only one combat action may resolve against a session's roster at a time.
A SessionActionQueue runs submitted actions one after another in arrival
order, lets up to ``max_pending`` actions wait behind the one in flight,
and rejects anything beyond that with ActionRejectedError.

Example:
    >>> import asyncio
    >>> queue = SessionActionQueue("session-1")
    >>> async def act():
    ...     return "resolved"
    >>> asyncio.run(queue.submit(act))
    'resolved'
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from rpg_engine.core.exceptions import ActionRejectedError
from rpg_engine.core.logging import get_logger


logger = get_logger(__name__)

T = TypeVar("T")


class SessionActionQueue:
    """Serializes combat actions for one session.

    Attributes:
        session_id: Session the queue belongs to.
        max_pending: Actions allowed to wait behind the one in flight.
    """

    def __init__(self, session_id: str, max_pending: int = 0) -> None:
        self.session_id = session_id
        self.max_pending = max(0, max_pending)
        self._lock = asyncio.Lock()
        self._outstanding = 0

    @property
    def is_busy(self) -> bool:
        """Whether an action is in flight."""
        return self._outstanding > 0

    @property
    def pending(self) -> int:
        """Number of actions waiting behind the one in flight."""
        return max(0, self._outstanding - 1)

    async def submit(self, action: Callable[[], Awaitable[T]]) -> T:
        """Run an action once every earlier action has finished.

        Args:
            action: Zero-argument coroutine function doing the resolution.

        Returns:
            Whatever the action returns.

        Raises:
            ActionRejectedError: If the queue is already full.
        """
        if self._outstanding >= 1 + self.max_pending:
            logger.warning(
                "Action rejected",
                session_id=self.session_id,
                pending=self.pending,
                max_pending=self.max_pending,
            )
            raise ActionRejectedError(
                "An action is already being resolved for this session",
                session_id=self.session_id,
                details={"pending": self.pending, "max_pending": self.max_pending},
            )

        self._outstanding += 1
        try:
            async with self._lock:
                logger.debug("Action started", session_id=self.session_id)
                return await action()
        finally:
            self._outstanding -= 1


class ActionQueueRegistry:
    """Hands out one SessionActionQueue per session id."""

    def __init__(self, max_pending: int | None = None) -> None:
        """Initialize the registry.

        Args:
            max_pending: Queue depth for new queues. Defaults to the
                ``session.max_pending_actions`` setting.
        """
        if max_pending is None:
            from rpg_engine.core.config import get_settings

            max_pending = get_settings().session.max_pending_actions
        self.max_pending = max_pending
        self._queues: dict[str, SessionActionQueue] = {}

    def get(self, session_id: str) -> SessionActionQueue:
        """Get the queue of a session, creating it on first use."""
        queue = self._queues.get(session_id)
        if queue is None:
            queue = SessionActionQueue(session_id, self.max_pending)
            self._queues[session_id] = queue
        return queue

    def discard(self, session_id: str) -> None:
        """Forget a session's queue; unknown ids are ignored."""
        self._queues.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._queues)


__all__ = [
    "SessionActionQueue",
    "ActionQueueRegistry",
]
