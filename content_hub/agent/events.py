"""
Structured progress events.

The orchestrator reports everything it does as typed events on an
EventBus. Observers (the CLI, a logger, a test) either subscribe a
callback or read an asyncio.Queue. Publishing never blocks and an
observer that raises never breaks the pipeline.
"""

import asyncio
from collections import deque
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field

from content_hub.utils.logger import get_logger


logger = get_logger(__name__)

DEFAULT_HISTORY_SIZE = 1000


class EventType(str, Enum):
    """Kinds of pipeline events."""

    ITEM_STARTED = "item_started"
    PHASE_CHANGED = "phase_changed"
    STATUS = "status"
    ITEM_COMPLETED = "item_completed"
    ITEM_FAILED = "item_failed"
    ITEM_CANCELLED = "item_cancelled"
    PROGRESS = "progress"
    RUN_FINISHED = "run_finished"


class PipelineEvent(BaseModel):
    """One event on the bus."""

    type: EventType
    item_id: Optional[str] = Field(default=None, description="Content item the event concerns")
    phase: Optional[str] = Field(default=None, description="Sub-phase, for phase events")
    message: str = Field(default="", description="Human-readable status text")
    data: dict[str, Any] = Field(default_factory=dict, description="Event-specific payload")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


EventHandler = Callable[[PipelineEvent], None]


class EventBus:
    """
    Fan-out of pipeline events to callbacks and queues.

    Example:
        bus = EventBus()
        bus.subscribe(lambda e: print(e.type, e.message))
        queue = bus.queue()
    """

    def __init__(self, history_size: int = DEFAULT_HISTORY_SIZE):
        self._handlers: list[EventHandler] = []
        self._queues: list[asyncio.Queue] = []
        # Only the most recent events are kept
        self.history: deque[PipelineEvent] = deque(maxlen=history_size)

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        """Register a callback; returns a function that unsubscribes it."""
        self._handlers.append(handler)

        def _unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return _unsubscribe

    def queue(self) -> asyncio.Queue:
        """
        Open an unbounded queue receiving every subsequent event.

        ``None`` is put on the queue when the bus is closed.
        """
        queue: asyncio.Queue = asyncio.Queue()
        self._queues.append(queue)
        return queue

    def publish(self, event: PipelineEvent) -> None:
        self.history.append(event)
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception as e:
                logger.warning(f"Event handler failed on {event.type.value}: {e}")
        for queue in self._queues:
            queue.put_nowait(event)

    def emit(
        self,
        event_type: EventType,
        item_id: Optional[str] = None,
        message: str = "",
        phase: Optional[str] = None,
        **data: Any,
    ) -> PipelineEvent:
        """Build and publish an event."""
        event = PipelineEvent(type=event_type, item_id=item_id, phase=phase, message=message, data=data)
        self.publish(event)
        return event

    def close(self) -> None:
        """Signal end-of-stream to every open queue."""
        for queue in self._queues:
            queue.put_nowait(None)
        self._queues.clear()
