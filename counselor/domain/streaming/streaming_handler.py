from typing import AsyncIterator, List, Optional, Protocol
import asyncio
import structlog

from counselor.domain.streaming.events import BaseEvent

logger = structlog.get_logger(__name__)


class EventSink(Protocol):
    """Anything that accepts stream events"""

    async def emit(self, event: BaseEvent) -> None:
        ...


class StreamingHandler:
    """Ordered, single-consumer event channel for one turn.

    Producers call ``emit``; the transport iterates the handler. Iteration
    ends right after the first terminal event (``done`` or ``error``), and
    anything emitted after that is dropped.
    """

    def __init__(self, session_id: Optional[str] = None):
        self.session_id = session_id
        self._queue: "asyncio.Queue[BaseEvent]" = asyncio.Queue()
        self._closed = False
        self.emitted: List[BaseEvent] = []

    @property
    def closed(self) -> bool:
        return self._closed

    async def emit(self, event: BaseEvent) -> None:
        """Queue an event for the client"""

        if self._closed:
            logger.warning(
                "Dropping event emitted after stream end",
                session_id=self.session_id,
                event_type=event.type.value
            )
            return

        if event.is_terminal:
            self._closed = True

        self.emitted.append(event)
        await self._queue.put(event)

    def __aiter__(self) -> AsyncIterator[BaseEvent]:
        return self._drain()

    async def _drain(self) -> AsyncIterator[BaseEvent]:
        while True:
            event = await self._queue.get()
            yield event
            if event.is_terminal:
                return
