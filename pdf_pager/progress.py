"""Progress Events and Cancellation

A progress channel that callers subscribe to, and a cancellation token that
long batch runs check between items and between page slices.
"""
import logging
from dataclasses import dataclass
from typing import Callable, List

from .exceptions import GenerationCancelledError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressEvent:
    stage: str
    fraction: float  # 0.0-1.0
    message: str = ""


class ProgressChannel:
    """Stream of progress events.

    Every emitted event is delivered to all current subscribers in
    subscription order and kept in `events`.
    """

    def __init__(self):
        self._listeners: List[Callable[[ProgressEvent], None]] = []
        self.events: List[ProgressEvent] = []

    def subscribe(self, listener: Callable[[ProgressEvent], None]) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, stage: str, fraction: float, message: str = "") -> ProgressEvent:
        event = ProgressEvent(stage, max(0.0, min(1.0, fraction)), message)
        self.events.append(event)
        logger.debug("Progress %s %.0f%% %s", stage, event.fraction * 100, message)
        for listener in list(self._listeners):
            listener(event)
        return event

    @property
    def latest(self):
        return self.events[-1] if self.events else None


class CancellationToken:
    """Cooperative cancellation flag shared between caller and generator."""

    def __init__(self):
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self, stage: str):
        if self._cancelled:
            raise GenerationCancelledError(stage)
