from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Protocol

logger = logging.getLogger(__name__)

Listener = Callable[[str, Dict[str, Any]], None]


class Notifier(Protocol):
    def notify(self, event_name: str, payload: Dict[str, Any]) -> None:
        raise NotImplementedError


class BroadcastNotifier:
    """Fire-and-forget fan-out to connected listeners.

    A failing listener is logged and skipped; notify() never raises, so a
    broadcast problem cannot fail an attendance write that already happened.
    """

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def notify(self, event_name: str, payload: Dict[str, Any]) -> None:
        logger.debug("broadcast %s to %d listener(s)", event_name, len(self._listeners))
        for listener in list(self._listeners):
            try:
                listener(event_name, payload)
            except Exception:
                logger.error("notify listener failed for %s", event_name, exc_info=True)
