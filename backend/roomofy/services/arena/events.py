import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Listener = Callable[[str, str, Dict[str, Any]], None]


class EventChannel:
    """Outbound event fan-out.

    Game logic emits `(handle, name, payload)` triples; the transport
    layer subscribes and delivers them over its own wire protocol.
    """

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, handle: str, name: str, payload: Dict[str, Any]) -> None:
        if not handle:
            logger.info(f"[event-drop] name={name} no handle")
            return
        for listener in list(self._listeners):
            listener(handle, name, payload)
