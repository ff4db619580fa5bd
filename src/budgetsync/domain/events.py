"""Minimal publish/subscribe primitive used by the ledger and sessions."""

from typing import Any, Callable

Listener = Callable[[Any], None]


class EventEmitter:
    """Holds listeners and calls them, in subscription order, on emit."""

    def __init__(self):
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener.

        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, value: Any) -> None:
        # Copy so a listener may unsubscribe itself while being notified
        for listener in list(self._listeners):
            listener(value)

    def __len__(self) -> int:
        return len(self._listeners)
