"""Change notification bus: payload-less "something changed" fan-out."""

import logging
from typing import Callable, List

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class ChangeNotifier:
    """Process-wide fan-out of change events.

    Listeners run synchronously, in registration order, after a mutation
    has committed. A listener that raises is logged and does not stop the
    remaining listeners.
    """

    def __init__(self):
        self._listeners: List[Listener] = []

    def on_changed(self, callback: Listener) -> Callable[[], None]:
        """Subscribe ``callback``; returns a function that unsubscribes it."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            try:
                self._listeners.remove(callback)
            except ValueError:
                pass

        return unsubscribe

    def emit(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception(f"Change listener {listener!r} failed")

    def __len__(self) -> int:
        return len(self._listeners)


# Global notifier instance
change_notifier = ChangeNotifier()
