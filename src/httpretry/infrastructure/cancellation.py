"""Cooperative cancellation for retry loops."""

import threading


class CancellationToken:
    """Thread-safe flag that aborts a retry loop and interrupts its waits.

    One token may be shared by several retry loops; cancelling it stops all
    of them.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Block for up to `seconds`; return True if cancelled meanwhile"""
        return self._event.wait(seconds)
