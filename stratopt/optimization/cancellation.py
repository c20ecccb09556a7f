import threading


class CancellationToken:
    """
    Cooperative cancel signal shared by the runner, the strategy and the workers.

    ``cancel()`` is idempotent and safe to call from any thread. Nothing is
    interrupted mid-flight; holders check ``is_cancelled`` before starting work.
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()

    def cancel(self) -> bool:
        """Request cancellation. Returns True only for the call that actually cancelled."""
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            return True

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout=None) -> bool:
        return self._event.wait(timeout)
