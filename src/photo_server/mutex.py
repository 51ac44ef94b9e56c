"""Process-wide busy flags for background jobs."""

import threading


class BusyError(RuntimeError):
    """A job is already running or still shutting down."""


class Busy:
    """Tracks whether a job is running and whether it was asked to stop."""

    def __init__(self, name: str):
        self.name = name
        self._busy = False
        self._canceled = False
        self._lock = threading.Lock()

    def busy(self) -> bool:
        with self._lock:
            return self._busy

    def canceled(self) -> bool:
        with self._lock:
            return self._canceled

    def start(self) -> None:
        """Mark the job as running."""
        with self._lock:
            if self._canceled:
                raise BusyError(f"{self.name} is still running")
            if self._busy:
                raise BusyError(f"{self.name} is already running")
            self._busy = True
            self._canceled = False

    def stop(self) -> None:
        with self._lock:
            self._busy = False
            self._canceled = False

    def cancel(self) -> None:
        """Ask a running job to stop. Does nothing if the job is idle."""
        with self._lock:
            if self._busy:
                self._canceled = True


db = threading.Lock()
worker = Busy("worker")
share = Busy("share")
sync = Busy("sync")
