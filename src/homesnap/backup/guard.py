import atexit
import signal

from enum import Enum
from pathlib import Path

from homesnap.errors import BackupInterrupted
from homesnap.log import logger


class GuardState(Enum):
    IDLE = "idle"
    ARMED = "armed"
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"


class InterruptGuard:
    """
    Makes sure no partial snapshot survives an aborted backup.

    Used as a context manager around the pipeline. While armed, SIGINT, SIGTERM and
    SIGHUP are turned into `BackupInterrupted` so the pipeline unwinds, and leaving
    the block by any path other than after `complete()` deletes `dest_path`:

        with InterruptGuard(dest) as guard:
            pipeline.backup(source, exclusions, key, dest)
            guard.complete()
    """

    SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGHUP)

    def __init__(self, dest_path: Path):
        self.dest_path = Path(dest_path)
        self.state = GuardState.IDLE
        self._previous_handlers = {}

    def arm(self):
        if self.state is GuardState.ARMED:
            raise RuntimeError(f"Guard for {self.dest_path} is already armed.")

        self.state = GuardState.ARMED
        for signum in self.SIGNALS:
            self._previous_handlers[signum] = signal.signal(signum, self._on_signal)
        atexit.register(self.cleanup)
        logger.debug(f"Guard armed for {self.dest_path}")

    def complete(self):
        """Marks the snapshot as valid. Must only be called once encryption succeeded."""
        if self.state is GuardState.ARMED:
            self.state = GuardState.COMPLETED
            logger.debug(f"Guard completed for {self.dest_path}")

    def cleanup(self) -> bool:
        """
        Deletes the destination if the backup never completed.

        Returns:
            bool: True if the guard was still armed and cleaned up.
        """
        if self.state is not GuardState.ARMED:
            return False

        self.state = GuardState.INTERRUPTED
        removed = self.dest_path.exists()
        self.dest_path.unlink(missing_ok=True)

        if removed:
            logger.error(f"Backup interrupted, removed incomplete snapshot {self.dest_path}")
        else:
            logger.error("Backup interrupted before a snapshot was written.")
        return True

    def disarm(self):
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
        self._previous_handlers = {}
        atexit.unregister(self.cleanup)

    def _on_signal(self, signum, frame):
        # Repeated signals while cleaning up are ignored
        if self.state is GuardState.ARMED:
            raise BackupInterrupted(signum)

    def __enter__(self):
        self.arm()
        return self

    def __exit__(self, exc_type, exc, tb):
        try:
            self.cleanup()
        finally:
            self.disarm()
        return False
