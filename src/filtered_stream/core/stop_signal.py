"""
Stop predicates checked by the stream session and the reconnect supervisor.

A stop signal is any zero-argument callable returning a bool. It is only
sampled at checkpoints (after each chunk, and before each connect), never
interrupting a blocking read.
"""

import logging
import threading
from pathlib import Path
from typing import Callable, Optional, Union


logger = logging.getLogger(__name__)

StopPredicate = Callable[[], bool]


class FileStopSignal:
    """Active while a sentinel file exists."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def __call__(self) -> bool:
        return self.path.exists()

    def __repr__(self) -> str:
        return f"FileStopSignal({str(self.path)!r})"


class EventStopSignal:
    """
    In-process stop flag.
    
    Set from signal handlers or other threads via ``set()``.
    """

    def __init__(self):
        self._event = threading.Event()
        self.signum: Optional[int] = None
        self._reported = False

    def set(self) -> None:
        self._event.set()

    def clear(self) -> None:
        self._event.clear()
        self.signum = None
        self._reported = False

    def __call__(self) -> bool:
        if not self._event.is_set():
            return False
        # Handlers only set the flag; the signal is logged at the first checkpoint
        if self.signum is not None and not self._reported:
            self._reported = True
            logger.info(f"Received signal {self.signum}, stopping...")
        return True

    def handle_signal(self, signum, frame) -> None:
        """Signal handler that requests a stop at the next checkpoint."""
        self.signum = signum
        self.set()


class AnyStopSignal:
    """Active when any of the wrapped predicates is active."""

    def __init__(self, *signals: StopPredicate):
        self.signals = signals

    def __call__(self) -> bool:
        return any(signal() for signal in self.signals)


def never_stop() -> bool:
    return False
