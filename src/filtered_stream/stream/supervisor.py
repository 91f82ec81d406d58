"""
Reconnect supervisor for the stream session.

State machine over CONNECTING, STREAMING, BACKOFF and STOPPED. The attempt
counter starts at zero for the process and is never reset, so each
disconnect waits ``2 ** attempt`` seconds, even after long healthy periods.
There is no attempt cap; a backoff ceiling is available but off by default.
"""

import logging
import time
from typing import Callable, Optional

from ..core.connector import ApiRequest, Transport
from ..core.exceptions import StopRequested, TransportError
from ..core.models import SessionState, SupervisorState
from ..core.stop_signal import StopPredicate, never_stop
from .framer import JsonArrayFramer
from .session import StreamSession


logger = logging.getLogger(__name__)


def backoff_delay(attempt: int, max_backoff_seconds: Optional[float] = None) -> float:
    """
    Seconds to wait before reconnect number ``attempt + 1``.

    Args:
        attempt: Attempt counter (0-based)
        max_backoff_seconds: Optional ceiling; None keeps it unbounded
    """
    delay = 2 ** attempt
    if max_backoff_seconds is not None:
        return min(delay, max_backoff_seconds)
    return delay


class ReconnectSupervisor:
    """
    Runs stream sessions until the stop signal is observed.

    Opens the output array before the first connection and closes it on
    every exit path, including exceptions that escape the loop.

    Example:
        >>> supervisor = ReconnectSupervisor(transport, request, JsonArrayFramer(), stop)
        >>> state = supervisor.run()
    """

    def __init__(
        self,
        transport: Transport,
        request: ApiRequest,
        framer: JsonArrayFramer,
        stop_signal: StopPredicate = never_stop,
        sleep: Callable[[float], None] = time.sleep,
        max_backoff_seconds: Optional[float] = None,
        state: Optional[SessionState] = None,
    ):
        self.transport = transport
        self.request = request
        self.framer = framer
        self.stop_signal = stop_signal
        self.sleep = sleep
        self.max_backoff_seconds = max_backoff_seconds
        self.state = state if state is not None else SessionState()

    def _new_session(self) -> StreamSession:
        return StreamSession(
            self.transport,
            self.request,
            self.framer,
            stop_signal=self.stop_signal,
            state=self.state,
        )

    def _stream_once(self) -> bool:
        """
        Run one session.

        Returns:
            True if the session ended because a stop was requested
        """
        session = self._new_session()
        try:
            session.run()
        except StopRequested:
            logger.info("Stop signal observed, shutting down", extra={"attempt": self.state.attempt})
            return True
        except TransportError as e:
            logger.warning(f"Stream disconnected: {e}", extra={"attempt": self.state.attempt})
        except Exception:
            logger.exception(
                "Unexpected error in stream session", extra={"attempt": self.state.attempt}
            )
        else:
            logger.warning("Stream closed by server", extra={"attempt": self.state.attempt})
        return False

    def run(self) -> SessionState:
        """
        Supervise the stream until stopped.

        Returns:
            The final session state
        """
        self.framer.open()
        try:
            while True:
                self.state.transition(SupervisorState.CONNECTING)
                if self.stop_signal():
                    logger.info("Stop signal present, not connecting")
                    break

                if self._stream_once():
                    break

                self.state.transition(SupervisorState.BACKOFF)
                if self.stop_signal():
                    logger.info("Stop signal present, not reconnecting")
                    break

                delay = backoff_delay(self.state.attempt, self.max_backoff_seconds)
                logger.warning(
                    f"sleeping for {delay}s before reconnecting...",
                    extra={"attempt": self.state.attempt},
                )
                self.sleep(delay)
                self.state.attempt += 1
        finally:
            self.state.transition(SupervisorState.STOPPED)
            self.framer.close()

        return self.state
