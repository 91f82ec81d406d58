"""
One connection to the stream endpoint.

Chunks are handled on the thread that opened the connection, in arrival
order. Malformed chunks are logged and skipped; the stop signal is checked
after every chunk and unwinds the session with ``StopRequested``.
"""

import logging
from typing import Optional

from ..core.connector import ApiRequest, Transport
from ..core.exceptions import ParseError, StopRequested
from ..core.models import SessionState, SupervisorState
from ..core.stop_signal import StopPredicate, never_stop
from .framer import JsonArrayFramer
from .parser import extract_record, parse_chunk


logger = logging.getLogger(__name__)


class StreamSession:
    """
    Reads one streaming response and forwards records to the framer.

    Example:
        >>> session = StreamSession(transport, request, framer, stop_signal)
        >>> session.run()
    """

    def __init__(
        self,
        transport: Transport,
        request: ApiRequest,
        framer: JsonArrayFramer,
        stop_signal: StopPredicate = never_stop,
        state: Optional[SessionState] = None,
    ):
        self.transport = transport
        self.request = request
        self.framer = framer
        self.stop_signal = stop_signal
        self.state = state if state is not None else SessionState()
        self.records_emitted = 0
        self.chunks_seen = 0
        self.parse_failures = 0

    def _on_connect(self) -> None:
        self.state.connected = True
        self.state.transition(SupervisorState.STREAMING)

    def handle_chunk(self, chunk: bytes) -> None:
        """
        Process one delivered chunk.

        Raises:
            StopRequested: If the stop signal is active after handling
        """
        self.chunks_seen += 1

        try:
            payload = parse_chunk(chunk)
            if payload is None:
                logger.debug("Received keep-alive chunk")
            else:
                if payload.get("errors"):
                    logger.warning(f"Stream reported errors: {payload['errors']}")
                record = extract_record(payload)
                if record is not None:
                    self.framer.emit(record)
                    self.records_emitted += 1
                    self.state.last_record_emitted = True
                    self.state.records_emitted += 1
        except ParseError as e:
            self.parse_failures += 1
            logger.warning(f"unable to parse chunk: {chunk!r}; e: {e}")

        if self.stop_signal():
            raise StopRequested("Stop signal observed while streaming")

    def run(self) -> None:
        """
        Block until the stream ends, fails, or a stop is requested.

        The framer is told the session ended on every path.

        Raises:
            TransportError: On connection failure or idle timeout
            StopRequested: When the stop signal is observed after a chunk
        """
        self.state.connected = False
        self.state.last_record_emitted = False
        try:
            self.transport.stream(self.request, self.handle_chunk, on_connect=self._on_connect)
        finally:
            self.state.connected = False
            self.framer.end_session()


def build_stream_request(
    stream_url: str,
    bearer_token: str,
    params: Optional[dict] = None,
    user_agent: str = "v2FilteredStreamPython",
    timeout: float = 20,
    connect_timeout: Optional[float] = 10,
) -> ApiRequest:
    """Build the streaming GET; ``timeout`` is the idle read timeout."""
    return ApiRequest(
        url=stream_url,
        method="GET",
        headers={
            "User-Agent": user_agent,
            "Authorization": f"Bearer {bearer_token}",
        },
        params=dict(params or {}),
        timeout=timeout,
        connect_timeout=connect_timeout,
    )
