"""
HTTP transport for the rules and stream endpoints.
"""

import logging
import time
from typing import Callable, Optional

import requests

from ...core.connector import ApiRequest, ApiResponse, ChunkHandler, Transport
from ...core.exceptions import TransportError


logger = logging.getLogger(__name__)


class HttpTransport(Transport):
    """
    ``requests`` based transport.

    Supports:
    - Plain GET/POST exchanges for the rules endpoint
    - Long-lived streaming GETs with an idle read timeout
    - Rate limiting between rules requests
    """

    def __init__(
        self,
        chunk_size: int = 512,
        rate_limit_delay: float = 0.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the HTTP transport.

        Args:
            chunk_size: Maximum bytes read from the socket per iteration
            rate_limit_delay: Minimum seconds between rules requests
            session: Optional preconfigured session
        """
        self.chunk_size = chunk_size
        self.rate_limit_delay = rate_limit_delay
        self.last_request_time = 0.0
        self.session = session or requests.Session()

    def send(self, request: ApiRequest) -> ApiResponse:
        """
        Execute a rules endpoint request.

        Non-success statuses are returned, not raised; the caller decides.
        """
        self._wait_for_rate_limit()

        start_time = time.time()
        try:
            response = self.session.request(
                request.method.upper(),
                request.url,
                headers=dict(request.headers),
                params=request.params,
                data=request.body,
                timeout=self._timeout(request),
            )
        except requests.exceptions.RequestException as e:
            raise TransportError(f"{request.method} {request.url} failed: {e}") from e

        duration_ms = int((time.time() - start_time) * 1000)
        logger.debug(
            f"{request.method} {request.url} -> {response.status_code} in {duration_ms}ms"
        )

        return ApiResponse(
            status_code=response.status_code,
            body=response.text,
            reason=response.reason or "",
            headers=dict(response.headers),
        )

    def stream(
        self,
        request: ApiRequest,
        on_chunk: ChunkHandler,
        on_connect: Optional[Callable[[], None]] = None,
    ) -> None:
        """
        Open a streaming GET and hand each line of the body to ``on_chunk``.

        The service delimits records with CRLF and sends bare CRLF as
        keep-alive, so each line (possibly empty) is one chunk.
        """
        try:
            with self.session.get(
                request.url,
                headers=dict(request.headers),
                params=request.params,
                timeout=self._timeout(request),
                stream=True,
            ) as response:
                if not response.ok:
                    raise TransportError(
                        f"Stream handshake failed: {response.status_code} {response.reason}: "
                        f"{response.text}",
                        status_code=response.status_code,
                    )

                logger.info(f"Connected to stream: {request.url}")
                if on_connect is not None:
                    on_connect()

                for line in response.iter_lines(chunk_size=self.chunk_size):
                    on_chunk(line)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Stream connection failed: {e}") from e

        logger.info("Stream ended by server")

    @staticmethod
    def _timeout(request: ApiRequest):
        if request.timeout is None:
            return None
        return (request.connect_timeout or request.timeout, request.timeout)

    def _wait_for_rate_limit(self) -> None:
        """Enforce rate limiting between requests."""
        if self.rate_limit_delay > 0:
            elapsed = time.time() - self.last_request_time
            if elapsed < self.rate_limit_delay:
                time.sleep(self.rate_limit_delay - elapsed)
        self.last_request_time = time.time()

    def close(self) -> None:
        """Close the session."""
        if self.session:
            self.session.close()
