"""
Transport interface for talking to the rules and stream endpoints.

Requests are immutable descriptors built fresh for every call; the
transport holds no per-request state.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional


ChunkHandler = Callable[[bytes], None]


@dataclass(frozen=True)
class ApiRequest:
    """
    Request to be sent by a transport.
    
    Attributes:
        url: The URL to call
        method: HTTP method (GET or POST)
        headers: Request headers
        params: Optional query parameters
        body: Optional JSON-encoded request body
        timeout: Idle read timeout in seconds
        connect_timeout: Connection timeout in seconds
    """
    url: str
    method: str = "GET"
    headers: Dict[str, str] = field(default_factory=dict)
    params: Optional[Dict[str, Any]] = None
    body: Optional[str] = None
    timeout: Optional[float] = None
    connect_timeout: Optional[float] = None

    def json_body(self) -> Any:
        """Decoded request body, or None."""
        return json.loads(self.body) if self.body else None


@dataclass
class ApiResponse:
    """
    Response from a non-streaming call.
    
    Attributes:
        status_code: HTTP status code
        body: Raw response body as text
        reason: HTTP status message
        headers: Response headers
    """
    status_code: int
    body: str = ""
    reason: str = ""
    headers: Optional[Dict[str, str]] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        return json.loads(self.body) if self.body else None


class Transport(ABC):
    """
    Abstract base class for transports.
    
    ``send`` performs one request/response exchange. ``stream`` opens a
    long-lived GET and invokes ``on_chunk`` once per delivered chunk, in
    arrival order, on the calling thread.
    """

    @abstractmethod
    def send(self, request: ApiRequest) -> ApiResponse:
        """
        Execute a request and return the full response.
        
        Raises:
            TransportError if no response could be obtained
        """
        pass

    @abstractmethod
    def stream(
        self,
        request: ApiRequest,
        on_chunk: ChunkHandler,
        on_connect: Optional[Callable[[], None]] = None,
    ) -> None:
        """
        Stream the response body of ``request`` chunk by chunk.
        
        Blocks until the body ends, the connection fails, or ``on_chunk``
        raises. ``on_connect`` is called once after a successful handshake.
        
        Raises:
            TransportError on connection failure, idle timeout or a
            non-success handshake status
        """
        pass

    def close(self) -> None:
        """Release any held connections."""
        pass
