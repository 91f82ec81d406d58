"""
In-memory transport for testing.

Provides a deterministic stand-in for the upstream service without any
network access: a rules endpoint backed by a dict, and a queue of scripted
stream sessions. Used by unit tests and for dry runs of the CLI.
"""

import json
import logging
from typing import Callable, Dict, List, Optional, Sequence, Union

from ..core.connector import ApiRequest, ApiResponse, ChunkHandler, Transport
from ..core.exceptions import TransportError

logger = logging.getLogger(__name__)


Chunk = Union[bytes, str]


class ScriptedSession:
    """
    One scripted stream connection.

    Attributes:
        chunks: Chunks delivered in order after the handshake
        error: Exception raised after the chunks are delivered (None means a
            clean end of stream)
        status_code: Handshake status; non-2xx fails before any chunk
    """

    def __init__(
        self,
        chunks: Sequence[Chunk] = (),
        error: Optional[Exception] = None,
        status_code: int = 200,
    ):
        self.chunks = [c.encode("utf-8") if isinstance(c, str) else c for c in chunks]
        self.error = error
        self.status_code = status_code


class InMemoryTransport(Transport):
    """
    Deterministic in-memory transport.

    Features:
    - Rules endpoint supporting list, add and delete-by-ids
    - Sequential upstream id assignment
    - Forced status codes for the rules endpoint
    - Scripted stream sessions; once exhausted, connecting fails
    - Request history for assertions
    """

    def __init__(
        self,
        rules: Optional[List[dict]] = None,
        sessions: Optional[Sequence[ScriptedSession]] = None,
        rules_status: Optional[Dict[str, int]] = None,
    ):
        """
        Initialize the in-memory transport.

        Args:
            rules: Rules already active upstream ({value, tag, id})
            sessions: Scripted stream sessions, consumed one per connection
            rules_status: Forced status per operation ("list", "add", "delete")
        """
        self.rules: Dict[str, dict] = {}
        self._next_id = 1
        for rule in rules or []:
            rule = dict(rule)
            rule.setdefault("id", self._assign_id())
            self.rules[rule["id"]] = rule

        self.sessions = list(sessions or [])
        self.rules_status = dict(rules_status or {})
        self.request_history: List[ApiRequest] = []
        self.connections = 0
        self.on_chunk_hook: Optional[Callable[[bytes], None]] = None

    def _assign_id(self) -> str:
        rule_id = str(1000 + self._next_id)
        self._next_id += 1
        return rule_id

    def send(self, request: ApiRequest) -> ApiResponse:
        self.request_history.append(request)

        if request.method.upper() == "GET":
            return self._respond("list", {"data": list(self.rules.values()), "meta": {}})

        body = request.json_body() or {}
        if "add" in body:
            forced = self._forced("add")
            if forced:
                return forced
            created = []
            for rule in body["add"]:
                entry = {"value": rule["value"], "tag": rule.get("tag"), "id": self._assign_id()}
                self.rules[entry["id"]] = entry
                created.append(entry)
            return ApiResponse(status_code=201, body=json.dumps({"data": created}), reason="Created")

        if "delete" in body:
            forced = self._forced("delete")
            if forced:
                return forced
            deleted = 0
            for rule_id in body["delete"].get("ids", []):
                if self.rules.pop(rule_id, None) is not None:
                    deleted += 1
            return ApiResponse(
                status_code=200,
                body=json.dumps({"meta": {"summary": {"deleted": deleted}}}),
                reason="OK",
            )

        return ApiResponse(status_code=400, body='{"title": "Invalid Request"}', reason="Bad Request")

    def _forced(self, operation: str) -> Optional[ApiResponse]:
        status = self.rules_status.get(operation)
        if status is None:
            return None
        return ApiResponse(
            status_code=status,
            body=json.dumps({"title": "Forced error", "status": status}),
            reason="Forced",
        )

    def _respond(self, operation: str, payload: dict) -> ApiResponse:
        forced = self._forced(operation)
        if forced:
            return forced
        return ApiResponse(status_code=200, body=json.dumps(payload), reason="OK")

    def stream(
        self,
        request: ApiRequest,
        on_chunk: ChunkHandler,
        on_connect: Optional[Callable[[], None]] = None,
    ) -> None:
        self.request_history.append(request)
        self.connections += 1

        if not self.sessions:
            raise TransportError("Connection refused: no scripted sessions left")

        session = self.sessions.pop(0)
        if not 200 <= session.status_code < 300:
            raise TransportError(
                f"Stream handshake failed: {session.status_code}",
                status_code=session.status_code,
            )

        if on_connect is not None:
            on_connect()

        for chunk in session.chunks:
            if self.on_chunk_hook is not None:
                self.on_chunk_hook(chunk)
            on_chunk(chunk)

        if session.error is not None:
            raise session.error
