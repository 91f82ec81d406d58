"""
Core abstractions for the filtered stream client.
"""

from .exceptions import (
    StreamError, ConfigError, UpstreamError, ParseError,
    TransportError, StopRequested,
)
from .models import (
    Rule, RuleSet, StreamRecord, SessionState, SupervisorState,
    rules_from_payload, rule_ids,
)
from .connector import ApiRequest, ApiResponse, Transport
from .stop_signal import FileStopSignal, EventStopSignal, AnyStopSignal, never_stop

__all__ = [
    "StreamError",
    "ConfigError",
    "UpstreamError",
    "ParseError",
    "TransportError",
    "StopRequested",
    "Rule",
    "RuleSet",
    "StreamRecord",
    "SessionState",
    "SupervisorState",
    "rules_from_payload",
    "rule_ids",
    "ApiRequest",
    "ApiResponse",
    "Transport",
    "FileStopSignal",
    "EventStopSignal",
    "AnyStopSignal",
    "never_stop",
]
