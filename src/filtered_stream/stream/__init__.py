"""
Streaming: chunk parsing, output framing, sessions and reconnection.
"""

from .framer import JsonArrayFramer
from .parser import parse_chunk, extract_record, is_heartbeat
from .session import StreamSession, build_stream_request
from .supervisor import ReconnectSupervisor, backoff_delay

__all__ = [
    "JsonArrayFramer",
    "parse_chunk",
    "extract_record",
    "is_heartbeat",
    "StreamSession",
    "build_stream_request",
    "ReconnectSupervisor",
    "backoff_delay",
]
