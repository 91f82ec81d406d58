"""
Chunk parsing and record projection for the stream body.
"""

import json
from typing import Any, Dict, Optional

from ..core.exceptions import ParseError
from ..core.models import StreamRecord


def is_heartbeat(chunk: bytes) -> bool:
    """Keep-alive chunks are empty or whitespace only."""
    return not chunk.strip()


def parse_chunk(chunk: bytes) -> Optional[Dict[str, Any]]:
    """
    Decode one chunk as a JSON object.

    Returns:
        The decoded object, or None for a keep-alive chunk. A valid JSON
        value that is not an object decodes to an empty dict.

    Raises:
        ParseError: If the chunk is not valid UTF-8 JSON
    """
    if is_heartbeat(chunk):
        return None

    try:
        decoded = json.loads(chunk.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ParseError(f"unable to parse chunk: {e}", chunk=chunk) from e

    return decoded if isinstance(decoded, dict) else {}


def extract_record(payload: Optional[Dict[str, Any]]) -> Optional[StreamRecord]:
    """
    Project the ``data`` field of a decoded chunk to a StreamRecord.

    Returns None when ``data`` is absent or null.

    Raises:
        ParseError: If ``data`` is present but not an object
    """
    if not payload:
        return None

    data = payload.get("data")
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ParseError(f"unexpected data field of type {type(data).__name__}")

    return StreamRecord.from_data(data)
