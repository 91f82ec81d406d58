"""
Transports for the rules and stream endpoints.
"""

from .http import HttpTransport
from .memory_transport import InMemoryTransport, ScriptedSession

__all__ = [
    "HttpTransport",
    "InMemoryTransport",
    "ScriptedSession",
]
