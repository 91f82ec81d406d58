"""
Core data models for the filtered stream client.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Dict, Iterable, List, Optional


# Phases kept in SessionState.history
HISTORY_LIMIT = 32


class SupervisorState(str, Enum):
    """Phase of the reconnect supervisor."""
    CONNECTING = "connecting"
    STREAMING = "streaming"
    BACKOFF = "backoff"
    STOPPED = "stopped"


@dataclass(frozen=True)
class Rule:
    """
    A filter rule on the stream.
    
    Attributes:
        value: Query expression, passed through to upstream unvalidated
        tag: Human readable label
        id: Upstream assigned identifier (None until created)
    """
    value: str
    tag: Optional[str] = None
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rule":
        """Build a rule from an upstream or config mapping."""
        return cls(value=data["value"], tag=data.get("tag"), id=data.get("id"))

    def to_add_payload(self) -> Dict[str, str]:
        """Shape used in an ``add`` request; ids are never sent."""
        payload = {"value": self.value}
        if self.tag is not None:
            payload["tag"] = self.tag
        return payload


RuleSet = List[Rule]


def rules_from_payload(payload: Optional[Dict[str, Any]]) -> RuleSet:
    """
    Convert a rules endpoint body (``{"data": [...]}``) into a RuleSet.

    Raises:
        ValueError: If the body is not shaped like a rules listing
    """
    if not payload:
        return []
    if not isinstance(payload, dict):
        raise ValueError(f"expected an object, got {type(payload).__name__}")

    items = payload.get("data") or []
    if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
        raise ValueError("expected 'data' to be a list of rule objects")
    return [Rule.from_dict(item) for item in items]


def rule_ids(rules: Iterable[Rule]) -> List[str]:
    """Ids of the rules that have one."""
    return [rule.id for rule in rules if rule.id is not None]


@dataclass(frozen=True)
class StreamRecord:
    """
    One record emitted to the output array.
    
    Only ``id`` and ``text`` of the upstream object are kept.
    """
    id: Optional[str]
    text: Optional[str]

    @classmethod
    def from_data(cls, data: Dict[str, Any]) -> "StreamRecord":
        """Project an upstream ``data`` object down to id and text."""
        return cls(id=data.get("id"), text=data.get("text"))

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"id": self.id, "text": self.text}


@dataclass
class SessionState:
    """
    Mutable state of the streaming loop.
    
    Attributes:
        attempt: Reconnect attempt counter; only ever increases
        connected: Whether the current session completed its handshake
        last_record_emitted: Whether the current session emitted a record
        phase: Current supervisor phase
        records_emitted: Records emitted since process start
        history: Most recent phases entered, oldest first
    """
    attempt: int = 0
    connected: bool = False
    last_record_emitted: bool = False
    phase: SupervisorState = SupervisorState.CONNECTING
    records_emitted: int = 0
    history: Deque[SupervisorState] = field(
        default_factory=lambda: deque(maxlen=HISTORY_LIMIT)
    )

    def transition(self, phase: SupervisorState) -> None:
        self.history.append(phase)
        self.phase = phase
