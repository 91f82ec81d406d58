"""
Shared test fixtures and configuration for pytest.
"""

import io
import logging
import sys
from pathlib import Path
from typing import List

import pytest

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from filtered_stream.connectors.memory_transport import InMemoryTransport, ScriptedSession
from filtered_stream.core.models import Rule
from filtered_stream.stream.framer import JsonArrayFramer
from filtered_stream.stream.session import build_stream_request


logger = logging.getLogger(__name__)

RULES_URL = "https://stream.example.com/2/tweets/search/stream/rules"
STREAM_URL = "https://stream.example.com/2/tweets/search/stream"


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")


class RecordingSleep:
    """Stand-in for time.sleep that records the requested delays."""

    def __init__(self, on_sleep=None):
        self.delays: List[float] = []
        self.on_sleep = on_sleep

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self.on_sleep is not None:
            self.on_sleep(len(self.delays))


class StopAfter:
    """Stop predicate that becomes active after being polled ``limit`` times."""

    def __init__(self, limit: int):
        self.limit = limit
        self.calls = 0

    def __call__(self) -> bool:
        self.calls += 1
        return self.calls > self.limit


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def output() -> io.StringIO:
    """Captured stdout for the framer."""
    return io.StringIO()


@pytest.fixture
def framer(output) -> JsonArrayFramer:
    return JsonArrayFramer(output)


@pytest.fixture
def existing_rules() -> List[dict]:
    return [
        {"id": "1", "value": "dog has:images", "tag": "dog pictures"},
        {"id": "2", "value": "cat has:images -grumpy", "tag": "cat pictures"},
    ]


@pytest.fixture
def desired_rules() -> List[Rule]:
    return [
        Rule(value="(ruby OR python) (developer OR engineer) remote", tag="remote s/w jobs"),
        Rule(value="personal finance savings has:links -is:retweet", tag="savings tips"),
    ]


@pytest.fixture
def memory_transport(existing_rules) -> InMemoryTransport:
    return InMemoryTransport(rules=existing_rules)


@pytest.fixture
def stream_request():
    return build_stream_request(
        STREAM_URL,
        "test-token",
        params={"tweet.fields": "id,text"},
        timeout=20,
    )


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


def scripted(*chunks, error=None, status_code=200) -> ScriptedSession:
    """Shorthand for a scripted stream session."""
    return ScriptedSession(chunks=chunks, error=error, status_code=status_code)


@pytest.fixture
def restore_package_logger():
    """Undo handler changes made by configure_logging."""
    package_logger = logging.getLogger("filtered_stream")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    yield
    package_logger.handlers = handlers
    package_logger.setLevel(level)
