"""
Filtered stream client.

Keeps a filter ruleset on a streaming search service in sync and writes the
matching records to stdout as a single JSON array, reconnecting with
exponential backoff until a stop signal is observed.
"""

__version__ = "1.0.0"
