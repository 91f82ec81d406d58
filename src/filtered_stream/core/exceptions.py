"""
Custom exceptions for the filtered stream client.
"""

from typing import Optional


class StreamError(Exception):
    """Base exception for all filtered stream errors."""
    pass


class ConfigError(StreamError):
    """
    Error in client configuration.
    
    Raised when:
    - Credentials file is missing, unreadable or has no bearer token
    - Rules file is missing, unreadable or malformed
    - The stop file is present at startup
    
    Always fatal, and always raised before the stream is opened.
    """
    pass


class UpstreamError(StreamError):
    """
    Non-success response from the rules endpoint.
    
    Aborts rule reconciliation; never retried.
    """
    
    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ParseError(StreamError):
    """
    A stream chunk could not be decoded as JSON.
    
    Recovered locally by the stream session: logged and skipped.
    """
    
    def __init__(self, message: str, chunk: bytes = b""):
        super().__init__(message)
        self.chunk = chunk


class TransportError(StreamError):
    """
    Connection level failure while streaming.
    
    Raised when:
    - Connection is refused or reset
    - No data arrives within the idle read timeout
    - The stream handshake returns a non-success status
    - The body ends abnormally
    """
    
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StopRequested(StreamError):
    """Control signal: the stop condition was observed, unwind the session."""
    pass
