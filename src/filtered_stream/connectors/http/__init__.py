"""
HTTP transport package.
"""

from .http_transport import HttpTransport

__all__ = ["HttpTransport"]
