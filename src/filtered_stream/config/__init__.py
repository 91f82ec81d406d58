"""
Configuration package.
"""

from .config_loader import StreamConfig

__all__ = ["StreamConfig"]
