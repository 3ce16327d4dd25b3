"""
Service layer for the Soul Listing Monitor.
"""

from .config_manager import ConfigurationManager

__all__ = [
    "ConfigurationManager",
]
