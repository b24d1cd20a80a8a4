"""
Configuration management.

Config file loading, environment resolution and sync settings.
"""

from bucketsync.config.loader import load_config
from bucketsync.config.resolver import resolve_config
from bucketsync.config.settings import SyncConfig

__all__ = [
    "load_config",
    "resolve_config",
    "SyncConfig",
]
