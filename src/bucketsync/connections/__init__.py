"""
Object store backends.
"""

from bucketsync.connections.memory import InMemoryObjectStore
from bucketsync.connections.s3 import S3ObjectStore
from bucketsync.connections.storage import BaseObjectStore

__all__ = [
    "BaseObjectStore",
    "InMemoryObjectStore",
    "S3ObjectStore",
]
