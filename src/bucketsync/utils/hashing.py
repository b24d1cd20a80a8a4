"""
Content fingerprints for change detection.

Produces the object store's ETag convention for a local file:

- single part: ``"<md5 hex of the whole file>"``
- multipart: ``"<md5 hex of the concatenated binary part md5s>-<part count>"``

Supports both sync and async file I/O.
"""

import hashlib
from pathlib import Path

import aiofiles

from bucketsync.utils.logging import get_logger

logger = get_logger("bucketsync.utils.hashing")

READ_CHUNK_SIZE = 1024 * 1024


class FingerprintBuilder:
    """
    Incremental ETag computation.

    Feed raw bytes with ``update`` in any chunking; part boundaries are tracked
    internally so the result only depends on the bytes and ``part_size``.
    A ``part_size`` of 0 disables multipart splitting.
    """

    def __init__(self, part_size: int = 0):
        if part_size < 0:
            raise ValueError(f"part_size must be >= 0, got {part_size}")
        self.part_size = part_size
        self._whole = hashlib.md5()
        self._part = hashlib.md5()
        self._part_fill = 0
        self._part_digests: list[bytes] = []

    def update(self, data: bytes) -> None:
        if not self.part_size:
            self._whole.update(data)
            return

        view = memoryview(data)
        while view:
            room = self.part_size - self._part_fill
            piece = view[:room]
            self._part.update(piece)
            self._part_fill += len(piece)
            view = view[room:]
            if self._part_fill == self.part_size:
                self._part_digests.append(self._part.digest())
                self._part = hashlib.md5()
                self._part_fill = 0

    def etag(self) -> str:
        if not self.part_size:
            return f'"{self._whole.hexdigest()}"'

        digests = list(self._part_digests)
        if self._part_fill:
            digests.append(self._part.digest())
        if not digests:
            # An empty object is never stored as multipart
            return f'"{hashlib.md5().hexdigest()}"'

        composite = hashlib.md5(b"".join(digests)).hexdigest()
        return f'"{composite}-{len(digests)}"'


def stored_part_size(size: int, part_size: int) -> int:
    """
    Part size an object of ``size`` bytes ends up stored with.

    The multipart transfer only splits files of at least one part; anything
    smaller goes up in a single request and gets a plain MD5 ETag, so it must
    be fingerprinted with a part size of 0.
    """
    return part_size if part_size and size >= part_size else 0


def calculate_fingerprint(file_path: Path, part_size: int = 0) -> str:
    """
    Calculate the ETag-style fingerprint of a file (synchronous).

    Args:
        file_path: Path to file
        part_size: Multipart part size in bytes, 0 for a single-part fingerprint

    Returns:
        Quoted fingerprint string, comparable to a stored ETag
    """
    builder = FingerprintBuilder(part_size)
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(READ_CHUNK_SIZE), b""):
            builder.update(chunk)
    return builder.etag()


async def calculate_fingerprint_async(file_path: Path, part_size: int = 0) -> str:
    """
    Calculate the ETag-style fingerprint of a file (async).

    Uses aiofiles so hashing many files through the scheduler does not block
    the event loop.

    Args:
        file_path: Path to file
        part_size: Multipart part size in bytes, 0 for a single-part fingerprint

    Returns:
        Quoted fingerprint string, comparable to a stored ETag
    """
    builder = FingerprintBuilder(part_size)
    async with aiofiles.open(file_path, "rb") as f:
        while True:
            chunk = await f.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            builder.update(chunk)
    etag = builder.etag()
    logger.debug(f"Fingerprint {file_path} (part_size={part_size}): {etag}")
    return etag
