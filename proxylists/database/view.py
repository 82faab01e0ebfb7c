"""Read-only memory-mapped view over an IP2Proxy binary database.

Every offset stored in the file (the table base, string pointers) is 1-based.
``to_position`` is the single place where such an offset becomes an index into
the mapping; all reads in this package go through it.

Example:
    >>> from proxylists.database.view import BinaryDatabaseView
    >>> with BinaryDatabaseView.open("IP2PROXY-LITE-PX10.BIN") as view:
    ...     print(view.header.ipv4_count)
"""

from __future__ import annotations

import logging
import mmap
import struct
from pathlib import Path
from typing import BinaryIO

from ..errors import DatabaseOpenError, FormatViolation
from .models import HEADER_SIZE, MISSING_VALUE, DatabaseHeader

logger = logging.getLogger(__name__)

_U32 = struct.Struct("<I")


def to_position(offset: int) -> int:
    """Convert a 1-based file offset into a 0-based mapping index.

    Raises:
        FormatViolation: If ``offset`` is not a valid 1-based offset
    """
    if offset < 1:
        raise FormatViolation(f"offset {offset} is not a valid 1-based offset")
    return offset - 1


class BinaryDatabaseView:
    """Bounded reads over a memory-mapped database file.

    The mapping is immutable, so a single view may be shared by any number of
    reader threads without synchronization.

    Attributes:
        path: Location of the mapped file
        header: Header decoded once when the view is opened
    """

    def __init__(self, path: Path, handle: BinaryIO, memory: mmap.mmap) -> None:
        self.path = path
        self._handle = handle
        self._memory = memory
        self.header = self.read_header()

    @classmethod
    def open(cls, path: str | Path) -> BinaryDatabaseView:
        """Open and map ``path`` read-only.

        Raises:
            DatabaseOpenError: If the file cannot be opened or mapped, or is too
                short to hold a header
        """
        path = Path(path)
        try:
            handle = path.open("rb")
        except OSError as exc:
            raise DatabaseOpenError(f"Cannot open database {path}: {exc}") from exc

        try:
            memory = mmap.mmap(handle.fileno(), 0, access=mmap.ACCESS_READ)
        except (OSError, ValueError) as exc:
            # ValueError: zero-length files cannot be mapped
            handle.close()
            raise DatabaseOpenError(f"Cannot map database {path}: {exc}") from exc

        size = len(memory)
        if size < HEADER_SIZE:
            memory.close()
            handle.close()
            raise DatabaseOpenError(f"Database {path} is {size} bytes, too short for a {HEADER_SIZE}-byte header")

        logger.debug(f"Mapped {path} ({size} bytes)")
        return cls(path, handle, memory)

    @property
    def size(self) -> int:
        """Return the mapped length in bytes."""
        return len(self._memory)

    def read_header(self) -> DatabaseHeader:
        """Decode the fixed header fields without validating them."""
        return DatabaseHeader(
            database_type=self._memory[0],
            column_count=self._memory[1],
            ipv4_count=_U32.unpack_from(self._memory, 5)[0],
            ipv4_base_address=_U32.unpack_from(self._memory, 9)[0],
        )

    def read_u32(self, offset: int) -> int:
        """Return the little-endian u32 at 1-based ``offset``, or 0 when out of range."""
        if offset == 0:
            return 0
        try:
            return self.u32_at(to_position(offset))
        except FormatViolation:
            return 0

    def read_string(self, offset: int) -> str:
        """Return the length-prefixed UTF-8 string at 1-based ``offset``.

        Returns:
            The decoded string, or ``"-"`` when the offset is 0, the string lies
            outside the mapping, or its bytes are not valid UTF-8
        """
        if offset == 0:
            return MISSING_VALUE
        try:
            position = to_position(offset)
            length = self.slice(position, 1)[0]
            return self.slice(position + 1, length).decode("utf-8")
        except FormatViolation:
            return MISSING_VALUE
        except UnicodeDecodeError:
            return MISSING_VALUE

    def u32_at(self, position: int) -> int:
        """Return the little-endian u32 at 0-based ``position``.

        Raises:
            FormatViolation: If the four bytes are not inside the mapping
        """
        self._check_bounds(position, _U32.size)
        return _U32.unpack_from(self._memory, position)[0]

    def slice(self, position: int, length: int) -> bytes:
        """Return ``length`` bytes from 0-based ``position``.

        Raises:
            FormatViolation: If the range is not inside the mapping
        """
        self._check_bounds(position, length)
        return self._memory[position : position + length]

    def contains(self, position: int, length: int) -> bool:
        """Return True when ``[position, position + length)`` lies inside the mapping."""
        return position >= 0 and length >= 0 and position + length <= len(self._memory)

    def _check_bounds(self, position: int, length: int) -> None:
        if not self.contains(position, length):
            raise FormatViolation(f"read of {length} bytes at {position} exceeds mapped size {len(self._memory)}")

    def close(self) -> None:
        """Release the mapping and the underlying file handle."""
        try:
            self._memory.close()
        finally:
            self._handle.close()

    def __enter__(self) -> BinaryDatabaseView:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["BinaryDatabaseView", "to_position"]
