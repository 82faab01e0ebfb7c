"""Data models for the IP2Proxy binary database layout.

This module provides the immutable header, the decoded row span, and the
per-database-type column positions of the classification fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

HEADER_SIZE = 13
FIELD_WIDTH = 4
MISSING_VALUE = "-"


@dataclass(slots=True, frozen=True)
class DatabaseHeader:
    """Header decoded from the first 13 bytes of the database file.

    Attributes:
        database_type: Product type code, selects the column layout (0-12 known)
        column_count: Number of 4-byte columns per IPv4 row
        ipv4_count: Declared number of IPv4 rows
        ipv4_base_address: 1-based byte offset of the first IPv4 row

    Note:
        Values are taken as stored. Nothing here is validated; readers compare
        row offsets against the mapped size before every access.
    """

    database_type: int
    column_count: int
    ipv4_count: int
    ipv4_base_address: int

    @property
    def row_width(self) -> int:
        """Return the byte width of one IPv4 row."""
        return self.column_count * FIELD_WIDTH

    def table_end(self) -> int:
        """Return the 0-based exclusive end of the declared IPv4 row table."""
        return self.ipv4_base_address - 1 + self.ipv4_count * self.row_width


class RowSpan(NamedTuple):
    """Address span of one row; ``ip_to`` is an exclusive upper bound."""

    ip_from: int
    ip_to: int

    @property
    def is_single_address(self) -> bool:
        return self.ip_to == self.ip_from + 1

    @property
    def last_address(self) -> int:
        """Return the last address covered by the span (inclusive)."""
        return self.ip_to - 1


class FieldPositions(NamedTuple):
    """1-based column positions of the classification fields, 0 when absent."""

    proxy: int
    usage: int
    threat: int


__all__ = ["DatabaseHeader", "FIELD_WIDTH", "FieldPositions", "HEADER_SIZE", "MISSING_VALUE", "RowSpan"]
