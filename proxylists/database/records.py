"""Fixed-width IPv4 row decoding."""

from __future__ import annotations

import logging
from typing import Optional

from ..errors import FormatViolation
from .models import FIELD_WIDTH, RowSpan
from .view import BinaryDatabaseView, to_position

logger = logging.getLogger(__name__)


class RecordReader:
    """Decode IPv4 rows into ``RowSpan`` values using the header's row geometry.

    Rows start at the header's 1-based ``ipv4_base_address`` and are
    ``column_count * 4`` bytes wide. The first column holds ``ip_from`` and the
    last column holds the exclusive ``ip_to`` bound.
    """

    def __init__(self, view: BinaryDatabaseView) -> None:
        self.view = view
        self.header = view.header
        self.row_width = self.header.row_width

    def row_offset(self, index: int) -> int:
        """Return the 1-based offset of row ``index``."""
        return self.header.ipv4_base_address + index * self.row_width

    def read_row(self, index: int) -> Optional[RowSpan]:
        """Return the span of row ``index``, or None when the row is not fully mapped."""
        try:
            return self._decode_row(index)
        except FormatViolation as exc:
            logger.debug(f"Skipping row {index}: {exc}")
            return None

    def _decode_row(self, index: int) -> RowSpan:
        if self.row_width < FIELD_WIDTH:
            raise FormatViolation(f"row width {self.row_width} cannot hold an address column")
        position = to_position(self.row_offset(index))
        if not self.view.contains(position, self.row_width):
            raise FormatViolation(f"row at {position} exceeds mapped size {self.view.size}")
        return RowSpan(
            ip_from=self.view.u32_at(position),
            ip_to=self.view.u32_at(position + self.row_width - FIELD_WIDTH),
        )

    def declared_table_fits(self) -> bool:
        """Return True when the declared row table lies inside the mapping."""
        return self.header.ipv4_base_address >= 1 and self.header.table_end() <= self.view.size

    def readable_row_count(self) -> int:
        """Return how many leading declared rows lie fully inside the mapping.

        Rows from this index on cannot be decoded, so callers can count them as
        skipped without reading them. A header whose base offset or row width
        cannot locate a row yields 0.
        """
        if self.row_width < FIELD_WIDTH or self.header.ipv4_base_address < 1:
            return 0
        available = self.view.size - to_position(self.header.ipv4_base_address)
        return min(self.header.ipv4_count, max(0, available // self.row_width))


__all__ = ["RecordReader"]
