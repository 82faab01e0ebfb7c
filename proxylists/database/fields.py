"""Classification field lookup for IPv4 rows.

Each row stores the proxy type, usage type and threat of its range as 4-byte
pointers into a string area. Which column holds which field depends on the
database product type; ``FIELD_POSITIONS`` is that table, as published in the
IP2Proxy schema for types 0 through 12.
"""

from __future__ import annotations

from typing import Mapping

from .models import FIELD_WIDTH, MISSING_VALUE, FieldPositions
from .view import BinaryDatabaseView

NO_FIELDS = FieldPositions(proxy=0, usage=0, threat=0)

FIELD_POSITIONS: Mapping[int, FieldPositions] = {
    0: NO_FIELDS,
    1: NO_FIELDS,
    2: FieldPositions(proxy=2, usage=0, threat=0),
    3: FieldPositions(proxy=2, usage=0, threat=0),
    4: FieldPositions(proxy=2, usage=0, threat=0),
    5: FieldPositions(proxy=2, usage=0, threat=0),
    6: FieldPositions(proxy=2, usage=8, threat=0),
    7: FieldPositions(proxy=2, usage=8, threat=0),
    8: FieldPositions(proxy=2, usage=8, threat=0),
    9: FieldPositions(proxy=2, usage=8, threat=12),
    10: FieldPositions(proxy=2, usage=8, threat=12),
    11: FieldPositions(proxy=2, usage=8, threat=12),
    12: FieldPositions(proxy=2, usage=8, threat=12),
}


def field_positions(database_type: int) -> FieldPositions:
    """Return the field columns for ``database_type``; unknown types have none."""
    return FIELD_POSITIONS.get(database_type, NO_FIELDS)


class FieldResolver:
    """Resolve a row's classification fields to upper-cased strings.

    Resolution never fails: absent columns, null or out-of-range pointers and
    undecodable strings all come back as ``"-"``.
    """

    def __init__(self, view: BinaryDatabaseView) -> None:
        self.view = view
        self.positions = field_positions(view.header.database_type)

    def resolve_field(self, row_offset: int, column_position: int) -> str:
        """Return the string referenced by column ``column_position`` of the row at 1-based ``row_offset``."""
        if column_position == 0:
            return MISSING_VALUE
        pointer = self.view.read_u32(row_offset + FIELD_WIDTH * (column_position - 1))
        if 0 < pointer < self.view.size:
            return self.view.read_string(pointer + 1).upper()
        return MISSING_VALUE

    def resolve(self, row_offset: int) -> tuple[str, str, str]:
        """Return the (proxy, usage, threat) fields of the row at ``row_offset``."""
        return (
            self.resolve_field(row_offset, self.positions.proxy),
            self.resolve_field(row_offset, self.positions.usage),
            self.resolve_field(row_offset, self.positions.threat),
        )


__all__ = ["FIELD_POSITIONS", "FieldResolver", "field_positions"]
