"""Readers for the IP2Proxy binary database format."""

from .fields import FIELD_POSITIONS, FieldResolver, field_positions
from .models import DatabaseHeader, FieldPositions, RowSpan
from .records import RecordReader
from .view import BinaryDatabaseView

__all__ = [
    "BinaryDatabaseView",
    "DatabaseHeader",
    "FIELD_POSITIONS",
    "FieldPositions",
    "FieldResolver",
    "RecordReader",
    "RowSpan",
    "field_positions",
]
