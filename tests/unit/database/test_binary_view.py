"""Unit tests for the memory-mapped database view."""

from __future__ import annotations

import struct
from pathlib import Path

import pytest

from proxylists.database.models import DatabaseHeader
from proxylists.database.view import BinaryDatabaseView, to_position
from proxylists.errors import DatabaseOpenError, FormatViolation
from tests.fixtures.database_fixtures import build_header


def _open_bytes(tmp_path: Path, data: bytes) -> BinaryDatabaseView:
    path = tmp_path / "db.bin"
    path.write_bytes(data)
    return BinaryDatabaseView.open(path)


class TestToPosition:
    """Test the 1-based offset conversion helper."""

    def test_converts_one_based_offset(self) -> None:
        assert to_position(1) == 0
        assert to_position(14) == 13

    def test_rejects_zero_and_negative(self) -> None:
        with pytest.raises(FormatViolation):
            to_position(0)
        with pytest.raises(FormatViolation):
            to_position(-3)


class TestOpen:
    """Test opening and mapping database files."""

    def test_missing_file_raises_database_open_error(self, tmp_path: Path) -> None:
        with pytest.raises(DatabaseOpenError):
            BinaryDatabaseView.open(tmp_path / "missing.bin")

    def test_open_error_is_an_os_error(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            BinaryDatabaseView.open(tmp_path / "missing.bin")

    def test_empty_file_raises_database_open_error(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.bin"
        path.write_bytes(b"")
        with pytest.raises(DatabaseOpenError):
            BinaryDatabaseView.open(path)

    def test_file_shorter_than_header_is_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "short.bin"
        path.write_bytes(b"\x0a\x05\x00")
        with pytest.raises(DatabaseOpenError, match="too short"):
            BinaryDatabaseView.open(path)

    def test_context_manager_closes_view(self, tmp_path: Path) -> None:
        path = tmp_path / "db.bin"
        path.write_bytes(build_header(10, 13, 0, 14))
        with BinaryDatabaseView.open(path) as view:
            assert view.size == 13
        with pytest.raises(ValueError):
            view.slice(0, 1)


class TestReadHeader:
    """Test header decoding."""

    def test_header_fields(self, tmp_path: Path) -> None:
        view = _open_bytes(tmp_path, build_header(10, 13, 1234567, 99))
        try:
            assert view.header == DatabaseHeader(
                database_type=10,
                column_count=13,
                ipv4_count=1234567,
                ipv4_base_address=99,
            )
            assert view.header.row_width == 52
        finally:
            view.close()

    def test_implausible_values_are_not_rejected(self, tmp_path: Path) -> None:
        view = _open_bytes(tmp_path, build_header(255, 0, 0xFFFFFFFF, 0))
        try:
            assert view.header.database_type == 255
            assert view.header.ipv4_count == 0xFFFFFFFF
            assert view.header.row_width == 0
        finally:
            view.close()


class TestReadU32:
    """Test bounded little-endian integer reads."""

    @pytest.fixture
    def view(self, tmp_path: Path):  # type: ignore[misc]
        view = _open_bytes(tmp_path, build_header(10, 13, 0, 14) + struct.pack("<I", 0xDEADBEEF))
        yield view
        view.close()

    def test_reads_at_one_based_offset(self, view: BinaryDatabaseView) -> None:
        assert view.read_u32(14) == 0xDEADBEEF

    def test_zero_offset_is_absent(self, view: BinaryDatabaseView) -> None:
        assert view.read_u32(0) == 0

    def test_last_readable_offset(self, view: BinaryDatabaseView) -> None:
        assert view.size == 17
        assert view.read_u32(14) != 0
        assert view.read_u32(15) == 0

    def test_out_of_range_offset_is_absent(self, view: BinaryDatabaseView) -> None:
        assert view.read_u32(10_000) == 0


class TestReadString:
    """Test length-prefixed string reads."""

    def test_reads_string(self, tmp_path: Path) -> None:
        view = _open_bytes(tmp_path, build_header(10, 13, 0, 14) + b"\x03VPN")
        try:
            assert view.read_string(14) == "VPN"
        finally:
            view.close()

    def test_empty_string(self, tmp_path: Path) -> None:
        view = _open_bytes(tmp_path, build_header(10, 13, 0, 14) + b"\x00")
        try:
            assert view.read_string(14) == ""
        finally:
            view.close()

    def test_utf8_string(self, tmp_path: Path) -> None:
        payload = "Zürich".encode("utf-8")
        view = _open_bytes(tmp_path, build_header(10, 13, 0, 14) + bytes([len(payload)]) + payload)
        try:
            assert view.read_string(14) == "Zürich"
        finally:
            view.close()

    def test_zero_offset_is_sentinel(self, tmp_path: Path) -> None:
        view = _open_bytes(tmp_path, build_header(10, 13, 0, 14) + b"\x03VPN")
        try:
            assert view.read_string(0) == "-"
        finally:
            view.close()

    def test_offset_past_end_is_sentinel(self, tmp_path: Path) -> None:
        view = _open_bytes(tmp_path, build_header(10, 13, 0, 14) + b"\x03VPN")
        try:
            assert view.read_string(view.size + 1) == "-"
            assert view.read_string(view.size + 100) == "-"
        finally:
            view.close()

    def test_declared_length_past_end_is_sentinel(self, tmp_path: Path) -> None:
        view = _open_bytes(tmp_path, build_header(10, 13, 0, 14) + b"\x09VPN")
        try:
            assert view.read_string(14) == "-"
        finally:
            view.close()

    def test_invalid_utf8_is_sentinel(self, tmp_path: Path) -> None:
        view = _open_bytes(tmp_path, build_header(10, 13, 0, 14) + b"\x02\xff\xfe")
        try:
            assert view.read_string(14) == "-"
        finally:
            view.close()


class TestBoundedSlices:
    """Test the low-level slice helpers that raise FormatViolation."""

    def test_slice_inside_mapping(self, tmp_path: Path) -> None:
        view = _open_bytes(tmp_path, build_header(10, 13, 0, 14))
        try:
            assert view.slice(0, 2) == b"\x0a\x0d"
            assert view.contains(0, 13)
            assert not view.contains(1, 13)
        finally:
            view.close()

    def test_slice_outside_mapping_raises(self, tmp_path: Path) -> None:
        view = _open_bytes(tmp_path, build_header(10, 13, 0, 14))
        try:
            with pytest.raises(FormatViolation):
                view.slice(10, 4)
            with pytest.raises(FormatViolation):
                view.u32_at(-1)
        finally:
            view.close()
