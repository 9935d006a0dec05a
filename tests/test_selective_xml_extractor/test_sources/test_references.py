"""Tests for the reference identifier source."""

import pytest

from selective_xml_extractor.shared import ReferenceSourceError
from selective_xml_extractor.sources import read_reference_ids, reference_set


class TestReferenceSet:
    """Tests for reference_set."""

    def test_trims_and_drops_blanks(self):
        """Test values are trimmed and empty values dropped."""
        assert reference_set([" 1 ", "", "  ", "2\n", "1"]) == frozenset({"1", "2"})

    def test_empty(self):
        """Test an empty iterable gives an empty set."""
        assert reference_set([]) == frozenset()


class TestReadReferenceIds:
    """Tests for read_reference_ids."""

    def test_multiple_ids_per_line(self, tmp_path):
        """Test every cell of every row is read."""
        path = tmp_path / "ids.csv"
        path.write_text("12345, 67890\n\n  abc ,,\nxyz\n", encoding="utf-8")

        assert read_reference_ids(path) == frozenset({"12345", "67890", "abc", "xyz"})

    def test_quoted_cells(self, tmp_path):
        """Test quoted cells may contain commas."""
        path = tmp_path / "ids.csv"
        path.write_text('"A,1",B\n', encoding="utf-8")

        assert read_reference_ids(path) == frozenset({"A,1", "B"})

    def test_byte_order_mark_ignored(self, tmp_path):
        """Test a UTF-8 BOM does not become part of the first id."""
        path = tmp_path / "ids.csv"
        path.write_bytes(b"\xef\xbb\xbf111,222\n")

        assert read_reference_ids(path) == frozenset({"111", "222"})

    def test_empty_file(self, tmp_path):
        """Test an empty file yields an empty set."""
        path = tmp_path / "ids.csv"
        path.write_text("", encoding="utf-8")

        assert read_reference_ids(path) == frozenset()

    def test_missing_file(self, tmp_path):
        """Test an unreadable source raises ReferenceSourceError."""
        with pytest.raises(ReferenceSourceError):
            read_reference_ids(tmp_path / "missing.csv")

    def test_undecodable_file(self, tmp_path):
        """Test invalid bytes for the encoding raise ReferenceSourceError."""
        path = tmp_path / "ids.csv"
        path.write_bytes(b"\xff\xfe\xfa")

        with pytest.raises(ReferenceSourceError):
            read_reference_ids(path)
