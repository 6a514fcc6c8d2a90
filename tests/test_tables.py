"""
Tests for temperament tables and their export.
"""

import os

import pytest

from tables import HEADERS, export_temperament_tables, format_table, summarize_temperament
from temperament import Temperament


@pytest.fixture
def meantone():
    return Temperament.from_vals([12, 19], '2.3.5')


class TestSummary:
    """Summary rows."""

    def test_meantone_row(self, meantone):
        """Wedgie, prefix and recoverability."""
        row = summarize_temperament("12 & 19", meantone)
        assert set(row) == set(HEADERS)
        assert row["Label"] == "12 & 19"
        assert row["Subgroup"] == "2.3.5"
        assert row["Rank"] == "2"
        assert row["Wedgie"] == "<<1 4 4]]"
        assert row["Prefix"] == "[1, 4]"
        assert row["Recoverable"] == "yes"
        assert row["Mapping"].startswith("[1200.000, ")
        assert row["Period/Generators"].startswith("[1200.000, ")
        assert row["Vals"] == ""

    def test_factorized_row(self, meantone):
        """Vals column filled on request."""
        row = summarize_temperament("meantone", meantone, factorize=True)
        assert row["Vals"] != ""
        assert " & " in row["Vals"]


class TestFormatting:
    """Aligned text."""

    def test_header_line(self, meantone):
        """First line holds the headers."""
        text = format_table([summarize_temperament("meantone", meantone)])
        lines = text.splitlines()
        assert len(lines) == 2
        for header in HEADERS:
            assert header in lines[0]
        assert "<<1 4 4]]" in lines[1]

    def test_empty_table(self):
        """Only the headers."""
        lines = format_table([]).splitlines()
        assert len(lines) == 1
        assert lines[0].startswith("Label")


class TestExport:
    """Text and workbook files."""

    def test_export(self, meantone, tmp_path, capsys):
        """Both files are written."""
        base = str(tmp_path / "out")
        txt_path, xlsx_path = export_temperament_tables(base, [summarize_temperament("meantone", meantone)])
        assert txt_path == base + "_temperaments.txt"
        assert os.path.exists(txt_path)
        with open(txt_path, encoding="utf-8") as f:
            assert "meantone" in f.read()
        assert os.path.exists(xlsx_path)
        assert "Exported: " + txt_path in capsys.readouterr().out
