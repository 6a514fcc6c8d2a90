"""
Tests for the command line interface.
"""

import os

import pytest

import temper


class TestCommandLine:
    """main() with explicit arguments."""

    def test_vals(self, capsys):
        """Meantone from 12 and 19."""
        assert temper.main(["--lang", "en", "--vals", "12", "19"]) == 0
        out = capsys.readouterr().out
        assert "Wedgie: <<1 4 4]]" in out
        assert "Rank: 2" in out
        assert "TE mapping (cents)" in out

    def test_commas_and_pure_intervals(self, capsys):
        """Quarter comma meantone."""
        assert temper.main(["--lang", "en", "--commas", "81/80", "--pure", "2", "5/4"]) == 0
        out = capsys.readouterr().out
        assert "CTE mapping (cents): 1200.000" in out
        assert "Generators: 503.42" in out

    def test_bracketed_monzo(self, capsys):
        """Negative exponents go in brackets."""
        assert temper.main(["--lang", "en", "--commas", "[-4,4,-1]"]) == 0
        assert "<<1 4 4]]" in capsys.readouterr().out

    def test_prefix(self, capsys):
        """Rebuild meantone from its prefix."""
        assert temper.main(["--lang", "en", "--prefix", "2", "1,4"]) == 0
        out = capsys.readouterr().out
        assert "<<1 4 4]]" in out
        assert "recoverable: yes" in out

    def test_italian_default(self, capsys):
        """Italian labels without --lang."""
        assert temper.main(["--vals", "12", "19"]) == 0
        assert "Rango: 2" in capsys.readouterr().out

    def test_nothing_requested(self, capsys):
        """Exit code 1 with a hint."""
        assert temper.main(["--lang", "en"]) == 1
        assert "Specify" in capsys.readouterr().out

    def test_invalid_subgroup(self, capsys):
        """Errors are reported with exit code 2."""
        assert temper.main(["--lang", "en", "--subgroup", "2.3.2", "--vals", "12"]) == 2
        assert "Error:" in capsys.readouterr().out

    def test_enumerate_export(self, tmp_path, capsys):
        """Rank 2 table written to disk."""
        base = str(tmp_path / "enum")
        assert temper.main(["--lang", "en", "--enumerate", "5", "12", base]) == 0
        out = capsys.readouterr().out
        assert "5 & 7" in out
        assert os.path.exists(base + "_temperaments.txt")

    def test_version(self, capsys):
        """--version exits through argparse."""
        with pytest.raises(SystemExit):
            temper.main(["--version"])
