"""Tests for loading historical daily changes."""

import pytest

from letf_sim.price_loader import PriceFileError, load_daily_changes


@pytest.fixture
def write_prices(tmp_path):
    def _write(content: str, encoding: str = "utf-8"):
        path = tmp_path / "daily-changes.csv"
        path.write_text(content, encoding=encoding)
        return path

    return _write


class TestLoadDailyChanges:
    """Test the daily change file reader."""

    def test_converts_fractions_to_percent(self, write_prices):
        prices = load_daily_changes(write_prices("0.0123\n-0.005\n0\n"))
        assert [p.percent_delta for p in prices] == pytest.approx([1.23, -0.5, 0.0])

    def test_preserves_file_order(self, write_prices):
        prices = load_daily_changes(write_prices("0.03\n0.01\n0.02\n"))
        assert [p.percent_delta for p in prices] == pytest.approx([3.0, 1.0, 2.0])

    def test_strips_noise(self, write_prices):
        """Byte order marks, whitespace and other stray characters are ignored."""
        prices = load_daily_changes(write_prices("\ufeff0.01\n  -0.02 \r\n\u00a00.03\u200b\n"))
        assert [p.percent_delta for p in prices] == pytest.approx([1.0, -2.0, 3.0])

    def test_skips_blank_lines(self, write_prices):
        prices = load_daily_changes(write_prices("0.01\n\n   \n0.02\n"))
        assert len(prices) == 2

    def test_accepts_path_string(self, write_prices):
        assert len(load_daily_changes(str(write_prices("0.01\n")))) == 1

    def test_unparseable_line(self, write_prices):
        with pytest.raises(PriceFileError, match=r":2: cannot parse 'abc'"):
            load_daily_changes(write_prices("0.01\nabc\n0.02\n"))

    def test_empty_file(self, write_prices):
        with pytest.raises(PriceFileError, match="no price changes found"):
            load_daily_changes(write_prices(""))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_daily_changes(tmp_path / "missing.csv")
