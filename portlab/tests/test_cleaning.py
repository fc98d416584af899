"""Unit tests for series cleaning filters."""

from __future__ import annotations

import unittest

from portlab.core.data.cleaning import clean_series, filter_iqr, filter_non_negative
from portlab.tests.helpers import make_price_series


def _levels(count: int, step: float = 1.0, period: int = 5) -> list[float]:
    return [100.0 + (index % period) * step for index in range(count)]


class TestNonNegativeFilter(unittest.TestCase):
    """Validate structural cleaning."""

    def test_negative_closes_are_dropped_and_zero_kept(self) -> None:
        series = make_price_series("SPY", [10.0, -1.0, 0.0, 11.0])
        cleaned = filter_non_negative(series)
        self.assertEqual(cleaned.closes, (10.0, 0.0, 11.0))
        self.assertEqual(cleaned.timestamps, (series.timestamps[0], *series.timestamps[2:]))


class TestIqrFilter(unittest.TestCase):
    """Validate IQR outlier removal and its guards."""

    def test_single_spike_in_twenty_points_is_removed(self) -> None:
        closes = _levels(19) + [10_000.0]
        series = make_price_series("SPY", closes)
        cleaned = filter_iqr(series)
        self.assertEqual(len(cleaned), 19)
        self.assertNotIn(10_000.0, cleaned.closes)
        self.assertEqual(cleaned.timestamps, series.timestamps[:19])

    def test_short_series_is_left_untouched(self) -> None:
        series = make_price_series("SPY", _levels(18) + [10_000.0])
        self.assertEqual(filter_iqr(series), series)

    def test_constant_series_is_left_untouched(self) -> None:
        series = make_price_series("SPY", [50.0] * 30)
        self.assertEqual(filter_iqr(series), series)

    def test_custom_fence_multiplier_is_applied(self) -> None:
        closes = _levels(19) + [108.0]
        series = make_price_series("SPY", closes)
        self.assertEqual(len(filter_iqr(series, k=1.5)), 19)
        self.assertEqual(len(filter_iqr(series, k=5.0)), 20)


class TestCleanSeries(unittest.TestCase):
    """Validate the combined cleaning pipeline."""

    def test_cleaning_is_idempotent(self) -> None:
        closes = _levels(38, step=0.5, period=7) + [1.0, 500.0, -3.0]
        series = make_price_series("QQQ", closes)
        once = clean_series(series)
        twice = clean_series(once)
        self.assertEqual(len(once), 38)
        self.assertEqual(once, twice)

    def test_output_is_a_subsequence_of_input(self) -> None:
        series = make_price_series("QQQ", _levels(25) + [-5.0, 9_999.0])
        cleaned = clean_series(series)
        pairs = set(zip(series.timestamps, series.closes, strict=True))
        for pair in zip(cleaned.timestamps, cleaned.closes, strict=True):
            self.assertIn(pair, pairs)
        self.assertEqual(list(cleaned.timestamps), sorted(cleaned.timestamps))


if __name__ == "__main__":
    unittest.main()
