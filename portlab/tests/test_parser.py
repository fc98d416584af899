"""Unit tests for weighted portfolio string parsing."""

from __future__ import annotations

import unittest

from portlab.core.backtest.parser import parse_weighted_portfolio
from portlab.core.utils.errors import InvalidInputError


class TestParseWeightedPortfolio(unittest.TestCase):
    """Validate token structure, weight bounds and leverage limits."""

    def test_parses_pairs_and_window(self) -> None:
        parsed = parse_weighted_portfolio("spy 0.6 aapl 0.3 1y")
        self.assertEqual(parsed.symbols, ("SPY", "AAPL"))
        self.assertEqual(parsed.weights, (0.6, 0.3))
        self.assertEqual(parsed.window, "1y")
        self.assertAlmostEqual(parsed.cash_weight, 0.1, places=12)

    def test_command_prefix_is_ignored(self) -> None:
        parsed = parse_weighted_portfolio("/port TSLA -0.5 AAPL 0.3 6m")
        self.assertEqual(parsed.symbols, ("TSLA", "AAPL"))
        self.assertAlmostEqual(parsed.cash_weight, 1.2, places=12)
        self.assertAlmostEqual(parsed.gross_exposure, 0.8, places=12)

    def test_mixed_long_short_gross_exposure_is_accepted(self) -> None:
        parsed = parse_weighted_portfolio("SPY 0.8 QQQ -0.3 VTI 0.4 1y")
        self.assertAlmostEqual(parsed.gross_exposure, 1.5, places=12)

    def test_gross_exposure_above_limit_is_rejected(self) -> None:
        with self.assertRaises(InvalidInputError) as ctx:
            parse_weighted_portfolio("A 1 B -1 C 1 D 0.1 1y")
        self.assertIn("300% leverage limit", str(ctx.exception))

    def test_gross_exposure_at_limit_is_accepted(self) -> None:
        parsed = parse_weighted_portfolio("A 1 B -1 C 1 1y")
        self.assertAlmostEqual(parsed.gross_exposure, 3.0, places=12)

    def test_validation_errors(self) -> None:
        cases = {
            "SPY 1y": "insufficient arguments",
            "SPY 0.5 QQQ 1y": "each symbol must have a weight",
            "SPY abc 1y": "invalid weight 'abc' for symbol SPY",
            "SPY nan 1y": "invalid weight 'nan' for symbol SPY",
            "SPY 1.2 1y": "exceeds 1.0",
            "SPY -1.5 1y": "max 100% short",
            "SPY 0.2 spy 0.3 1y": "duplicate symbol: SPY",
        }
        for text, message in cases.items():
            with self.subTest(text=text):
                with self.assertRaises(InvalidInputError) as ctx:
                    parse_weighted_portfolio(text)
                self.assertIn(message, str(ctx.exception))

    def test_checks_run_in_order(self) -> None:
        with self.assertRaises(InvalidInputError) as ctx:
            parse_weighted_portfolio("SPY 2 SPY 0.5 1y")
        self.assertIn("exceeds 1.0", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
