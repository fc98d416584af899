"""Integration tests for portfolio service workflows with a fake provider."""

from __future__ import annotations

import unittest

from portlab.core.data.types import PriceSeries
from portlab.core.services.cache import TTLArtifactCache
from portlab.core.services.portfolio_service import PortfolioService
from portlab.core.utils.errors import InvalidInputError, NoDataError, TransportError
from portlab.core.utils.plotting import RenderRequest
from portlab.tests.helpers import FakeProvider, make_price_series


def _rising(symbol: str, start: float, count: int = 30) -> PriceSeries:
    closes = [start * (1.0 + 0.01 * ((index * 7) % 5 - 1)) + index for index in range(count)]
    return make_price_series(symbol, closes)


class _CountingRenderer:
    """Renderer stub returning fixed bytes and counting calls."""

    def __init__(self) -> None:
        self.requests: list[RenderRequest] = []

    def __call__(self, request: RenderRequest) -> bytes:
        self.requests.append(request)
        return b"\x89PNG-fake"


class TestPortfolioService(unittest.TestCase):
    """Validate fetch, align, backtest and render orchestration."""

    def _service(
        self,
        provider: FakeProvider,
        renderer: _CountingRenderer | None = None,
    ) -> tuple[PortfolioService, list[float]]:
        delays: list[float] = []
        service = PortfolioService(
            provider=provider,
            cache=TTLArtifactCache(ttl_seconds=60.0),
            renderer=renderer or _CountingRenderer(),
            sleep=delays.append,
        )
        return service, delays

    def test_equal_weight_report(self) -> None:
        provider = FakeProvider({"SPY": _rising("SPY", 400.0), "AAPL": _rising("AAPL", 150.0)})
        service, delays = self._service(provider)

        report = service.run_equal_weight(["spy", "aapl"], "1y")

        self.assertEqual(float(report.portfolio.values.iloc[0]), 100.0)
        self.assertEqual(len(report.portfolio.values), len(report.portfolio.timestamps))
        self.assertEqual(report.stats.num_days, len(report.portfolio.values))
        self.assertEqual(report.title, "Equal Weighted Portfolio (SPY, AAPL)")
        self.assertTrue(report.subtitle.startswith("Return: "))
        self.assertEqual(provider.requests, [("SPY", "1d", "1y"), ("AAPL", "1d", "1y")])
        self.assertEqual(delays, [0.1])

    def test_weighted_report(self) -> None:
        spy = _rising("SPY", 400.0)
        provider = FakeProvider({"SPY": spy, "AAPL": _rising("AAPL", 150.0)})
        service, _ = self._service(provider)

        report = service.run_weighted("SPY 0.6 AAPL 0.3 1y")

        self.assertAlmostEqual(report.config.cash_weight, 0.1, places=12)
        self.assertAlmostEqual(report.portfolio.shares["SPY"], 60.0 / spy.closes[0], places=12)
        self.assertEqual(
            report.title, "Weighted Portfolio (SPY 60.0%, AAPL 30.0%, Cash 10.0%)"
        )

    def test_short_and_margin_titles(self) -> None:
        provider = FakeProvider({"TSLA": _rising("TSLA", 200.0), "AAPL": _rising("AAPL", 150.0)})
        service, _ = self._service(provider)

        short_report = service.run_weighted("TSLA -0.5 AAPL 0.3 1y")
        margin_report = service.run_weighted("TSLA 0.8 AAPL 0.7 1y")

        self.assertIn("TSLA 50.0% SHORT", short_report.title)
        self.assertIn("Cash 120.0%", short_report.title)
        self.assertIn("Margin 50.0%", margin_report.title)

    def test_window_trims_fetched_series(self) -> None:
        provider = FakeProvider({"SPY": _rising("SPY", 400.0, count=400)})
        service, _ = self._service(provider)

        report = service.run_equal_weight(["SPY"], "1m")

        self.assertEqual(provider.requests, [("SPY", "1d", "1mo")])
        self.assertEqual(len(report.portfolio.values), 31)

    def test_chart_renders_are_cached(self) -> None:
        renderer = _CountingRenderer()
        provider = FakeProvider({"SPY": _rising("SPY", 400.0), "AAPL": _rising("AAPL", 150.0)})
        service, _ = self._service(provider, renderer)

        first = service.make_equal_weight_chart(["SPY", "AAPL"], "1y")
        second = service.make_equal_weight_chart(["spy", "aapl"], "1y")

        self.assertEqual(first, second)
        self.assertEqual(len(renderer.requests), 1)
        self.assertEqual(len(provider.requests), 2)
        self.assertEqual(renderer.requests[0].values[0], 100.0)

    def test_weighted_chart_cache_key_includes_weights(self) -> None:
        renderer = _CountingRenderer()
        provider = FakeProvider({"SPY": _rising("SPY", 400.0), "AAPL": _rising("AAPL", 150.0)})
        service, _ = self._service(provider, renderer)

        service.make_weighted_chart("SPY 0.6 AAPL 0.3 1y")
        service.make_weighted_chart("SPY 0.6 AAPL 0.3 1y")
        service.make_weighted_chart("SPY 0.5 AAPL 0.3 1y")

        self.assertEqual(len(renderer.requests), 2)

    def test_one_failing_symbol_aborts_request(self) -> None:
        provider = FakeProvider(
            {"SPY": _rising("SPY", 400.0), "BAD": NoDataError("no data for symbol 'BAD'")}
        )
        service, _ = self._service(provider)

        with self.assertRaises(NoDataError) as ctx:
            service.run_equal_weight(["SPY", "BAD"], "1y")
        self.assertIn("failed to fetch BAD", str(ctx.exception))

    def test_fetch_error_type_is_preserved(self) -> None:
        provider = FakeProvider({"SPY": TransportError("yahoo returned 503")})
        service, _ = self._service(provider)
        with self.assertRaises(TransportError):
            service.run_equal_weight(["SPY"], "1y")

    def test_empty_series_is_no_data(self) -> None:
        provider = FakeProvider({"SPY": make_price_series("SPY", [])})
        service, _ = self._service(provider)
        with self.assertRaises(NoDataError):
            service.run_equal_weight(["SPY"], "1y")

    def test_duplicate_symbols_are_rejected(self) -> None:
        service, _ = self._service(FakeProvider({}))
        with self.assertRaises(InvalidInputError):
            service.run_equal_weight(["SPY", "spy"], "1y")

    def test_symbol_series_applies_interval_ceiling(self) -> None:
        provider = FakeProvider({"SPY": _rising("SPY", 400.0)})
        service, _ = self._service(provider)

        series = service.fetch_symbol_series("spy", "1m", "1y")

        self.assertEqual(provider.requests, [("SPY", "1m", "1mo")])
        self.assertEqual(len(series), 30)


if __name__ == "__main__":
    unittest.main()
