"""Unit tests for domain.metrics module."""

import unittest

import pytest

from dashboard.domain.metrics import (
    aggregate_portfolio,
    classify_heat,
    classify_signal,
    count_recommendations,
    derive_holdings,
    filter_recommendations,
    heat_summary,
    market_value,
    profit_loss,
    profit_loss_percent,
    safe_percent,
    sector_percentages,
    signal_breakdown,
    top_by_confidence,
)
from dashboard.domain.models import (
    HeatEntry,
    HeatLevel,
    Holding,
    MoneySignal,
    Recommendation,
    RecommendationAction,
    Stock,
)


def make_stocks():
    return [
        Stock(symbol="AAPL", name="Apple", sector="Technology", current_price=160.0,
              volatility=0.2, confidence_score=85),
        Stock(symbol="MSFT", name="Microsoft", sector="Software", current_price=275.0,
              volatility=0.3, confidence_score=70),
    ]


def make_holdings():
    return [
        Holding(stock_symbol="AAPL", quantity=10, avg_price=150.0),
        Holding(stock_symbol="MSFT", quantity=2, avg_price=250.0),
    ]


class TestHoldingMetrics(unittest.TestCase):
    """Per-holding derivations."""

    def setUp(self):
        self.stock = make_stocks()[0]
        self.holding = make_holdings()[0]

    def test_market_value(self):
        self.assertEqual(market_value(self.holding, self.stock), 1600.0)

    def test_profit_loss(self):
        self.assertEqual(profit_loss(self.holding, self.stock), 100.0)
        self.assertAlmostEqual(profit_loss_percent(self.holding, self.stock), 100 / 1500 * 100)

    def test_unknown_stock_has_zero_value(self):
        self.assertEqual(market_value(self.holding, None), 0.0)
        self.assertEqual(profit_loss(self.holding, None), -1500.0)

    def test_zero_invested_percent_is_zero(self):
        free = Holding(stock_symbol="AAPL", quantity=10, avg_price=0.0)
        self.assertEqual(profit_loss_percent(free, self.stock), 0.0)

    def test_safe_percent(self):
        self.assertEqual(safe_percent(5, 0), 0.0)
        self.assertEqual(safe_percent(5, 20), 25.0)

    def test_rows_keep_input_order_and_weights(self):
        rows = derive_holdings(make_holdings(), make_stocks())
        self.assertEqual([r.symbol for r in rows], ["AAPL", "MSFT"])
        self.assertAlmostEqual(sum(r.weight for r in rows), 100.0)
        self.assertAlmostEqual(rows[0].weight, 1600 / 2150 * 100)

    def test_rows_carry_heat_and_signal(self):
        rows = derive_holdings(make_holdings(), make_stocks(), heat={"AAPL": 80.0})
        self.assertEqual(rows[0].heat_level, HeatLevel.OVERHEATED)
        self.assertIsNone(rows[1].heat_level)
        self.assertEqual(rows[0].signal, MoneySignal.SMART_MONEY)


class TestAggregatePortfolio(unittest.TestCase):
    """Portfolio aggregate over one holder."""

    def test_two_holdings(self):
        totals = aggregate_portfolio(make_holdings(), make_stocks())
        self.assertEqual(totals.total_invested, 2000.0)
        self.assertEqual(totals.current_value, 2150.0)
        self.assertEqual(totals.profit_loss, 150.0)
        self.assertAlmostEqual(totals.profit_loss_percent, 7.5)
        self.assertEqual(totals.total_holdings, 2)
        self.assertEqual(totals.unique_stocks, 2)
        self.assertEqual(totals.best_performer, "MSFT")
        self.assertAlmostEqual(totals.best_return_percent, 10.0)
        self.assertEqual(totals.risk_score, 25)

    def test_gain_and_loss_mix(self):
        stocks = [
            Stock(symbol="AAPL", sector="Technology", current_price=120.0),
            Stock(symbol="MSFT", sector="Technology", current_price=190.0),
        ]
        holdings = [
            Holding(stock_symbol="AAPL", quantity=10, avg_price=100.0),
            Holding(stock_symbol="MSFT", quantity=5, avg_price=200.0),
        ]
        totals = aggregate_portfolio(holdings, stocks)
        self.assertEqual(totals.total_invested, 2000.0)
        self.assertEqual(totals.current_value, 2150.0)
        self.assertEqual(totals.profit_loss, 150.0)
        self.assertAlmostEqual(totals.profit_loss_percent, 7.5)
        self.assertEqual(totals.sector_allocation, {"Technology": 2150.0})
        self.assertEqual(totals.best_performer, "AAPL")

    def test_profit_loss_is_value_minus_invested(self):
        totals = aggregate_portfolio(make_holdings(), make_stocks())
        self.assertAlmostEqual(totals.profit_loss, totals.current_value - totals.total_invested)

    def test_sector_allocation_sums_to_current_value(self):
        totals = aggregate_portfolio(make_holdings(), make_stocks())
        self.assertEqual(list(totals.sector_allocation), ["Software", "Technology"])
        self.assertAlmostEqual(sum(totals.sector_allocation.values()), totals.current_value)

    def test_idempotent(self):
        holdings, stocks = make_holdings(), make_stocks()
        self.assertEqual(aggregate_portfolio(holdings, stocks), aggregate_portfolio(holdings, stocks))

    def test_empty(self):
        totals = aggregate_portfolio([], make_stocks())
        self.assertEqual(totals.current_value, 0.0)
        self.assertEqual(totals.profit_loss_percent, 0.0)
        self.assertEqual(totals.sector_allocation, {})
        self.assertIsNone(totals.best_performer)

    def test_risk_score_capped(self):
        stocks = [Stock(symbol="X", current_price=1.0, volatility=2.5)]
        totals = aggregate_portfolio([Holding(stock_symbol="X", quantity=1, avg_price=1.0)], stocks)
        self.assertEqual(totals.risk_score, 100)

    def test_sector_percentages(self):
        pct = sector_percentages({"A": 1.0, "B": 3.0})
        self.assertEqual(pct, {"A": 25.0, "B": 75.0})
        self.assertEqual(sector_percentages({}), {})


class TestClassification:
    """Heat bands and smart/dumb money."""

    @pytest.mark.parametrize(
        "score,level",
        [
            (100, HeatLevel.OVERHEATED),
            (75, HeatLevel.OVERHEATED),
            (74.9, HeatLevel.WARM),
            (55, HeatLevel.WARM),
            (35, HeatLevel.NEUTRAL),
            (34.99, HeatLevel.COOL),
            (0, HeatLevel.COOL),
        ],
    )
    def test_heat_bands(self, score, level):
        assert classify_heat(score) == level

    @pytest.mark.parametrize(
        "volatility,confidence,signal",
        [
            (0.2, 85, MoneySignal.SMART_MONEY),
            (0.5, 40, MoneySignal.DUMB_MONEY),
            (0.35, 65, MoneySignal.NEUTRAL),
            (0.2, 45, MoneySignal.DUMB_MONEY),
            (0.35, 85, MoneySignal.NEUTRAL),
        ],
    )
    def test_money_signal(self, volatility, confidence, signal):
        stock = Stock(symbol="X", volatility=volatility, confidence_score=confidence)
        assert classify_signal(stock) == signal

    def test_signal_breakdown_counts_every_bucket(self):
        counts = signal_breakdown(make_stocks())
        assert counts == {"SMART_MONEY": 1, "DUMB_MONEY": 0, "NEUTRAL": 1}


class TestRecommendationsAndHeat:
    """Recommendation buckets and heat summary."""

    def make_recs(self):
        return [
            Recommendation(symbol="A", action=RecommendationAction.BUY),
            Recommendation(symbol="B", action=RecommendationAction.WATCH),
            Recommendation(symbol="C", action=RecommendationAction.SELL),
            Recommendation(symbol="D", action=RecommendationAction.HOLD),
        ]

    def test_watch_counts_as_sell(self):
        assert count_recommendations(self.make_recs()) == {"BUY": 1, "HOLD": 1, "SELL": 2}

    def test_empty_counts(self):
        assert count_recommendations([]) == {"BUY": 0, "HOLD": 0, "SELL": 0}

    def test_filter_sell_bucket(self):
        sells = filter_recommendations(self.make_recs(), RecommendationAction.SELL)
        assert [r.symbol for r in sells] == ["B", "C"]
        assert len(filter_recommendations(self.make_recs())) == 4

    def test_heat_summary(self):
        entries = [
            HeatEntry(symbol="A", heat_score=80),
            HeatEntry(symbol="B", heat_score=60),
            HeatEntry(symbol="C", heat_score=20),
        ]
        summary = heat_summary(entries)
        assert summary["OVERHEATED"] == 1
        assert summary["WARM"] == 1
        assert summary["NEUTRAL"] == 0
        assert summary["COOL"] == 1
        assert summary["average"] == pytest.approx(160 / 3)

    def test_heat_summary_empty(self):
        assert heat_summary([])["average"] == 0.0

    def test_top_by_confidence(self):
        stocks = [Stock(symbol=f"S{i}", confidence_score=i * 10) for i in range(7)]
        top = top_by_confidence(stocks)
        assert [s.symbol for s in top] == ["S6", "S5", "S4", "S3", "S2"]
