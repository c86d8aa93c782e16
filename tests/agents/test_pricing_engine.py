from datetime import date, datetime, timedelta

import pytest

from agents.pricing_engine import (
    NO_COMPETITOR_DATA_REASON,
    analyze_gaps,
    compute_price_stats,
    get_trends,
    period_key,
    suggest_prices,
)
from models.competitor import CompetitorPriceHistory, Product
from models.enums import PriceOpportunity, PricingStrategy, TrendGroupBy
from models.pricing import PriceComparisonRecord

NOW = datetime(2024, 6, 15, 12, 0, 0)


def comparison(product_id: str, competitor_price: float, my_price: float = 120.0, days_ago: int = 1,
               competitor_id: str = "comp_a", category: str | None = "footwear") -> PriceComparisonRecord:
    diff = my_price - competitor_price
    return PriceComparisonRecord(
        product_id=product_id,
        competitor_id=competitor_id,
        my_price=my_price,
        competitor_price=competitor_price,
        price_diff=diff,
        price_diff_pct=diff / competitor_price * 100 if competitor_price else 0.0,
        is_winning=my_price <= competitor_price,
        price_date=NOW - timedelta(days=days_ago),
        product_name=f"Product {product_id}",
        product_category=category,
        competitor_name=competitor_id.upper(),
    )


def history(competitor_id: str, record_date: datetime, avg: float, count: int,
            low: float | None = None, high: float | None = None) -> CompetitorPriceHistory:
    return CompetitorPriceHistory(
        id=f"h_{competitor_id}_{record_date:%Y%m%d}",
        competitor_id=competitor_id,
        competitor_name=competitor_id.title(),
        record_date=record_date,
        average_price=avg,
        min_price=low,
        max_price=high,
        product_count=count,
    )


# --- Test analyze_gaps --- #


def test_gap_example_is_underpriced_above_average():
    records = [comparison("p1", 90.0), comparison("p1", 110.0, competitor_id="comp_b")]
    analysis = analyze_gaps(records, now=NOW)

    assert analysis.total_products == 1
    gap = analysis.product_gaps[0]
    assert gap.avg_competitor_price == 100.0
    assert gap.price_gap == 20.0
    assert gap.min_price_gap == 30.0
    assert gap.max_price_gap == 10.0
    assert gap.opportunity == PriceOpportunity.UNDERPRICED
    assert gap.competitor_count == 2


def test_gap_below_average_is_overpriced():
    analysis = analyze_gaps([comparison("p1", 150.0, my_price=100.0)], now=NOW)
    assert analysis.product_gaps[0].opportunity == PriceOpportunity.OVERPRICED
    assert analysis.product_gaps[0].price_gap == -50.0


@pytest.mark.parametrize(
    "competitor_price, included",
    [(110.0, True), (110.01, False), (130.0, True), (129.99, False)],
)
def test_gap_threshold_is_inclusive(competitor_price, included):
    analysis = analyze_gaps([comparison("p1", competitor_price)], min_price_diff=10, now=NOW)
    assert (analysis.total_products == 1) is included


def test_gaps_sorted_by_absolute_gap_and_summarized():
    records = [
        comparison("small", 105.0, my_price=120.0),  # gap 15
        comparison("large", 200.0, my_price=120.0),  # gap -80
        comparison("mid", 80.0, my_price=120.0),  # gap 40
    ]
    analysis = analyze_gaps(records, now=NOW)

    assert [g.product_id for g in analysis.product_gaps] == ["large", "mid", "small"]
    summary = analysis.to_dict()
    assert summary["totalProducts"] == 3
    assert summary["underPricedCount"] == 2
    assert summary["overPricedCount"] == 1
    assert summary["avgGap"] == 45.0


def test_gaps_respect_window_and_filters():
    records = [
        comparison("p1", 50.0, days_ago=40),  # outside 30-day window
        comparison("p2", 50.0, competitor_id="comp_b"),
        comparison("p3", 50.0, category="fitness"),
    ]
    assert analyze_gaps(records, now=NOW).total_products == 2
    assert [g.product_id for g in analyze_gaps(records, competitor_ids=["comp_b"], now=NOW).product_gaps] == ["p2"]
    assert [g.product_id for g in analyze_gaps(records, category="fitness", now=NOW).product_gaps] == ["p3"]
    assert [g.product_id for g in analyze_gaps(records, product_ids=["p3"], now=NOW).product_gaps] == ["p3"]
    assert analyze_gaps(records, days=60, now=NOW).total_products == 3


@pytest.mark.parametrize("bad_price", [0.0, -5.0, float("nan"), float("inf")])
def test_invalid_competitor_prices_are_ignored(bad_price):
    records = [comparison("p1", 90.0), comparison("p1", 110.0), comparison("p1", bad_price)]
    gap = analyze_gaps(records, now=NOW).product_gaps[0]
    assert gap.avg_competitor_price == 100.0
    assert gap.competitor_count == 2


def test_my_price_comes_from_most_recent_record():
    records = [
        comparison("p1", 100.0, my_price=150.0, days_ago=10),
        comparison("p1", 100.0, my_price=130.0, days_ago=1),
    ]
    assert analyze_gaps(records, now=NOW).product_gaps[0].my_price == 130.0


def test_no_records_gives_empty_analysis():
    analysis = analyze_gaps([], now=NOW)
    assert analysis.to_dict() == {
        "productGaps": [],
        "totalProducts": 0,
        "underPricedCount": 0,
        "overPricedCount": 0,
        "avgGap": 0,
    }


# --- Test trends --- #


@pytest.mark.parametrize(
    "value, group_by, expected",
    [
        (date(2024, 1, 1), TrendGroupBy.WEEK, "2023-12-31"),  # Monday -> previous Sunday
        (date(2024, 1, 3), TrendGroupBy.WEEK, "2023-12-31"),
        (date(2024, 1, 7), TrendGroupBy.WEEK, "2024-01-07"),  # Sunday starts its own week
        (datetime(2024, 1, 3, 18, 30), TrendGroupBy.DAY, "2024-01-03"),
        (date(2024, 2, 29), TrendGroupBy.MONTH, "2024-02"),
        (date(2024, 11, 5), "month", "2024-11"),
    ],
)
def test_period_key(value, group_by, expected):
    assert period_key(value, group_by) == expected


def test_weekly_bucket_sums_product_counts():
    now = datetime(2024, 1, 10)
    records = [
        history("comp_a", datetime(2024, 1, 1), avg=100.0, count=10),
        history("comp_b", datetime(2024, 1, 3), avg=80.0, count=5, low=40.0, high=150.0),
    ]
    buckets = get_trends(records, group_by="week", now=now)

    assert len(buckets) == 1
    bucket = buckets[0]
    assert bucket.period == "2023-12-31"
    assert bucket.total_products == 15
    assert bucket.avg_price == 90.0
    assert bucket.min_price == 40.0
    assert bucket.max_price == 150.0


def test_missing_min_max_default_to_average():
    buckets = get_trends([history("comp_a", NOW - timedelta(days=1), avg=70.0, count=3)], group_by="day", now=NOW)
    point = buckets[0].competitors[0]
    assert point.min_price == 70.0
    assert point.max_price == 70.0


def test_latest_snapshot_per_competitor_wins_but_counts_add_up():
    records = [
        history("comp_a", datetime(2024, 6, 3), avg=100.0, count=10),
        history("comp_a", datetime(2024, 6, 20), avg=120.0, count=12),
    ]
    buckets = get_trends(records, group_by="month", now=datetime(2024, 6, 30))
    assert len(buckets) == 1
    assert len(buckets[0].competitors) == 1
    assert buckets[0].competitors[0].avg_price == 120.0
    assert buckets[0].total_products == 22


def test_trend_buckets_ascending_and_windowed():
    records = [
        history("comp_a", NOW - timedelta(days=2), avg=10.0, count=1),
        history("comp_a", NOW - timedelta(days=40), avg=20.0, count=1),
        history("comp_a", NOW - timedelta(days=200), avg=30.0, count=1),
    ]
    buckets = get_trends(records, group_by=TrendGroupBy.DAY, days=90, now=NOW)
    periods = [b.period for b in buckets]
    assert periods == sorted(periods)
    assert len(periods) == 2


def test_trends_filter_competitors():
    records = [
        history("comp_a", NOW - timedelta(days=1), avg=10.0, count=1),
        history("comp_b", NOW - timedelta(days=1), avg=20.0, count=1),
    ]
    buckets = get_trends(records, competitor_ids=["comp_b"], group_by="day", now=NOW)
    assert [c.name for c in buckets[0].competitors] == ["Comp_B"]


def test_trends_empty_history():
    assert get_trends([], now=NOW) == []


# --- Test suggestions --- #


def product(product_id: str = "p1", original: float = 100.0, discount: float | None = None) -> Product:
    return Product(product_id=product_id, title=f"Product {product_id}", original_price=original, discount_price=discount)


def test_premium_is_clamped_and_reason_notes_it():
    records = [comparison("p1", 100.0, my_price=100.0), comparison("p1", 80.0, my_price=100.0)]
    [suggestion] = suggest_prices(
        [product()], records, ["p1"], PricingStrategy.PREMIUM, max_change_percent=5, now=NOW
    )
    assert suggestion.suggested_price == 105.0
    assert suggestion.clamped is True
    assert suggestion.reason == "Set 10% above highest competitor (100.00) (limited to 5% change)"
    # The reported change is the one the strategy asked for
    assert suggestion.change_percent == 10.0


@pytest.mark.parametrize(
    "strategy, expected_price, expected_reason",
    [
        (PricingStrategy.COMPETITIVE, 95.0, "Match average competitor price (95.00)"),
        (PricingStrategy.PREMIUM, 110.0, "Set 10% above highest competitor (100.00)"),
        (PricingStrategy.BUDGET, 81.0, "Set 10% below lowest competitor (90.00)"),
        (PricingStrategy.MATCH_LOWEST, 90.0, "Match lowest competitor price (90.00)"),
    ],
)
def test_strategy_formulas(strategy, expected_price, expected_reason):
    records = [comparison("p1", 90.0), comparison("p1", 100.0)]
    [suggestion] = suggest_prices([product()], records, ["p1"], strategy, max_change_percent=50, now=NOW)
    assert suggestion.suggested_price == expected_price
    assert suggestion.reason == expected_reason
    assert suggestion.competitor_data.competitor_count == 2


def test_downward_clamp():
    [suggestion] = suggest_prices(
        [product()], [comparison("p1", 50.0)], ["p1"], "MATCH_LOWEST", max_change_percent=20, now=NOW
    )
    assert suggestion.suggested_price == 80.0
    assert suggestion.reason.endswith("(limited to 20% change)")


@pytest.mark.parametrize("max_change", [5, 12.5, 20])
def test_suggestion_never_exceeds_max_change(max_change):
    [suggestion] = suggest_prices(
        [product()], [comparison("p1", 300.0)], ["p1"], "PREMIUM", max_change_percent=max_change, now=NOW
    )
    assert abs(suggestion.suggested_price - 100.0) <= 100.0 * max_change / 100 + 0.005


def test_no_competitor_data_keeps_price():
    [suggestion] = suggest_prices(
        [product(discount=79.0)], [comparison("p1", 50.0, days_ago=45)], ["p1"], "COMPETITIVE", now=NOW
    )
    assert suggestion.current_price == 79.0
    assert suggestion.suggested_price == 79.0
    assert suggestion.change_percent == 0
    assert suggestion.reason == NO_COMPETITOR_DATA_REASON
    assert "competitorData" not in suggestion.to_dict()


def test_suggestion_to_price_update():
    [suggestion] = suggest_prices([product()], [comparison("p1", 95.0)], ["p1"], "COMPETITIVE", now=NOW)
    assert suggestion.to_price_update() == {
        "productId": "p1",
        "newPrice": 95.0,
        "updateOriginalPrice": False,
        "reason": "Match average competitor price (95.00)",
    }


def test_unknown_products_are_skipped():
    assert suggest_prices([product()], [], ["p1", "missing"], "COMPETITIVE", now=NOW)[0].product_id == "p1"
    assert len(suggest_prices([product()], [], ["p1", "missing"], "COMPETITIVE", now=NOW)) == 1


# --- Test compute_price_stats --- #


def test_compute_price_stats():
    stats = compute_price_stats([10.0, 20.0, 30.0, float("nan"), -1.0])
    assert stats.avg_price == 20.0
    assert stats.min_price == 10.0
    assert stats.max_price == 30.0
    assert stats.competitor_count == 3
    assert compute_price_stats([]) is None
