"""
Pricing analysis engine consumed by the pricing tools.

Pure functions over comparison records and price-history snapshots: price
gap detection, trend bucketing and strategy-based price suggestions. Nothing
here touches the data store; callers fetch records and pass them in.
"""

import logging
from dataclasses import asdict
from datetime import date, datetime, timedelta
from typing import Iterable, Sequence

import numpy as np
import pandas as pd

from config.config import DEFAULT_CONFIG, PricingAnalysisConfig
from models.competitor import CompetitorPriceHistory, Product
from models.enums import PriceOpportunity, PricingStrategy, TrendGroupBy
from models.pricing import (
    CompetitorPrice,
    CompetitorPriceStats,
    CompetitorTrendPoint,
    GapAnalysis,
    PriceComparisonRecord,
    PriceGapResult,
    PriceSuggestion,
    TrendBucket,
)

logger = logging.getLogger(__name__)

NO_COMPETITOR_DATA_REASON = "No competitor data available"


def _cutoff(days: int, now: datetime | None) -> datetime:
    return (now or datetime.now()) - timedelta(days=days)


def _comparison_frame(records: Sequence[PriceComparisonRecord]) -> pd.DataFrame:
    return pd.DataFrame([asdict(r) for r in records])


def _valid_price_rows(frame: pd.DataFrame) -> pd.DataFrame:
    """Drop rows whose prices would poison an average."""
    competitor_price = frame["competitor_price"].astype(float)
    my_price = frame["my_price"].astype(float)
    mask = np.isfinite(competitor_price) & (competitor_price > 0) & np.isfinite(my_price)
    dropped = int((~mask).sum())
    if dropped:
        logger.debug(f"Ignoring {dropped} comparison rows with invalid prices")
    return frame[mask]


def compute_price_stats(prices: Iterable[float]) -> CompetitorPriceStats | None:
    """Average, min and max over the valid (finite, positive) prices, or None."""
    values = np.asarray(list(prices), dtype=float)
    values = values[np.isfinite(values) & (values > 0)]
    if values.size == 0:
        return None
    return CompetitorPriceStats(
        avg_price=float(values.mean()),
        min_price=float(values.min()),
        max_price=float(values.max()),
        competitor_count=int(values.size),
    )


# --- Gap analysis --- #


def analyze_gaps(
    records: Sequence[PriceComparisonRecord],
    product_ids: list[str] | None = None,
    competitor_ids: list[str] | None = None,
    category: str | None = None,
    min_price_diff: float = DEFAULT_CONFIG.pricing.default_min_price_diff,
    days: int = DEFAULT_CONFIG.pricing.default_gap_days,
    now: datetime | None = None,
) -> GapAnalysis:
    """
    Find products whose price differs from the competitor average by at least
    `min_price_diff`.

    A positive gap means our price is above the competitor average; such
    products are labelled UNDERPRICED (the label follows the gap sign, not the
    usual reading of the word). Results are sorted by absolute gap, largest
    first.
    """
    if not records:
        return GapAnalysis()

    frame = _comparison_frame(records)
    frame = frame[frame["price_date"] >= _cutoff(days, now)]
    if product_ids is not None:
        frame = frame[frame["product_id"].isin(product_ids)]
    if competitor_ids is not None:
        frame = frame[frame["competitor_id"].isin(competitor_ids)]
    if category is not None:
        frame = frame[frame["product_category"] == category]
    frame = frame[frame["product_id"].notna()]
    if frame.empty:
        return GapAnalysis()
    frame = _valid_price_rows(frame)

    # Most recent comparison first so the product's current price comes from it
    frame = frame.sort_values("price_date", ascending=False, kind="stable")

    gaps: list[PriceGapResult] = []
    for product_id, group in frame.groupby("product_id", sort=False):
        my_price = float(group["my_price"].iloc[0])
        prices = group["competitor_price"].astype(float)
        avg_price = float(prices.mean())
        min_price = float(prices.min())
        max_price = float(prices.max())

        price_gap = my_price - avg_price
        if abs(price_gap) < min_price_diff:
            continue

        competitors = [
            CompetitorPrice(
                name=row.competitor_name or row.competitor_id,
                price=float(row.competitor_price),
                price_diff=float(row.price_diff),
                price_diff_pct=float(row.price_diff_pct),
                is_winning=bool(row.is_winning),
                price_date=pd.Timestamp(row.price_date).to_pydatetime(),
            )
            for row in group.itertuples(index=False)
        ]
        gaps.append(
            PriceGapResult(
                product_id=str(product_id),
                product_name=group["product_name"].iloc[0],
                product_sku=group["product_sku"].iloc[0],
                my_price=my_price,
                avg_competitor_price=round(avg_price, 2),
                min_competitor_price=min_price,
                max_competitor_price=max_price,
                price_gap=round(price_gap, 2),
                min_price_gap=round(my_price - min_price, 2),
                max_price_gap=round(my_price - max_price, 2),
                opportunity=PriceOpportunity.UNDERPRICED if price_gap > 0 else PriceOpportunity.OVERPRICED,
                competitors=competitors,
            )
        )

    gaps.sort(key=lambda g: abs(g.price_gap), reverse=True)
    return GapAnalysis(product_gaps=gaps)


# --- Trends --- #


def period_key(value: datetime | date, group_by: TrendGroupBy | str) -> str:
    """
    Bucket key for a record date. Weeks start on Sunday; months are `YYYY-MM`.
    """
    day = value.date() if isinstance(value, datetime) else value
    group_by = TrendGroupBy(group_by)
    if group_by == TrendGroupBy.WEEK:
        # weekday() is Monday=0, so Sunday maps to an offset of 0
        return (day - timedelta(days=(day.weekday() + 1) % 7)).isoformat()
    if group_by == TrendGroupBy.MONTH:
        return f"{day.year}-{day.month:02d}"
    return day.isoformat()


def get_trends(
    history: Sequence[CompetitorPriceHistory],
    product_ids: list[str] | None = None,
    competitor_ids: list[str] | None = None,
    days: int = DEFAULT_CONFIG.pricing.default_trend_days,
    group_by: TrendGroupBy | str = DEFAULT_CONFIG.pricing.default_trend_group_by,
    now: datetime | None = None,
    competitor_domains: dict[str, str] | None = None,
) -> list[TrendBucket]:
    """
    Aggregate competitor price history into ascending time buckets.

    Inside a bucket each competitor contributes its latest snapshot; the
    bucket product total sums every snapshot that fell into it.
    """
    cutoff = _cutoff(days, now)
    rows = [
        h
        for h in history
        if h.record_date >= cutoff
        and (competitor_ids is None or h.competitor_id in competitor_ids)
        # Competitor-wide snapshots carry no product id and always apply
        and (product_ids is None or h.product_id is None or h.product_id in product_ids)
    ]
    if not rows:
        return []

    domains = competitor_domains or {}
    frame = pd.DataFrame([h.model_dump() for h in rows])
    frame = frame.sort_values("record_date", kind="stable")
    frame["period"] = [period_key(d, group_by) for d in frame["record_date"]]
    # Missing (or zero) min/max fall back to the average
    for column in ("min_price", "max_price"):
        values = frame[column].astype(float)
        frame[column] = values.where(values.fillna(0) != 0, frame["average_price"])

    buckets: list[TrendBucket] = []
    for period, group in frame.groupby("period", sort=True):
        latest = group.drop_duplicates(subset="competitor_id", keep="last")
        points = [
            CompetitorTrendPoint(
                name=row.competitor_name,
                domain=domains.get(row.competitor_id),
                avg_price=float(row.average_price),
                min_price=float(row.min_price),
                max_price=float(row.max_price),
                product_count=int(row.product_count),
            )
            for row in latest.itertuples(index=False)
        ]
        buckets.append(
            TrendBucket(
                period=str(period),
                avg_price=float(np.mean([p.avg_price for p in points])),
                min_price=min(p.min_price for p in points),
                max_price=max(p.max_price for p in points),
                total_products=int(group["product_count"].sum()),
                competitors=points,
            )
        )
    return buckets


# --- Suggestions --- #


def _strategy_target(
    strategy: PricingStrategy, stats: CompetitorPriceStats, config: PricingAnalysisConfig
) -> tuple[float, str]:
    if strategy == PricingStrategy.COMPETITIVE:
        return stats.avg_price, f"Match average competitor price ({stats.avg_price:.2f})"
    if strategy == PricingStrategy.PREMIUM:
        markup = round((config.premium_markup - 1) * 100)
        return (
            stats.max_price * config.premium_markup,
            f"Set {markup}% above highest competitor ({stats.max_price:.2f})",
        )
    if strategy == PricingStrategy.BUDGET:
        discount = round((1 - config.budget_discount) * 100)
        return (
            stats.min_price * config.budget_discount,
            f"Set {discount}% below lowest competitor ({stats.min_price:.2f})",
        )
    return stats.min_price, f"Match lowest competitor price ({stats.min_price:.2f})"


def suggest_prices(
    products: Sequence[Product],
    records: Sequence[PriceComparisonRecord],
    product_ids: list[str],
    strategy: PricingStrategy | str,
    max_change_percent: float = DEFAULT_CONFIG.pricing.default_max_change_percent,
    now: datetime | None = None,
    config: PricingAnalysisConfig = DEFAULT_CONFIG.pricing,
) -> list[PriceSuggestion]:
    """
    Suggest a target price per product under `strategy`, never moving the
    price by more than `max_change_percent` in either direction.

    Products without competitor data in the trailing window keep their price.
    """
    strategy = PricingStrategy(strategy)
    cutoff = _cutoff(config.suggestion_window_days, now)
    wanted = set(product_ids)

    prices_by_product: dict[str, list[float]] = {}
    for record in records:
        if record.product_id in wanted and record.price_date >= cutoff:
            prices_by_product.setdefault(record.product_id, []).append(record.competitor_price)

    by_id = {p.product_id: p for p in products}
    suggestions: list[PriceSuggestion] = []
    for product_id in product_ids:
        product = by_id.get(product_id)
        if product is None:
            continue
        current_price = product.current_price
        stats = compute_price_stats(prices_by_product.get(product_id, []))

        if stats is None:
            suggestions.append(
                PriceSuggestion(
                    product_id=product_id,
                    product_name=product.title,
                    product_sku=product.sku,
                    current_price=current_price,
                    suggested_price=current_price,
                    change_percent=0.0,
                    reason=NO_COMPETITOR_DATA_REASON,
                    strategy=strategy,
                )
            )
            continue

        target, reason = _strategy_target(strategy, stats, config)
        change_percent = (target - current_price) / current_price * 100 if current_price > 0 else 0.0

        clamped = current_price > 0 and abs(change_percent) > max_change_percent
        if clamped:
            factor = max_change_percent / 100
            target = current_price * (1 + factor if change_percent > 0 else 1 - factor)
            reason += f" (limited to {max_change_percent:g}% change)"

        suggestions.append(
            PriceSuggestion(
                product_id=product_id,
                product_name=product.title,
                product_sku=product.sku,
                current_price=current_price,
                suggested_price=round(target, 2),
                change_percent=round(change_percent, 2),
                reason=reason,
                strategy=strategy,
                competitor_data=stats,
                clamped=clamped,
            )
        )

    logger.debug(f"Suggested prices for {len(suggestions)} products using {strategy.value}")
    return suggestions
