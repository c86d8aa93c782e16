"""
Pricing-related data models for competitor price monitoring.
Inputs (comparison records, history snapshots) are immutable; results are
derived fresh on every analysis call and never persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .enums import PriceOpportunity, PricingStrategy


@dataclass(frozen=True)
class PriceComparisonRecord:
    """
    One snapshot comparing our price for a product with a competitor's price.
    """

    product_id: str
    competitor_id: str
    my_price: float
    competitor_price: float
    price_diff: float
    price_diff_pct: float
    is_winning: bool
    price_date: datetime
    product_name: str | None = None
    product_sku: str | None = None
    product_category: str | None = None
    competitor_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "productName": self.product_name,
            "productSku": self.product_sku,
            "competitorId": self.competitor_id,
            "myPrice": self.my_price,
            "competitorPrice": self.competitor_price,
            "priceDiff": self.price_diff,
            "priceDiffPct": self.price_diff_pct,
            "isWinning": self.is_winning,
            "priceDate": self.price_date.isoformat(),
        }


@dataclass
class CompetitorPrice:
    name: str
    price: float
    price_diff: float | None = None
    price_diff_pct: float | None = None
    is_winning: bool | None = None
    price_date: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "price": self.price,
            "priceDiff": self.price_diff,
            "priceDiffPct": self.price_diff_pct,
            "isWinning": self.is_winning,
            "priceDate": self.price_date.isoformat() if self.price_date else None,
        }


@dataclass
class PriceGapResult:
    product_id: str
    my_price: float
    avg_competitor_price: float
    min_competitor_price: float
    max_competitor_price: float
    price_gap: float
    min_price_gap: float
    max_price_gap: float
    opportunity: PriceOpportunity
    competitors: list[CompetitorPrice] = field(default_factory=list)
    product_name: str | None = None
    product_sku: str | None = None

    @property
    def competitor_count(self) -> int:
        return len(self.competitors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "productName": self.product_name,
            "productSku": self.product_sku,
            "myPrice": self.my_price,
            "avgCompetitorPrice": self.avg_competitor_price,
            "minCompetitorPrice": self.min_competitor_price,
            "maxCompetitorPrice": self.max_competitor_price,
            "priceGap": self.price_gap,
            "minPriceGap": self.min_price_gap,
            "maxPriceGap": self.max_price_gap,
            "opportunity": self.opportunity.value,
            "competitorCount": self.competitor_count,
            "competitors": [c.to_dict() for c in self.competitors],
        }


@dataclass
class GapAnalysis:
    product_gaps: list[PriceGapResult] = field(default_factory=list)

    @property
    def total_products(self) -> int:
        return len(self.product_gaps)

    @property
    def under_priced_count(self) -> int:
        return sum(1 for g in self.product_gaps if g.opportunity == PriceOpportunity.UNDERPRICED)

    @property
    def over_priced_count(self) -> int:
        return sum(1 for g in self.product_gaps if g.opportunity == PriceOpportunity.OVERPRICED)

    @property
    def avg_gap(self) -> float:
        if not self.product_gaps:
            return 0.0
        return sum(abs(g.price_gap) for g in self.product_gaps) / len(self.product_gaps)

    def to_dict(self) -> dict[str, Any]:
        return {
            "productGaps": [g.to_dict() for g in self.product_gaps],
            "totalProducts": self.total_products,
            "underPricedCount": self.under_priced_count,
            "overPricedCount": self.over_priced_count,
            "avgGap": round(self.avg_gap, 2),
        }


@dataclass
class CompetitorTrendPoint:
    name: str
    avg_price: float
    min_price: float
    max_price: float
    product_count: int
    domain: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "domain": self.domain,
            "avgPrice": self.avg_price,
            "minPrice": self.min_price,
            "maxPrice": self.max_price,
            "productCount": self.product_count,
        }


@dataclass
class TrendBucket:
    period: str
    avg_price: float
    min_price: float
    max_price: float
    total_products: int
    competitors: list[CompetitorTrendPoint] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "period": self.period,
            "avgPrice": self.avg_price,
            "minPrice": self.min_price,
            "maxPrice": self.max_price,
            "totalProducts": self.total_products,
            "competitors": [c.to_dict() for c in self.competitors],
        }


@dataclass
class CompetitorPriceStats:
    avg_price: float
    min_price: float
    max_price: float
    competitor_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "avgPrice": round(self.avg_price, 2),
            "minPrice": round(self.min_price, 2),
            "maxPrice": round(self.max_price, 2),
            "competitorCount": self.competitor_count,
        }


@dataclass
class PriceSuggestion:
    """
    Suggested target price for one product under a pricing strategy.
    `change_percent` is the unclamped change the strategy asked for.
    """

    product_id: str
    current_price: float
    suggested_price: float
    change_percent: float
    reason: str
    strategy: PricingStrategy
    product_name: str | None = None
    product_sku: str | None = None
    competitor_data: CompetitorPriceStats | None = None
    clamped: bool = False

    def to_dict(self) -> dict[str, Any]:
        result = {
            "productId": self.product_id,
            "productName": self.product_name,
            "productSku": self.product_sku,
            "currentPrice": self.current_price,
            "suggestedPrice": self.suggested_price,
            "changePercent": self.change_percent,
            "reason": self.reason,
            "strategy": self.strategy.value,
        }
        if self.competitor_data is not None:
            result["competitorData"] = self.competitor_data.to_dict()
        return result

    def to_price_update(self, update_original_price: bool = False) -> dict[str, Any]:
        """Shape accepted by the price update tool's `updates` list."""
        return {
            "productId": self.product_id,
            "newPrice": self.suggested_price,
            "updateOriginalPrice": update_original_price,
            "reason": self.reason,
        }
