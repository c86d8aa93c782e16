"""
Entities owned by the external data store: competitors, their notes and
price history, and our own products.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .enums import CompetitorStatus


class Competitor(BaseModel):
    id: str
    name: str
    domain: str
    website: str | None = None
    description: str | None = None
    status: CompetitorStatus = CompetitorStatus.ACTIVE
    categories: list[str] = Field(default_factory=list)
    product_count: int = 0
    market_position: float | None = None
    market_share: float | None = None
    is_monitoring: bool = True
    data_source: str | None = None
    created_by: str | None = None
    last_scraped_at: datetime | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    def summary(self) -> dict[str, Any]:
        """Fields returned by the competitor listing tool."""
        return {
            "id": self.id,
            "name": self.name,
            "domain": self.domain,
            "website": self.website,
            "description": self.description,
            "status": self.status.value,
            "productCount": self.product_count,
            "marketPosition": self.market_position,
            "marketShare": self.market_share,
            "isMonitoring": self.is_monitoring,
            "lastScrapedAt": self.last_scraped_at.isoformat() if self.last_scraped_at else None,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


class CompetitorNote(BaseModel):
    id: str
    competitor_id: str
    note: str
    category: str | None = None
    created_by: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    def as_result(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "competitorId": self.competitor_id,
            "note": self.note,
            "category": self.category,
            "createdBy": self.created_by,
            "createdAt": self.created_at.isoformat(),
        }


class CompetitorPriceHistory(BaseModel):
    """Aggregated per-competitor price snapshot for one day."""

    id: str
    competitor_id: str
    competitor_name: str
    record_date: datetime
    average_price: float
    min_price: float | None = None
    max_price: float | None = None
    product_count: int = 0
    product_id: str | None = None


class Product(BaseModel):
    product_id: str
    title: str
    sku: str | None = None
    category: str | None = None
    original_price: float | None = None
    discount_price: float | None = None
    currency: str = "EUR"

    @property
    def current_price(self) -> float:
        """Price shown to customers: discount price if set, else original."""
        return float(self.discount_price or self.original_price or 0)
