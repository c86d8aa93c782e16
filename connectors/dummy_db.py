"""
Module: connectors.dummy_db

Provides a dummy in-memory data store for competitors, notes, price
comparisons, price history and products, used by the agent tools and tests.
Reads are free; writes are only issued by the mutation executors.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Any

from models.competitor import Competitor, CompetitorNote, CompetitorPriceHistory, Product
from models.enums import CompetitorStatus
from models.pricing import PriceComparisonRecord

logger = logging.getLogger(__name__)


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class DummyDB:
    """
    Dummy relational store connector. Each instance owns its own seeded data
    so tests can mutate freely.
    """

    def __init__(self, now: datetime | None = None, seed: bool = True):
        self.now = now or datetime.now()
        self.competitors: dict[str, Competitor] = {}
        self.notes: dict[str, CompetitorNote] = {}
        self.comparisons: list[PriceComparisonRecord] = []
        self.history: list[CompetitorPriceHistory] = []
        self.products: dict[str, Product] = {}
        self.mutation_count = 0
        if seed:
            self._seed()

    # --- Seed data --- #

    def _seed(self) -> None:
        def ago(days: int) -> datetime:
            return self.now - timedelta(days=days)

        for competitor in [
            Competitor(
                id="comp_nike", name="Nike", domain="nike.com", website="https://nike.com",
                categories=["footwear", "apparel"], product_count=85, market_position=1,
                market_share=27.5, created_at=ago(120),
            ),
            Competitor(
                id="comp_adidas", name="Adidas", domain="adidas.com", website="https://adidas.com",
                categories=["footwear", "apparel"], product_count=42, market_position=2,
                market_share=18.0, created_at=ago(90),
            ),
            Competitor(
                id="comp_decathlon", name="Decathlon", domain="decathlon.com",
                categories=["fitness"], product_count=65, created_at=ago(60),
            ),
            Competitor(
                id="comp_puma", name="Puma", domain="puma.com", status=CompetitorStatus.INACTIVE,
                categories=["footwear"], product_count=15, is_monitoring=False, created_at=ago(30),
            ),
            Competitor(
                id="comp_legacy", name="Legacy Sports", domain="legacy-sports.com",
                status=CompetitorStatus.ARCHIVED, product_count=0, is_monitoring=False,
                created_at=ago(400),
            ),
        ]:
            self.competitors[competitor.id] = competitor

        for product in [
            Product(product_id="prod_runner", title="Trail Runner Pro", sku="TRP-01",
                    category="footwear", original_price=120.0),
            Product(product_id="prod_yoga", title="Yoga Mat Deluxe", sku="YMD-02",
                    category="fitness", original_price=45.0, discount_price=39.99),
            Product(product_id="prod_bottle", title="Insulated Bottle", sku="IB-03",
                    category="fitness", original_price=15.0),
            Product(product_id="prod_jacket", title="Rain Jacket", sku="RJ-04",
                    category="apparel", original_price=80.0),
        ]:
            self.products[product.product_id] = product

        # (product, competitor, competitor price, days ago)
        for product_id, competitor_id, competitor_price, days in [
            ("prod_runner", "comp_nike", 90.0, 2),
            ("prod_runner", "comp_adidas", 110.0, 3),
            ("prod_yoga", "comp_decathlon", 29.99, 1),
            ("prod_yoga", "comp_nike", 34.99, 5),
            ("prod_bottle", "comp_decathlon", 14.0, 4),
            ("prod_jacket", "comp_adidas", 95.0, 45),
        ]:
            self.comparisons.append(
                self._comparison(product_id, competitor_id, competitor_price, ago(days))
            )

        # (competitor, avg, min, max, product count, days ago)
        for competitor_id, avg, low, high, count, days in [
            ("comp_nike", 98.0, 60.0, 180.0, 40, 20),
            ("comp_adidas", 91.0, 55.0, 160.0, 25, 20),
            ("comp_nike", 96.5, 58.0, 175.0, 42, 6),
            ("comp_decathlon", 31.0, 9.0, 70.0, 30, 6),
        ]:
            self.history.append(
                CompetitorPriceHistory(
                    id=_new_id("hist"),
                    competitor_id=competitor_id,
                    competitor_name=self.competitors[competitor_id].name,
                    record_date=ago(days),
                    average_price=avg,
                    min_price=low,
                    max_price=high,
                    product_count=count,
                )
            )

        self.notes["note_seed_1"] = CompetitorNote(
            id="note_seed_1", competitor_id="comp_nike", note="Summer sale starts in June.",
            category="pricing", created_by="seed", created_at=ago(10),
        )

    def _comparison(
        self, product_id: str, competitor_id: str, competitor_price: float, price_date: datetime
    ) -> PriceComparisonRecord:
        product = self.products[product_id]
        my_price = product.current_price
        diff = my_price - competitor_price
        return PriceComparisonRecord(
            product_id=product_id,
            competitor_id=competitor_id,
            my_price=my_price,
            competitor_price=competitor_price,
            price_diff=round(diff, 2),
            price_diff_pct=round(diff / competitor_price * 100, 2),
            is_winning=my_price <= competitor_price,
            price_date=price_date,
            product_name=product.title,
            product_sku=product.sku,
            product_category=product.category,
            competitor_name=self.competitors[competitor_id].name,
        )

    # --- Reads --- #

    async def list_competitors(
        self,
        status: CompetitorStatus | None = None,
        limit: int = 50,
        search: str | None = None,
        include_inactive: bool = False,
    ) -> list[Competitor]:
        """List competitors newest first; archived ones are hidden unless asked for."""
        results = []
        for competitor in self.competitors.values():
            if status is not None:
                if competitor.status != status:
                    continue
            elif not include_inactive and competitor.status == CompetitorStatus.ARCHIVED:
                continue
            if search:
                term = search.lower()
                if term not in competitor.name.lower() and term not in competitor.domain.lower():
                    continue
            results.append(competitor)
        results.sort(key=lambda c: c.created_at, reverse=True)
        return results[:limit]

    async def get_competitor(self, competitor_id: str) -> Competitor | None:
        return self.competitors.get(competitor_id)

    async def get_competitors(self, competitor_ids: list[str]) -> list[Competitor]:
        return [self.competitors[cid] for cid in competitor_ids if cid in self.competitors]

    async def get_notes(self, competitor_id: str, limit: int = 10) -> list[CompetitorNote]:
        notes = [n for n in self.notes.values() if n.competitor_id == competitor_id]
        notes.sort(key=lambda n: n.created_at, reverse=True)
        return notes[:limit]

    async def get_competitor_counts(self, competitor_id: str) -> dict[str, int]:
        """Counts of records that a competitor deletion would remove."""
        return {
            "priceRecords": sum(1 for c in self.comparisons if c.competitor_id == competitor_id),
            "notes": sum(1 for n in self.notes.values() if n.competitor_id == competitor_id),
            "historyRecords": sum(1 for h in self.history if h.competitor_id == competitor_id),
        }

    async def list_price_comparisons(
        self,
        since: datetime | None = None,
        product_ids: list[str] | None = None,
        competitor_ids: list[str] | None = None,
    ) -> list[PriceComparisonRecord]:
        results = [
            c
            for c in self.comparisons
            if (since is None or c.price_date >= since)
            and (product_ids is None or c.product_id in product_ids)
            and (competitor_ids is None or c.competitor_id in competitor_ids)
        ]
        results.sort(key=lambda c: c.price_date, reverse=True)
        return results

    async def list_price_history(
        self,
        since: datetime | None = None,
        competitor_ids: list[str] | None = None,
    ) -> list[CompetitorPriceHistory]:
        results = [
            h
            for h in self.history
            if (since is None or h.record_date >= since)
            and (competitor_ids is None or h.competitor_id in competitor_ids)
        ]
        results.sort(key=lambda h: h.record_date)
        return results

    async def get_products(self, product_ids: list[str]) -> list[Product]:
        return [self.products[pid] for pid in product_ids if pid in self.products]

    async def get_product(self, product_id: str) -> Product | None:
        return self.products.get(product_id)

    # --- Writes (executors only) --- #

    def _record_write(self, operation: str, entity_id: str) -> None:
        self.mutation_count += 1
        logger.debug(f"Store write #{self.mutation_count}: {operation} {entity_id}")

    async def create_competitor(self, fields: dict[str, Any], created_by: str) -> Competitor:
        competitor = Competitor(
            id=_new_id("comp"),
            status=CompetitorStatus.ACTIVE,
            is_monitoring=True,
            product_count=0,
            created_by=created_by,
            **fields,
        )
        self.competitors[competitor.id] = competitor
        self._record_write("create_competitor", competitor.id)
        return competitor

    async def update_competitor(self, competitor_id: str, changes: dict[str, Any]) -> Competitor | None:
        current = self.competitors.get(competitor_id)
        if current is None:
            return None
        # Validate the merged record so string inputs are coerced the same way as on create
        updated = Competitor.model_validate({**current.model_dump(), **changes, "updated_at": datetime.now()})
        self.competitors[competitor_id] = updated
        self._record_write("update_competitor", competitor_id)
        return updated

    async def delete_competitor(self, competitor_id: str, delete_pricing_data: bool = True) -> Competitor | None:
        """Remove a competitor with its notes (and pricing data) in one call."""
        competitor = self.competitors.pop(competitor_id, None)
        if competitor is None:
            return None
        self.notes = {k: n for k, n in self.notes.items() if n.competitor_id != competitor_id}
        if delete_pricing_data:
            self.comparisons = [c for c in self.comparisons if c.competitor_id != competitor_id]
            self.history = [h for h in self.history if h.competitor_id != competitor_id]
        self._record_write("delete_competitor", competitor_id)
        return competitor

    async def create_note(
        self, competitor_id: str, note: str, category: str | None, created_by: str
    ) -> CompetitorNote | None:
        if competitor_id not in self.competitors:
            return None
        record = CompetitorNote(
            id=_new_id("note"),
            competitor_id=competitor_id,
            note=note,
            category=category,
            created_by=created_by,
        )
        self.notes[record.id] = record
        self._record_write("create_note", record.id)
        return record

    async def update_product_price(
        self, product_id: str, new_price: float, update_original_price: bool = False
    ) -> Product | None:
        product = self.products.get(product_id)
        if product is None:
            return None
        field_name = "original_price" if update_original_price else "discount_price"
        updated = product.model_copy(update={field_name: new_price})
        self.products[product_id] = updated
        self._record_write("update_product_price", product_id)
        return updated
