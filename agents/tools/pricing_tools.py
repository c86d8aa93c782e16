"""
Pricing tools backed by the pricing analysis engine.

Gap analysis, trends and price suggestions are READ tools; only
updateProductPrices proposes a mutation.
"""

import logging
from datetime import timedelta
from typing import Any

from agents.executors import render_preview
from agents.pricing_engine import analyze_gaps, get_trends, suggest_prices
from agents.tools.base import Tool, ToolContext, build_proposal_result
from models.enums import ProposalAction, ToolClassification, TrendGroupBy
from models.proposal import Proposal
from models.tool_schemas import (
    AnalyzePriceGapsInput,
    AnalyzePriceGapsOutput,
    GetPricingTrendsInput,
    GetPricingTrendsOutput,
    ProposalOutput,
    SuggestPriceChangesInput,
    SuggestPriceChangesOutput,
    UpdateProductPricesInput,
)
from utils.permissions import require_product_modification

logger = logging.getLogger(__name__)


def _or_default(value, default):
    return default if value is None else value


async def analyze_price_gaps(ctx: ToolContext, params: AnalyzePriceGapsInput) -> dict[str, Any]:
    defaults = ctx.config.pricing
    min_price_diff = _or_default(params.min_price_diff, defaults.default_min_price_diff)
    days = _or_default(params.days, defaults.default_gap_days)
    now = ctx.now()
    records = await ctx.store.list_price_comparisons(
        since=now - timedelta(days=days),
        product_ids=params.product_ids,
        competitor_ids=params.competitor_ids,
    )
    analysis = analyze_gaps(
        records,
        product_ids=params.product_ids,
        competitor_ids=params.competitor_ids,
        category=params.category,
        min_price_diff=min_price_diff,
        days=days,
        now=now,
    )
    return {
        "success": True,
        "analysis": analysis.to_dict(),
        "message": f"Found {analysis.total_products} products with significant pricing gaps",
    }


async def get_pricing_trends(ctx: ToolContext, params: GetPricingTrendsInput) -> dict[str, Any]:
    defaults = ctx.config.pricing
    days = _or_default(params.days, defaults.default_trend_days)
    group_by = TrendGroupBy(_or_default(params.group_by, defaults.default_trend_group_by))
    now = ctx.now()
    history = await ctx.store.list_price_history(
        since=now - timedelta(days=days), competitor_ids=params.competitor_ids
    )
    competitors = await ctx.store.get_competitors(sorted({h.competitor_id for h in history}))
    buckets = get_trends(
        history,
        product_ids=params.product_ids,
        competitor_ids=params.competitor_ids,
        days=days,
        group_by=group_by,
        now=now,
        competitor_domains={c.id: c.domain for c in competitors},
    )
    period = group_by.value
    return {
        "success": True,
        "trends": [b.to_dict() for b in buckets],
        "period": period,
        "totalPeriods": len(buckets),
        "message": f"Analyzed pricing trends over {len(buckets)} {period} periods",
    }


async def suggest_price_changes(ctx: ToolContext, params: SuggestPriceChangesInput) -> dict[str, Any]:
    """
    Compute suggested prices. Nothing is written: the returned `updates` list
    is ready to pass to updateProductPrices, which asks for approval.
    """
    products = await ctx.store.get_products(params.product_ids)
    if not products:
        return {
            "success": False,
            "error": "No products found with the provided IDs",
            "productIds": params.product_ids,
        }

    defaults = ctx.config.pricing
    max_change_percent = _or_default(params.max_change_percent, defaults.default_max_change_percent)
    now = ctx.now()
    records = await ctx.store.list_price_comparisons(
        since=now - timedelta(days=defaults.suggestion_window_days), product_ids=params.product_ids
    )
    suggestions = suggest_prices(
        products,
        records,
        params.product_ids,
        params.strategy,
        max_change_percent=max_change_percent,
        now=now,
        config=defaults,
    )

    updates = []
    for suggestion in suggestions:
        if suggestion.suggested_price == suggestion.current_price:
            continue
        update = suggestion.to_price_update()
        if params.reason:
            update["reason"] = f"{params.reason}: {suggestion.reason}"
        updates.append(update)

    strategy = params.strategy.value
    return {
        "success": True,
        "suggestions": [s.to_dict() for s in suggestions],
        "updates": updates,
        "strategy": strategy,
        "maxChangePercent": max_change_percent,
        "message": f"Suggested price changes for {len(suggestions)} products using {strategy} strategy",
    }


def _preview_row(update: dict[str, Any], product) -> dict[str, Any]:
    if product is None:
        return {"productId": update["productId"], "error": "Product not found"}
    if update["updateOriginalPrice"]:
        current_price = float(product.original_price or 0)
    else:
        current_price = product.current_price
    new_price = update["newPrice"]
    change_percent = (new_price - current_price) / current_price * 100 if current_price > 0 else 0.0
    return {
        "productId": product.product_id,
        "productName": product.title,
        "productSku": product.sku,
        "currentPrice": current_price,
        "newPrice": new_price,
        "changePercent": round(change_percent, 2),
        "reason": update["reason"],
        "updateOriginalPrice": update["updateOriginalPrice"],
    }


async def update_product_prices(ctx: ToolContext, params: UpdateProductPricesInput) -> dict[str, Any]:
    require_product_modification(ctx.auth.role)
    payload = params.as_payload()
    product_ids = [u["productId"] for u in payload["updates"]]
    products = {p.product_id: p for p in await ctx.store.get_products(product_ids)}
    if not products:
        return {"success": False, "error": "Product not found", "productIds": product_ids}

    rows = [_preview_row(u, products.get(u["productId"])) for u in payload["updates"]]
    valid_rows = [r for r in rows if "error" not in r]
    total_value_change = sum(r["newPrice"] - r["currentPrice"] for r in valid_rows)
    avg_change = sum(r["changePercent"] for r in valid_rows) / len(valid_rows)

    # Only updates for known products are carried to the executor
    data = {**payload, "updates": [u for u in payload["updates"] if u["productId"] in products]}
    proposal = Proposal(
        action=ProposalAction.UPDATE_PRODUCT_PRICES,
        data=data,
        preview=render_preview(ProposalAction.UPDATE_PRODUCT_PRICES, data),
    )
    return build_proposal_result(
        proposal,
        f"I need approval to update prices for {len(valid_rows)} products",
        previewRows=rows,
        summary={
            "totalProducts": len(rows),
            "totalValueChange": round(total_value_change, 2),
            "avgChangePercent": round(avg_change, 2),
        },
    )


PRICING_TOOLS = [
    Tool(
        id="analyzePriceGaps",
        description="Analyze price gaps between your products and competitors. Identifies pricing opportunities.",
        input_schema=AnalyzePriceGapsInput,
        output_schema=AnalyzePriceGapsOutput,
        classification=ToolClassification.READ,
        handler=analyze_price_gaps,
    ),
    Tool(
        id="getPricingTrends",
        description="Get pricing trends for products and competitors over time.",
        input_schema=GetPricingTrendsInput,
        output_schema=GetPricingTrendsOutput,
        classification=ToolClassification.READ,
        handler=get_pricing_trends,
    ),
    Tool(
        id="suggestPriceChanges",
        description="Suggest price changes based on competitor analysis. Returns updates to submit through updateProductPrices.",
        input_schema=SuggestPriceChangesInput,
        output_schema=SuggestPriceChangesOutput,
        classification=ToolClassification.READ,
        handler=suggest_price_changes,
    ),
    Tool(
        id="updateProductPrices",
        description="Update product prices based on approved suggestions. This requires user approval.",
        input_schema=UpdateProductPricesInput,
        output_schema=ProposalOutput,
        classification=ToolClassification.WRITE,
        handler=update_product_prices,
        permission="require_product_modification",
    ),
]
