from dataclasses import replace

import pytest

from agents.executors import render_preview
from agents.tools.registry import DEFAULT_REGISTRY
from config.config import AppConfig, PricingAnalysisConfig
from connectors.dummy_db import DummyDB
from models.errors import PermissionDeniedError, ToolValidationError


def tool(tool_id: str):
    return DEFAULT_REGISTRY.get(tool_id)


# --- analyzePriceGaps --- #


@pytest.mark.asyncio
async def test_price_gaps_with_default_threshold(make_tool_ctx, guest_ctx):
    result = await tool("analyzePriceGaps").execute(make_tool_ctx(guest_ctx), {})

    analysis = result["analysis"]
    assert analysis["totalProducts"] == 1
    gap = analysis["productGaps"][0]
    assert gap["productId"] == "prod_runner"
    assert gap["avgCompetitorPrice"] == 100.0
    assert gap["priceGap"] == 20.0
    assert gap["opportunity"] == "UNDERPRICED"
    assert gap["competitorCount"] == 2
    assert result["message"] == "Found 1 products with significant pricing gaps"


@pytest.mark.asyncio
async def test_price_gaps_lower_threshold_and_category(make_tool_ctx, user_ctx):
    ctx = make_tool_ctx(user_ctx)
    result = await tool("analyzePriceGaps").execute(ctx, {"minPriceDiff": 5})
    assert [g["productId"] for g in result["analysis"]["productGaps"]] == ["prod_runner", "prod_yoga"]

    fitness = await tool("analyzePriceGaps").execute(ctx, {"minPriceDiff": 5, "category": "fitness"})
    assert [g["productId"] for g in fitness["analysis"]["productGaps"]] == ["prod_yoga"]


@pytest.mark.asyncio
async def test_price_gaps_window_excludes_old_comparisons(make_tool_ctx, user_ctx):
    recent = await tool("analyzePriceGaps").execute(
        make_tool_ctx(user_ctx), {"productIds": ["prod_jacket"], "minPriceDiff": 0}
    )
    assert recent["analysis"]["totalProducts"] == 0

    wider = await tool("analyzePriceGaps").execute(
        make_tool_ctx(user_ctx), {"productIds": ["prod_jacket"], "minPriceDiff": 0, "days": 60}
    )
    assert wider["analysis"]["productGaps"][0]["opportunity"] == "OVERPRICED"


@pytest.mark.asyncio
async def test_price_gaps_rejects_negative_threshold(make_tool_ctx, user_ctx):
    with pytest.raises(ToolValidationError):
        await tool("analyzePriceGaps").execute(make_tool_ctx(user_ctx), {"minPriceDiff": -1})


@pytest.mark.asyncio
async def test_price_gaps_defaults_come_from_config(make_tool_ctx, user_ctx):
    pricing = PricingAnalysisConfig(default_min_price_diff=5, default_gap_days=60)
    ctx = replace(make_tool_ctx(user_ctx), config=AppConfig(pricing=pricing))

    result = await tool("analyzePriceGaps").execute(ctx, {})
    assert [g["productId"] for g in result["analysis"]["productGaps"]] == ["prod_runner", "prod_jacket", "prod_yoga"]

    explicit = await tool("analyzePriceGaps").execute(ctx, {"minPriceDiff": 10, "days": 30})
    assert explicit["analysis"]["totalProducts"] == 1


# --- getPricingTrends --- #


@pytest.mark.asyncio
async def test_pricing_trends_weekly(make_tool_ctx, user_ctx):
    result = await tool("getPricingTrends").execute(make_tool_ctx(user_ctx), {})

    assert result["period"] == "week"
    assert result["totalPeriods"] == 2
    first, second = result["trends"]
    assert first["period"] == "2024-05-26"
    assert first["avgPrice"] == 94.5
    assert first["minPrice"] == 55.0
    assert first["maxPrice"] == 180.0
    assert first["totalProducts"] == 65
    assert second["period"] == "2024-06-09"
    assert {c["domain"] for c in second["competitors"]} == {"nike.com", "decathlon.com"}
    assert result["message"] == "Analyzed pricing trends over 2 week periods"


@pytest.mark.asyncio
async def test_pricing_trends_by_month_and_competitor(make_tool_ctx, user_ctx):
    result = await tool("getPricingTrends").execute(
        make_tool_ctx(user_ctx), {"groupBy": "month", "competitorIds": ["comp_nike"]}
    )
    assert [t["period"] for t in result["trends"]] == ["2024-05", "2024-06"]
    assert all(len(t["competitors"]) == 1 for t in result["trends"])


@pytest.mark.asyncio
async def test_pricing_trends_empty_window(make_tool_ctx, user_ctx):
    result = await tool("getPricingTrends").execute(make_tool_ctx(user_ctx), {"days": 1})
    assert result["trends"] == []
    assert result["totalPeriods"] == 0


# --- suggestPriceChanges --- #


@pytest.mark.asyncio
async def test_suggestions_never_write(make_tool_ctx, guest_ctx, db: DummyDB):
    result = await tool("suggestPriceChanges").execute(
        make_tool_ctx(guest_ctx),
        {"productIds": ["prod_runner", "prod_bottle", "prod_jacket"], "strategy": "COMPETITIVE"},
    )

    by_id = {s["productId"]: s for s in result["suggestions"]}
    assert by_id["prod_runner"]["suggestedPrice"] == 100.0
    assert by_id["prod_bottle"]["suggestedPrice"] == 14.0
    assert by_id["prod_jacket"]["suggestedPrice"] == 80.0
    assert by_id["prod_jacket"]["reason"] == "No competitor data available"
    # Unchanged prices are not offered as updates
    assert [u["productId"] for u in result["updates"]] == ["prod_runner", "prod_bottle"]
    assert result["message"] == "Suggested price changes for 3 products using COMPETITIVE strategy"
    assert db.mutation_count == 0


@pytest.mark.asyncio
async def test_suggestions_clamp_and_merge_reason(make_tool_ctx, user_ctx):
    result = await tool("suggestPriceChanges").execute(
        make_tool_ctx(user_ctx),
        {"productIds": ["prod_runner"], "strategy": "MATCH_LOWEST", "reason": "Summer push"},
    )

    suggestion = result["suggestions"][0]
    assert suggestion["suggestedPrice"] == 96.0
    assert suggestion["changePercent"] == -25.0
    assert suggestion["reason"] == "Match lowest competitor price (90.00) (limited to 20% change)"
    assert result["updates"][0]["reason"] == f"Summer push: {suggestion['reason']}"


@pytest.mark.asyncio
async def test_suggestions_unknown_products(make_tool_ctx, user_ctx):
    result = await tool("suggestPriceChanges").execute(
        make_tool_ctx(user_ctx), {"productIds": ["prod_missing"], "strategy": "BUDGET"}
    )
    assert result == {
        "success": False,
        "error": "No products found with the provided IDs",
        "productIds": ["prod_missing"],
    }


# --- updateProductPrices --- #


@pytest.mark.asyncio
async def test_update_prices_proposal_with_preview_rows(make_tool_ctx, admin_ctx, db: DummyDB):
    params = {
        "updates": [
            {"productId": "prod_runner", "newPrice": 100.0, "reason": "match average"},
            {"productId": "prod_missing", "newPrice": 10.0, "reason": "?"},
        ],
        "batchId": "b-1",
    }
    result = await tool("updateProductPrices").execute(make_tool_ctx(admin_ctx), params)

    assert result["requiresApproval"] is True
    assert [u["productId"] for u in result["data"]["updates"]] == ["prod_runner"]
    assert result["preview"] == "Update prices for 1 products (batch b-1)"
    assert result["previewRows"][0]["changePercent"] == -16.67
    assert result["previewRows"][1] == {"productId": "prod_missing", "error": "Product not found"}
    assert result["summary"] == {"totalProducts": 2, "totalValueChange": -20.0, "avgChangePercent": -16.67}
    assert (await db.get_product("prod_runner")).current_price == 120.0
    assert db.mutation_count == 0


@pytest.mark.asyncio
async def test_update_prices_no_known_products(make_tool_ctx, admin_ctx):
    result = await tool("updateProductPrices").execute(
        make_tool_ctx(admin_ctx), {"updates": [{"productId": "prod_missing", "newPrice": 5, "reason": "r"}]}
    )
    assert result == {"success": False, "error": "Product not found", "productIds": ["prod_missing"]}


@pytest.mark.asyncio
@pytest.mark.parametrize("ctx_name", ["user_ctx", "guest_ctx"])
async def test_update_prices_denied(make_tool_ctx, db: DummyDB, request, ctx_name):
    params = {"updates": [{"productId": "prod_runner", "newPrice": 100.0, "reason": "r"}]}
    with pytest.raises(PermissionDeniedError):
        await tool("updateProductPrices").execute(make_tool_ctx(request.getfixturevalue(ctx_name)), params)
    assert db.mutation_count == 0


@pytest.mark.asyncio
async def test_suggestion_updates_feed_price_update_proposal(make_tool_ctx, expert_ctx, db: DummyDB):
    ctx = make_tool_ctx(expert_ctx)
    suggested = await tool("suggestPriceChanges").execute(
        ctx, {"productIds": ["prod_runner"], "strategy": "COMPETITIVE"}
    )
    proposal = await tool("updateProductPrices").execute(ctx, {"updates": suggested["updates"]})
    assert render_preview(proposal["action"], proposal["data"]) == proposal["preview"]
    assert db.mutation_count == 0
