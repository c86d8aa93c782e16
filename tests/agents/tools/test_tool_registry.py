import pytest

from agents.tools.base import Tool, ToolRegistry, not_found
from agents.tools.registry import DEFAULT_REGISTRY, build_default_registry
from config.config import AppConfig
from models.enums import ToolClassification
from models.errors import ToolValidationError
from models.tool_schemas import AddCompetitorNoteInput, GetCompetitorListInput, ToolOutput

READ_TOOL_IDS = {
    "getCompetitorList",
    "getCompetitorDetails",
    "analyzePriceGaps",
    "getPricingTrends",
    "suggestPriceChanges",
    "updateTodos",
    "askForPlanApproval",
    "confirmPlanExecution",
    "cancelPlan",
}
WRITE_TOOL_IDS = {
    "createCompetitor",
    "updateCompetitor",
    "deleteCompetitor",
    "addCompetitorNote",
    "updateProductPrices",
    "sendCompetitorEmail",
    "sendPricingReport",
    "sendAlertEmail",
}


def test_default_registry_classification():
    assert len(DEFAULT_REGISTRY) == 17
    assert {t.id for t in DEFAULT_REGISTRY.read_tools()} == READ_TOOL_IDS
    assert {t.id for t in DEFAULT_REGISTRY.write_tools()} == WRITE_TOOL_IDS
    assert all(t.permission for t in DEFAULT_REGISTRY.write_tools())


def test_registry_is_read_only():
    with pytest.raises(TypeError):
        DEFAULT_REGISTRY.tools["extra"] = DEFAULT_REGISTRY.get("cancelPlan")


def test_unknown_tool_lists_available():
    with pytest.raises(KeyError, match="Available: addCompetitorNote"):
        DEFAULT_REGISTRY.get("dropTables")
    assert "dropTables" not in DEFAULT_REGISTRY
    assert "cancelPlan" in DEFAULT_REGISTRY


def test_duplicate_ids_rejected():
    tool = DEFAULT_REGISTRY.get("cancelPlan")
    with pytest.raises(ValueError, match="Duplicate tool id: cancelPlan"):
        ToolRegistry([tool, tool])


def test_build_default_registry_returns_fresh_instance():
    assert build_default_registry() is not DEFAULT_REGISTRY


def test_describe_exposes_camel_case_schema():
    described = {d["id"]: d for d in DEFAULT_REGISTRY.describe()}
    create = described["createCompetitor"]
    assert create["classification"] == "WRITE"
    assert create["permission"] == "require_competitor_modification"
    assert "marketShare" in create["inputSchema"]["properties"]
    assert set(create["inputSchema"]["required"]) == {"name", "domain"}


def test_requires_approval_depends_on_note_input():
    note_tool = DEFAULT_REGISTRY.get("addCompetitorNote")
    config = AppConfig()
    short = AddCompetitorNoteInput(competitor_id="comp_nike", note="short")
    sensitive = AddCompetitorNoteInput(competitor_id="comp_nike", note="short", is_sensitive=True)
    assert note_tool.requires_approval(short, config) is False
    assert note_tool.requires_approval(sensitive, config) is True
    assert DEFAULT_REGISTRY.get("deleteCompetitor").requires_approval(None, config) is True
    assert DEFAULT_REGISTRY.get("getCompetitorList").requires_approval(GetCompetitorListInput()) is False


@pytest.mark.asyncio
async def test_output_schema_violation_raises(make_tool_ctx, user_ctx):
    async def broken(ctx, params):
        return {"message": "missing success flag"}

    tool = Tool(
        id="broken",
        description="Returns a malformed result",
        input_schema=GetCompetitorListInput,
        output_schema=ToolOutput,
        classification=ToolClassification.READ,
        handler=broken,
    )
    with pytest.raises(ToolValidationError, match="broken"):
        await tool.execute(make_tool_ctx(user_ctx), {})


def test_not_found_payload():
    assert not_found("Product", "p1") == {"success": False, "error": "Product not found", "productId": "p1"}
