import pytest

from agents.tools.registry import DEFAULT_REGISTRY
from connectors.dummy_db import DummyDB
from models.errors import ToolValidationError


def tool(tool_id: str):
    return DEFAULT_REGISTRY.get(tool_id)


@pytest.mark.asyncio
async def test_update_todos_default_message(make_tool_ctx, guest_ctx, db: DummyDB):
    todos = [
        {"id": "1", "title": "Analyze price gaps"},
        {"id": "2", "title": "Propose price updates", "estimatedTime": "2m"},
    ]
    result = await tool("updateTodos").execute(make_tool_ctx(guest_ctx), {"todos": todos})

    assert result["message"] == "Created plan with 2 tasks"
    assert result["requiresApproval"] is True
    assert result["todos"][1] == {
        "id": "2",
        "title": "Propose price updates",
        "completed": False,
        "estimatedTime": "2m",
    }
    assert db.mutation_count == 0


@pytest.mark.asyncio
async def test_update_todos_custom_message(make_tool_ctx, user_ctx):
    result = await tool("updateTodos").execute(
        make_tool_ctx(user_ctx), {"todos": [{"id": "1", "title": "t"}], "message": "Here is my plan"}
    )
    assert result["message"] == "Here is my plan"


@pytest.mark.asyncio
async def test_update_todos_requires_titles(make_tool_ctx, user_ctx):
    with pytest.raises(ToolValidationError):
        await tool("updateTodos").execute(make_tool_ctx(user_ctx), {"todos": [{"id": "1"}]})


@pytest.mark.asyncio
async def test_ask_for_plan_approval(make_tool_ctx, user_ctx):
    result = await tool("askForPlanApproval").execute(
        make_tool_ctx(user_ctx), {"message": "Approve these 3 steps?", "urgent": True, "estimatedDuration": "5 minutes"}
    )
    assert result == {
        "success": True,
        "requiresApproval": True,
        "message": "Approve these 3 steps?",
        "urgent": True,
        "approvalType": "PLAN_APPROVAL",
        "estimatedDuration": "5 minutes",
    }


@pytest.mark.asyncio
async def test_confirm_plan_execution(make_tool_ctx, user_ctx):
    ctx = make_tool_ctx(user_ctx)
    approved = await tool("confirmPlanExecution").execute(
        ctx, {"approved": True, "planId": "plan_1", "modifications": ["skip email"]}
    )
    assert approved["message"] == "Plan approved, proceeding with execution"
    assert approved["modifications"] == ["skip email"]

    declined = await tool("confirmPlanExecution").execute(ctx, {"approved": False})
    assert declined == {"success": False, "message": "Plan execution cancelled by user", "cancelled": True}


@pytest.mark.asyncio
async def test_cancel_plan(make_tool_ctx, user_ctx):
    ctx = make_tool_ctx(user_ctx)
    result = await tool("cancelPlan").execute(ctx, {"reason": "Data is stale", "alternative": "Refresh first"})
    assert result["cancelled"] is True
    assert result["message"] == "Plan cancelled: Data is stale. Alternative: Refresh first"

    bare = await tool("cancelPlan").execute(ctx, {"reason": "Not needed"})
    assert "alternative" not in bare
    assert bare["message"] == "Plan cancelled: Not needed"
