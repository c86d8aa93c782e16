"""
Plan approval tools. They let an agent show its intended steps, ask for a
decision and react to it; none of them touches the store.
"""

from typing import Any

from agents.tools.base import Tool, ToolContext
from agents.workflow import cancellation_message
from models.enums import ToolClassification
from models.tool_schemas import (
    AskForPlanApprovalInput,
    AskForPlanApprovalOutput,
    CancelPlanInput,
    CancelPlanOutput,
    ConfirmPlanExecutionInput,
    ConfirmPlanExecutionOutput,
    UpdateTodosInput,
    UpdateTodosOutput,
)

PLAN_APPROVAL_TYPE = "PLAN_APPROVAL"


async def update_todos(ctx: ToolContext, params: UpdateTodosInput) -> dict[str, Any]:
    return {
        "success": True,
        "todos": [t.model_dump(by_alias=True, exclude_none=True) for t in params.todos],
        "message": params.message or f"Created plan with {len(params.todos)} tasks",
        "requiresApproval": True,
    }


async def ask_for_plan_approval(ctx: ToolContext, params: AskForPlanApprovalInput) -> dict[str, Any]:
    result = {
        "success": True,
        "requiresApproval": True,
        "message": params.message,
        "urgent": params.urgent,
        "approvalType": PLAN_APPROVAL_TYPE,
    }
    if params.estimated_duration:
        result["estimatedDuration"] = params.estimated_duration
    return result


async def confirm_plan_execution(ctx: ToolContext, params: ConfirmPlanExecutionInput) -> dict[str, Any]:
    if not params.approved:
        return {"success": False, "message": "Plan execution cancelled by user", "cancelled": True}
    return {
        "success": True,
        "message": "Plan approved, proceeding with execution",
        "planId": params.plan_id,
        "modifications": params.modifications,
        "approved": True,
    }


async def cancel_plan(ctx: ToolContext, params: CancelPlanInput) -> dict[str, Any]:
    result = {
        "success": True,
        "cancelled": True,
        "reason": params.reason,
        "message": cancellation_message(params.reason, params.alternative),
    }
    if params.alternative:
        result["alternative"] = params.alternative
    return result


PLAN_TOOLS = [
    Tool(
        id="updateTodos",
        description="Update the todo list with current execution plan. Use this to show the user what actions you plan to take before executing them.",
        input_schema=UpdateTodosInput,
        output_schema=UpdateTodosOutput,
        classification=ToolClassification.READ,
        handler=update_todos,
    ),
    Tool(
        id="askForPlanApproval",
        description="Ask the user to approve the execution plan. This will show the todo list and wait for user confirmation before proceeding.",
        input_schema=AskForPlanApprovalInput,
        output_schema=AskForPlanApprovalOutput,
        classification=ToolClassification.READ,
        handler=ask_for_plan_approval,
    ),
    Tool(
        id="confirmPlanExecution",
        description="Confirm that the user has approved the plan and execution should proceed.",
        input_schema=ConfirmPlanExecutionInput,
        output_schema=ConfirmPlanExecutionOutput,
        classification=ToolClassification.READ,
        handler=confirm_plan_execution,
    ),
    Tool(
        id="cancelPlan",
        description="Cancel the current execution plan and explain why.",
        input_schema=CancelPlanInput,
        output_schema=CancelPlanOutput,
        classification=ToolClassification.READ,
        handler=cancel_plan,
    ),
]
