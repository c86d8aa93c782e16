"""
Competitor tools: listing and details (READ) plus create, update, delete and
note proposals (WRITE).
"""

import logging
from datetime import timedelta
from typing import Any

from agents.executors import render_preview
from agents.tools.base import Tool, ToolContext, build_proposal_result, not_found
from config.config import AppConfig
from models.enums import ProposalAction, ToolClassification
from models.proposal import Proposal
from models.tool_schemas import (
    AddCompetitorNoteInput,
    CreateCompetitorInput,
    DeleteCompetitorInput,
    GetCompetitorDetailsInput,
    GetCompetitorDetailsOutput,
    GetCompetitorListInput,
    GetCompetitorListOutput,
    ProposalOutput,
    UpdateCompetitorInput,
)
from models.workflow import CompletedState
from utils.permissions import require_competitor_modification

logger = logging.getLogger(__name__)

DETAIL_NOTES_LIMIT = 10
DETAIL_COMPARISONS_LIMIT = 100
DETAIL_HISTORY_LIMIT = 30


def _proposal(action: ProposalAction, data: dict[str, Any], warning: str | None = None) -> Proposal:
    return Proposal(action=action, data=data, preview=render_preview(action, data), warning=warning)


# --- READ --- #


async def get_competitor_list(ctx: ToolContext, params: GetCompetitorListInput) -> dict[str, Any]:
    competitors = await ctx.store.list_competitors(
        status=params.status,
        limit=params.limit,
        search=params.search,
        include_inactive=params.include_inactive,
    )
    return {
        "success": True,
        "competitors": [c.summary() for c in competitors],
        "count": len(competitors),
        "message": f"Found {len(competitors)} competitors",
    }


async def get_competitor_details(ctx: ToolContext, params: GetCompetitorDetailsInput) -> dict[str, Any]:
    competitor = await ctx.store.get_competitor(params.competitor_id)
    if competitor is None:
        return not_found("Competitor", params.competitor_id)

    details = competitor.summary()
    details["categories"] = competitor.categories
    details["dataSource"] = competitor.data_source
    details["notes"] = [n.as_result() for n in await ctx.store.get_notes(competitor.id, DETAIL_NOTES_LIMIT)]

    if params.include_pricing:
        since = ctx.now() - timedelta(days=params.pricing_days)
        comparisons = await ctx.store.list_price_comparisons(since=since, competitor_ids=[competitor.id])
        details["priceComparisons"] = [c.to_dict() for c in comparisons[:DETAIL_COMPARISONS_LIMIT]]

    history = await ctx.store.list_price_history(competitor_ids=[competitor.id])
    details["priceHistory"] = [
        {
            "recordDate": h.record_date.isoformat(),
            "averagePrice": h.average_price,
            "minPrice": h.min_price,
            "maxPrice": h.max_price,
            "productCount": h.product_count,
        }
        for h in history[-DETAIL_HISTORY_LIMIT:]
    ]
    return {"success": True, "competitor": details, "message": f"Retrieved details for {competitor.name}"}


# --- WRITE --- #


async def create_competitor(ctx: ToolContext, params: CreateCompetitorInput) -> dict[str, Any]:
    require_competitor_modification(ctx.auth.role)
    proposal = _proposal(ProposalAction.CREATE_COMPETITOR, params.as_payload())
    return build_proposal_result(proposal, f"I need approval to create a new competitor: {params.name}")


async def update_competitor(ctx: ToolContext, params: UpdateCompetitorInput) -> dict[str, Any]:
    require_competitor_modification(ctx.auth.role, params.competitor_id)
    current = await ctx.store.get_competitor(params.competitor_id)
    if current is None:
        return not_found("Competitor", params.competitor_id)

    data = {**params.as_payload(), "competitorName": current.name}
    proposal = _proposal(ProposalAction.UPDATE_COMPETITOR, data)
    return build_proposal_result(
        proposal,
        f"I need approval to update competitor: {current.name}",
        currentData=current.summary(),
    )


async def delete_competitor(ctx: ToolContext, params: DeleteCompetitorInput) -> dict[str, Any]:
    require_competitor_modification(ctx.auth.role, params.competitor_id)
    competitor = await ctx.store.get_competitor(params.competitor_id)
    if competitor is None:
        return not_found("Competitor", params.competitor_id)

    counts = await ctx.store.get_competitor_counts(competitor.id)
    data = {
        **params.as_payload(),
        "competitorName": competitor.name,
        "competitorDomain": competitor.domain,
    }
    warning = (
        f"This will permanently delete {competitor.name} and all associated data "
        f"({competitor.product_count} products, {counts['priceRecords']} price records, "
        f"{counts['notes']} notes)"
    )
    proposal = _proposal(ProposalAction.DELETE_COMPETITOR, data, warning=warning)
    return build_proposal_result(
        proposal,
        f"I need approval to delete competitor: {competitor.name}. This action cannot be undone.",
    )


def note_needs_approval(params: AddCompetitorNoteInput, config: AppConfig) -> bool:
    """Sensitive or long notes need a human decision; short ones do not."""
    return params.is_sensitive or len(params.note) > config.approval.note_length_threshold


async def add_competitor_note(ctx: ToolContext, params: AddCompetitorNoteInput) -> dict[str, Any]:
    require_competitor_modification(ctx.auth.role, params.competitor_id)
    competitor = await ctx.store.get_competitor(params.competitor_id)
    if competitor is None:
        return not_found("Competitor", params.competitor_id)

    data = {**params.as_payload(), "competitorName": competitor.name}
    proposal = _proposal(ProposalAction.ADD_COMPETITOR_NOTE, data)
    if ctx.requires_approval(params):
        return build_proposal_result(proposal, f"I need approval to add a note to {competitor.name}")

    state, _ = await ctx.runner.auto_approve(proposal, ctx.auth)
    if isinstance(state, CompletedState) and state.success:
        return {
            "success": True,
            "requiresApproval": False,
            "note": state.result["note"],
            "message": f"Note added to {competitor.name}",
        }
    error = getattr(state, "error", None) or "Note could not be saved"
    return {"success": False, "requiresApproval": False, "error": error, "message": error}


COMPETITOR_TOOLS = [
    Tool(
        id="getCompetitorList",
        description="Get a list of competitors with optional filtering. Returns competitor data without modifications.",
        input_schema=GetCompetitorListInput,
        output_schema=GetCompetitorListOutput,
        classification=ToolClassification.READ,
        handler=get_competitor_list,
    ),
    Tool(
        id="getCompetitorDetails",
        description="Get detailed information about a specific competitor including recent pricing data.",
        input_schema=GetCompetitorDetailsInput,
        output_schema=GetCompetitorDetailsOutput,
        classification=ToolClassification.READ,
        handler=get_competitor_details,
    ),
    Tool(
        id="createCompetitor",
        description="Create a new competitor. This requires user approval before execution.",
        input_schema=CreateCompetitorInput,
        output_schema=ProposalOutput,
        classification=ToolClassification.WRITE,
        handler=create_competitor,
        permission="require_competitor_modification",
    ),
    Tool(
        id="updateCompetitor",
        description="Update competitor information. This requires user approval before execution.",
        input_schema=UpdateCompetitorInput,
        output_schema=ProposalOutput,
        classification=ToolClassification.WRITE,
        handler=update_competitor,
        permission="require_competitor_modification",
    ),
    Tool(
        id="deleteCompetitor",
        description="Delete a competitor and all associated data. This is a destructive operation that requires user approval.",
        input_schema=DeleteCompetitorInput,
        output_schema=ProposalOutput,
        classification=ToolClassification.WRITE,
        handler=delete_competitor,
        permission="require_competitor_modification",
    ),
    Tool(
        id="addCompetitorNote",
        description="Add a note to a competitor. Sensitive or long notes require user approval.",
        input_schema=AddCompetitorNoteInput,
        output_schema=ProposalOutput,
        classification=ToolClassification.WRITE,
        handler=add_competitor_note,
        permission="require_competitor_modification",
        needs_approval=note_needs_approval,
    ),
]
