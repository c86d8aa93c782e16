"""
Mutation executors: the only code that writes to the store or sends email.

Each executor receives the exact `data` captured in an approved proposal,
re-checks the acting role, and applies the mutation. `render_preview` turns
the same `data` back into the one-line preview shown at proposal time.
"""

import logging
from typing import Any, Awaitable, Callable

from pydantic.alias_generators import to_snake

from connectors.dummy_db import DummyDB
from connectors.email_transport import DummyEmailTransport
from models.auth import AuthContext
from models.enums import ProposalAction
from models.errors import MutationExecutionError, UnknownActionError
from utils.permissions import (
    require_competitor_modification,
    require_email_sending,
    require_product_modification,
)

logger = logging.getLogger(__name__)

Executor = Callable[[dict[str, Any], AuthContext], Awaitable[dict[str, Any]]]

NOTE_PREVIEW_CHARS = 100

COMPETITOR_CREATE_FIELDS = (
    "name",
    "domain",
    "website",
    "description",
    "categories",
    "marketPosition",
    "marketShare",
    "dataSource",
)
COMPETITOR_UPDATE_FIELDS = (
    "name",
    "domain",
    "website",
    "description",
    "status",
    "categories",
    "marketPosition",
    "marketShare",
    "isMonitoring",
)


def _note_excerpt(note: str, limit: int) -> str:
    return note[:limit] + ("..." if len(note) > limit else "")


def render_preview(action: ProposalAction | str, data: dict[str, Any]) -> str:
    """One-line, human-readable description of a pending mutation."""
    action = ProposalAction(action)
    if action == ProposalAction.CREATE_COMPETITOR:
        return f"Create competitor: {data['name']} ({data['domain']})"
    if action == ProposalAction.UPDATE_COMPETITOR:
        current = data.get("competitorName") or data["competitorId"]
        return f"Update competitor: {current} → {data.get('name') or current}"
    if action == ProposalAction.DELETE_COMPETITOR:
        name = data.get("competitorName") or data["competitorId"]
        return f"Delete competitor: {name} ({data.get('competitorDomain', '')})"
    if action == ProposalAction.ADD_COMPETITOR_NOTE:
        name = data.get("competitorName") or data["competitorId"]
        excerpt = _note_excerpt(data["note"], NOTE_PREVIEW_CHARS)
        return f"Add note to {name}: {excerpt}"
    if action == ProposalAction.UPDATE_PRODUCT_PRICES:
        count = len(data.get("updates", []))
        batch = f" (batch {data['batchId']})" if data.get("batchId") else ""
        return f"Update prices for {count} products{batch}"
    if action == ProposalAction.SEND_EMAIL:
        return f"Send email to {data['to']}: {data['subject']}"
    if action == ProposalAction.SEND_PRICING_REPORT:
        return f"Send {data['reportType']} pricing report to {data['to']}"
    if action == ProposalAction.SEND_ALERT_EMAIL:
        return f"Send {data['severity']} alert email to {data['to']}: {data['subject']}"
    plan_id = data.get("planId")
    return f"Execute approved plan {plan_id}" if plan_id else "Execute approved plan"


def _pick(data: dict[str, Any], fields: tuple[str, ...]) -> dict[str, Any]:
    """Provided camelCase fields of `data`, keyed by their model attribute name."""
    return {to_snake(key): data[key] for key in fields if key in data}


class ExecutorRegistry:
    """
    Maps each ProposalAction to the coroutine that performs it against the
    store or the email transport.
    """

    def __init__(self, store: DummyDB, transport: DummyEmailTransport):
        self.store = store
        self.transport = transport
        self._executors: dict[ProposalAction, Executor] = {
            ProposalAction.CREATE_COMPETITOR: self._create_competitor,
            ProposalAction.UPDATE_COMPETITOR: self._update_competitor,
            ProposalAction.DELETE_COMPETITOR: self._delete_competitor,
            ProposalAction.ADD_COMPETITOR_NOTE: self._add_competitor_note,
            ProposalAction.UPDATE_PRODUCT_PRICES: self._update_product_prices,
            ProposalAction.SEND_EMAIL: self._send_email,
            ProposalAction.SEND_PRICING_REPORT: self._send_email,
            ProposalAction.SEND_ALERT_EMAIL: self._send_email,
            ProposalAction.CONFIRM_PLAN_EXECUTION: self._confirm_plan_execution,
        }

    def supports(self, action: ProposalAction | str) -> bool:
        try:
            return ProposalAction(action) in self._executors
        except ValueError:
            return False

    async def execute(self, action: ProposalAction | str, data: dict[str, Any], ctx: AuthContext) -> dict[str, Any]:
        """
        Run the executor for `action`. Permission errors propagate unchanged;
        UnknownActionError is raised for unregistered actions.
        """
        if not self.supports(action):
            raise UnknownActionError(f"Unknown action: {action}")
        action = ProposalAction(action)
        logger.info(f"Executing {action.value} for user {ctx.user_id} ({ctx.role.value})")
        result = await self._executors[action](data, ctx)
        logger.info(f"Action {action.value} completed successfully")
        return result

    # --- Competitors --- #

    async def _create_competitor(self, data: dict[str, Any], ctx: AuthContext) -> dict[str, Any]:
        require_competitor_modification(ctx.role)
        competitor = await self.store.create_competitor(
            _pick(data, COMPETITOR_CREATE_FIELDS), created_by=ctx.user_id
        )
        return {"success": True, "competitor": competitor.summary()}

    async def _update_competitor(self, data: dict[str, Any], ctx: AuthContext) -> dict[str, Any]:
        competitor_id = data["competitorId"]
        require_competitor_modification(ctx.role, competitor_id)
        competitor = await self.store.update_competitor(
            competitor_id, _pick(data, COMPETITOR_UPDATE_FIELDS)
        )
        if competitor is None:
            raise MutationExecutionError(
                f"Competitor not found: {competitor_id}", ProposalAction.UPDATE_COMPETITOR.value, data
            )
        return {"success": True, "competitor": competitor.summary()}

    async def _delete_competitor(self, data: dict[str, Any], ctx: AuthContext) -> dict[str, Any]:
        competitor_id = data["competitorId"]
        require_competitor_modification(ctx.role, competitor_id)
        competitor = await self.store.delete_competitor(
            competitor_id, delete_pricing_data=data.get("deletePricingData", True)
        )
        if competitor is None:
            raise MutationExecutionError(
                f"Competitor not found: {competitor_id}", ProposalAction.DELETE_COMPETITOR.value, data
            )
        return {"success": True, "competitor": competitor.summary(), "reason": data.get("reason")}

    async def _add_competitor_note(self, data: dict[str, Any], ctx: AuthContext) -> dict[str, Any]:
        competitor_id = data["competitorId"]
        require_competitor_modification(ctx.role, competitor_id)
        note = await self.store.create_note(
            competitor_id, data["note"], data.get("category"), created_by=ctx.user_id
        )
        if note is None:
            raise MutationExecutionError(
                f"Competitor not found: {competitor_id}", ProposalAction.ADD_COMPETITOR_NOTE.value, data
            )
        return {"success": True, "note": note.as_result()}

    # --- Products --- #

    async def _update_product_prices(self, data: dict[str, Any], ctx: AuthContext) -> dict[str, Any]:
        require_product_modification(ctx.role)
        updates = data.get("updates", [])
        # Check every product first so a batch is applied entirely or not at all
        known = {p.product_id for p in await self.store.get_products([u["productId"] for u in updates])}
        missing = [u["productId"] for u in updates if u["productId"] not in known]
        if missing:
            raise MutationExecutionError(
                f"Products not found: {', '.join(missing)}", ProposalAction.UPDATE_PRODUCT_PRICES.value, data
            )

        products = []
        for update in updates:
            product = await self.store.update_product_price(
                update["productId"], update["newPrice"], update.get("updateOriginalPrice", False)
            )
            products.append(
                {
                    "productId": product.product_id,
                    "originalPrice": product.original_price,
                    "discountPrice": product.discount_price,
                }
            )
        return {"success": True, "products": products, "batchId": data.get("batchId")}

    # --- Email --- #

    async def _send_email(self, data: dict[str, Any], ctx: AuthContext) -> dict[str, Any]:
        require_email_sending(ctx.role)
        payload = {
            "to": data["to"],
            "cc": data.get("cc") or [],
            "bcc": data.get("bcc") or [],
            "subject": data["subject"],
            "body": data["body"],
            "priority": data.get("priority", "normal"),
            "attachments": data.get("attachments") or [],
        }
        try:
            receipt = await self.transport.send(payload)
        except ValueError as e:
            raise MutationExecutionError(f"Failed to send email: {e}", data=data) from e
        return {"success": True, "messageId": receipt["messageId"], "message": "Email sent successfully"}

    # --- Plans --- #

    async def _confirm_plan_execution(self, data: dict[str, Any], ctx: AuthContext) -> dict[str, Any]:
        return {
            "success": True,
            "message": "Plan execution confirmed",
            "planId": data.get("planId"),
            "modifications": data.get("modifications", []),
        }
