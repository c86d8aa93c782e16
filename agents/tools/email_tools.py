"""
Email tools. All three are WRITE tools: they assemble the message and a
preview, and the email is only sent once the proposal is approved.
"""

import logging
from datetime import timedelta
from html import escape
from typing import Any

from agents.executors import render_preview
from agents.tools.base import Tool, ToolContext, build_proposal_result
from models.enums import AlertSeverity, EmailPriority, ProposalAction, ReportType, ToolClassification
from models.proposal import Proposal
from models.tool_schemas import (
    ProposalOutput,
    SendAlertEmailInput,
    SendCompetitorEmailInput,
    SendPricingReportInput,
)
from utils.permissions import require_email_sending

logger = logging.getLogger(__name__)

REPORT_WINDOW_DAYS = {
    ReportType.WEEKLY: 7,
    ReportType.MONTHLY: 30,
    ReportType.QUARTERLY: 90,
    ReportType.CUSTOM: 30,
}

SEVERITY_PREFIX = {
    AlertSeverity.LOW: "[INFO]",
    AlertSeverity.MEDIUM: "[NOTICE]",
    AlertSeverity.HIGH: "[WARNING]",
    AlertSeverity.CRITICAL: "[URGENT]",
}

SEVERITY_COLOR = {
    AlertSeverity.CRITICAL: "#d32f2f",
    AlertSeverity.HIGH: "#f57c00",
}


def _email_preview(ctx: ToolContext, data: dict[str, Any], **extra: Any) -> dict[str, Any]:
    return {
        "to": data["to"],
        "cc": data.get("cc", []),
        "bcc": data.get("bcc", []),
        "subject": data["subject"],
        "body": data["body"],
        "attachments": data.get("attachments", []),
        "priority": data["priority"],
        "from": ctx.auth.user_id,
        "timestamp": ctx.now().isoformat(),
        **extra,
    }


def _proposal(action: ProposalAction, data: dict[str, Any]) -> Proposal:
    return Proposal(action=action, data=data, preview=render_preview(action, data))


def _html_list(items: list[str]) -> str:
    return "<ul>" + "".join(f"<li>{item}</li>" for item in items) + "</ul>"


async def send_competitor_email(ctx: ToolContext, params: SendCompetitorEmailInput) -> dict[str, Any]:
    require_email_sending(ctx.auth.role)
    competitor_data = []
    if params.competitor_ids:
        competitor_data = [c.summary() for c in await ctx.store.get_competitors(params.competitor_ids)]

    data = {**params.as_payload(), "userId": ctx.auth.user_id}
    proposal = _proposal(ProposalAction.SEND_EMAIL, data)
    return build_proposal_result(
        proposal,
        f"I need approval to send an email to {params.to} about competitor analysis",
        emailPreview=_email_preview(
            ctx, data, competitorData=competitor_data, includeCharts=params.include_charts
        ),
    )


def build_report_summary(report_type: ReportType, days: int, comparisons) -> dict[str, Any]:
    total = len(comparisons)
    return {
        "period": report_type.value,
        "days": days,
        "totalComparisons": total,
        "uniqueProducts": len({c.product_id for c in comparisons}),
        "uniqueCompetitors": len({c.competitor_id for c in comparisons}),
        "avgPriceDiff": round(sum(c.price_diff for c in comparisons) / total, 2) if total else 0.0,
        "avgPriceDiffPct": round(sum(c.price_diff_pct for c in comparisons) / total, 2) if total else 0.0,
        "winningCount": sum(1 for c in comparisons if c.is_winning),
        "losingCount": sum(1 for c in comparisons if not c.is_winning),
    }


def render_report_body(params: SendPricingReportInput, summary: dict[str, Any], report_date: str) -> str:
    sections = [
        f"<h2>{params.report_type.value} Pricing Analysis Report</h2>",
        f"<p><strong>Report Period:</strong> {summary['days']} days ending {report_date}</p>",
        "<h3>Summary</h3>",
        _html_list(
            [
                f"Total price comparisons: {summary['totalComparisons']}",
                f"Unique products analyzed: {summary['uniqueProducts']}",
                f"Competitors included: {summary['uniqueCompetitors']}",
                f"Average price difference: {summary['avgPriceDiff']:.2f} ({summary['avgPriceDiffPct']:.2f}%)",
                f"Winning positions: {summary['winningCount']}",
                f"Losing positions: {summary['losingCount']}",
            ]
        ),
    ]
    if params.custom_message:
        sections.append(f"<p><strong>Note:</strong> {escape(params.custom_message)}</p>")
    if params.include_recommendations:
        sections.append(
            "<h3>Recommendations</h3>"
            "<p>Based on the analysis, consider reviewing pricing for products with significant price gaps.</p>"
        )
    sections.append("<p>This report was generated automatically by the pricing analysis system.</p>")
    return "\n".join(sections)


async def send_pricing_report(ctx: ToolContext, params: SendPricingReportInput) -> dict[str, Any]:
    require_email_sending(ctx.auth.role)
    now = ctx.now()
    days = REPORT_WINDOW_DAYS[params.report_type]
    comparisons = await ctx.store.list_price_comparisons(
        since=now - timedelta(days=days),
        product_ids=params.product_ids,
        competitor_ids=params.competitor_ids,
    )
    summary = build_report_summary(params.report_type, days, comparisons)
    report_date = now.strftime("%Y-%m-%d")

    data = {
        **params.as_payload(),
        "userId": ctx.auth.user_id,
        "reportSummary": summary,
        "subject": f"{params.report_type.value} Pricing Report - {report_date}",
        "body": render_report_body(params, summary, report_date),
        "priority": EmailPriority.NORMAL.value,
    }
    proposal = _proposal(ProposalAction.SEND_PRICING_REPORT, data)
    return build_proposal_result(
        proposal,
        f"I need approval to send a {params.report_type.value} pricing report to {params.to}",
        emailPreview=_email_preview(
            ctx, data, reportSummary=summary, includeCharts=params.include_charts
        ),
    )


def render_alert_body(params: SendAlertEmailInput, products, competitors, timestamp: str) -> str:
    color = SEVERITY_COLOR.get(params.severity, "#1976d2")
    sections = [
        '<div style="font-family: Arial, sans-serif; max-width: 600px;">',
        f'<h2 style="color: {color};">{escape(params.title)}</h2>',
        f"<p><strong>Alert Type:</strong> {params.alert_type.value.replace('_', ' ')}</p>",
        f"<p><strong>Severity:</strong> {params.severity.value.upper()}</p>",
        f"<p><strong>Time:</strong> {timestamp}</p>",
        "<h3>Description</h3>",
        f"<p>{escape(params.description)}</p>",
    ]
    if products:
        sections.append(f"<h3>Affected Products ({len(products)})</h3>")
        sections.append(_html_list([f"{escape(p.title)} ({escape(p.sku or '')})" for p in products]))
    if competitors:
        sections.append(f"<h3>Related Competitors ({len(competitors)})</h3>")
        sections.append(_html_list([f"{escape(c.name)} ({escape(c.domain)})" for c in competitors]))
    if params.action_required:
        sections.append(
            '<div style="background-color: #ffebee; padding: 15px; border-left: 4px solid #f44336;">'
            "<h3>Action Required</h3><p>This alert requires immediate attention and action.</p></div>"
        )
    if params.suggested_actions:
        sections.append("<h3>Suggested Actions</h3>")
        sections.append(_html_list([escape(a) for a in params.suggested_actions]))
    sections.append("<p>This alert was generated automatically by the pricing monitoring system.</p>")
    sections.append("</div>")
    return "\n".join(sections)


async def send_alert_email(ctx: ToolContext, params: SendAlertEmailInput) -> dict[str, Any]:
    require_email_sending(ctx.auth.role)
    products = await ctx.store.get_products(params.affected_products) if params.affected_products else []
    competitors = (
        await ctx.store.get_competitors(params.affected_competitors) if params.affected_competitors else []
    )

    priority = EmailPriority.HIGH if params.severity == AlertSeverity.CRITICAL else EmailPriority.NORMAL
    data = {
        **params.as_payload(),
        "userId": ctx.auth.user_id,
        "subject": f"{SEVERITY_PREFIX[params.severity]} {params.title}",
        "body": render_alert_body(params, products, competitors, ctx.now().strftime("%Y-%m-%d %H:%M:%S")),
        "priority": priority.value,
    }
    proposal = _proposal(ProposalAction.SEND_ALERT_EMAIL, data)
    return build_proposal_result(
        proposal,
        f"I need approval to send a {params.severity.value} alert email to {params.to}",
        emailPreview=_email_preview(
            ctx,
            data,
            alertType=params.alert_type.value,
            severity=params.severity.value,
            productData=[
                {"productId": p.product_id, "title": p.title, "sku": p.sku, "currentPrice": p.current_price}
                for p in products
            ],
            competitorData=[c.summary() for c in competitors],
            actionRequired=params.action_required,
        ),
    )


EMAIL_TOOLS = [
    Tool(
        id="sendCompetitorEmail",
        description="Send an email about competitor analysis or pricing insights. This requires user approval.",
        input_schema=SendCompetitorEmailInput,
        output_schema=ProposalOutput,
        classification=ToolClassification.WRITE,
        handler=send_competitor_email,
        permission="require_email_sending",
    ),
    Tool(
        id="sendPricingReport",
        description="Send a pricing analysis report to stakeholders. This requires user approval.",
        input_schema=SendPricingReportInput,
        output_schema=ProposalOutput,
        classification=ToolClassification.WRITE,
        handler=send_pricing_report,
        permission="require_email_sending",
    ),
    Tool(
        id="sendAlertEmail",
        description="Send an alert email about significant pricing changes or market events. This requires user approval.",
        input_schema=SendAlertEmailInput,
        output_schema=ProposalOutput,
        classification=ToolClassification.WRITE,
        handler=send_alert_email,
        permission="require_email_sending",
    ),
]
