"""
Input and output schemas for every agent tool.

Field names are the stable contract the agent runtime binds to, so they are
exposed in camelCase through aliases; Python code may use either spelling.
"""

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, FiniteFloat, HttpUrl, StringConstraints
from pydantic.alias_generators import to_camel

from .enums import (
    AlertSeverity,
    AlertType,
    CompetitorStatus,
    EmailPriority,
    PricingStrategy,
    ReportType,
    TrendGroupBy,
)
from .proposal import Todo

EmailAddress = Annotated[
    str, StringConstraints(strip_whitespace=True, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
]
NonEmptyStr = Annotated[str, StringConstraints(min_length=1)]


class ToolInput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def as_payload(self) -> dict[str, Any]:
        """JSON-ready camelCase dict, dropping parameters that were not given."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ToolOutput(BaseModel):
    # Tools may attach context (currentData, summary, ...) beyond the declared fields
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    success: bool
    message: str | None = None
    error: str | None = None


# --- Competitor tools --- #


class GetCompetitorListInput(ToolInput):
    status: CompetitorStatus | None = Field(None, description="Filter by competitor status")
    limit: int = Field(50, ge=1, description="Maximum number of competitors to return")
    search: str | None = Field(None, description="Search term for competitor name or domain")
    include_inactive: bool = Field(False, description="Include inactive competitors")


class GetCompetitorListOutput(ToolOutput):
    competitors: list[dict[str, Any]]
    count: int
    message: str


class GetCompetitorDetailsInput(ToolInput):
    competitor_id: str = Field(..., description="ID of the competitor to get details for")
    include_pricing: bool = Field(True, description="Include recent pricing comparisons")
    pricing_days: int = Field(30, ge=1, description="Number of days of pricing data to include")


class GetCompetitorDetailsOutput(ToolOutput):
    competitor: dict[str, Any] | None = None
    competitor_id: str | None = None


class CreateCompetitorInput(ToolInput):
    name: NonEmptyStr = Field(..., description="Competitor name")
    domain: NonEmptyStr = Field(..., description="Competitor domain (e.g., 'nike.com')")
    website: HttpUrl | None = Field(None, description="Full website URL")
    description: str | None = Field(None, description="Description of the competitor")
    categories: list[str] = Field(default_factory=list, description="Product categories they compete in")
    market_position: FiniteFloat | None = Field(None, description="Estimated market position (1-10)")
    market_share: FiniteFloat | None = Field(None, description="Estimated market share percentage")
    data_source: str | None = Field(None, description="Source of competitor data")


class UpdateCompetitorInput(ToolInput):
    competitor_id: str = Field(..., description="ID of the competitor to update")
    name: str | None = Field(None, description="New competitor name")
    domain: str | None = Field(None, description="New domain")
    website: HttpUrl | None = Field(None, description="New website URL")
    description: str | None = Field(None, description="New description")
    status: CompetitorStatus | None = Field(None, description="New status")
    categories: list[str] | None = Field(None, description="Updated categories")
    market_position: FiniteFloat | None = Field(None, description="Updated market position")
    market_share: FiniteFloat | None = Field(None, description="Updated market share")
    is_monitoring: bool | None = Field(None, description="Whether to monitor this competitor")


class DeleteCompetitorInput(ToolInput):
    competitor_id: str = Field(..., description="ID of the competitor to delete")
    reason: str = Field(..., description="Reason for deletion")
    delete_pricing_data: bool = Field(True, description="Whether to delete associated pricing data")


class AddCompetitorNoteInput(ToolInput):
    competitor_id: str = Field(..., description="ID of the competitor")
    note: NonEmptyStr = Field(..., description="Note content")
    category: str | None = Field(None, description="Note category (e.g., 'strategy', 'pricing', 'general')")
    is_sensitive: bool = Field(False, description="Whether this note contains sensitive information")


class ProposalOutput(ToolOutput):
    """Result of a WRITE tool: a proposal, a direct result, or a not-found payload."""

    requires_approval: bool | None = None
    action: str | None = None
    data: Any = None
    preview: str | None = None
    warning: str | None = None


# --- Pricing tools --- #


class AnalyzePriceGapsInput(ToolInput):
    product_ids: list[str] | None = Field(None, description="Specific product IDs to analyze (optional)")
    competitor_ids: list[str] | None = Field(None, description="Specific competitor IDs to compare against (optional)")
    category: str | None = Field(None, description="Product category to analyze")
    min_price_diff: FiniteFloat | None = Field(
        None, ge=0, description="Minimum price difference to consider significant (default 10)"
    )
    days: int | None = Field(None, ge=1, description="Number of days of pricing data to analyze (default 30)")


class AnalyzePriceGapsOutput(ToolOutput):
    analysis: dict[str, Any]
    message: str


class GetPricingTrendsInput(ToolInput):
    product_ids: list[str] | None = Field(None, description="Product IDs to analyze")
    competitor_ids: list[str] | None = Field(None, description="Competitor IDs to include")
    days: int | None = Field(None, ge=1, description="Number of days to analyze (default 90)")
    group_by: TrendGroupBy | None = Field(None, description="Group data by time period (default week)")


class GetPricingTrendsOutput(ToolOutput):
    trends: list[dict[str, Any]]
    period: str
    total_periods: int
    message: str


class SuggestPriceChangesInput(ToolInput):
    product_ids: list[str] = Field(..., min_length=1, description="Product IDs to suggest changes for")
    strategy: PricingStrategy = Field(..., description="Pricing strategy to apply")
    max_change_percent: FiniteFloat | None = Field(
        None, gt=0, description="Maximum percentage change allowed (default 20)"
    )
    reason: str | None = Field(None, description="Reason for the price changes")


class SuggestPriceChangesOutput(ToolOutput):
    suggestions: list[dict[str, Any]] = Field(default_factory=list)
    updates: list[dict[str, Any]] = Field(default_factory=list)
    strategy: str | None = None


class PriceUpdate(ToolInput):
    product_id: str = Field(..., description="Product ID to update")
    new_price: FiniteFloat = Field(..., gt=0, description="New price to set")
    update_original_price: bool = Field(False, description="Whether to update original price or discount price")
    reason: str = Field(..., description="Reason for the price change")


class UpdateProductPricesInput(ToolInput):
    updates: list[PriceUpdate] = Field(..., min_length=1, description="List of price updates to apply")
    batch_id: str | None = Field(None, description="Optional batch ID for tracking")


# --- Email tools --- #


class EmailRecipients(ToolInput):
    to: EmailAddress = Field(..., description="Recipient email address")
    cc: list[EmailAddress] | None = Field(None, description="CC recipients")
    bcc: list[EmailAddress] | None = Field(None, description="BCC recipients")


class SendCompetitorEmailInput(EmailRecipients):
    subject: NonEmptyStr = Field(..., description="Email subject line")
    body: NonEmptyStr = Field(..., description="Email body content (HTML supported)")
    attachments: list[str] | None = Field(None, description="Attachment URLs or file paths")
    priority: EmailPriority = Field(EmailPriority.NORMAL, description="Email priority")
    competitor_ids: list[str] | None = Field(None, description="Competitor IDs referenced in the email")
    include_charts: bool = Field(False, description="Whether to include pricing charts")


class SendPricingReportInput(EmailRecipients):
    report_type: ReportType = Field(..., description="Type of pricing report")
    product_ids: list[str] | None = Field(None, description="Specific product IDs to include in report")
    competitor_ids: list[str] | None = Field(None, description="Specific competitor IDs to include")
    include_recommendations: bool = Field(True, description="Whether to include pricing recommendations")
    include_charts: bool = Field(True, description="Whether to include pricing charts")
    custom_message: str | None = Field(None, description="Custom message to include in the email")


class SendAlertEmailInput(EmailRecipients):
    alert_type: AlertType = Field(..., description="Type of alert")
    severity: AlertSeverity = Field(..., description="Alert severity level")
    title: NonEmptyStr = Field(..., description="Alert title")
    description: NonEmptyStr = Field(..., description="Detailed alert description")
    affected_products: list[str] | None = Field(None, description="Product IDs affected by this alert")
    affected_competitors: list[str] | None = Field(None, description="Competitor IDs related to this alert")
    action_required: bool = Field(False, description="Whether immediate action is required")
    suggested_actions: list[str] | None = Field(None, description="Suggested actions to take")


# --- Plan approval tools --- #


class UpdateTodosInput(ToolInput):
    todos: list[Todo]
    message: str | None = Field(None, description="Optional message explaining the plan to the user")


class UpdateTodosOutput(ToolOutput):
    todos: list[Todo]
    message: str
    requires_approval: bool


class AskForPlanApprovalInput(ToolInput):
    message: str = Field(..., description="Message explaining what you're asking approval for")
    urgent: bool = Field(False, description="Whether this approval is urgent")
    estimated_duration: str | None = Field(None, description="Estimated time to complete all tasks")


class AskForPlanApprovalOutput(ToolOutput):
    requires_approval: bool
    message: str
    urgent: bool
    estimated_duration: str | None = None
    approval_type: str


class ConfirmPlanExecutionInput(ToolInput):
    plan_id: str | None = Field(None, description="Optional plan identifier")
    approved: bool = Field(..., description="Whether the plan was approved")
    modifications: list[str] = Field(default_factory=list, description="Any modifications the user made to the plan")


class ConfirmPlanExecutionOutput(ToolOutput):
    message: str
    cancelled: bool | None = None
    plan_id: str | None = None
    modifications: list[str] | None = None
    approved: bool | None = None


class CancelPlanInput(ToolInput):
    reason: str = Field(..., description="Reason for cancelling the plan")
    alternative: str | None = Field(None, description="Alternative approach to suggest")


class CancelPlanOutput(ToolOutput):
    cancelled: bool
    reason: str
    alternative: str | None = None
    message: str
