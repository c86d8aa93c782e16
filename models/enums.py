"""
Centralized Enum definitions for the project.
"""

from enum import Enum


class Role(str, Enum):
    """Roles attached to the acting identity"""

    ADMIN = "ADMIN"
    EXPERT = "EXPERT"
    USER = "USER"
    GUEST = "GUEST"


class ToolClassification(str, Enum):
    """Whether a tool only observes data or may eventually mutate it"""

    READ = "READ"  # Executes immediately, no approval step
    WRITE = "WRITE"  # Emits a proposal, never mutates itself


class ProposalAction(str, Enum):
    """Mutation kinds a proposal can carry to its executor"""

    CREATE_COMPETITOR = "CREATE_COMPETITOR"
    UPDATE_COMPETITOR = "UPDATE_COMPETITOR"
    DELETE_COMPETITOR = "DELETE_COMPETITOR"
    ADD_COMPETITOR_NOTE = "ADD_COMPETITOR_NOTE"
    UPDATE_PRODUCT_PRICES = "UPDATE_PRODUCT_PRICES"
    SEND_EMAIL = "SEND_EMAIL"
    SEND_PRICING_REPORT = "SEND_PRICING_REPORT"
    SEND_ALERT_EMAIL = "SEND_ALERT_EMAIL"
    CONFIRM_PLAN_EXECUTION = "CONFIRM_PLAN_EXECUTION"


class PricingStrategy(str, Enum):
    """Formulas for deriving a target price from competitor statistics"""

    COMPETITIVE = "COMPETITIVE"  # average competitor price
    PREMIUM = "PREMIUM"  # 10% above the highest competitor
    BUDGET = "BUDGET"  # 10% below the lowest competitor
    MATCH_LOWEST = "MATCH_LOWEST"  # lowest competitor price


class PriceOpportunity(str, Enum):
    """Gap label; a positive gap (we charge more than average) is UNDERPRICED"""

    UNDERPRICED = "UNDERPRICED"
    OVERPRICED = "OVERPRICED"


class TrendGroupBy(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class CompetitorStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    ARCHIVED = "ARCHIVED"


class WorkflowStatus(str, Enum):
    """States of the plan/approval workflow"""

    DRAFT = "DRAFT"
    PLAN_PROPOSED = "PLAN_PROPOSED"
    AWAITING_APPROVAL = "AWAITING_APPROVAL"
    APPROVED = "APPROVED"
    EXECUTING = "EXECUTING"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class EmailPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class ReportType(str, Enum):
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    CUSTOM = "CUSTOM"


class AlertType(str, Enum):
    PRICE_CHANGE = "PRICE_CHANGE"
    COMPETITOR_ACTIVITY = "COMPETITOR_ACTIVITY"
    MARKET_SHIFT = "MARKET_SHIFT"
    SYSTEM_ALERT = "SYSTEM_ALERT"


class AlertSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AgentId(str, Enum):
    """Tool-bearing agents the router can select"""

    COMPETITOR_ANALYST = "competitorAnalyst"
    DATA_MANAGER = "dataManager"
    PRICING_STRATEGIST = "pricingStrategist"
