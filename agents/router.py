"""
Agent selection for incoming user messages.

The keyword router checks rule groups in a fixed order and returns the first
agent whose keywords appear in the lowercased message. Order matters: a
message like "update the price" goes to the pricing strategist because the
pricing rule is checked before the mutation rule.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from agents.tools.base import ToolRegistry
from agents.tools.registry import DEFAULT_REGISTRY
from models.enums import AgentId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoutingRule:
    agent: AgentId
    keywords: tuple[str, ...]

    def matches(self, message: str) -> bool:
        return any(keyword in message for keyword in self.keywords)


DEFAULT_RULES = (
    RoutingRule(
        AgentId.PRICING_STRATEGIST,
        ("price", "pricing", "cost", "strategy", "recommend", "suggest", "optimize", "margin", "revenue"),
    ),
    RoutingRule(
        AgentId.DATA_MANAGER,
        ("create", "add", "update", "edit", "delete", "remove", "send", "email", "modify", "change"),
    ),
    RoutingRule(
        AgentId.COMPETITOR_ANALYST,
        ("competitor", "analysis", "compare", "market", "trend", "insight", "report", "show", "list", "find"),
    ),
)


class IntentRouter(ABC):
    """Chooses which agent should handle a user message."""

    @abstractmethod
    def select_agent(self, message: str, context: dict[str, Any] | None = None) -> str:
        pass


class KeywordAgentRouter(IntentRouter):
    def __init__(
        self,
        rules: tuple[RoutingRule, ...] = DEFAULT_RULES,
        default: AgentId = AgentId.COMPETITOR_ANALYST,
    ):
        self.rules = rules
        self.default = default

    def select_agent(self, message: str, context: dict[str, Any] | None = None) -> str:
        # context is accepted for routers that use conversation state; keywords ignore it
        text = (message or "").lower()
        for rule in self.rules:
            if rule.matches(text):
                logger.debug(f"Routing to {rule.agent.value}")
                return rule.agent.value
        logger.debug(f"No routing rule matched; defaulting to {self.default.value}")
        return self.default.value


@dataclass(frozen=True)
class AgentProfile:
    id: AgentId
    description: str
    tool_ids: tuple[str, ...]


AGENT_PROFILES = (
    AgentProfile(
        AgentId.COMPETITOR_ANALYST,
        "Analyzes competitor data and provides market insights (read-only)",
        ("getCompetitorList", "getCompetitorDetails", "analyzePriceGaps", "getPricingTrends"),
    ),
    AgentProfile(
        AgentId.DATA_MANAGER,
        "Manages data operations with human approval (create, update, delete)",
        (
            "updateTodos",
            "askForPlanApproval",
            "confirmPlanExecution",
            "cancelPlan",
            "createCompetitor",
            "updateCompetitor",
            "deleteCompetitor",
            "addCompetitorNote",
            "suggestPriceChanges",
            "updateProductPrices",
            "sendCompetitorEmail",
            "sendPricingReport",
            "sendAlertEmail",
        ),
    ),
    AgentProfile(
        AgentId.PRICING_STRATEGIST,
        "Provides pricing analysis and strategic recommendations",
        (
            "updateTodos",
            "askForPlanApproval",
            "analyzePriceGaps",
            "getPricingTrends",
            "suggestPriceChanges",
            "updateProductPrices",
            "sendPricingReport",
            "sendAlertEmail",
        ),
    ),
)


class AgentCatalog:
    """Agents known to the runtime and the tools each one may call."""

    def __init__(self, registry: ToolRegistry = DEFAULT_REGISTRY, profiles: tuple[AgentProfile, ...] = AGENT_PROFILES):
        for profile in profiles:
            unknown = [t for t in profile.tool_ids if t not in registry]
            if unknown:
                raise ValueError(f"Agent {profile.id.value} references unknown tools: {', '.join(unknown)}")
        self.registry = registry
        self._profiles = {p.id.value: p for p in profiles}

    def get_agent(self, name: str) -> AgentProfile:
        try:
            return self._profiles[name]
        except KeyError:
            raise KeyError(f"Agent '{name}' not found. Available agents: {', '.join(self._profiles)}") from None

    def list_agents(self) -> list[dict[str, str]]:
        return [{"name": name, "description": p.description} for name, p in self._profiles.items()]

    def tools_for(self, name: str) -> list:
        return [self.registry.get(tool_id) for tool_id in self.get_agent(name).tool_ids]

    def health_check(self) -> dict[str, Any]:
        agents = self.list_agents()
        return {
            "status": "healthy",
            "agents": len(agents),
            "agentNames": [a["name"] for a in agents],
            "timestamp": datetime.now().isoformat(),
        }


DEFAULT_ROUTER = KeywordAgentRouter()


def select_agent(message: str, context: dict[str, Any] | None = None) -> str:
    return DEFAULT_ROUTER.select_agent(message, context)
