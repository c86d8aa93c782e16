import pytest

from agents.router import (
    AGENT_PROFILES,
    AgentCatalog,
    AgentProfile,
    KeywordAgentRouter,
    RoutingRule,
    select_agent,
)
from agents.tools.registry import DEFAULT_REGISTRY
from models.enums import AgentId, ToolClassification


@pytest.mark.parametrize(
    "message, expected",
    [
        ("What price should we set for the Trail Runner?", "pricingStrategist"),
        # pricing keywords win over mutation keywords
        ("Update the price of the yoga mat", "pricingStrategist"),
        ("Suggest a strategy for Q3", "pricingStrategist"),
        ("Delete the Puma competitor", "dataManager"),
        ("Send an email to the team", "dataManager"),
        ("Add a note about Adidas", "dataManager"),
        ("Show me competitor trends", "competitorAnalyst"),
        ("LIST all competitors", "competitorAnalyst"),
        ("Hello there", "competitorAnalyst"),
        ("", "competitorAnalyst"),
    ],
)
def test_select_agent(message, expected):
    assert select_agent(message) == expected


def test_router_ignores_context():
    router = KeywordAgentRouter()
    assert router.select_agent("remove Nike", {"previousAgent": "pricingStrategist"}) == "dataManager"


def test_custom_rules_and_default():
    router = KeywordAgentRouter(
        rules=(RoutingRule(AgentId.DATA_MANAGER, ("archive",)),),
        default=AgentId.PRICING_STRATEGIST,
    )
    assert router.select_agent("archive legacy") == "dataManager"
    assert router.select_agent("anything else") == "pricingStrategist"


@pytest.fixture
def catalog() -> AgentCatalog:
    return AgentCatalog()


def test_analyst_is_read_only(catalog: AgentCatalog):
    tools = catalog.tools_for("competitorAnalyst")
    assert len(tools) == 4
    assert all(t.classification == ToolClassification.READ for t in tools)


def test_agent_tool_counts(catalog: AgentCatalog):
    assert len(catalog.tools_for("dataManager")) == 13
    assert len(catalog.tools_for("pricingStrategist")) == 8


def test_unknown_agent(catalog: AgentCatalog):
    with pytest.raises(KeyError, match="Agent 'salesBot' not found. Available agents: competitorAnalyst"):
        catalog.get_agent("salesBot")


def test_catalog_rejects_unknown_tool_ids():
    profile = AgentProfile(AgentId.DATA_MANAGER, "broken", ("createCompetitor", "launchRockets"))
    with pytest.raises(ValueError, match="launchRockets"):
        AgentCatalog(DEFAULT_REGISTRY, (profile,))


def test_health_check(catalog: AgentCatalog):
    health = catalog.health_check()
    assert health["status"] == "healthy"
    assert health["agents"] == len(AGENT_PROFILES)
    assert health["agentNames"] == ["competitorAnalyst", "dataManager", "pricingStrategist"]
    assert [a["name"] for a in catalog.list_agents()] == health["agentNames"]
