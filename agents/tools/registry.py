"""
Default tool registry: every competitor, pricing, email and plan tool.
"""

from agents.tools.base import ToolRegistry
from agents.tools.competitor_tools import COMPETITOR_TOOLS
from agents.tools.email_tools import EMAIL_TOOLS
from agents.tools.plan_tools import PLAN_TOOLS
from agents.tools.pricing_tools import PRICING_TOOLS


def build_default_registry() -> ToolRegistry:
    return ToolRegistry([*COMPETITOR_TOOLS, *PRICING_TOOLS, *EMAIL_TOOLS, *PLAN_TOOLS])


DEFAULT_REGISTRY = build_default_registry()
