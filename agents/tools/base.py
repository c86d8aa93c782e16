"""
Core tool abstractions shared by every agent tool.

A Tool couples an input schema, an output schema and an async handler. READ
tools return data directly. WRITE tools check permission, then return a
proposal describing the mutation; they never write themselves.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Iterable, Iterator

from pydantic import ValidationError

from agents.workflow import WorkflowRunner
from config.config import DEFAULT_CONFIG, AppConfig
from connectors.dummy_db import DummyDB
from models.auth import AuthContext
from models.enums import ToolClassification
from models.errors import ToolValidationError
from models.proposal import Proposal
from models.tool_schemas import ToolInput, ToolOutput

logger = logging.getLogger(__name__)


@dataclass
class ToolContext:
    """Everything a handler may touch: identity, read access and the workflow runner."""

    auth: AuthContext
    store: DummyDB
    runner: WorkflowRunner
    config: AppConfig = field(default_factory=lambda: DEFAULT_CONFIG)
    clock: Callable[[], datetime] = datetime.now
    # Set by Tool.execute to the tool being run
    tool: "Tool | None" = None

    def now(self) -> datetime:
        return self.clock()

    def requires_approval(self, params: ToolInput) -> bool:
        """Ask the running tool whether `params` need a human decision."""
        if self.tool is None:
            return True
        return self.tool.requires_approval(params, self.config)


Handler = Callable[[ToolContext, Any], Awaitable[dict[str, Any]]]


@dataclass(frozen=True)
class Tool:
    id: str
    description: str
    input_schema: type[ToolInput]
    output_schema: type[ToolOutput]
    classification: ToolClassification
    handler: Handler
    # Which require_* guard a WRITE tool calls; informational, used by describe()
    permission: str | None = None
    # WRITE tools whose approval depends on the input (e.g. short notes)
    needs_approval: Callable[[Any, AppConfig], bool] | None = None

    def parse(self, params: dict[str, Any] | None) -> ToolInput:
        try:
            return self.input_schema.model_validate(params or {})
        except ValidationError as e:
            raise ToolValidationError.from_pydantic(self.id, e) from e

    def requires_approval(self, params: ToolInput, config: AppConfig = DEFAULT_CONFIG) -> bool:
        if self.classification == ToolClassification.READ:
            return False
        if self.needs_approval is None:
            return True
        return self.needs_approval(params, config)

    async def execute(self, ctx: ToolContext, params: dict[str, Any] | None) -> dict[str, Any]:
        """
        Validate `params`, run the handler and check its result against the
        output schema. Validation always happens before any permission check.
        """
        parsed = self.parse(params)
        logger.info(f"Invoking tool {self.id} ({self.classification.value}) as {ctx.auth.role.value}")
        result = await self.handler(replace(ctx, tool=self), parsed)
        try:
            self.output_schema.model_validate(result)
        except ValidationError as e:
            logger.error(f"Tool {self.id} returned a result that violates its output schema")
            raise ToolValidationError.from_pydantic(self.id, e) from e
        return result


class ToolRegistry:
    """Read-only catalogue of tools keyed by id. Built once at startup."""

    def __init__(self, tools: Iterable[Tool]):
        by_id: dict[str, Tool] = {}
        for tool in tools:
            if tool.id in by_id:
                raise ValueError(f"Duplicate tool id: {tool.id}")
            by_id[tool.id] = tool
        self._tools = MappingProxyType(by_id)

    @property
    def tools(self) -> MappingProxyType:
        return self._tools

    def get(self, tool_id: str) -> Tool:
        try:
            return self._tools[tool_id]
        except KeyError:
            raise KeyError(f"Unknown tool '{tool_id}'. Available: {', '.join(sorted(self._tools))}") from None

    def __contains__(self, tool_id: object) -> bool:
        return tool_id in self._tools

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def read_tools(self) -> list[Tool]:
        return [t for t in self if t.classification == ToolClassification.READ]

    def write_tools(self) -> list[Tool]:
        return [t for t in self if t.classification == ToolClassification.WRITE]

    def describe(self) -> list[dict[str, Any]]:
        """Tool metadata in the shape an agent runtime binds to."""
        return [
            {
                "id": tool.id,
                "description": tool.description,
                "classification": tool.classification.value,
                "permission": tool.permission,
                "inputSchema": tool.input_schema.model_json_schema(by_alias=True),
            }
            for tool in self
        ]


def build_proposal_result(proposal: Proposal, message: str, **extra: Any) -> dict[str, Any]:
    """Standard result of a WRITE tool that needs a human decision."""
    result: dict[str, Any] = {
        "success": True,
        "requiresApproval": True,
        "action": proposal.action.value,
        "data": proposal.payload(),
        "preview": proposal.preview,
        "message": message,
    }
    if proposal.warning:
        result["warning"] = proposal.warning
    result.update(extra)
    logger.info(f"Proposal issued: {proposal.action.value} | {proposal.preview}")
    return result


def not_found(entity: str, entity_id: Any) -> dict[str, Any]:
    """Not-found results are data, not errors."""
    key = f"{entity[0].lower()}{entity[1:]}Id"
    return {"success": False, "error": f"{entity} not found", key: entity_id}
