"""
Tool execution service: the boundary an agent runtime (or an API layer)
talks to.

`run_tool` invokes a tool for the acting identity. Proposals returned by
WRITE tools are suspended in AWAITING_APPROVAL and handed back with their
serialized workflow state. `execute_decision` and `resume` apply the human
decision in a later request and run approved mutations. Errors are mapped to
`{success: False, error, message}` payloads.
"""

from datetime import datetime
from typing import Any, Callable

from agents.executors import ExecutorRegistry, render_preview
from agents.tools.base import ToolContext, ToolRegistry
from agents.tools.registry import DEFAULT_REGISTRY
from agents.workflow import WorkflowRunner, dump_state
from config.config import DEFAULT_CONFIG, AppConfig
from connectors.dummy_db import DummyDB
from connectors.email_transport import DummyEmailTransport
from models.auth import AuthContext
from models.enums import ProposalAction
from models.errors import (
    PermissionDeniedError,
    ToolValidationError,
    UnknownActionError,
    WorkflowTransitionError,
)
from models.proposal import ApprovalDecision, Proposal
from models.workflow import CompletedState, RejectedState
from utils.logger import get_logger
from utils.permissions import SessionProvider, resolve_auth_context

logger = get_logger(__name__)


def _failure(error: str, message: str, **extra: Any) -> dict[str, Any]:
    return {"success": False, "error": error, "message": message, **extra}


class ToolExecutionService:
    def __init__(
        self,
        store: DummyDB,
        transport: DummyEmailTransport,
        registry: ToolRegistry = DEFAULT_REGISTRY,
        config: AppConfig = DEFAULT_CONFIG,
        session_provider: SessionProvider | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.registry = registry
        self.config = config
        self.session_provider = session_provider
        self.clock = clock
        self.executors = ExecutorRegistry(store, transport)
        self.runner = WorkflowRunner(self.executors)

    @classmethod
    def from_env(
        cls,
        store: DummyDB,
        transport: DummyEmailTransport,
        session_provider: SessionProvider | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> "ToolExecutionService":
        """Build a service whose defaults and log level come from the environment."""
        config = AppConfig.from_env()
        get_logger(__name__, level=config.log_level)
        return cls(store, transport, config=config, session_provider=session_provider, clock=clock)

    async def _auth(self, ctx: AuthContext | None) -> AuthContext:
        return ctx if ctx is not None else await resolve_auth_context(self.session_provider)

    def _stamp(self, response: dict[str, Any]) -> dict[str, Any]:
        response["timestamp"] = self.clock().isoformat()
        return response

    async def run_tool(
        self, tool_id: str, params: dict[str, Any] | None = None, ctx: AuthContext | None = None
    ) -> dict[str, Any]:
        auth = await self._auth(ctx)
        if tool_id not in self.registry:
            return self._stamp(_failure("Unknown tool", f"Unknown tool: {tool_id}"))
        tool = self.registry.get(tool_id)
        tool_ctx = ToolContext(auth=auth, store=self.store, runner=self.runner, config=self.config, clock=self.clock)

        try:
            result = await tool.execute(tool_ctx, params)
        except ToolValidationError as e:
            details = [{"loc": list(err.get("loc", ())), "msg": err.get("msg")} for err in e.errors]
            return self._stamp(_failure("Invalid input", e.message, details=details))
        except PermissionDeniedError as e:
            return self._stamp(_failure("Insufficient permissions", e.message))

        if result.get("requiresApproval") and result.get("action"):
            state = self.runner.propose(Proposal.model_validate(result), result["message"])
            result["workflowState"] = dump_state(state)
        logger.info(f"Tool {tool_id} finished for {auth.user_id} (success={result.get('success')})")
        return self._stamp(result)

    async def execute_decision(
        self,
        action: ProposalAction | str,
        data: dict[str, Any],
        decision: ApprovalDecision,
        ctx: AuthContext | None = None,
    ) -> dict[str, Any]:
        """Apply a decision to a proposal given as its action and payload."""
        auth = await self._auth(ctx)
        try:
            action = ProposalAction(action)
        except ValueError:
            return self._stamp(_failure("Unknown action", f"Unknown action: {action}"))
        try:
            proposal = Proposal(action=action, data=data, preview=render_preview(action, data))
        except KeyError as e:
            return self._stamp(_failure("Execution failed", f"Proposal data is missing {e}", action=action.value))

        state = self.runner.propose(proposal, message=proposal.preview)
        return await self._finish(self.runner.decide(state, decision, auth), action)

    async def resume(
        self, workflow_state: dict[str, Any], decision: ApprovalDecision, ctx: AuthContext | None = None
    ) -> dict[str, Any]:
        """Apply a decision to a workflow suspended by `run_tool`."""
        auth = await self._auth(ctx)
        action = workflow_state.get("proposal", {}).get("action")
        return await self._finish(self.runner.resume(workflow_state, decision, auth), action)

    async def _finish(self, pending, action: ProposalAction | str | None) -> dict[str, Any]:
        action_name = action.value if isinstance(action, ProposalAction) else action
        try:
            state, _ = await pending
        except PermissionDeniedError as e:
            return self._stamp(_failure("Insufficient permissions", e.message, action=action_name))
        except UnknownActionError as e:
            return self._stamp(_failure("Unknown action", e.message, action=action_name))
        except WorkflowTransitionError as e:
            return self._stamp(_failure("Execution failed", e.message, action=action_name))

        if isinstance(state, RejectedState):
            return self._stamp(
                {
                    "success": False,
                    "message": "Action cancelled by user",
                    "action": action_name,
                    "cancelled": True,
                    "reason": state.reason,
                }
            )
        if isinstance(state, CompletedState) and state.success:
            logger.info(f"Action {action_name} completed for approved proposal")
            return self._stamp(
                {
                    "success": True,
                    "action": action_name,
                    "data": state.result,
                    "message": f"Action {action_name} completed successfully",
                    "modifications": state.modifications,
                }
            )
        error = getattr(state, "error", None) or "An unexpected error occurred"
        return self._stamp(_failure("Execution failed", error, action=action_name))
