"""
Plan → approval → execution workflow.

`transition` is a pure function from (state, event) to (new state, effects);
it performs no I/O and raises WorkflowTransitionError for any pair that is not
explicitly allowed. `WorkflowRunner` is the thin impure shell that feeds
events in, interprets the effects and runs approved mutations through the
executor registry.

State diagram:

    DRAFT ──BuildPlan──► PLAN_PROPOSED ──IssueProposal──► AWAITING_APPROVAL
    DRAFT ──IssueProposal──────────────────────────────► AWAITING_APPROVAL
    AWAITING_APPROVAL ──Decide(approved)──► APPROVED ──StartExecution──► EXECUTING
    AWAITING_APPROVAL ──Decide(rejected)──► REJECTED
    EXECUTING ──FinishExecution──► COMPLETED (success or error)
    DRAFT | PLAN_PROPOSED | AWAITING_APPROVAL ──Cancel──► CANCELLED
"""

import logging
from typing import Any

from pydantic import BaseModel, ValidationError

from agents.executors import ExecutorRegistry
from models.auth import AuthContext
from models.enums import ProposalAction
from models.errors import (
    MutationExecutionError,
    PermissionDeniedError,
    UnknownActionError,
    WorkflowTransitionError,
)
from models.proposal import ApprovalDecision, Plan, Proposal
from models.workflow import (
    WORKFLOW_STATE_ADAPTER,
    ApprovedState,
    AwaitingApprovalState,
    BuildPlan,
    Cancel,
    CancelledState,
    CompletedState,
    Decide,
    DiscardProposal,
    DraftState,
    ExecuteMutation,
    ExecutingState,
    FinishExecution,
    IssueProposal,
    PlanProposedState,
    RejectedState,
    ReportResult,
    RequestApproval,
    ShowPlan,
    StartExecution,
    WorkflowEffect,
    WorkflowEvent,
    WorkflowState,
    status_of,
)

logger = logging.getLogger(__name__)

AUTO_APPROVAL_REASON = "Low-risk change approved automatically"


def cancellation_message(reason: str, alternative: str | None = None) -> str:
    message = f"Plan cancelled: {reason}"
    if alternative:
        message += f". Alternative: {alternative}"
    return message


def rejection_message(proposal: Proposal, reason: str) -> str:
    return f"{proposal.action.value} rejected: {reason}"


def _illegal(state: BaseModel, event: BaseModel) -> WorkflowTransitionError:
    message = f"Event '{event.kind}' is not allowed in state {state.status}"
    logger.warning(message)
    return WorkflowTransitionError(message)


def transition(state: WorkflowState, event: WorkflowEvent) -> tuple[WorkflowState, list[WorkflowEffect]]:
    """
    Apply `event` to `state`. Returns the next state and the effects the
    caller must interpret; never mutates the input state.
    """
    if isinstance(event, Cancel):
        if isinstance(state, (DraftState, PlanProposedState, AwaitingApprovalState)):
            message = cancellation_message(event.reason, event.alternative)
            return (
                CancelledState(reason=event.reason, alternative=event.alternative, message=message),
                [DiscardProposal(message=message, alternative=event.alternative)],
            )
        raise _illegal(state, event)

    if isinstance(state, DraftState):
        if isinstance(event, BuildPlan):
            return PlanProposedState(plan=event.plan), [ShowPlan(plan=event.plan)]
        if isinstance(event, IssueProposal):
            return _await_approval(Plan(), event)

    elif isinstance(state, PlanProposedState):
        if isinstance(event, IssueProposal):
            return _await_approval(state.plan, event)

    elif isinstance(state, AwaitingApprovalState):
        if isinstance(event, Decide):
            decision = event.decision
            if decision.approved:
                # Modifications are recorded as given and not validated here
                return (
                    ApprovedState(
                        plan=state.plan, proposal=state.proposal, modifications=decision.modifications
                    ),
                    [],
                )
            message = rejection_message(state.proposal, decision.reason)
            return (
                RejectedState(proposal=state.proposal, reason=decision.reason, message=message),
                [DiscardProposal(message=message)],
            )

    elif isinstance(state, ApprovedState):
        if isinstance(event, StartExecution):
            return (
                ExecutingState(
                    plan=state.plan, proposal=state.proposal, modifications=state.modifications
                ),
                [ExecuteMutation(action=state.proposal.action, data=state.proposal.payload())],
            )

    elif isinstance(state, ExecutingState):
        if isinstance(event, FinishExecution):
            action = state.proposal.action
            if event.success:
                message = f"Action {action.value} completed successfully"
            else:
                message = f"Action {action.value} failed: {event.error}"
            return (
                CompletedState(
                    plan=state.plan,
                    proposal=state.proposal,
                    modifications=state.modifications,
                    success=event.success,
                    result=event.result,
                    error=event.error,
                ),
                [
                    ReportResult(
                        action=action,
                        success=event.success,
                        message=message,
                        result=event.result,
                        error=event.error,
                        data=state.proposal.payload(),
                    )
                ],
            )

    raise _illegal(state, event)


def _await_approval(plan: Plan, event: IssueProposal) -> tuple[WorkflowState, list[WorkflowEffect]]:
    state = AwaitingApprovalState(
        plan=plan,
        proposal=event.proposal,
        message=event.message,
        urgent=event.urgent,
        estimated_duration=event.estimated_duration,
    )
    effect = RequestApproval(
        proposal=event.proposal,
        message=event.message,
        urgent=event.urgent,
        estimated_duration=event.estimated_duration,
    )
    return state, [effect]


def dump_state(state: WorkflowState) -> dict[str, Any]:
    """JSON-ready form of a state, for suspending a workflow across requests."""
    return WORKFLOW_STATE_ADAPTER.dump_python(state, mode="json", by_alias=True)


def load_state(payload: dict[str, Any]) -> WorkflowState:
    return WORKFLOW_STATE_ADAPTER.validate_python(payload)


class WorkflowRunner:
    """
    Drives workflow states through `transition` and performs the effects
    that need I/O. Mutations only ever run on the APPROVED → EXECUTING edge.
    """

    def __init__(self, executors: ExecutorRegistry):
        self.executors = executors

    def step(self, state: WorkflowState, event: WorkflowEvent) -> tuple[WorkflowState, list[WorkflowEffect]]:
        new_state, effects = transition(state, event)
        logger.info(f"Workflow {status_of(state).value} -> {status_of(new_state).value}")
        return new_state, effects

    def propose(
        self,
        proposal: Proposal,
        message: str,
        plan: Plan | None = None,
        urgent: bool = False,
        estimated_duration: str | None = None,
    ) -> AwaitingApprovalState:
        """Suspend on `proposal`; the returned state is what the caller persists."""
        state: WorkflowState = DraftState()
        if plan is not None:
            state, _ = self.step(state, BuildPlan(plan=plan))
        state, _ = self.step(
            state,
            IssueProposal(
                proposal=proposal, message=message, urgent=urgent, estimated_duration=estimated_duration
            ),
        )
        return state

    async def decide(
        self, state: AwaitingApprovalState, decision: ApprovalDecision, ctx: AuthContext
    ) -> tuple[WorkflowState, list[WorkflowEffect]]:
        """Apply a human decision and, if approved, run the mutation to completion."""
        state, effects = self.step(state, Decide(decision=decision))
        if isinstance(state, ApprovedState):
            return await self.execute(state, ctx)
        return state, effects

    async def execute(self, state: ApprovedState, ctx: AuthContext) -> tuple[WorkflowState, list[WorkflowEffect]]:
        state, effects = self.step(state, StartExecution())
        finish: FinishExecution | None = None
        for effect in effects:
            if isinstance(effect, ExecuteMutation):
                finish = await self._run_mutation(effect.action, effect.data, ctx)
        if finish is None:
            finish = FinishExecution(success=False, error="No mutation to execute")
        return self.step(state, finish)

    async def _run_mutation(self, action: ProposalAction, data: dict[str, Any], ctx: AuthContext) -> FinishExecution:
        try:
            result = await self.executors.execute(action, data, ctx)
        except MutationExecutionError as e:
            logger.error(f"Executor for {action.value} failed: {e.message}", exc_info=True)
            return FinishExecution(success=False, error=e.message)
        except (PermissionDeniedError, UnknownActionError):
            raise
        except Exception as e:
            logger.error(f"Unexpected error executing {action.value}: {e!r}", exc_info=True)
            return FinishExecution(success=False, error=str(e) or type(e).__name__)
        return FinishExecution(success=True, result=result)

    async def auto_approve(
        self, proposal: Proposal, ctx: AuthContext, reason: str = AUTO_APPROVAL_REASON
    ) -> tuple[WorkflowState, list[WorkflowEffect]]:
        """
        Run a low-risk proposal through the full approval path without a human
        in the loop, so the mutation still happens on APPROVED → EXECUTING.
        """
        state = self.propose(proposal, message=reason)
        return await self.decide(state, ApprovalDecision(approved=True), ctx)

    async def resume(
        self, payload: dict[str, Any], decision: ApprovalDecision, ctx: AuthContext
    ) -> tuple[WorkflowState, list[WorkflowEffect]]:
        """
        Continue a workflow suspended in AWAITING_APPROVAL, given its serialized
        state and the human decision from a later request.
        """
        try:
            state = load_state(payload)
        except ValidationError as e:
            raise WorkflowTransitionError(f"Cannot resume workflow: invalid state ({e.error_count()} errors)") from e
        if not isinstance(state, AwaitingApprovalState):
            raise WorkflowTransitionError(
                f"Cannot resume workflow in state {state.status}; expected AWAITING_APPROVAL"
            )
        return await self.decide(state, decision, ctx)

    def cancel(
        self, state: WorkflowState, reason: str, alternative: str | None = None
    ) -> tuple[WorkflowState, list[WorkflowEffect]]:
        return self.step(state, Cancel(reason=reason, alternative=alternative))
