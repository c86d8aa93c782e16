"""
Tagged-union state, event and effect types for the plan approval workflow.
All of them are plain pydantic models so in-flight workflows can be
serialized by the caller and resumed in a later request.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .enums import ProposalAction, WorkflowStatus
from .proposal import ApprovalDecision, Plan, Proposal


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# --- States --- #


class DraftState(_Frozen):
    status: Literal["DRAFT"] = "DRAFT"


class PlanProposedState(_Frozen):
    status: Literal["PLAN_PROPOSED"] = "PLAN_PROPOSED"
    plan: Plan


class AwaitingApprovalState(_Frozen):
    status: Literal["AWAITING_APPROVAL"] = "AWAITING_APPROVAL"
    plan: Plan = Field(default_factory=Plan)
    proposal: Proposal
    message: str
    urgent: bool = False
    estimated_duration: str | None = None


class ApprovedState(_Frozen):
    status: Literal["APPROVED"] = "APPROVED"
    plan: Plan = Field(default_factory=Plan)
    proposal: Proposal
    modifications: list[str] = Field(default_factory=list)


class ExecutingState(_Frozen):
    status: Literal["EXECUTING"] = "EXECUTING"
    plan: Plan = Field(default_factory=Plan)
    proposal: Proposal
    modifications: list[str] = Field(default_factory=list)


class CompletedState(_Frozen):
    status: Literal["COMPLETED"] = "COMPLETED"
    plan: Plan = Field(default_factory=Plan)
    proposal: Proposal
    modifications: list[str] = Field(default_factory=list)
    success: bool
    result: dict[str, Any] | None = None
    error: str | None = None


class RejectedState(_Frozen):
    status: Literal["REJECTED"] = "REJECTED"
    proposal: Proposal
    reason: str
    message: str


class CancelledState(_Frozen):
    status: Literal["CANCELLED"] = "CANCELLED"
    reason: str
    alternative: str | None = None
    message: str


WorkflowState = Annotated[
    Union[
        DraftState,
        PlanProposedState,
        AwaitingApprovalState,
        ApprovedState,
        ExecutingState,
        CompletedState,
        RejectedState,
        CancelledState,
    ],
    Field(discriminator="status"),
]

WORKFLOW_STATE_ADAPTER: TypeAdapter = TypeAdapter(WorkflowState)

TERMINAL_STATUSES = frozenset(
    {WorkflowStatus.COMPLETED, WorkflowStatus.REJECTED, WorkflowStatus.CANCELLED}
)


def status_of(state: BaseModel) -> WorkflowStatus:
    return WorkflowStatus(state.status)


# --- Events --- #


class BuildPlan(_Frozen):
    kind: Literal["build_plan"] = "build_plan"
    plan: Plan


class IssueProposal(_Frozen):
    kind: Literal["issue_proposal"] = "issue_proposal"
    proposal: Proposal
    message: str
    urgent: bool = False
    estimated_duration: str | None = None


class Decide(_Frozen):
    kind: Literal["decide"] = "decide"
    decision: ApprovalDecision


class Cancel(_Frozen):
    kind: Literal["cancel"] = "cancel"
    reason: str
    alternative: str | None = None


class StartExecution(_Frozen):
    kind: Literal["start_execution"] = "start_execution"


class FinishExecution(_Frozen):
    kind: Literal["finish_execution"] = "finish_execution"
    success: bool
    result: dict[str, Any] | None = None
    error: str | None = None


WorkflowEvent = Union[BuildPlan, IssueProposal, Decide, Cancel, StartExecution, FinishExecution]


# --- Effects --- #


class ShowPlan(_Frozen):
    kind: Literal["show_plan"] = "show_plan"
    plan: Plan


class RequestApproval(_Frozen):
    """Suspension point: control returns to the caller until a decision arrives."""

    kind: Literal["request_approval"] = "request_approval"
    proposal: Proposal
    message: str
    urgent: bool = False
    estimated_duration: str | None = None


class ExecuteMutation(_Frozen):
    kind: Literal["execute_mutation"] = "execute_mutation"
    action: ProposalAction
    data: dict[str, Any]


class DiscardProposal(_Frozen):
    kind: Literal["discard_proposal"] = "discard_proposal"
    message: str
    alternative: str | None = None


class ReportResult(_Frozen):
    kind: Literal["report_result"] = "report_result"
    action: ProposalAction
    success: bool
    message: str
    result: dict[str, Any] | None = None
    error: str | None = None
    data: dict[str, Any] | None = None


WorkflowEffect = Union[ShowPlan, RequestApproval, ExecuteMutation, DiscardProposal, ReportResult]
