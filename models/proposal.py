"""
Data models for proposals, plans and human approval decisions.
"""

import copy
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .enums import ProposalAction


class Proposal(BaseModel):
    """
    Immutable description of a pending mutation produced by a WRITE tool.
    `data` is the exact payload the mutation executor will receive.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    action: ProposalAction
    data: dict[str, Any]
    preview: str
    warning: str | None = None
    requires_approval: Literal[True] = True

    @field_validator("data", mode="before")
    @classmethod
    def _detach_payload(cls, value: Any) -> Any:
        # Later edits to the caller's dict must not leak into the proposal
        return copy.deepcopy(value)

    def payload(self) -> dict[str, Any]:
        """Copy of `data` handed to the executor."""
        return copy.deepcopy(self.data)


class Todo(BaseModel):
    """A single step the agent intends to take."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str
    completed: bool = False
    description: str | None = None
    estimated_time: str | None = None


class Plan(BaseModel):
    """Ordered todos; groups proposals conceptually without atomicity."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    todos: list[Todo] = Field(default_factory=list)
    message: str | None = None

    @property
    def remaining(self) -> list[Todo]:
        return [t for t in self.todos if not t.completed]


class ApprovalDecision(BaseModel):
    """Human verdict on a proposal, delivered in a later request."""

    model_config = ConfigDict(frozen=True)

    approved: bool
    modifications: list[str] = Field(default_factory=list)
    reason: str | None = None

    @model_validator(mode="after")
    def _reason_required_on_rejection(self) -> "ApprovalDecision":
        if not self.approved and not (self.reason and self.reason.strip()):
            raise ValueError("reason is required when approved is false")
        return self
