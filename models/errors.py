"""
Exception types raised by tools, permission checks, executors and the
approval workflow. Every error carries a message suitable for direct display.
"""

from typing import Any

from pydantic import ValidationError


class ToolError(Exception):
    """Base class for errors surfaced to the agent runtime."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ToolValidationError(ToolError):
    """Tool input (or output) does not match its declared schema."""

    def __init__(self, tool_id: str, errors: list[dict[str, Any]]):
        fields = ", ".join(
            ".".join(str(part) for part in err.get("loc", ())) or "<root>" for err in errors
        )
        super().__init__(f"Invalid input for {tool_id}: {fields}")
        self.tool_id = tool_id
        self.errors = errors

    @classmethod
    def from_pydantic(cls, tool_id: str, exc: ValidationError) -> "ToolValidationError":
        return cls(tool_id, exc.errors(include_url=False))


class PermissionDeniedError(ToolError):
    """The acting role lacks the capability an operation requires."""


class MutationExecutionError(ToolError):
    """A mutation executor failed after the proposal was approved."""

    def __init__(self, message: str, action: str | None = None, data: dict[str, Any] | None = None):
        super().__init__(message)
        self.action = action
        self.data = data


class UnknownActionError(ToolError):
    """No executor is registered for the requested action."""


class WorkflowTransitionError(ToolError):
    """An event is not legal in the current workflow state."""
