"""
Identity models threaded explicitly through every tool and permission check.
"""

from pydantic import BaseModel, ConfigDict

from .enums import Role

ANONYMOUS_USER_ID = "anonymous"


class SessionUser(BaseModel):
    """User block returned by the external session provider."""

    id: str | None = None
    email: str | None = None
    role: str | None = None


class Session(BaseModel):
    user: SessionUser | None = None


class AuthContext(BaseModel):
    """Resolved acting identity; immutable for the duration of a request."""

    model_config = ConfigDict(frozen=True)

    user_id: str = ANONYMOUS_USER_ID
    role: Role = Role.USER
    email: str | None = None

    @property
    def is_anonymous(self) -> bool:
        return self.user_id == ANONYMOUS_USER_ID
