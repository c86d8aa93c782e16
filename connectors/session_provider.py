"""
Module: connectors.session_provider

Stand-in for the external session provider. Returns a fixed session payload
(or none) the way a web framework's session lookup would.
"""

from typing import Any


class StaticSessionProvider:
    """Session provider that always answers with the session it was given."""

    def __init__(self, session: dict[str, Any] | None = None):
        self._session = session

    @classmethod
    def for_user(cls, user_id: str, role: str, email: str | None = None) -> "StaticSessionProvider":
        return cls({"user": {"id": user_id, "role": role, "email": email}})

    async def get_session(self) -> dict[str, Any] | None:
        return self._session
