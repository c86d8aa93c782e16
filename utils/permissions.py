"""
Role-based permission checks over the resolved acting identity.

Predicates are pure; each `require_*` sibling raises PermissionDeniedError
with a fixed, user-facing message when its predicate is false.
"""

import logging
from typing import Any, Protocol

from pydantic import ValidationError

from models.auth import AuthContext, Session
from models.enums import Role
from models.errors import PermissionDeniedError

logger = logging.getLogger(__name__)

ADMIN_REQUIRED_MESSAGE = "This operation requires admin privileges"
COMPETITOR_MODIFICATION_MESSAGE = "You don't have permission to modify competitor data"
PRODUCT_MODIFICATION_MESSAGE = "You don't have permission to modify product data"
EMAIL_SENDING_MESSAGE = "You don't have permission to send emails"

_MUTATING_ROLES = frozenset({Role.ADMIN, Role.EXPERT})


class SessionProvider(Protocol):
    async def get_session(self) -> dict[str, Any] | None: ...


def anonymous_context() -> AuthContext:
    """Identity used when no session is available. Never elevated."""
    return AuthContext()


def _coerce_role(role: Role | str | None) -> Role | None:
    if isinstance(role, Role) or role is None:
        return role
    try:
        return Role(role)
    except ValueError:
        return None


async def resolve_auth_context(session_provider: SessionProvider | None) -> AuthContext:
    """
    Resolve the acting identity from the external session provider.

    A missing session, a session without a user, or an unrecognised role all
    resolve to the anonymous USER identity.
    """
    if session_provider is None:
        return anonymous_context()

    raw = await session_provider.get_session()
    if not raw:
        return anonymous_context()

    try:
        session = Session.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"Malformed session payload, falling back to anonymous: {e}")
        return anonymous_context()

    user = session.user
    if user is None:
        return anonymous_context()

    role = _coerce_role(user.role)
    if role is None:
        if user.role is not None:
            logger.warning(f"Unknown role '{user.role}' in session; using {Role.USER.value}")
        role = Role.USER

    return AuthContext(user_id=user.id or anonymous_context().user_id, role=role, email=user.email)


# --- Predicates --- #


def is_admin(role: Role | str | None) -> bool:
    return _coerce_role(role) == Role.ADMIN


def can_modify_competitor(role: Role | str | None, competitor_id: str | None = None) -> bool:
    # competitor_id is accepted for ownership scoping but does not narrow the check yet
    return _coerce_role(role) in _MUTATING_ROLES


def can_modify_products(role: Role | str | None) -> bool:
    return _coerce_role(role) in _MUTATING_ROLES


def can_send_emails(role: Role | str | None) -> bool:
    return _coerce_role(role) in _MUTATING_ROLES


# --- Guards --- #


def _deny(message: str, role: Role | str | None) -> None:
    logger.warning(f"Permission denied for role {role}: {message}")
    raise PermissionDeniedError(message)


def require_admin(role: Role | str | None) -> None:
    if not is_admin(role):
        _deny(ADMIN_REQUIRED_MESSAGE, role)


def require_competitor_modification(role: Role | str | None, competitor_id: str | None = None) -> None:
    if not can_modify_competitor(role, competitor_id):
        _deny(COMPETITOR_MODIFICATION_MESSAGE, role)


def require_product_modification(role: Role | str | None) -> None:
    if not can_modify_products(role):
        _deny(PRODUCT_MODIFICATION_MESSAGE, role)


def require_email_sending(role: Role | str | None) -> None:
    if not can_send_emails(role):
        _deny(EMAIL_SENDING_MESSAGE, role)
