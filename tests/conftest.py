import sys
from datetime import datetime
from pathlib import Path

import pytest

# Ensure project root is on sys.path to allow `import agents`, `import utils`, etc.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from agents.executors import ExecutorRegistry  # noqa: E402
from agents.tools.base import ToolContext  # noqa: E402
from agents.workflow import WorkflowRunner  # noqa: E402
from connectors.dummy_db import DummyDB  # noqa: E402
from connectors.email_transport import DummyEmailTransport  # noqa: E402
from models.auth import AuthContext  # noqa: E402
from models.enums import Role  # noqa: E402

# Fixed "now" so seeded data and analysis windows line up
NOW = datetime(2024, 6, 15, 12, 0, 0)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def db() -> DummyDB:
    """Seeded in-memory store anchored at NOW."""
    return DummyDB(now=NOW)


@pytest.fixture
def transport() -> DummyEmailTransport:
    return DummyEmailTransport()


@pytest.fixture
def executors(db: DummyDB, transport: DummyEmailTransport) -> ExecutorRegistry:
    return ExecutorRegistry(db, transport)


@pytest.fixture
def runner(executors: ExecutorRegistry) -> WorkflowRunner:
    return WorkflowRunner(executors)


@pytest.fixture
def admin_ctx() -> AuthContext:
    return AuthContext(user_id="user_admin", role=Role.ADMIN, email="admin@example.com")


@pytest.fixture
def expert_ctx() -> AuthContext:
    return AuthContext(user_id="user_expert", role=Role.EXPERT, email="expert@example.com")


@pytest.fixture
def user_ctx() -> AuthContext:
    return AuthContext(user_id="user_plain", role=Role.USER)


@pytest.fixture
def guest_ctx() -> AuthContext:
    return AuthContext(user_id="user_guest", role=Role.GUEST)


@pytest.fixture
def make_tool_ctx(db: DummyDB, runner: WorkflowRunner):
    """Factory building a ToolContext for a given identity."""

    def _make(auth: AuthContext) -> ToolContext:
        return ToolContext(auth=auth, store=db, runner=runner, clock=lambda: NOW)

    return _make
