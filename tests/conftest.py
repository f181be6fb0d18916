import os
import tempfile
from pathlib import Path

import pytest
import pytest_asyncio

TEST_DB_PATH = Path(tempfile.gettempdir()) / f"leaddesk-tests-{os.getpid()}.db"

# Settings are read once at import time, so the environment must be in place first.
os.environ.update(
    {
        "ENVIRONMENT": "testing",
        "ADMIN_USERNAME": "admin",
        "ADMIN_PASSWORD": "correct-horse",
        "ADMIN_SESSION_SECRET": "test-session-secret-for-the-suite",
        "DATABASE_URL": f"sqlite+aiosqlite:///{TEST_DB_PATH}",
        "LOG_LEVEL": "WARNING",
    }
)
for name in (
    "POSTGRES_URL",
    "PRISMA_DATABASE_URL",
    "POSTGRES_PRISMA_URL",
    "POSTGRES_URL_NON_POOLING",
    "NEXTAUTH_SECRET",
    "GOOGLE_SHEETS_WEBHOOK_URL",
    "GOOGLE_SHEETS_WEBHOOK_TOKEN",
    "SENTRY_DSN",
):
    os.environ.pop(name, None)

from leaddesk.db.session import session_scope  # noqa: E402
from leaddesk.services import lead_store  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_database():
    lead_store.reset_schema_state()
    TEST_DB_PATH.unlink(missing_ok=True)
    yield
    lead_store.reset_schema_state()
    TEST_DB_PATH.unlink(missing_ok=True)


@pytest_asyncio.fixture
async def db_session():
    async with session_scope() as session:
        yield session


@pytest.fixture
def lead_payload():
    return {
        "fullName": "  Priya Raman ",
        "email": "priya@example.com",
        "phone": "+91 98765 43210",
        "experience": "2-5 years",
        "currentRole": "Manual QA",
        "goal": "Move into automation",
        "utmSummary": "utm_source=meta",
    }
