"""
Pytest fixtures for the fundflow kernel test suite.

Provides:
- One engine per test session and a rolled-back session per test
- Services and selectors wired to a DeterministicClock
- Factories for drivers, transporters and requests
- Structured log capture

Environment Variables:
- DATABASE_URL: SQLAlchemy URL of the test database.
  If not set, an in-memory SQLite database is used.  Row-lock and
  multi-session tests are skipped on SQLite.
"""

import itertools
import json
import logging
import os
from decimal import Decimal
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from fundflow_kernel.db.engine import (
    create_tables,
    drop_tables,
    init_engine_from_url,
    reset_engine,
)
from fundflow_kernel.domain.clock import DeterministicClock
from fundflow_kernel.domain.dtos import (
    DriverData,
    DriverInfo,
    RequestData,
    RequestInfo,
    TransporterData,
    TransporterInfo,
)
from fundflow_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from fundflow_kernel.selectors.request_selector import RequestSelector
from fundflow_kernel.selectors.team_selector import TeamSelector
from fundflow_kernel.selectors.transaction_selector import TransactionSelector
from fundflow_kernel.services.funds_service import FundsService
from fundflow_kernel.services.request_service import RequestService
from fundflow_kernel.services.team_service import TeamService

DEFAULT_DATABASE_URL = "sqlite:///:memory:"

# Caller identity used by request-creating fixtures
TEST_CALLER = "agent.test"


def get_database_url() -> str:
    return os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


def is_sqlite() -> bool:
    return get_database_url().startswith("sqlite")


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture fundflow_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, funds_service):
            funds_service.confirm_transaction(txn_id, "auditor")
            logs = captured_logs()
            assert any(r["message"] == "transaction_confirmed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("fundflow_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture(scope="session")
def db_engine():
    """Single engine for the entire test session."""
    eng = init_engine_from_url(get_database_url(), echo=False)
    yield eng
    reset_engine()


@pytest.fixture(scope="session")
def db_tables(db_engine):
    """Create all tables once per session, drop once at end."""
    drop_tables()
    create_tables()
    yield
    drop_tables()


@pytest.fixture(scope="function")
def session(db_tables, db_engine) -> Generator[Session, None, None]:
    """Provide a database session for testing.

    Uses the SQLAlchemy 2.0 ``join_transaction_mode`` pattern:
    - Opens a dedicated connection with an outer transaction
    - Creates a session that *joins* the outer transaction
    - Any ``session.commit()`` inside the test releases a savepoint
    - At teardown the outer transaction is rolled back, undoing ALL data
      changes made during the test
    """
    conn = db_engine.connect()
    trans = conn.begin()
    sess = Session(bind=conn, join_transaction_mode="create_savepoint", expire_on_commit=False)
    yield sess
    try:
        sess.close()
    finally:
        try:
            trans.rollback()
        finally:
            conn.close()


# =============================================================================
# Clock fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Clock fixed at 2024-01-01 12:00:00 UTC."""
    return DeterministicClock()


# =============================================================================
# Service and selector fixtures
# =============================================================================


@pytest.fixture
def request_service(session, deterministic_clock) -> RequestService:
    return RequestService(session, deterministic_clock)


@pytest.fixture
def team_service(session, deterministic_clock) -> TeamService:
    return TeamService(session, deterministic_clock)


@pytest.fixture
def funds_service(session, deterministic_clock) -> FundsService:
    return FundsService(session, deterministic_clock)


@pytest.fixture
def request_selector(session) -> RequestSelector:
    return RequestSelector(session)


@pytest.fixture
def team_selector(session) -> TeamSelector:
    return TeamSelector(session)


@pytest.fixture
def transaction_selector(session) -> TransactionSelector:
    return TransactionSelector(session)


# =============================================================================
# Data factories
# =============================================================================


@pytest.fixture
def make_driver(team_service):
    """Factory creating drivers with unique matricule and cin."""
    counter = itertools.count(1)

    def _make(**overrides) -> DriverInfo:
        n = next(counter)
        fields = {
            "matricule": f"DRV-{n:03d}",
            "first_name": "Karim",
            "last_name": f"Haddad{n}",
            "cin": f"D{n:07d}",
            "license_number": f"LIC-{n:03d}",
        }
        fields.update(overrides)
        return team_service.create_driver(DriverData(**fields))

    return _make


@pytest.fixture
def make_transporter(team_service):
    """Factory creating transporters with unique matricule and cin."""
    counter = itertools.count(1)

    def _make(**overrides) -> TransporterInfo:
        n = next(counter)
        fields = {
            "matricule": f"TRP-{n:03d}",
            "first_name": "Sami",
            "last_name": f"Ben Salem{n}",
            "cin": f"T{n:07d}",
            "vehicle_type": "TRUCK",
        }
        fields.update(overrides)
        return team_service.create_transporter(TransporterData(**fields))

    return _make


@pytest.fixture
def make_request(request_service):
    """Factory creating requests with unique request numbers."""
    counter = itertools.count(1)

    def _make(caller: str = TEST_CALLER, **overrides) -> RequestInfo:
        n = next(counter)
        fields = {
            "request_number": f"REQ-{n:04d}",
            "request_code": f"RC-{n:04d}",
            "request_type": "TRANSFER",
            "amount": Decimal("1000.00"),
        }
        fields.update(overrides)
        return request_service.create_request(RequestData(**fields), caller)

    return _make


@pytest.fixture
def confirmed_request(make_request, make_driver, make_transporter, request_service):
    """A request with a full team, confirmed through confirm_request."""
    request = make_request()
    request_service.assign_driver(request.id, make_driver().id)
    request_service.assign_transporter(request.id, make_transporter().id)
    return request_service.confirm_request(request.id)
