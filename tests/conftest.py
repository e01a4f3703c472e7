# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - FakeSupabase: an in-memory stand-in for the Supabase client that
#   replays queued responses per table / RPC and records every write
# - TestClient fixtures with the caller (member or admin) overridden
# =============================================================================

import os
from collections import defaultdict, deque
from typing import Any
from unittest.mock import MagicMock, patch
from uuid import UUID

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length-1234")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "true")
os.environ.setdefault("ADMIN_SETUP_KEY", "test-setup-key")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

import pytest

from app.auth.models import AuthUser
from lib.supabase_client import SupabaseClient


USER_ID = UUID("11111111-1111-1111-1111-111111111111")
OTHER_USER_ID = UUID("22222222-2222-2222-2222-222222222222")
ADMIN_ID = UUID("99999999-9999-9999-9999-999999999999")


# =============================================================================
# Supabase Test Double
# =============================================================================

class FakeResponse:
    def __init__(self, data: Any = None, count: int | None = None):
        self.data = data
        self.count = count


class NotFoundAPIError(Exception):
    """Mimics the PostgREST error raised by .single() when no row matches."""

    def __init__(self):
        super().__init__("{'code': 'PGRST116', 'message': 'JSON object requested, multiple (or no) rows returned'}")
        self.code = "PGRST116"


class FakeQuery:
    """
    Chainable query builder. Filters are recorded; execute() returns the
    next queued response for the table.
    """

    def __init__(self, fake: "FakeSupabase", table: str):
        self.fake = fake
        self.table = table
        self.action = "select"
        self.payload: Any = None
        self.columns: str | None = None
        self.filters: list[tuple] = []
        self.is_single = False

    def _filter(self, op: str, *args) -> "FakeQuery":
        self.filters.append((op, *args))
        return self

    def select(self, columns: str = "*", **kwargs) -> "FakeQuery":
        if self.action == "select":
            self.columns = columns
        return self

    def insert(self, payload, **kwargs) -> "FakeQuery":
        self.action, self.payload = "insert", payload
        return self

    def upsert(self, payload, **kwargs) -> "FakeQuery":
        self.action, self.payload = "upsert", payload
        return self

    def update(self, payload, **kwargs) -> "FakeQuery":
        self.action, self.payload = "update", payload
        return self

    def delete(self, **kwargs) -> "FakeQuery":
        self.action = "delete"
        return self

    def eq(self, column, value):
        return self._filter("eq", column, value)

    def neq(self, column, value):
        return self._filter("neq", column, value)

    def in_(self, column, values):
        return self._filter("in", column, list(values))

    def gt(self, column, value):
        return self._filter("gt", column, value)

    def gte(self, column, value):
        return self._filter("gte", column, value)

    def lt(self, column, value):
        return self._filter("lt", column, value)

    def lte(self, column, value):
        return self._filter("lte", column, value)

    def like(self, column, pattern):
        return self._filter("like", column, pattern)

    def order(self, column, desc: bool = False, **kwargs):
        return self._filter("order", column, desc)

    def limit(self, count):
        return self._filter("limit", count)

    def range(self, start, end):
        return self._filter("range", start, end)

    def single(self):
        self.is_single = True
        return self

    def execute(self) -> FakeResponse:
        self.fake.calls.append(self)
        return self.fake._next(self.table, self.is_single)


class FakeRpc:
    def __init__(self, fake: "FakeSupabase", name: str, params: dict):
        self.fake = fake
        self.name = name
        self.params = params

    def execute(self) -> FakeResponse:
        self.fake.rpc_calls.append((self.name, self.params))
        return self.fake._next(f"rpc:{self.name}", False)


class FakeBucket:
    def __init__(self, fake: "FakeSupabase", bucket: str):
        self.fake = fake
        self.bucket = bucket

    def upload(self, path, file, file_options=None):
        if self.fake.upload_error:
            raise self.fake.upload_error
        self.fake.uploads.append({
            "bucket": self.bucket,
            "path": path,
            "content": file,
            "file_options": file_options,
        })
        return {"path": path}


class FakeStorage:
    def __init__(self, fake: "FakeSupabase"):
        self.fake = fake

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self.fake, bucket)

    def list_buckets(self):
        return self.fake.buckets


class FakeSupabase:
    """
    In-memory Supabase client.

    Usage:
        fake.queue("profiles", {"id": "...", "role": "admin"})
        fake.queue("products", [{"id": "p1"}], [{"id": "p2"}])
        fake.queue_rpc("charge_points", {"success": True, ...})

    Queued items are consumed in call order. An Exception is raised
    instead of returned. With nothing queued, a list query returns [] and
    .single() raises the PGRST116 "no rows" error.
    """

    def __init__(self):
        self._queues: dict[str, deque] = defaultdict(deque)
        self.calls: list[FakeQuery] = []
        self.rpc_calls: list[tuple[str, dict]] = []
        self.uploads: list[dict] = []
        self.upload_error: Exception | None = None
        self.buckets: list[Any] = []
        self.storage = FakeStorage(self)
        self.auth = MagicMock()

    def queue(self, table: str, *responses: Any) -> "FakeSupabase":
        self._queues[table].extend(responses)
        return self

    def queue_rpc(self, name: str, *responses: Any) -> "FakeSupabase":
        return self.queue(f"rpc:{name}", *responses)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: dict) -> FakeRpc:
        return FakeRpc(self, name, params)

    def _next(self, key: str, single: bool) -> FakeResponse:
        queue = self._queues[key]
        if not queue:
            if single:
                raise NotFoundAPIError()
            return FakeResponse([], 0)

        item = queue.popleft()
        if isinstance(item, Exception):
            raise item
        if isinstance(item, FakeResponse):
            return item
        if single and item is None:
            raise NotFoundAPIError()
        return FakeResponse(item, len(item) if isinstance(item, list) else None)

    # -------------------------------------------------------------------------
    # Assertions helpers
    # -------------------------------------------------------------------------

    def writes(self, table: str, action: str) -> list[FakeQuery]:
        """Executed queries of one action ("insert", "update", "delete") on a table."""
        return [q for q in self.calls if q.table == table and q.action == action]

    def payloads(self, table: str, action: str) -> list[Any]:
        return [q.payload for q in self.writes(table, action)]


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def fake_supabase():
    """Install a FakeSupabase as the shared Supabase client."""
    fake = FakeSupabase()
    SupabaseClient._instance = fake
    yield fake
    SupabaseClient._instance = None


@pytest.fixture
def member():
    return AuthUser(id=USER_ID, email="seller@pharmacy.kr")


@pytest.fixture
def admin():
    return AuthUser(id=ADMIN_ID, email="admin@marketplace.kr")


@pytest.fixture
def notifications():
    """Swallow notification enqueueing and expose the mocks."""
    with patch("core.services.notification_service._enqueue", return_value=True) as mock:
        yield mock


def _client_as(user: AuthUser | None, admin_role: bool, fake: FakeSupabase):
    from fastapi.testclient import TestClient

    from app.auth import get_current_user, get_current_user_optional
    from app.main import app

    if user is not None:
        app.dependency_overrides[get_current_user] = lambda: user
        app.dependency_overrides[get_current_user_optional] = lambda: user

    with patch.object(SupabaseClient, "is_admin", return_value=admin_role):
        with TestClient(app, raise_server_exceptions=False) as client:
            yield client

    app.dependency_overrides.clear()


@pytest.fixture
def member_client(member, fake_supabase, notifications):
    """TestClient authenticated as a regular member."""
    yield from _client_as(member, False, fake_supabase)


@pytest.fixture
def admin_client(admin, fake_supabase, notifications):
    """TestClient authenticated as an admin."""
    yield from _client_as(admin, True, fake_supabase)


@pytest.fixture
def anonymous_client(fake_supabase, notifications):
    """TestClient without credentials."""
    yield from _client_as(None, False, fake_supabase)


@pytest.fixture
def product_row():
    return {
        "id": "aaaaaaaa-0000-0000-0000-000000000001",
        "sales_list_id": "bbbbbbbb-0000-0000-0000-000000000001",
        "seller_id": str(OTHER_USER_ID),
        "product_name": "타이레놀정 500mg",
        "specification": "100T",
        "quantity": 10,
        "selling_price": 5000.0,
        "status": "active",
    }


@pytest.fixture
def purchase_request_row(product_row):
    return {
        "id": "cccccccc-0000-0000-0000-000000000001",
        "buyer_id": str(USER_ID),
        "product_id": product_row["id"],
        "quantity": 4,
        "unit_price": 5000.0,
        "total_price": 20000.0,
        "shipping_address": "서울시 강남구 테헤란로 1",
        "status": "pending",
        "product": product_row,
    }
