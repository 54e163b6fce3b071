from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest
from fastapi.testclient import TestClient


class FakeQuery:
    """Minimal stand-in for the postgrest query builder used by the repository."""

    def __init__(self, backend: "FakeSupabase", table: str) -> None:
        self.backend = backend
        self.table = table
        self.filters: list = []
        self.ordering: list = []
        self.row_limit: int | None = None
        self.insert_payload: Any = None
        self.update_payload: dict | None = None

    def select(self, *_columns, **_kwargs):
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def gte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row.get(column) >= value)
        return self

    def lte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row.get(column) <= value)
        return self

    def filter(self, column, operator, value):
        assert operator == "not.in"
        excluded = {item.strip().strip('"') for item in value.strip("()").split(",")}
        self.filters.append(lambda row: row.get(column) not in excluded)
        return self

    def order(self, column, desc=False):
        self.ordering.append((column, desc))
        return self

    def limit(self, count):
        self.row_limit = count
        return self

    def insert(self, payload):
        self.insert_payload = payload
        return self

    def update(self, payload):
        self.update_payload = payload
        return self

    def execute(self):
        self.backend.executed.append(self.table)
        if self.table in self.backend.failing_tables:
            raise RuntimeError(f"relation {self.table} unavailable")
        rows = self.backend.tables.setdefault(self.table, [])
        if self.insert_payload is not None:
            rows.append(dict(self.insert_payload))
            return SimpleNamespace(data=[dict(self.insert_payload)])
        matched = [row for row in rows if all(check(row) for check in self.filters)]
        if self.update_payload is not None:
            for row in matched:
                row.update(self.update_payload)
            return SimpleNamespace(data=[dict(row) for row in matched])
        for column, desc in reversed(self.ordering):
            matched.sort(key=lambda row: (row.get(column) is None, row.get(column)), reverse=desc)
        if self.row_limit is not None:
            matched = matched[: self.row_limit]
        return SimpleNamespace(data=[dict(row) for row in matched])


class FakeAdminAuth:
    def __init__(self) -> None:
        self.users: dict[str, SimpleNamespace] = {}
        self.deleted: list[str] = []

    def create_user(self, attributes: dict):
        user_id = f"user-{len(self.users) + 1}"
        user = SimpleNamespace(
            id=user_id,
            email=attributes["email"],
            app_metadata={},
            user_metadata=dict(attributes.get("user_metadata") or {}),
        )
        self.users[user_id] = user
        return SimpleNamespace(user=user)

    def delete_user(self, user_id: str) -> None:
        self.deleted.append(user_id)
        self.users.pop(user_id, None)

    def get_user_by_id(self, user_id: str):
        if user_id not in self.users:
            error = RuntimeError("User not found")
            error.status = 404
            raise error
        return SimpleNamespace(user=self.users[user_id])

    def list_users(self):
        return list(self.users.values())


class FakeAuth:
    def __init__(self) -> None:
        self.admin = FakeAdminAuth()
        self.tokens: dict[str, SimpleNamespace] = {}

    def add_token(self, token: str, user_id: str, email: str, role: str | None = None, *, in_app_metadata=True):
        metadata = {"role": role} if role else {}
        user = SimpleNamespace(
            id=user_id,
            email=email,
            app_metadata=metadata if in_app_metadata else {},
            user_metadata={} if in_app_metadata else metadata,
        )
        self.tokens[token] = user
        self.admin.users[user_id] = user

    def get_user(self, token: str):
        if token not in self.tokens:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=self.tokens[token])


class FakeBucket:
    def __init__(self, files: dict[str, bytes]) -> None:
        self.files = files

    def download(self, path: str) -> bytes:
        if path not in self.files:
            raise RuntimeError("Object not found")
        return self.files[path]


class FakeStorage:
    def __init__(self) -> None:
        self.buckets: dict[str, dict[str, bytes]] = {}

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self.buckets.setdefault(bucket, {}))


class FakeSupabase:
    def __init__(self) -> None:
        self.tables: dict[str, list[dict]] = {}
        self.failing_tables: set[str] = set()
        self.executed: list[str] = []
        self.auth = FakeAuth()
        self.storage = FakeStorage()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


@pytest.fixture
def fake_supabase(monkeypatch: pytest.MonkeyPatch) -> FakeSupabase:
    from pestops.api import dependencies
    from pestops.api.routes import health
    from pestops.data import repository
    from pestops.services.admin import users

    backend = FakeSupabase()
    for module in (repository, users, dependencies, health):
        monkeypatch.setattr(module, "get_supabase_client", lambda: backend)
    return backend


@pytest.fixture
def data_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    from pestops.config import settings

    monkeypatch.setattr(settings, "data_root", tmp_path)
    return tmp_path


@pytest.fixture
def api_client(data_root: Path) -> TestClient:
    from pestops.main import create_app

    return TestClient(create_app())


@pytest.fixture
def pricing_dataset(fake_supabase: FakeSupabase) -> FakeSupabase:
    """Two operators: A with three priced visits and two sales, B with two unpriced visits."""

    fake_supabase.tables.update(
        {
            "operators": [{"id": "op-a", "name": "Ayse"}, {"id": "op-b", "name": "Burak"}],
            "branches": [
                {"id": "br-x", "customer_id": "cu-1", "sube_adi": "X"},
                {"id": "br-y", "customer_id": "cu-2", "sube_adi": "Y"},
            ],
            "customer_pricing": [{"customer_id": "cu-1", "monthly_price": 900, "per_visit_price": None}],
            "branch_pricing": [],
            "visits": [
                {"id": "v1", "operator_id": "op-a", "branch_id": "br-x", "customer_id": "cu-1",
                 "visit_date": "2024-03-04T09:00:00", "status": "completed"},
                {"id": "v2", "operator_id": "op-a", "branch_id": "br-x", "customer_id": "cu-1",
                 "visit_date": "2024-03-11T09:00:00", "status": "completed"},
                {"id": "v3", "operator_id": "op-a", "branch_id": "br-x", "customer_id": "cu-1",
                 "visit_date": "2024-03-18T09:00:00", "status": "completed"},
                {"id": "v4", "operator_id": "op-b", "branch_id": "br-y", "customer_id": "cu-2",
                 "visit_date": "2024-03-05T10:00:00", "status": "completed"},
                {"id": "v5", "operator_id": "op-b", "branch_id": "br-y", "customer_id": "cu-2",
                 "visit_date": "2024-03-06T10:00:00", "status": "completed"},
                {"id": "v6", "operator_id": "op-b", "branch_id": "br-y", "customer_id": "cu-2",
                 "visit_date": "2024-03-07T10:00:00", "status": "planned"},
            ],
            "paid_material_sales": [
                {"id": "s1", "visit_id": "v1", "total_amount": 150, "sale_date": "2024-03-04T09:30:00"},
                {"id": "s2", "visit_id": "v2", "total_amount": 50, "sale_date": "2024-03-11T09:30:00"},
            ],
        }
    )
    return fake_supabase
