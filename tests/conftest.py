"""
Pytest configuration and fixtures for the compendium scripts.

FakeClient stands in for a supabase Client: it supports the query-builder
calls the scripts make (table().select/insert/update, order, range, limit, eq,
rpc) against in-memory tables, and can be told to fail.
"""

import sys
from pathlib import Path

import pytest

# Scripts live at the repo root
root_path = Path(__file__).parent.parent
if str(root_path) not in sys.path:
    sys.path.insert(0, str(root_path))

from db_clients import StoreReader, StoreWriter  # noqa: E402


class FakeAPIError(Exception):
    """Shaped like postgrest.exceptions.APIError."""

    def __init__(self, error: dict):
        self.code = error.get("code")
        self.message = error.get("message")
        super().__init__(error)


class FakeResponse:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


def _sort_key(value):
    # nulls last, as Postgres does for ascending order
    return (value is None, "" if value is None else value)


class FakeQuery:
    def __init__(self, client, table, op, payload=None, columns="*", count=None):
        self.client = client
        self.table = table
        self.op = op
        self.payload = payload
        self.columns = columns
        self.count = count
        self.start = None
        self.end = None
        self.limit_n = None
        self.order_by = None
        self.filters = []

    def range(self, start, end):
        self.start, self.end = start, end
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def _matches(self, row):
        return all(row.get(c) == v for c, v in self.filters)

    def _project(self, row):
        if self.columns.strip() == "*":
            return dict(row)
        cols = [c.strip() for c in self.columns.split(",")]
        return {c: row.get(c) for c in cols}

    def execute(self):
        self.client.calls.append((self.op, self.table, self.payload))
        for op, table, exc, when in self.client.failures:
            if op == self.op and table == self.table and when(self.payload):
                raise exc
        if self.op == "rpc":
            handler = self.client.rpc_handlers.get(self.table)
            if handler is None:
                raise FakeAPIError({"code": "PGRST202", "message": f"Could not find the function public.{self.table}"})
            return FakeResponse(handler(self.payload))
        if self.table not in self.client.tables:
            raise FakeAPIError({"code": "42P01", "message": f'relation "public.{self.table}" does not exist'})
        rows = self.client.tables[self.table]
        if self.op == "select":
            matched = [r for r in rows if self._matches(r)]
            total = len(matched)
            if self.order_by:
                column, desc = self.order_by
                matched = sorted(matched, key=lambda r: _sort_key(r.get(column)), reverse=desc)
            if self.start is not None:
                matched = matched[self.start:self.end + 1]
            if self.limit_n is not None:
                matched = matched[:self.limit_n]
            return FakeResponse([self._project(r) for r in matched], total if self.count else None)
        if self.op == "insert":
            new_rows = self.payload if isinstance(self.payload, list) else [self.payload]
            unique_col = self.client.unique.get(self.table)
            for row in new_rows:
                if unique_col and any(r.get(unique_col) == row.get(unique_col) for r in rows):
                    raise FakeAPIError({
                        "code": "23505",
                        "message": f'duplicate key value violates unique constraint "{self.table}_{unique_col}_key"',
                    })
                rows.append(dict(row))
            return FakeResponse([dict(r) for r in new_rows])
        if self.op == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
                    updated.append(dict(row))
            return FakeResponse(updated)
        raise AssertionError(f"unsupported op {self.op}")


class FakeTable:
    def __init__(self, client, name):
        self.client = client
        self.name = name

    def select(self, columns="*", count=None):
        return FakeQuery(self.client, self.name, "select", columns=columns, count=count)

    def insert(self, rows):
        return FakeQuery(self.client, self.name, "insert", payload=rows)

    def update(self, values):
        return FakeQuery(self.client, self.name, "update", payload=values)


class FakeClient:
    def __init__(self, tables=None, unique=None):
        self.tables = {k: [dict(r) for r in v] for k, v in (tables or {}).items()}
        self.unique = dict(unique or {})
        self.calls = []
        self.failures = []
        self.rpc_handlers = {}

    def table(self, name):
        return FakeTable(self, name)

    def rpc(self, name, params=None):
        return FakeQuery(self, name, "rpc", payload=params)

    def fail(self, op, table, error, when=lambda payload: True):
        """Make matching requests raise error (a dict becomes a FakeAPIError)."""
        exc = FakeAPIError(error) if isinstance(error, dict) else error
        self.failures.append((op, table, exc, when))

    def ops(self, op, table=None):
        return [c for c in self.calls if c[0] == op and (table is None or c[1] == table)]


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def make_reader():
    def _make(tables=None, unique=None):
        client = FakeClient(tables, unique)
        return StoreReader(client), client
    return _make


@pytest.fixture
def make_writer():
    def _make(tables=None, unique=None):
        client = FakeClient(tables, unique)
        return StoreWriter(client), client
    return _make
