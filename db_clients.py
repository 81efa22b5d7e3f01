"""
Supabase handles scoped to a credential tier.

open_store(settings, "anon") gives a read-only StoreReader (row-level security
applies). open_store(settings, "service") gives a StoreWriter, which can also
insert, update and run SQL through the exec_sql RPC. Writes to the catalog
tables need the service tier in practice.

Every request goes through _execute, so a remote error always surfaces as
RemoteRequestFailed naming the operation, the table and the Postgres/PostgREST
code.
"""

from __future__ import annotations

from supabase import create_client

from db_config import ANON, SERVICE, Settings
from db_errors import RemoteRequestFailed

PAGE_SIZE = 1000


def error_details(err: Exception) -> tuple[str, str]:
    """Pull (code, message) out of a postgrest APIError or anything shaped like one."""
    code = getattr(err, "code", None)
    message = getattr(err, "message", None)
    if getattr(err, "args", None) and isinstance(err.args[0], dict):
        d = err.args[0]
        code = code or d.get("code")
        message = message or d.get("message")
    return (str(code) if code else ""), (str(message) if message else str(err))


class StoreReader:
    """Read-only access: select, paginated select, exact count."""

    tier = ANON

    def __init__(self, client):
        self.client = client

    def _execute(self, operation: str, target: str, query):
        try:
            return query.execute()
        except Exception as e:
            code, message = error_details(e)
            raise RemoteRequestFailed(operation, target, code, message) from e

    def select(self, table: str, columns: str = "*", *, limit: int | None = None,
               start: int | None = None, end: int | None = None, order: str | None = None) -> list[dict]:
        query = self.client.table(table).select(columns)
        if order:
            query = query.order(order)
        if start is not None and end is not None:
            query = query.range(start, end)
        if limit is not None:
            query = query.limit(limit)
        resp = self._execute("select", table, query)
        return list(resp.data or [])

    def select_all(self, table: str, columns: str = "*", page_size: int = PAGE_SIZE,
                   order: str | None = None) -> list[dict]:
        """
        Fetch all rows (paginated by range). Stops on an empty or short page.

        Pass order (a unique column such as id) so pages do not overlap or skip
        rows; without it Postgres gives no stable order between requests.
        """
        out: list[dict] = []
        offset = 0
        while True:
            rows = self.select(table, columns, start=offset, end=offset + page_size - 1, order=order)
            if not rows:
                break
            out.extend(rows)
            if len(rows) < page_size:
                break
            offset += page_size
        return out

    def count(self, table: str, column: str = "*") -> int:
        query = self.client.table(table).select(column, count="exact").limit(1)
        resp = self._execute("count", table, query)
        if resp.count is None:
            raise RemoteRequestFailed("count", table, "", "response carried no exact count")
        return int(resp.count)


class StoreWriter(StoreReader):
    """Service-role access: everything StoreReader does plus writes."""

    tier = SERVICE

    def insert(self, table: str, rows: list[dict] | dict) -> list[dict]:
        resp = self._execute("insert into", table, self.client.table(table).insert(rows))
        return list(resp.data or [])

    def update(self, table: str, values: dict, match: dict) -> list[dict]:
        if not match:
            raise ValueError("update needs at least one match column")
        query = self.client.table(table).update(values)
        for col, val in match.items():
            query = query.eq(col, val)
        resp = self._execute("update", table, query)
        return list(resp.data or [])

    def exec_sql(self, sql: str):
        """Run SQL through the exec_sql(sql text) RPC. The function must exist in the database."""
        resp = self._execute("rpc", "exec_sql", self.client.rpc("exec_sql", {"sql": sql}))
        return resp.data


def open_store(settings: Settings, tier: str = ANON) -> StoreReader:
    """Create a Supabase client for the tier. Raises ConfigurationMissing before connecting."""
    url, key = settings.require_store(tier)
    client = create_client(url, key)
    if tier == SERVICE:
        return StoreWriter(client)
    return StoreReader(client)
