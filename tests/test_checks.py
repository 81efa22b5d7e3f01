"""
Tests for the table count, RLS, catalog inspection and add-column scripts.
"""

from __future__ import annotations

import pytest

from add_column import add_column, add_column_sql, has_column
from check_monster_types_table import summarize_catalog
from check_rls import compare_tiers
from db_clients import StoreReader
from db_table_counts import count_tables


def test_count_tables_isolates_failures(make_reader, capsys):
    store, _ = make_reader({"monsters": [{"id": 1}, {"id": 2}], "spells": [{"id": 1}]})
    rows = count_tables(store, ["monsters", "armor", "spells"])
    assert [(r["table"], r["count"]) for r in rows] == [("monsters", 2), ("armor", None), ("spells", 1)]
    assert "42P01" in rows[1]["error"]
    assert "armor: error" in capsys.readouterr().err


def test_compare_tiers_detects_hidden_rows(make_reader):
    anon, _ = make_reader({"monsters": [{"id": 1}]})
    service, _ = make_reader({"monsters": [{"id": 1}, {"id": 2}]})
    assert compare_tiers(anon, service, "monsters") == "hidden"
    assert compare_tiers(service, service, "monsters") == "same"
    assert compare_tiers(anon, service, "spells") == "unknown"


def test_summarize_catalog(make_reader):
    store, _ = make_reader({"monster_types": [
        {"id": 1, "type_name": "beast", "icon_image": None},
        {"id": 2, "type_name": "fey", "icon_image": "u"},
        {"id": 3, "type_name": "aberration", "icon_image": ""},
    ]})
    summary = summarize_catalog(store, "monster_types", samples=2)
    assert summary["count"] == 3
    assert summary["columns"] == ["id", "type_name", "icon_image"]
    assert len(summary["samples"]) == 2
    assert summary["missing_image"] == ["aberration", "beast"]


def test_summarize_empty_catalog(make_reader):
    store, _ = make_reader({"monster_types": []})
    assert summarize_catalog(store, "monster_types")["columns"] == []


def test_add_column_sql():
    assert add_column_sql("monster_types", "image_generation_status") == (
        "ALTER TABLE monster_types ADD COLUMN IF NOT EXISTS image_generation_status TEXT DEFAULT NULL;"
    )
    assert add_column_sql("monsters", "has_underscores", "BOOLEAN", "FALSE").endswith("BOOLEAN DEFAULT FALSE;")
    assert "VARCHAR(255)" in add_column_sql("monsters", "slug2", "VARCHAR(255)", "'x'")


@pytest.mark.parametrize("table, column, column_type, default", [
    ("monsters; DROP TABLE monsters", "x", "TEXT", "NULL"),
    ("monsters", "x y", "TEXT", "NULL"),
    ("monsters", "x", "TEXT; DROP", "NULL"),
    ("monsters", "x", "TEXT", "now()); DROP TABLE monsters; --"),
])
def test_add_column_sql_rejects_bad_input(table, column, column_type, default):
    with pytest.raises(ValueError):
        add_column_sql(table, column, column_type, default)


def test_add_column_runs_exec_sql(make_writer):
    store, client = make_writer({"monster_types": [{"id": 1}]})
    sent = []
    client.rpc_handlers["exec_sql"] = lambda params: sent.append(params["sql"]) or None
    assert add_column(store, "monster_types", "icon_image") is True
    assert sent == ["ALTER TABLE monster_types ADD COLUMN IF NOT EXISTS icon_image TEXT DEFAULT NULL;"]


def test_add_column_prints_sql_when_rpc_missing(make_writer, capsys):
    store, _ = make_writer({"monster_types": [{"id": 1}]})
    assert add_column(store, "monster_types", "icon_image") is False
    out = capsys.readouterr()
    assert "ALTER TABLE monster_types ADD COLUMN IF NOT EXISTS icon_image" in out.out
    assert "PGRST202" in out.err


def test_has_column(make_writer):
    store, _ = make_writer({"monster_types": [{"id": 1, "icon_image": None}], "empty": []})
    assert has_column(store, "monster_types", "icon_image") is True
    assert has_column(store, "monster_types", "visual_description") is False
    assert has_column(store, "empty", "icon_image") is None
    assert isinstance(store, StoreReader)
