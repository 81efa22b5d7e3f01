"""
Tests for merging two monster exports.
"""

from __future__ import annotations

import json

import pytest

from combine_monster_files import combine_exports
from db_errors import MalformedInput


def write_export(path, results):
    path.write_text(json.dumps({"count": len(results), "next": None, "previous": None, "results": results}),
                    encoding="utf-8")
    return path


def test_main_file_copies_win_and_main_is_backed_up(tmp_path):
    main = write_export(tmp_path / "monsters.json", [{"name": "Aboleth", "slug": "aboleth", "src": "main"}])
    extra = write_export(tmp_path / "monsters_remaining.json", [
        {"name": "Aboleth", "slug": "aboleth", "src": "extra"},
        {"name": "Zombie", "slug": "zombie"},
    ])
    main_before, extra_before = main.read_bytes(), extra.read_bytes()

    result = combine_exports(main, extra)

    combined = json.loads(main.read_text(encoding="utf-8"))
    assert combined["count"] == 2
    assert [(r["slug"], r.get("src")) for r in combined["results"]] == [("aboleth", "main"), ("zombie", None)]
    assert [d.index for d in result.discarded] == [1]
    assert (tmp_path / "monsters_complete_backup.json").read_bytes() == main_before
    assert extra.read_bytes() == extra_before


def test_malformed_second_file_leaves_everything_alone(tmp_path):
    main = write_export(tmp_path / "monsters.json", [{"name": "Imp"}])
    extra = tmp_path / "monsters_remaining.json"
    extra.write_text('{"results": 5}', encoding="utf-8")
    before = main.read_bytes()
    with pytest.raises(MalformedInput) as excinfo:
        combine_exports(main, extra)
    assert excinfo.value.path == extra
    assert main.read_bytes() == before
    assert not (tmp_path / "monsters_complete_backup.json").exists()
