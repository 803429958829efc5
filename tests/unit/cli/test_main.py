"""Unit tests for CLI command handling."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from cli.main import main


@pytest.fixture(autouse=True)
def _clear_lithedb_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("LITHEDB_TARGET", "LITHEDB_BACKUP", "LITHEDB_WRITE_RETRIES"):
        monkeypatch.delenv(name, raising=False)


def _run(db_path: Path, capsys: pytest.CaptureFixture[str], *args: str) -> tuple[int, str]:
    exit_code = main(["--db", str(db_path), *args])
    return exit_code, capsys.readouterr().out.strip()


def test_cli_insert_prints_record(tmp_path: Path, capsys) -> None:
    """CLI insert should print the stored record as JSON."""
    exit_code, output = _run(tmp_path / "db.json", capsys, "insert", "users", '{"name":"Alice"}')

    record = json.loads(output)

    assert exit_code == 0 and record["name"] == "Alice" and record["id"].endswith("_users")


def test_cli_find_applies_query_sort_and_limit(tmp_path: Path, capsys) -> None:
    """CLI find should filter, sort and truncate results."""
    db_path = tmp_path / "db.json"
    for age in (20, 40, 30):
        _run(db_path, capsys, "insert", "users", json.dumps({"age": age, "team": "red"}))

    exit_code, output = _run(
        db_path, capsys, "find", "users", '{"team":"red"}', "--sort", '{"age":"desc"}', "--limit", "2"
    )

    assert exit_code == 0 and [record["age"] for record in json.loads(output)] == [40, 30]


def test_cli_find_one_prints_null_when_missing(tmp_path: Path, capsys) -> None:
    """CLI find-one should print null for no match."""
    exit_code, output = _run(tmp_path / "db.json", capsys, "find-one", "users", '{"name":"x"}')

    assert exit_code == 0 and output == "null"


def test_cli_update_remove_and_count(tmp_path: Path, capsys) -> None:
    """CLI write commands should report affected counts."""
    db_path = tmp_path / "db.json"
    _run(db_path, capsys, "insert", "users", '{"name":"a"}')
    _run(db_path, capsys, "insert", "users", '{"name":"b"}')

    _, updated = _run(db_path, capsys, "update", "users", '{"name":"a"}', '{"active":true}')
    _, counted = _run(db_path, capsys, "count", "users", '{"active":true}')
    _, removed = _run(db_path, capsys, "remove", "users", '{"name":"b"}')

    assert json.loads(updated) == {"updated": 1} and json.loads(counted) == {"count": 1}
    assert json.loads(removed) == {"removed": 1}


def test_cli_unique_violation_exits_with_error(tmp_path: Path, capsys) -> None:
    """Constraint failures should print an error and exit non-zero."""
    db_path = tmp_path / "db.json"
    _run(db_path, capsys, "index", "users", "email", "--unique")
    _run(db_path, capsys, "insert", "users", '{"email":"a@x.com"}')

    exit_code = main(["--db", str(db_path), "insert", "users", '{"email":"a@x.com"}'])
    captured = capsys.readouterr()

    assert exit_code == 1 and "Unique constraint violation" in captured.err
    assert captured.out == ""


def test_cli_relation_and_populate(tmp_path: Path, capsys) -> None:
    """CLI relation should enable populated reads."""
    db_path = tmp_path / "db.json"
    _, message = _run(db_path, capsys, "relation", "posts", "author", "--ref", "users")
    _, author = _run(db_path, capsys, "insert", "users", '{"name":"Ada"}')
    author_id = json.loads(author)["id"]
    _run(db_path, capsys, "insert", "posts", json.dumps({"author": author_id}))

    _, output = _run(db_path, capsys, "find", "posts", "--populate")

    assert json.loads(message) == {"message": "Relation defined: posts.author -> users.id"}
    assert json.loads(output)[0]["author"]["name"] == "Ada"


def test_cli_text_format_renders_record_blocks(tmp_path: Path, capsys) -> None:
    """Text output should label each record block with its id."""
    db_path = tmp_path / "db.json"
    _, inserted = _run(db_path, capsys, "insert", "users", '{"name":"Alice"}')
    record_id = json.loads(inserted)["id"]

    _, output = _run(db_path, capsys, "--format", "text", "find", "users")

    assert f"[ Record 1: {record_id} ]" in output and "Alice" in output


def test_cli_run_script_applies_steps(tmp_path: Path, capsys) -> None:
    """run-script should print one output line per step."""
    db_path = tmp_path / "db.json"
    script_path = tmp_path / "seed.yaml"
    script_path.write_text(
        "version: 1\n"
        "steps:\n"
        "  - command: index\n"
        "    collection: users\n"
        "    field: email\n"
        "  - command: insert\n"
        "    collection: users\n"
        "    data: {email: a@x.com}\n",
        encoding="utf-8",
    )

    exit_code, output = _run(db_path, capsys, "run-script", str(script_path))

    lines = output.splitlines()
    assert exit_code == 0 and lines[0] == "index=users.email"
    assert lines[1].startswith("inserted=000001_users")


def test_cli_rejects_invalid_json_argument(tmp_path: Path) -> None:
    """Malformed JSON arguments should fail argument parsing."""
    with pytest.raises(SystemExit):
        main(["--db", str(tmp_path / "db.json"), "insert", "users", "{not json"])


def test_cli_run_script_reports_invalid_values(tmp_path: Path, capsys) -> None:
    """Script values JSON cannot store should exit 1 without writing."""
    db_path = tmp_path / "db.json"
    script_path = tmp_path / "seed.yaml"
    script_path.write_text(
        "version: 1\n"
        "steps:\n"
        "  - command: insert\n"
        "    collection: users\n"
        "    data: {born: 2024-01-01}\n",
        encoding="utf-8",
    )

    exit_code = main(["--db", str(db_path), "run-script", str(script_path)])
    captured = capsys.readouterr()

    assert exit_code == 1 and "Error: " in captured.err and "born: date" in captured.err
    assert not db_path.exists()
