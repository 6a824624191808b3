from __future__ import annotations

import json
import tomllib
import uuid
from pathlib import Path

from typer.testing import CliRunner

from rowbind.cli.app import app

ROOT = Path(__file__).resolve().parents[1]

runner = CliRunner()

MODEL_SOURCE = """
from typing import Annotated

from rowbind.directives import Parsed, Trim


class Person:
    name: Annotated[str, Parsed(), Trim()]
    age: Annotated[int, Parsed()]
"""


def _write_model(tmp_path: Path) -> str:
    module_name = f"cli_models_{uuid.uuid4().hex}"
    (tmp_path / f"{module_name}.py").write_text(MODEL_SOURCE, encoding="utf-8")
    return f"{module_name}:Person"


def _expected_version() -> str:
    return tomllib.loads((ROOT / "pyproject.toml").read_text(encoding="utf-8"))["project"]["version"]


def test_no_args_shows_help() -> None:
    result = runner.invoke(app, [])
    assert "Usage:" in result.output


def test_version_flag_and_command() -> None:
    flag = runner.invoke(app, ["--version"])
    command = runner.invoke(app, ["version"])

    assert flag.exit_code == 0
    assert flag.stdout.strip() == _expected_version()
    assert command.exit_code == 0
    assert command.stdout.strip() == _expected_version()


def test_inspect_lists_bindings(tmp_path: Path) -> None:
    model = _write_model(tmp_path)

    result = runner.invoke(app, ["inspect", "--model", model, "--model-path", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert "Person: 2 binding(s)" in result.stdout
    assert "name <- column 'name': TrimConversion(length=-1)" in result.stdout
    assert "age <- column 'age': IntegerConversion(null_read=None, null_write=None)" in result.stdout
    assert "headers: name, age" in result.stdout


def test_read_prints_ndjson_records(tmp_path: Path) -> None:
    model = _write_model(tmp_path)
    source = tmp_path / "people.csv"
    source.write_text("age,name\n30, Alice \n41,Bob\n", encoding="utf-8")

    result = runner.invoke(
        app,
        ["read", "--model", model, "--model-path", str(tmp_path), "--input", str(source), "--quiet"],
    )

    assert result.exit_code == 0, result.output
    records = [json.loads(line) for line in result.stdout.splitlines() if line.strip()]
    assert records == [{"name": "Alice", "age": 30}, {"name": "Bob", "age": 41}]


def test_read_fails_on_bad_values(tmp_path: Path) -> None:
    model = _write_model(tmp_path)
    source = tmp_path / "people.csv"
    source.write_text("name,age\nAlice,old\n", encoding="utf-8")

    result = runner.invoke(
        app,
        ["read", "--model", model, "--model-path", str(tmp_path), "--input", str(source), "--quiet"],
    )

    assert result.exit_code == 1


def test_read_rejects_unknown_model(tmp_path: Path) -> None:
    source = tmp_path / "people.csv"
    source.write_text("name,age\n", encoding="utf-8")

    result = runner.invoke(app, ["read", "--model", "no_such_module:Person", "--input", str(source)])

    assert result.exit_code == 2
