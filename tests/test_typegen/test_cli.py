"""Tests for src.typegen.cli module."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import yaml
from typer.testing import CliRunner

from src.typegen.cli import app

runner = CliRunner()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "LOG_LEVEL",
        "TYPEGEN_MAX_FILE_SIZE",
        "TYPEGEN_DEFAULT_OUTPUT",
        "TYPEGEN_ENUM_TYPE",
        "TYPEGEN_USE_UNKNOWN",
        "TYPEGEN_EXPORT_EVERYTHING",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def spec_file(tmp_path: Path, order_spec: dict[str, Any]) -> Path:
    path = tmp_path / "orders.yaml"
    path.write_text(yaml.safe_dump(order_spec, sort_keys=False), encoding="utf-8")
    return path


@pytest.fixture
def untyped_spec_file(tmp_path: Path) -> Path:
    path = tmp_path / "untyped.json"
    path.write_text(
        json.dumps(
            {
                "asyncapi": "3.0.0",
                "info": {"title": "Loose API", "version": "0.1.0"},
                "channels": {},
                "components": {"schemas": {"Anything": {}}},
            }
        ),
        encoding="utf-8",
    )
    return path


# ---------------------------------------------------------------------------
# App registration
# ---------------------------------------------------------------------------


class TestAppRegistration:
    def test_all_commands_registered(self):
        command_names = {cmd.name or cmd.callback.__name__ for cmd in app.registered_commands}
        assert command_names == {"generate", "validate"}

    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "asyncapi-typegen" in result.output
        assert "0.1.0" in result.output


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------


class TestGenerateCommand:
    def test_generate_writes_typescript(self, spec_file: Path, tmp_path: Path):
        output = tmp_path / "nested" / "dir" / "types.ts"
        result = runner.invoke(app, ["generate", str(spec_file), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert output.exists()
        content = output.read_text(encoding="utf-8")
        assert content.startswith("/**\n * Generated from AsyncAPI spec: Orders API v1.0.0")
        assert "export interface OrderItem {" in content
        assert "export type OrderStatus = 'pending' | 'confirmed'" in content
        assert "Orders API" in result.output
        assert "Success" in result.output

    def test_generate_enum_type_option(self, spec_file: Path, tmp_path: Path):
        output = tmp_path / "types.ts"
        result = runner.invoke(
            app, ["generate", str(spec_file), "-o", str(output), "--enum-type", "enum"]
        )

        assert result.exit_code == 0, result.output
        content = output.read_text(encoding="utf-8")
        assert "export enum OrderStatus {" in content
        assert "  PENDING = 'pending'," in content

    def test_generate_no_use_unknown(self, untyped_spec_file: Path, tmp_path: Path):
        output = tmp_path / "types.ts"
        result = runner.invoke(
            app, ["generate", str(untyped_spec_file), "-o", str(output), "--no-use-unknown"]
        )

        assert result.exit_code == 0, result.output
        assert "export type Anything = any;" in output.read_text(encoding="utf-8")

    def test_generate_uses_unknown_by_default(self, untyped_spec_file: Path, tmp_path: Path):
        output = tmp_path / "types.ts"
        result = runner.invoke(app, ["generate", str(untyped_spec_file), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert "export type Anything = unknown;" in output.read_text(encoding="utf-8")

    def test_settings_supply_defaults(
        self, untyped_spec_file: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setenv("TYPEGEN_USE_UNKNOWN", "false")
        output = tmp_path / "types.ts"
        result = runner.invoke(app, ["generate", str(untyped_spec_file), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert "export type Anything = any;" in output.read_text(encoding="utf-8")

    def test_flag_overrides_settings(
        self, untyped_spec_file: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setenv("TYPEGEN_USE_UNKNOWN", "false")
        output = tmp_path / "types.ts"
        result = runner.invoke(
            app, ["generate", str(untyped_spec_file), "-o", str(output), "--use-unknown"]
        )

        assert result.exit_code == 0, result.output
        assert "export type Anything = unknown;" in output.read_text(encoding="utf-8")

    def test_default_output_path(
        self, spec_file: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["generate", str(spec_file)])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "generated-types.ts").exists()

    def test_invalid_input_extension(self, tmp_path: Path):
        source = tmp_path / "spec.txt"
        source.write_text("asyncapi: 3.0.0\n", encoding="utf-8")
        result = runner.invoke(app, ["generate", str(source)])

        assert result.exit_code == 2
        assert "Invalid file extension" in result.output

    def test_invalid_output_extension(self, spec_file: Path, tmp_path: Path):
        result = runner.invoke(
            app, ["generate", str(spec_file), "-o", str(tmp_path / "types.js")]
        )

        assert result.exit_code == 2
        assert "Output file must have .ts extension" in result.output

    def test_invalid_enum_type(self, spec_file: Path, tmp_path: Path):
        result = runner.invoke(
            app,
            ["generate", str(spec_file), "-o", str(tmp_path / "t.ts"), "--enum-type", "const"],
        )

        assert result.exit_code == 2
        assert "Invalid enum type" in result.output

    def test_empty_input_path(self):
        result = runner.invoke(app, ["generate", ""])

        assert result.exit_code == 2
        assert "must not be empty" in result.output

    def test_input_path_too_long(self):
        result = runner.invoke(app, ["generate", "a" * 4100 + ".yaml"])

        assert result.exit_code == 2
        assert "too long" in result.output

    def test_missing_input_file(self, tmp_path: Path):
        result = runner.invoke(app, ["generate", str(tmp_path / "missing.yaml")])

        assert result.exit_code == 2
        assert "File not found" in result.output

    def test_unparseable_input(self, tmp_path: Path):
        source = tmp_path / "broken.json"
        source.write_text("{not json", encoding="utf-8")
        result = runner.invoke(app, ["generate", str(source), "-o", str(tmp_path / "t.ts")])

        assert result.exit_code == 3
        assert not (tmp_path / "t.ts").exists()

    def test_invalid_document(self, tmp_path: Path):
        source = tmp_path / "old.yaml"
        source.write_text("asyncapi: 2.6.0\ninfo:\n  title: Old\n  version: 1.0.0\n")
        output = tmp_path / "t.ts"
        result = runner.invoke(app, ["generate", str(source), "-o", str(output)])

        assert result.exit_code == 4
        assert "Failed to parse AsyncAPI" in result.output
        assert not output.exists()

    def test_deeply_nested_document(self, tmp_path: Path):
        levels = 200
        schema = (
            '{"type": "object", "properties": {"child": ' * levels
            + '{"type": "string"}'
            + "}}" * levels
        )
        source = tmp_path / "deep.json"
        source.write_text(
            '{"asyncapi": "3.0.0", "info": {"title": "Deep", "version": "1.0.0"}, '
            '"channels": {}, "components": {"schemas": {"Deep": ' + schema + "}}}",
            encoding="utf-8",
        )
        output = tmp_path / "t.ts"
        result = runner.invoke(app, ["generate", str(source), "-o", str(output)])

        assert result.exit_code == 4
        assert not isinstance(result.exception, RecursionError)
        assert "Document nesting too deep" in result.output
        assert not output.exists()

    def test_unwritable_output(self, spec_file: Path, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        result = runner.invoke(
            app, ["generate", str(spec_file), "-o", str(blocker / "types.ts")]
        )

        assert result.exit_code == 5

    def test_structured_logs_when_enabled(
        self, spec_file: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setenv("LOG_LEVEL", "info")
        result = runner.invoke(
            app, ["generate", str(spec_file), "-o", str(tmp_path / "types.ts")]
        )

        assert result.exit_code == 0, result.output
        assert '"service_name": "asyncapi-typegen"' in result.output
        assert '"run_id": "' in result.output


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------


class TestValidateCommand:
    def test_validate_success(self, spec_file: Path):
        result = runner.invoke(app, ["validate", str(spec_file)])

        assert result.exit_code == 0, result.output
        assert "Orders API" in result.output
        assert "1.0.0" in result.output
        assert "Order lifecycle events" in result.output

    def test_validate_reports_warnings(self, tmp_path: Path):
        source = tmp_path / "bare.yml"
        source.write_text("asyncapi: 3.0.0\ninfo:\n  title: Bare\n  version: 0.0.1\n")
        result = runner.invoke(app, ["validate", str(source)])

        assert result.exit_code == 0, result.output
        assert "Document declares no 'channels'" in result.output

    def test_validate_invalid_document(self, tmp_path: Path):
        source = tmp_path / "bad.yaml"
        source.write_text("asyncapi: 3.0.0\ninfo:\n  version: 1.0.0\n")
        result = runner.invoke(app, ["validate", str(source)])

        assert result.exit_code == 4

    def test_validate_missing_file(self, tmp_path: Path):
        result = runner.invoke(app, ["validate", str(tmp_path / "nope.json")])

        assert result.exit_code == 2
        assert "File not found" in result.output

    def test_validate_does_not_write_output(self, spec_file: Path, tmp_path: Path):
        before = set(tmp_path.iterdir())
        runner.invoke(app, ["validate", str(spec_file)])
        assert set(tmp_path.iterdir()) == before
