"""Command-line entry point: ``asyncapi-typegen generate|validate``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from src.shared.config import TypeGenConfig
from src.shared.constants import (
    ALLOWED_INPUT_EXTENSIONS,
    LOGGER_NAMESPACE,
    MAX_PATH_LENGTH,
    OUTPUT_EXTENSION,
    SERVICE_NAME,
)
from src.shared.errors import ConfigurationError, OutputWriteError, TypeGenError
from src.shared.logging import new_run_id, setup_logging
from src.shared.models.generation import EnumStyle
from src.typegen import display
from src.typegen.services.spec_loader import load_asyncapi_file
from src.typegen.services.typescript_generator import TypeScriptGenerator

logger = logging.getLogger(__name__)

app = typer.Typer(
    name=SERVICE_NAME,
    help="Generate TypeScript type declarations from AsyncAPI 3.x documents.",
    no_args_is_help=True,
    add_completion=False,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_config() -> TypeGenConfig:
    try:
        return TypeGenConfig()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc


def _start_run(config: TypeGenConfig) -> None:
    setup_logging(SERVICE_NAME, config.log_level, logger_name=LOGGER_NAMESPACE)
    run_id = new_run_id()
    logger.debug("Starting run %s", run_id)


def _check_path_length(path: str, label: str) -> None:
    if not path.strip():
        raise ConfigurationError(f"{label} path must not be empty")
    if len(path) > MAX_PATH_LENGTH:
        raise ConfigurationError(
            f"{label} path is too long (maximum {MAX_PATH_LENGTH} characters)"
        )


def _validate_input_path(path: str) -> Path:
    _check_path_length(path, "Input")
    if Path(path).suffix.lower() not in ALLOWED_INPUT_EXTENSIONS:
        raise ConfigurationError(
            f"Invalid file extension. Allowed: {', '.join(ALLOWED_INPUT_EXTENSIONS)}"
        )
    return Path(path)


def _validate_output_path(path: str) -> Path:
    _check_path_length(path, "Output")
    if Path(path).suffix.lower() != OUTPUT_EXTENSION:
        raise ConfigurationError(f"Output file must have {OUTPUT_EXTENSION} extension")
    return Path(path)


def _parse_enum_type(value: Optional[str]) -> Optional[EnumStyle]:
    if value is None:
        return None
    try:
        return EnumStyle(value.lower())
    except ValueError as exc:
        allowed = ", ".join(style.value for style in EnumStyle)
        raise ConfigurationError(
            f"Invalid enum type '{value}'. Allowed: {allowed}"
        ) from exc


def _write_output(path: Path, content: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise OutputWriteError(f"Failed to write output file {path}: {exc}") from exc


def _fail(exc: TypeGenError) -> None:
    logger.debug("Command failed: %s", exc.detail)
    display.print_error(exc)
    raise typer.Exit(code=exc.exit_code)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _version_callback(value: bool) -> None:
    if value:
        display.print_version()
        raise typer.Exit()


@app.callback()
def _root(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Generate TypeScript type declarations from AsyncAPI 3.x documents."""


@app.command()
def generate(
    input_path: str = typer.Argument(..., metavar="INPUT", help="AsyncAPI document (.json, .yml, .yaml)"),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Output TypeScript file (default: generated-types.ts)"
    ),
    enum_type: Optional[str] = typer.Option(
        None, "--enum-type", help="Render string enums as 'union' or 'enum'"
    ),
    use_unknown: Optional[bool] = typer.Option(
        None,
        "--use-unknown/--no-use-unknown",
        help="Use 'unknown' (default) or 'any' for untyped schemas",
    ),
) -> None:
    """Generate TypeScript declarations from an AsyncAPI document."""
    try:
        config = _load_config()
        _start_run(config)

        source = _validate_input_path(input_path)
        target = _validate_output_path(output or config.default_output)
        options = config.generator_options(
            enum_type=_parse_enum_type(enum_type),
            use_unknown=use_unknown,
        )

        document = load_asyncapi_file(source, max_file_size=config.max_file_size)
        display.print_document_summary(document)
        display.print_warnings(document.warnings)

        result = TypeScriptGenerator(options).compile(document)
        _write_output(target, result.output)
        display.print_generation_summary(target, result)
    except TypeGenError as exc:
        _fail(exc)


@app.command()
def validate(
    input_path: str = typer.Argument(..., metavar="INPUT", help="AsyncAPI document (.json, .yml, .yaml)"),
) -> None:
    """Validate an AsyncAPI document without generating output."""
    try:
        config = _load_config()
        _start_run(config)

        source = _validate_input_path(input_path)
        document = load_asyncapi_file(source, max_file_size=config.max_file_size)
        display.print_warnings(document.warnings)
        display.print_validation_success(document)
    except TypeGenError as exc:
        _fail(exc)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
