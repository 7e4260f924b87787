"""Read AsyncAPI documents from disk.

File access problems are reported as specific :class:`InputFileError`
subclasses before any parsing is attempted.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from src.shared.constants import MAX_FILE_SIZE_BYTES
from src.shared.errors import (
    NotAFileError,
    SpecFileNotFoundError,
    SpecFileTooLargeError,
    SpecParsingError,
    SpecPermissionError,
)
from src.typegen.services.asyncapi_parser import AsyncAPIDocument, parse_asyncapi

logger = logging.getLogger(__name__)


def read_spec_file(path: str | Path, max_file_size: int = MAX_FILE_SIZE_BYTES) -> str:
    """Return the UTF-8 text of *path* after checking it can be read.

    Raises:
        SpecFileNotFoundError: The path does not exist.
        NotAFileError: The path is a directory or special file.
        SpecFileTooLargeError: The file exceeds *max_file_size* bytes.
        SpecPermissionError: The file cannot be opened for reading.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise SpecFileNotFoundError(str(path))
    if not file_path.is_file():
        raise NotAFileError(str(path))

    size = file_path.stat().st_size
    if size > max_file_size:
        raise SpecFileTooLargeError(str(path), size, max_file_size)

    try:
        content = file_path.read_text(encoding="utf-8")
    except PermissionError as exc:
        raise SpecPermissionError(str(path)) from exc
    except UnicodeDecodeError as exc:
        raise SpecParsingError(f"File is not valid UTF-8: {path}") from exc

    logger.debug("Read %d bytes from %s", size, file_path)
    return content


def parse_spec_text(content: str, source: str | Path = "<string>") -> dict[str, Any]:
    """Decode JSON (``.json`` sources) or YAML (everything else) into a dict.

    Raises:
        SpecParsingError: The text cannot be decoded or its root is not a
            mapping.
    """
    suffix = Path(str(source)).suffix.lower()
    try:
        if suffix == ".json":
            parsed = json.loads(content)
        else:
            parsed = yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise SpecParsingError(f"Failed to parse {source}: {exc}") from exc

    if not isinstance(parsed, dict):
        raise SpecParsingError(
            f"Failed to parse {source}: expected a mapping at the root, "
            f"got {type(parsed).__name__}"
        )
    return parsed


def load_asyncapi_file(
    path: str | Path,
    *,
    max_file_size: int = MAX_FILE_SIZE_BYTES,
    preserve_refs: bool = True,
) -> AsyncAPIDocument:
    """Read, decode, validate and extract an AsyncAPI document from *path*."""
    content = read_spec_file(path, max_file_size=max_file_size)
    spec = parse_spec_text(content, source=path)
    logger.info("Loaded AsyncAPI document from %s", path)
    return parse_asyncapi(spec, preserve_refs=preserve_refs)
