"""AsyncAPI v3 document validator using jsonschema Draft 2020-12."""
from __future__ import annotations

from typing import Any

import jsonschema

from src.shared.constants import (
    CHANNEL_REF_PREFIX,
    MAX_DOCUMENT_DEPTH,
    SCHEMA_REF_PREFIX,
    SUPPORTED_ASYNCAPI_MAJOR,
)
from src.shared.models.generation import ValidationResult

# Structural skeleton of an AsyncAPI 3.x document.  Only the parts the
# extractor relies on are constrained; everything else stays open.
_REFERENCE = {
    "type": "object",
    "required": ["$ref"],
    "properties": {"$ref": {"type": "string"}},
}

_MESSAGE = {"type": "object"}

_DOCUMENT_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["asyncapi", "info"],
    "properties": {
        "asyncapi": {"type": "string"},
        "info": {
            "type": "object",
            "required": ["title", "version"],
            "properties": {
                "title": {"type": "string", "minLength": 1},
                "version": {"type": "string", "minLength": 1},
                "description": {"type": "string"},
            },
        },
        "channels": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "properties": {
                    "address": {"type": ["string", "null"]},
                    "description": {"type": "string"},
                    "messages": {
                        "type": "object",
                        "additionalProperties": _MESSAGE,
                    },
                },
            },
        },
        "operations": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "required": ["action"],
                "properties": {
                    "action": {"enum": ["send", "receive"]},
                    "channel": _REFERENCE,
                    "description": {"type": "string"},
                    "messages": {"type": "array", "items": _REFERENCE},
                },
            },
        },
        "components": {
            "type": "object",
            "properties": {
                "schemas": {"type": "object"},
                "messages": {
                    "type": "object",
                    "additionalProperties": _MESSAGE,
                },
            },
        },
    },
}

_DOCUMENT_VALIDATOR = jsonschema.Draft202012Validator(_DOCUMENT_SCHEMA)


def validate_asyncapi(spec: dict[str, Any]) -> ValidationResult:
    """Validate an AsyncAPI v3 document.

    Checks:
    1. spec is a dict with an 'asyncapi' key
    2. asyncapi version starts with "3."
       (nesting deeper than MAX_DOCUMENT_DEPTH stops validation here)
    3. document skeleton (info, channels, operations, components) against a
       Draft 2020-12 schema
    4. operations reference existing channels and channel messages
    5. component schemas are valid JSON schemas (Draft 2020-12)
    6. local schema $ref pointers resolve

    Returns ValidationResult with valid, errors, warnings lists.  Problems in
    steps 4 and 6 are warnings; everything else is an error.
    """
    errors: list[str] = []
    warnings: list[str] = []

    try:
        # ------------------------------------------------------------------
        # 1. Top-level 'asyncapi' key must exist
        # ------------------------------------------------------------------
        if not isinstance(spec, dict):
            errors.append("Spec must be a dict")
            return ValidationResult(valid=False, errors=errors, warnings=warnings)

        asyncapi_version = spec.get("asyncapi")
        if asyncapi_version is None:
            errors.append("Missing required key: 'asyncapi'")
            return ValidationResult(valid=False, errors=errors, warnings=warnings)

        # ------------------------------------------------------------------
        # 2. Version must start with "3."
        # ------------------------------------------------------------------
        if not str(asyncapi_version).startswith(f"{SUPPORTED_ASYNCAPI_MAJOR}."):
            errors.append(
                f"Unsupported AsyncAPI version: {asyncapi_version!r} (expected 3.x)"
            )

        if _exceeds_depth(spec, MAX_DOCUMENT_DEPTH):
            errors.append(
                f"Document nesting too deep: more than {MAX_DOCUMENT_DEPTH} levels"
            )
            return ValidationResult(valid=False, errors=errors, warnings=warnings)

        # ------------------------------------------------------------------
        # 3. Document skeleton
        # ------------------------------------------------------------------
        for error in sorted(
            _DOCUMENT_VALIDATOR.iter_errors(spec), key=lambda e: list(e.absolute_path)
        ):
            errors.append(f"{_format_path(error.absolute_path)}: {error.message}")

        channels = spec.get("channels")
        if channels is None:
            warnings.append("Document declares no 'channels'")

        # ------------------------------------------------------------------
        # 4. Operations - channel and message references
        # ------------------------------------------------------------------
        operations = spec.get("operations")
        if isinstance(operations, dict):
            for op_name, op_def in operations.items():
                if not isinstance(op_def, dict):
                    continue
                channel_ref = op_def.get("channel")
                if channel_ref is None:
                    errors.append(
                        f"Operation '{op_name}' missing required field: channel"
                    )
                    continue
                ref = channel_ref.get("$ref") if isinstance(channel_ref, dict) else None
                if isinstance(ref, str) and _lookup_pointer(spec, ref) is None:
                    warnings.append(
                        f"Operation '{op_name}' references "
                        f"undefined channel: {ref.removeprefix(CHANNEL_REF_PREFIX)}"
                    )
                for entry in op_def.get("messages") or []:
                    msg_ref = entry.get("$ref") if isinstance(entry, dict) else None
                    if isinstance(msg_ref, str) and _lookup_pointer(spec, msg_ref) is None:
                        warnings.append(
                            f"Operation '{op_name}' references undefined message: {msg_ref}"
                        )

        # ------------------------------------------------------------------
        # 5. Component schemas - validate with jsonschema Draft 2020-12
        # ------------------------------------------------------------------
        components = spec.get("components")
        if isinstance(components, dict):
            schemas = components.get("schemas")
            if isinstance(schemas, dict):
                for schema_name, schema_def in schemas.items():
                    if not isinstance(schema_def, (dict, bool)):
                        errors.append(
                            f"Component schema '{schema_name}' is not an object"
                        )
                        continue
                    try:
                        jsonschema.Draft202012Validator.check_schema(schema_def)
                    except jsonschema.exceptions.SchemaError as exc:
                        errors.append(
                            f"Invalid JSON Schema in components.schemas.{schema_name}: "
                            f"{exc.message}"
                        )
                    except RecursionError:
                        errors.append(
                            f"Schema nesting too deep in components.schemas.{schema_name}"
                        )

        # ------------------------------------------------------------------
        # 6. Dangling local schema references
        # ------------------------------------------------------------------
        for pointer in _collect_refs(spec):
            if pointer.startswith(SCHEMA_REF_PREFIX) and _lookup_pointer(spec, pointer) is None:
                warnings.append(f"Unresolved schema reference: {pointer}")

    except (KeyError, ValueError, TypeError) as exc:
        errors.append(f"Unexpected validation error: {exc}")

    return ValidationResult(
        valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )


def _format_path(path: Any) -> str:
    parts = [str(part) for part in path]
    return ".".join(parts) if parts else "(root)"


def _lookup_pointer(spec: dict[str, Any], pointer: str) -> Any:
    """Walk a local ``#/...`` pointer through *spec*; ``None`` when absent."""
    if not pointer.startswith("#/"):
        return None
    current: Any = spec
    for part in pointer[2:].split("/"):
        key = part.replace("~1", "/").replace("~0", "~")
        if isinstance(current, dict):
            current = current.get(key)
        elif isinstance(current, list) and key.isdigit() and int(key) < len(current):
            current = current[int(key)]
        else:
            return None
        if current is None:
            return None
    return current


def _collect_refs(node: Any) -> list[str]:
    """Return every ``$ref`` string in *node*, in document order, without duplicates."""
    found: list[str] = []
    stack: list[Any] = [node]
    seen: set[str] = set()
    while stack:
        current = stack.pop()
        if isinstance(current, dict):
            ref = current.get("$ref")
            if isinstance(ref, str) and ref not in seen:
                seen.add(ref)
                found.append(ref)
            stack.extend(reversed(list(current.values())))
        elif isinstance(current, list):
            stack.extend(reversed(current))
    return found


def _exceeds_depth(node: Any, limit: int) -> bool:
    """True when dicts and lists in *node* nest more than *limit* levels deep.

    Walks iteratively and stops at the first level past *limit*, so
    self-referencing YAML aliases terminate too.
    """
    stack: list[tuple[Any, int]] = [(node, 1)]
    while stack:
        current, depth = stack.pop()
        if isinstance(current, dict):
            children = list(current.values())
        elif isinstance(current, list):
            children = current
        else:
            continue
        if depth > limit:
            return True
        stack.extend((child, depth + 1) for child in children)
    return False
