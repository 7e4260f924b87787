"""Identifier helpers for emitted TypeScript declarations.

Sanitisation only ever applies to the names that end up in the output.
Reference lookups keep using the original schema keys.
"""
from __future__ import annotations

import re

# Reserved words of the output language, compared case-insensitively.
RESERVED_WORDS: frozenset[str] = frozenset(
    {
        # JavaScript reserved words
        "break", "case", "catch", "class", "const", "continue", "debugger",
        "default", "delete", "do", "else", "enum", "export", "extends",
        "false", "finally", "for", "function", "if", "import", "in",
        "instanceof", "new", "null", "return", "super", "switch", "this",
        "throw", "true", "try", "typeof", "var", "void", "while", "with",
        # Strict mode
        "implements", "interface", "let", "package", "private", "protected",
        "public", "static", "yield", "await",
        # TypeScript declaration keywords
        "type", "namespace", "module", "declare", "abstract", "readonly",
        "keyof", "infer", "is", "as", "unique",
        # Built-in type names
        "any", "unknown", "never", "object", "string", "number", "boolean",
        "symbol", "bigint", "undefined",
    }
)

_WORD_SEPARATOR_RE = re.compile(r"[\W_]+")
_BARE_PROPERTY_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_CAMEL_BOUNDARY_RE = re.compile(r"([a-z0-9])([A-Z])")
_NEWLINE_RUN_RE = re.compile(r"\s*[\r\n]+\s*")


def to_pascal_case(text: str) -> str:
    """Convert an arbitrary key into PascalCase.

    Non-alphanumeric runs are word boundaries; the first character of every
    word is upper-cased and the rest is kept as written, so ``orderItem``
    stays ``OrderItem``.
    """
    parts = [part for part in _WORD_SEPARATOR_RE.split(text) if part]
    return "".join(part[:1].upper() + part[1:] for part in parts)


def sanitize_identifier(key: str, suffix: str = "") -> str:
    """Turn a schema, message or channel key into a declaration name.

    >>> sanitize_identifier("user-name")
    'UserName'
    >>> sanitize_identifier("123test")
    '_123test'
    >>> sanitize_identifier("interface")
    'Interface_'
    """
    name = to_pascal_case(key) + suffix
    if not name:
        return "Unnamed"
    if name[0].isdigit():
        name = f"_{name}"
    if name.lower() in RESERVED_WORDS:
        name = f"{name}_"
    return name


def to_enum_member(value: str) -> str:
    """UPPER_SNAKE member name for a string enum value."""
    spaced = _CAMEL_BOUNDARY_RE.sub(r"\1_\2", value)
    member = "_".join(part for part in _WORD_SEPARATOR_RE.split(spaced) if part).upper()
    if not member:
        return "EMPTY"
    if member[0].isdigit():
        member = f"_{member}"
    return member


def unique_enum_members(values: list[str]) -> list[str]:
    """Member names for *values*, disambiguating collisions with ``_2``, ``_3``..."""
    seen: set[str] = set()
    members: list[str] = []
    for value in values:
        base = to_enum_member(value)
        member = base
        counter = 2
        while member in seen:
            member = f"{base}_{counter}"
            counter += 1
        seen.add(member)
        members.append(member)
    return members


def escape_string_literal(value: str) -> str:
    """Single-quoted TypeScript string literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    escaped = escaped.replace("\n", "\\n").replace("\r", "\\r")
    return f"'{escaped}'"


def format_property_key(key: str) -> str:
    """Emit *key* bare when it is a valid identifier, quoted otherwise."""
    if _BARE_PROPERTY_RE.match(key):
        return key
    return escape_string_literal(key)


def escape_doc_comment(text: str) -> str:
    """Make *text* safe inside a ``/** ... */`` block.

    The terminator ``*/`` becomes ``*\\/`` and every run of line breaks
    (with the whitespace around it) collapses to a single space.
    """
    return _NEWLINE_RUN_RE.sub(" ", text.replace("*/", "*\\/")).strip()


def reserve_name(preferred: str, used: set[str]) -> str:
    """Return a name not in *used* and record it there.

    Collisions get a numeric suffix starting at 2.
    """
    if preferred not in used:
        used.add(preferred)
        return preferred

    counter = 2
    while f"{preferred}{counter}" in used:
        counter += 1
    unique = f"{preferred}{counter}"
    used.add(unique)
    return unique
