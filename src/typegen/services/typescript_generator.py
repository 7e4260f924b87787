"""Render an extracted AsyncAPI document as TypeScript declarations.

One :class:`TypeScriptGenerator` can serve any number of documents.  Every
call builds a fresh :class:`_DeclarationCompiler` that owns the mutable
bookkeeping of that run (emitted names, reserved names, the recursion
guard, the output blocks and the warnings), so identical input always
produces byte-identical output.

Declarations are appended once their body is complete.  A referenced schema
is therefore always rendered before the declaration that uses it.

Example usage::

    >>> from src.typegen.services.asyncapi_parser import parse_asyncapi
    >>> from src.typegen.services.typescript_generator import TypeScriptGenerator
    >>> document = parse_asyncapi(spec)  # doctest: +SKIP
    >>> print(TypeScriptGenerator().generate(document))  # doctest: +SKIP
"""

from __future__ import annotations

import dataclasses
import json
import logging
from typing import Any

from src.shared.constants import SCHEMA_REF_PREFIX
from src.shared.models.generation import EnumStyle, GenerationResult, GeneratorOptions
from src.typegen.services.asyncapi_parser import (
    AsyncAPIChannel,
    AsyncAPIDocument,
    AsyncAPIMessage,
    SchemaNode,
)
from src.typegen.services.naming import (
    escape_doc_comment,
    escape_string_literal,
    format_property_key,
    reserve_name,
    sanitize_identifier,
    to_pascal_case,
    unique_enum_members,
)

logger = logging.getLogger(__name__)

_PRIMITIVES: dict[str, str] = {
    "string": "string",
    "number": "number",
    "integer": "number",
    "boolean": "boolean",
    "null": "null",
}

_OPENING = "([{"
_CLOSING = ")]}"


# ---------------------------------------------------------------------------
# Expression helpers
# ---------------------------------------------------------------------------


def _has_top_level_operator(expr: str) -> bool:
    """True when *expr* contains ``|`` or ``&`` outside brackets and strings."""
    depth = 0
    quoted = False
    index = 0
    while index < len(expr):
        char = expr[index]
        if quoted:
            if char == "\\":
                index += 1
            elif char == "'":
                quoted = False
        elif char == "'":
            quoted = True
        elif char in _OPENING:
            depth += 1
        elif char in _CLOSING:
            depth -= 1
        elif depth == 0 and expr[index:index + 3] in (" | ", " & "):
            return True
        index += 1
    return False


def _wrap(expr: str) -> str:
    """Parenthesise union and intersection expressions."""
    return f"({expr})" if _has_top_level_operator(expr) else expr


def _dedupe(values: list[str]) -> list[str]:
    unique: list[str] = []
    for value in values:
        if value not in unique:
            unique.append(value)
    return unique


def _literal(value: Any) -> str | None:
    """TypeScript literal for a JSON scalar, ``None`` for anything else."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, str):
        return escape_string_literal(value)
    if isinstance(value, (int, float)):
        return json.dumps(value)
    return None


def _is_array(node: SchemaNode) -> bool:
    return node.type == "array" or (node.type is None and node.items is not None)


def _is_object(node: SchemaNode) -> bool:
    return (
        node.properties is not None
        or node.type == "object"
        or (node.type is None and node.additional_properties is not None)
    )


def _block_doc(description: str | None) -> str:
    if not description:
        return ""
    return f"/**\n * {escape_doc_comment(description)}\n */\n"


# ---------------------------------------------------------------------------
# Per-run compiler
# ---------------------------------------------------------------------------


class _DeclarationCompiler:
    """Mutable state of a single generation run."""

    def __init__(self, document: AsyncAPIDocument, options: GeneratorOptions) -> None:
        self.document = document
        self.options = options
        self.fallback = "unknown" if options.use_unknown else "any"
        self.export = "export " if options.export_everything else ""

        self.blocks: list[str] = []
        self.declarations: list[str] = []
        self.emitted: set[str] = set()
        self.in_progress: set[str] = set()
        self.used_names: set[str] = set()
        self.warnings: list[str] = []

        # Original schema key -> declaration name.  Assigned up front so that
        # references and hoisted names never steal a component's name.
        self.schema_names: dict[str, str] = {
            key: reserve_name(sanitize_identifier(key), self.used_names)
            for key in document.schemas
        }
        # Message name -> message interface name.
        self.message_names: dict[str, str] = {}

    # -- driver -------------------------------------------------------------

    def run(self) -> GenerationResult:
        for key in self.document.schemas:
            self._ensure_schema(key)

        for message in self.document.messages:
            self._emit_message(message)

        for channel in self.document.channels:
            for message in channel.messages:
                self._emit_message(message)
            for operation in channel.operations.send + channel.operations.receive:
                for message in operation.messages:
                    self._emit_message(message)

        for channel in self.document.channels:
            self._emit_channel_unions(channel)

        header = self._header()
        if self.blocks:
            output = header + "\n\n" + "\n\n".join(self.blocks) + "\n"
        else:
            output = header + "\n"

        return GenerationResult(
            output=output,
            declarations=list(self.declarations),
            warnings=list(self.warnings),
        )

    def _header(self) -> str:
        lines = [
            "/**",
            " * Generated from AsyncAPI spec: "
            f"{escape_doc_comment(self.document.title)} "
            f"v{escape_doc_comment(self.document.version)}",
        ]
        if self.document.description:
            lines.append(f" * {escape_doc_comment(self.document.description)}")
        lines.extend(
            [
                " *",
                " * This file is auto-generated. Do not edit it manually.",
                " */",
            ]
        )
        return "\n".join(lines)

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    def _emit_declaration(self, name: str, text: str) -> None:
        if name in self.emitted:
            return
        self.emitted.add(name)
        self.declarations.append(name)
        self.blocks.append(text)

    # -- component schemas --------------------------------------------------

    def _ensure_schema(self, key: str) -> None:
        """Emit the component schema *key* unless it is done or being rendered."""
        name = self.schema_names[key]
        if name in self.emitted or key in self.in_progress:
            return
        self.in_progress.add(key)
        try:
            self._declare(name, self.document.schemas[key])
        finally:
            self.in_progress.discard(key)

    def _resolve_reference(self, pointer: str, in_record: bool) -> str:
        """Declaration name for *pointer*, or the fallback type.

        A schema whose body is still being rendered is only referenced by
        name from inside an interface; anywhere else the name would form a
        circular type alias, so the fallback type is used instead.
        """
        if not pointer.startswith(SCHEMA_REF_PREFIX):
            self._warn(f"Unsupported reference: {pointer}")
            return self.fallback

        key = pointer[len(SCHEMA_REF_PREFIX):].replace("~1", "/").replace("~0", "~")
        if key not in self.document.schemas:
            self._warn(f"Unresolved reference: {pointer}")
            return self.fallback

        name = self.schema_names[key]
        if key in self.in_progress:
            if in_record:
                return name
            self._warn(
                f"Circular reference to '{key}' outside an interface; "
                f"using '{self.fallback}'"
            )
            return self.fallback

        self._ensure_schema(key)
        return name

    # -- declarations -------------------------------------------------------

    def _declare(self, name: str, node: SchemaNode) -> str:
        """Emit a top-level declaration called *name* (already reserved)."""
        if node.is_reference:
            target = self._resolve_reference(node.ref, in_record=False)
            self._emit_alias(name, target, None)
        elif node.enum and self._renders_as_enum(node):
            self._emit_enum(name, node)
        elif (
            node.has_composition
            or isinstance(node.type, list)
            or _is_array(node)
            or not _is_object(node)
        ):
            self._emit_alias(name, self._expression(name, node, in_record=False), node.description)
        else:
            self._emit_interface(name, node)
        return name

    def _emit_alias(self, name: str, expr: str, description: str | None) -> None:
        self._emit_declaration(
            name, f"{_block_doc(description)}{self.export}type {name} = {expr};"
        )

    def _emit_enum(self, name: str, node: SchemaNode) -> None:
        values = [str(value) for value in node.enum or []]
        members = unique_enum_members(values)
        lines = [f"{_block_doc(node.description)}{self.export}enum {name} {{"]
        for member, value in zip(members, values):
            lines.append(f"  {member} = {escape_string_literal(value)},")
        lines.append("}")
        self._emit_declaration(name, "\n".join(lines))

    def _emit_interface(self, name: str, node: SchemaNode) -> None:
        body: list[str] = []
        required = set(node.required)
        for prop_key, prop_node in (node.properties or {}).items():
            expr = self._expression(
                f"{name}{to_pascal_case(prop_key)}", prop_node, in_record=True
            )
            if prop_node.description:
                body.append(f"  /** {escape_doc_comment(prop_node.description)} */")
            optional = "" if prop_key in required else "?"
            body.append(f"  {format_property_key(prop_key)}{optional}: {expr};")

        additional = node.additional_properties
        if additional is True:
            body.append(f"  [key: string]: {self.fallback};")
        elif isinstance(additional, SchemaNode):
            value = self._expression(f"{name}Value", additional, in_record=True)
            body.append(f"  [key: string]: {value};")

        doc = _block_doc(node.description)
        if body:
            text = f"{doc}{self.export}interface {name} {{\n" + "\n".join(body) + "\n}"
        else:
            text = f"{doc}{self.export}interface {name} {{}}"
        self._emit_declaration(name, text)

    def _renders_as_enum(self, node: SchemaNode) -> bool:
        return self.options.enum_type == EnumStyle.ENUM and all(
            isinstance(value, str) for value in node.enum or []
        )

    def _hoist(self, name: str, node: SchemaNode) -> str:
        return self._declare(reserve_name(name, self.used_names), node)

    # -- expressions --------------------------------------------------------

    def _expression(self, name: str, node: SchemaNode, in_record: bool) -> str:
        """Type expression for *node*; nested records and enums are hoisted."""
        if node.is_reference:
            return self._resolve_reference(node.ref, in_record)

        if node.enum:
            if self._renders_as_enum(node):
                return self._hoist(name, node)
            return self._literal_union(node.enum)

        if node.has_composition:
            return self._composition(name, node, in_record)

        if isinstance(node.type, list):
            members = [
                self._expression(name, dataclasses.replace(node, type=member), in_record)
                for member in node.type
            ]
            return " | ".join(_dedupe(members)) if members else self.fallback

        if _is_array(node):
            if node.items is None:
                return f"{self.fallback}[]"
            item = self._expression(f"{name}Item", node.items, in_record)
            return f"{_wrap(item)}[]"

        if _is_object(node):
            return self._hoist(name, node)

        return _PRIMITIVES.get(node.type or "", self.fallback)

    def _literal_union(self, values: list[Any]) -> str:
        literals = [_literal(value) or self.fallback for value in values]
        return " | ".join(_dedupe(literals))

    def _composition(self, name: str, node: SchemaNode, in_record: bool) -> str:
        groups: list[str] = []
        counter = 1
        for branches, operator in (
            (node.all_of, " & "),
            (node.any_of, " | "),
            (node.one_of, " | "),
        ):
            if not branches:
                continue
            exprs: list[str] = []
            for branch in branches:
                exprs.append(self._expression(f"{name}Part{counter}", branch, in_record))
                counter += 1
            exprs = _dedupe(exprs)
            if len(exprs) == 1:
                groups.append(exprs[0])
            else:
                groups.append(operator.join(_wrap(expr) for expr in exprs))

        if node.properties is not None:
            # Sibling properties next to the composition keywords.
            rest = dataclasses.replace(
                node, all_of=None, any_of=None, one_of=None, description=None
            )
            groups.append(self._expression(f"{name}Part{counter}", rest, in_record))

        groups = _dedupe(groups)
        if len(groups) == 1:
            return groups[0]
        return " & ".join(_wrap(group) for group in groups)

    # -- messages and channels ----------------------------------------------

    def _emit_message(self, message: AsyncAPIMessage) -> None:
        if message.name in self.message_names:
            logger.debug("Message '%s' already emitted; skipping.", message.name)
            return

        base = sanitize_identifier(message.name)
        payload_name = reserve_name(f"{base}Payload", self.used_names)
        headers_name = (
            reserve_name(f"{base}Headers", self.used_names)
            if message.headers is not None
            else None
        )
        message_name = reserve_name(f"{base}Message", self.used_names)
        self.message_names[message.name] = message_name

        self._declare(payload_name, message.payload)
        if message.headers is not None and headers_name is not None:
            self._declare(headers_name, message.headers)

        body = [f"  payload: {payload_name};"]
        if headers_name is not None:
            body.append(f"  headers?: {headers_name};")
        self._emit_declaration(
            message_name,
            f"{_block_doc(message.description)}{self.export}interface {message_name} {{\n"
            + "\n".join(body)
            + "\n}",
        )

    def _emit_channel_unions(self, channel: AsyncAPIChannel) -> None:
        for direction, operations in (
            ("Send", channel.operations.send),
            ("Receive", channel.operations.receive),
        ):
            members: list[str] = []
            for operation in operations:
                for message in operation.messages:
                    member = self.message_names.get(message.name)
                    if member is not None and member not in members:
                        members.append(member)
            if not members:
                continue
            union_name = reserve_name(
                sanitize_identifier(channel.name, f"{direction}Messages"), self.used_names
            )
            self._emit_alias(union_name, " | ".join(members), None)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


class TypeScriptGenerator:
    """Compile :class:`AsyncAPIDocument` instances into TypeScript source."""

    def __init__(self, options: GeneratorOptions | None = None) -> None:
        self.options = options or GeneratorOptions()

    def compile(self, document: AsyncAPIDocument) -> GenerationResult:
        """Render *document* and return the text with its bookkeeping."""
        logger.info(
            "Generating TypeScript for '%s' v%s (enum_type=%s, use_unknown=%s)",
            document.title,
            document.version,
            self.options.enum_type.value,
            self.options.use_unknown,
        )
        result = _DeclarationCompiler(document, self.options).run()
        logger.info(
            "Generated %d declarations with %d warning(s)",
            len(result.declarations),
            len(result.warnings),
        )
        return result

    def generate(self, document: AsyncAPIDocument) -> str:
        return self.compile(document).output
