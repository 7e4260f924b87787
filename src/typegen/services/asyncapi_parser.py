"""AsyncAPI 3.x document extractor.

Turns an AsyncAPI 3.x document (an already-deserialised dict) into the
immutable document model consumed by the TypeScript generator.

Two views of every schema are walked in lock-step:

* the *resolved* view, where a local ``$ref`` is dereferenced on demand (and
  memoised) the way a validating parser would present it, and
* the *raw* view, the original unresolved document at the same structural
  path (object key / array index).

Whenever the raw node at a schema-bearing location is a ``$ref`` object the
extracted :class:`SchemaNode` is a pure reference, whatever resolution
produced.  This keeps references to named component schemas intact at every
depth (properties, array items, composition branches, additionalProperties)
so that the generator can emit them by name instead of inlining them.

Example usage::

    >>> import yaml
    >>> from src.typegen.services.asyncapi_parser import parse_asyncapi
    >>> with open("asyncapi.yaml") as f:
    ...     raw = yaml.safe_load(f)
    >>> document = parse_asyncapi(raw)
    >>> document.title, document.version  # doctest: +SKIP
    ('Orders API', '1.0.0')
    >>> document.schemas["Order"].properties["status"].ref  # doctest: +SKIP
    '#/components/schemas/OrderStatus'

Dependencies:
    - pyyaml >= 6.0 (via :func:`parse_asyncapi_yaml`)
    - jsonschema >= 4.20.0 (validation, see ``asyncapi_validator``)
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any

import yaml

from src.shared.constants import CHANNEL_REF_PREFIX, MESSAGE_REF_PREFIX
from src.shared.errors import SpecParsingError, SpecValidationError
from src.typegen.services.asyncapi_validator import validate_asyncapi

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Sentinel / constants
# ---------------------------------------------------------------------------

_CIRCULAR_REF_PLACEHOLDER: dict[str, Any] = {
    "_circular_ref": True,
    "_warning": "Circular $ref detected; resolution stopped to prevent infinite loop.",
}

_COMPOSITION_KEYWORDS = ("allOf", "anyOf", "oneOf")

# Longest chain of nested pointers inlined in best-effort mode.
_MAX_INLINE_CHAIN = 10

# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass
class SchemaNode:
    """Semantic description of one JSON-Schema-like shape.

    A reference node carries only :attr:`ref`; when it is set no other
    field is consulted.

    Attributes:
        type:                  JSON type name, or a list of names.
        properties:            Ordered mapping of property name to schema.
        required:              Names of required properties.
        items:                 Element schema of an array.
        enum:                  Allowed literal values.
        description:           Free text rendered as a doc comment.
        ref:                   ``$ref`` pointer (e.g. ``#/components/schemas/Foo``).
        all_of:                ``allOf`` branches.
        any_of:                ``anyOf`` branches.
        one_of:                ``oneOf`` branches.
        format:                JSON Schema ``format`` hint.
        additional_properties: ``None`` (absent), a bool, or a schema.
    """

    type: str | list[str] | None = None
    properties: dict[str, SchemaNode] | None = None
    required: list[str] = field(default_factory=list)
    items: SchemaNode | None = None
    enum: list[Any] | None = None
    description: str | None = None
    ref: str | None = None
    all_of: list[SchemaNode] | None = None
    any_of: list[SchemaNode] | None = None
    one_of: list[SchemaNode] | None = None
    format: str | None = None
    additional_properties: bool | SchemaNode | None = None

    @classmethod
    def reference(cls, pointer: str) -> SchemaNode:
        return cls(ref=pointer)

    @classmethod
    def from_dict(cls, schema: dict[str, Any]) -> SchemaNode:
        """Build a node from a plain JSON Schema dict, keeping every ``$ref``."""
        return convert_schema(schema, schema)

    @property
    def is_reference(self) -> bool:
        return self.ref is not None

    @property
    def has_composition(self) -> bool:
        return bool(self.all_of or self.any_of or self.one_of)


@dataclass
class AsyncAPIMessage:
    """A message carried by a channel or declared under ``components.messages``.

    Attributes:
        name:        Message identifier (component key or channel message key).
        description: Human-readable description of the message.
        payload:     Payload schema; untyped when the message declares none.
        headers:     Optional headers schema.
    """

    name: str
    description: str | None = None
    payload: SchemaNode = field(default_factory=SchemaNode)
    headers: SchemaNode | None = None


@dataclass
class AsyncAPIOperation:
    """A send or receive action bound to one channel.

    Attributes:
        name:        Operation key under ``operations``.
        action:      Either ``"send"`` or ``"receive"``.
        channel:     Key of the channel this operation is bound to.
        messages:    Messages the operation may carry, in declaration order.
        description: Human-readable description.
    """

    name: str
    action: str
    channel: str
    messages: list[AsyncAPIMessage] = field(default_factory=list)
    description: str | None = None


@dataclass
class ChannelOperations:
    """Operations of one channel, split by direction."""

    send: list[AsyncAPIOperation] = field(default_factory=list)
    receive: list[AsyncAPIOperation] = field(default_factory=list)


@dataclass
class AsyncAPIChannel:
    """A channel (topic / queue) of the document.

    Attributes:
        name:        Channel key under ``channels``.
        address:     The address string (e.g. ``user/signedup``), if any.
        description: Human-readable description of the channel.
        messages:    Channel-level messages.
        operations:  Operations bound to this channel.
    """

    name: str
    address: str | None = None
    description: str | None = None
    messages: list[AsyncAPIMessage] = field(default_factory=list)
    operations: ChannelOperations = field(default_factory=ChannelOperations)


@dataclass
class AsyncAPIDocument:
    """Top-level container for an extracted AsyncAPI 3.x document.

    Attributes:
        title:            The API title from ``info.title``.
        version:          The API version from ``info.version``.
        description:      ``info.description``, if any.
        asyncapi_version: The AsyncAPI specification version string.
        channels:         Extracted channels, in document order.
        messages:         Component-level messages, in document order.
        schemas:          Component schemas keyed by their original key.
        raw_spec:         Deep copy of the unmodified input document.
        warnings:         Non-fatal validation findings.
    """

    title: str
    version: str
    description: str | None = None
    asyncapi_version: str = "3.0.0"
    channels: list[AsyncAPIChannel] = field(default_factory=list)
    messages: list[AsyncAPIMessage] = field(default_factory=list)
    schemas: dict[str, SchemaNode] = field(default_factory=dict)
    raw_spec: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# $ref resolution helpers
# ---------------------------------------------------------------------------


def _walk_pointer(spec: dict[str, Any], ref_string: str) -> Any:
    """Return the raw value addressed by a local ``#/...`` pointer.

    Nothing is resolved along the way.  Returns ``None`` (and logs a
    warning) when the pointer is not local or does not address anything.
    """

    if not ref_string.startswith("#/"):
        logger.warning("Unsupported $ref format (not a local pointer): %s", ref_string)
        return None

    current: Any = spec
    for part in ref_string[2:].split("/"):
        # JSON Pointer escaping: ~1 -> /, ~0 -> ~
        decoded_part = part.replace("~1", "/").replace("~0", "~")
        if isinstance(current, dict):
            current = current.get(decoded_part)
        elif isinstance(current, list):
            try:
                current = current[int(decoded_part)]
            except (ValueError, IndexError):
                current = None
        else:
            current = None

        if current is None:
            logger.warning("Unresolvable $ref (key not found): %s", ref_string)
            return None

    return current


def _resolve_ref(
    spec: dict[str, Any],
    ref_string: str,
    visited: set[str] | None = None,
) -> dict[str, Any]:
    """Resolve a JSON ``$ref`` pointer against *spec*.

    After resolving the immediate target, a target that is itself a ``$ref``
    is followed one more level.  Circular chains are detected via *visited*
    and yield a placeholder dict with a ``_circular_ref`` flag.

    Returns:
        A shallow copy of the resolved fragment, or an empty dict when the
        pointer cannot be resolved.
    """

    if visited is None:
        visited = set()

    # --- Circular reference guard -------------------------------------------
    if ref_string in visited:
        logger.debug("Circular $ref detected: %s", ref_string)
        return copy.deepcopy(_CIRCULAR_REF_PLACEHOLDER)

    visited.add(ref_string)

    current = _walk_pointer(spec, ref_string)
    if current is None:
        return {}

    if not isinstance(current, dict):
        logger.debug("Resolved $ref %s to a non-dict value; wrapping.", ref_string)
        return {"_resolved_value": current}

    # Shallow-copy so mutations downstream don't corrupt the original spec
    resolved = dict(current)

    # --- Nested ref resolution (one level deep) -----------------------------
    if isinstance(resolved.get("$ref"), str):
        nested_ref = resolved["$ref"]
        logger.debug("Following nested $ref: %s -> %s", ref_string, nested_ref)
        resolved = _resolve_ref(spec, nested_ref, visited)

    return resolved


def _resolve_if_ref(spec: dict[str, Any], value: Any) -> Any:
    """Return the resolved object if *value* is a ``$ref`` dict, else *value*."""

    if isinstance(value, dict) and isinstance(value.get("$ref"), str):
        return _resolve_ref(spec, value["$ref"])
    return value


class _LazyInliner:
    """Dereference local schema pointers on demand, for best-effort inlining.

    A pointer is converted at most once per distinct result: conversions that
    never hit a cycle or the chain bound are shared by pointer alone, the
    rest are keyed by the chain of enclosing pointers that produced them.
    Shared :class:`SchemaNode` instances are never mutated downstream.
    """

    def __init__(self, spec: dict[str, Any], max_chain: int = _MAX_INLINE_CHAIN) -> None:
        self.spec = spec
        self.max_chain = max_chain
        self._shared: dict[str, SchemaNode] = {}
        self._by_trail: dict[tuple[str, frozenset[str]], SchemaNode] = {}
        self._trail_dependent = 0

    def inline(self, pointer: str, trail: frozenset[str]) -> SchemaNode:
        if pointer in trail:
            logger.debug("Circular $ref detected: %s", pointer)
            self._trail_dependent += 1
            return SchemaNode()
        if len(trail) >= self.max_chain:
            logger.debug("Inlining stopped at %s after %d nested pointers.", pointer, len(trail))
            self._trail_dependent += 1
            return SchemaNode.reference(pointer)

        shared = self._shared.get(pointer)
        if shared is not None:
            return shared
        cached = self._by_trail.get((pointer, trail))
        if cached is not None:
            self._trail_dependent += 1
            return cached

        target = _walk_pointer(self.spec, pointer)
        if not isinstance(target, dict):
            # Unresolvable or non-schema target: keep the pointer so the
            # compiler reports it.
            node = SchemaNode.reference(pointer)
            self._shared[pointer] = node
            return node

        dependent_before = self._trail_dependent
        node = convert_schema(target, None, inliner=self, _trail=trail | {pointer})
        if self._trail_dependent == dependent_before:
            self._shared[pointer] = node
        else:
            self._by_trail[(pointer, trail)] = node
        return node


def _pointer_tail(pointer: str, prefix: str) -> str | None:
    """Return the decoded key following *prefix* in *pointer*, if it matches."""

    if not pointer.startswith(prefix):
        return None
    key = pointer[len(prefix):].split("/", 1)[0]
    return key.replace("~1", "/").replace("~0", "~")


# ---------------------------------------------------------------------------
# Schema conversion (parallel resolved / raw walk)
# ---------------------------------------------------------------------------


def _raw_child(raw: Any, *path: str | int) -> Any:
    """Follow *path* through the raw view; ``None`` once it stops matching."""

    current = raw
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or step >= len(current):
                return None
        elif not isinstance(current, dict):
            return None
        current = current[step] if isinstance(step, int) else current.get(step)
    return current


def convert_schema(
    resolved: Any,
    raw: Any = None,
    *,
    inliner: _LazyInliner | None = None,
    _trail: frozenset[str] = frozenset(),
) -> SchemaNode:
    """Convert one schema location into a :class:`SchemaNode`.

    Args:
        resolved: The schema at this location.  A ``$ref`` left in it is
                  dereferenced on demand through *inliner*.
        raw:      The unresolved schema at the same structural path, or
                  ``None`` when no raw view is available (references are
                  then inlined on a best-effort basis).
        inliner:  Resolves pointers for the resolved view.  Without one a
                  pointer is kept as a reference node.

    Returns:
        A reference node when the raw view holds a ``$ref``, otherwise a node
        populated from *resolved* with every child converted recursively.
    """

    if isinstance(raw, dict) and isinstance(raw.get("$ref"), str):
        return SchemaNode.reference(raw["$ref"])

    if not isinstance(resolved, dict):
        return SchemaNode()

    pointer = resolved.get("$ref")
    if isinstance(pointer, str):
        if inliner is None:
            return SchemaNode.reference(pointer)
        return inliner.inline(pointer, _trail)

    def child(value: Any, *path: str | int) -> SchemaNode:
        return convert_schema(value, _raw_child(raw, *path), inliner=inliner, _trail=_trail)

    node = SchemaNode()

    schema_type = resolved.get("type")
    if isinstance(schema_type, str):
        node.type = schema_type
    elif isinstance(schema_type, list) and all(isinstance(t, str) for t in schema_type):
        node.type = list(schema_type)

    description = resolved.get("description")
    if isinstance(description, str) and description:
        node.description = description

    schema_format = resolved.get("format")
    if isinstance(schema_format, str) and schema_format:
        node.format = schema_format

    properties = resolved.get("properties")
    if isinstance(properties, dict):
        node.properties = {
            str(key): child(prop, "properties", key) for key, prop in properties.items()
        }

    items = resolved.get("items")
    if isinstance(items, dict):
        node.items = child(items, "items")

    required = resolved.get("required")
    if isinstance(required, list):
        node.required = [str(name) for name in required]

    enum_values = resolved.get("enum")
    if isinstance(enum_values, list) and enum_values:
        node.enum = list(enum_values)

    for keyword, attr in zip(_COMPOSITION_KEYWORDS, ("all_of", "any_of", "one_of")):
        branches = resolved.get(keyword)
        if isinstance(branches, list):
            setattr(
                node,
                attr,
                [child(branch, keyword, index) for index, branch in enumerate(branches)],
            )

    additional = resolved.get("additionalProperties")
    if isinstance(additional, bool):
        node.additional_properties = additional
    elif isinstance(additional, dict):
        node.additional_properties = child(additional, "additionalProperties")

    return node


def _schema_at(
    spec: dict[str, Any],
    raw: Any,
    *,
    preserve_refs: bool,
    own_ref: str | None = None,
) -> SchemaNode:
    """Convert the schema *raw*, dereferencing pointers only where needed.

    With *preserve_refs* the raw view answers every ``$ref`` location, so
    nothing is dereferenced.  *own_ref* marks the component being converted
    so that a self reference collapses instead of inlining itself.
    """

    if preserve_refs:
        return convert_schema(raw, raw)
    trail = frozenset({own_ref}) if own_ref else frozenset()
    return convert_schema(raw, None, inliner=_LazyInliner(spec), _trail=trail)


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _extract_info(spec: dict[str, Any]) -> tuple[str, str, str | None]:
    """Extract ``info.title``, ``info.version`` and ``info.description``."""

    info = spec.get("info")
    if not isinstance(info, dict):
        raise SpecParsingError("AsyncAPI spec is missing the required 'info' object.")

    title = info.get("title")
    version = info.get("version")
    if not title or not version:
        raise SpecParsingError(
            "AsyncAPI spec is missing the required 'info.title' or 'info.version' field."
        )

    description = info.get("description")
    return str(title), str(version), str(description) if description else None


def _parse_schemas(spec: dict[str, Any], *, preserve_refs: bool) -> dict[str, SchemaNode]:
    """Parse ``components.schemas`` keyed by their original (unsanitised) keys."""

    components = spec.get("components") or {}
    raw_schemas = components.get("schemas") or {} if isinstance(components, dict) else {}
    if not isinstance(raw_schemas, dict):
        logger.warning("'components.schemas' is not a dict; skipping.")
        return {}

    schemas: dict[str, SchemaNode] = {}
    for name, schema_def in raw_schemas.items():
        # Start the pointer trail at this schema so that a self reference
        # collapses instead of inlining itself.
        own_ref = f"#/components/schemas/{name}"
        schemas[str(name)] = _schema_at(
            spec, schema_def, preserve_refs=preserve_refs, own_ref=own_ref
        )

    logger.debug("Parsed %d component schemas.", len(schemas))
    return schemas


def _follow_message(
    spec: dict[str, Any],
    fallback_name: str,
    value: Any,
) -> tuple[str, dict[str, Any] | None]:
    """Follow a chain of message ``$ref`` pointers to the raw message object.

    The message is named by the last ``#/components/messages/<key>`` it
    passes through, else by the last ``#/channels/<ch>/messages/<key>``,
    else by *fallback_name*.

    Returns:
        ``(name, raw_message)``; *raw_message* is ``None`` when a pointer
        in the chain cannot be resolved.
    """

    name = fallback_name
    seen: set[str] = set()
    while isinstance(value, dict) and isinstance(value.get("$ref"), str):
        pointer = value["$ref"]
        if pointer in seen:
            logger.warning("Circular message $ref detected: %s", pointer)
            return name, None
        seen.add(pointer)

        component_key = _pointer_tail(pointer, MESSAGE_REF_PREFIX)
        if component_key is not None:
            name = component_key
        elif pointer.startswith(CHANNEL_REF_PREFIX) and "/messages/" in pointer:
            name = pointer.rsplit("/", 1)[-1].replace("~1", "/").replace("~0", "~")

        value = _walk_pointer(spec, pointer)

    if not isinstance(value, dict):
        return name, None
    return name, value


def _parse_single_message(
    spec: dict[str, Any],
    name: str,
    msg_def: dict[str, Any],
    *,
    preserve_refs: bool,
) -> AsyncAPIMessage:
    """Convert one raw message object into an :class:`AsyncAPIMessage`."""

    payload_raw = msg_def.get("payload")
    # AsyncAPI 3.0 multi-format schema object
    if isinstance(payload_raw, dict) and "schemaFormat" in payload_raw and "schema" in payload_raw:
        payload_raw = payload_raw["schema"]

    if payload_raw is None:
        payload = SchemaNode()
    else:
        payload = _schema_at(spec, payload_raw, preserve_refs=preserve_refs)

    headers_raw = msg_def.get("headers")
    headers: SchemaNode | None = None
    if isinstance(headers_raw, dict):
        headers = _schema_at(spec, headers_raw, preserve_refs=preserve_refs)
    elif headers_raw is not None:
        logger.warning(
            "Message '%s' has non-dict headers (%s); ignoring.",
            name,
            type(headers_raw).__name__,
        )

    description = msg_def.get("description")
    return AsyncAPIMessage(
        name=name,
        description=str(description) if description else None,
        payload=payload,
        headers=headers,
    )


def _parse_messages(spec: dict[str, Any], *, preserve_refs: bool) -> list[AsyncAPIMessage]:
    """Parse ``components.messages`` into a list of :class:`AsyncAPIMessage`."""

    components = spec.get("components") or {}
    raw_messages = components.get("messages") or {} if isinstance(components, dict) else {}
    if not isinstance(raw_messages, dict):
        logger.warning("'components.messages' is not a dict; skipping.")
        return []

    messages: list[AsyncAPIMessage] = []
    for key, msg_value in raw_messages.items():
        # A component message may itself be a $ref; it keeps its own key.
        _, msg_def = _follow_message(spec, str(key), msg_value)
        if msg_def is None:
            logger.warning("Message '%s' could not be resolved; skipping.", key)
            continue
        messages.append(
            _parse_single_message(spec, str(key), msg_def, preserve_refs=preserve_refs)
        )

    logger.debug("Parsed %d component messages.", len(messages))
    return messages


def _parse_channel_messages(
    spec: dict[str, Any],
    channel_name: str,
    channel_def: dict[str, Any],
    *,
    preserve_refs: bool,
) -> list[AsyncAPIMessage]:
    """Parse the ``messages`` map of one channel."""

    raw_messages = channel_def.get("messages") or {}
    if not isinstance(raw_messages, dict):
        logger.warning(
            "Channel '%s' has non-dict 'messages' (%s); ignoring.",
            channel_name,
            type(raw_messages).__name__,
        )
        return []

    messages: list[AsyncAPIMessage] = []
    for msg_key, msg_value in raw_messages.items():
        name, msg_def = _follow_message(spec, str(msg_key), msg_value)
        if msg_def is None:
            logger.warning(
                "Channel '%s' message '%s' could not be resolved; skipping.",
                channel_name,
                msg_key,
            )
            continue
        messages.append(
            _parse_single_message(spec, name, msg_def, preserve_refs=preserve_refs)
        )
    return messages


def _operation_channel_name(channel_value: Any) -> str:
    """Derive the channel key from an operation's ``channel`` reference."""

    if isinstance(channel_value, dict) and isinstance(channel_value.get("$ref"), str):
        return _pointer_tail(channel_value["$ref"], CHANNEL_REF_PREFIX) or ""
    return ""


def _parse_operations(
    spec: dict[str, Any],
    channel_messages: dict[str, list[AsyncAPIMessage]],
    *,
    preserve_refs: bool,
) -> list[AsyncAPIOperation]:
    """Parse ``operations`` into a list of :class:`AsyncAPIOperation`.

    An operation without a ``messages`` list carries every message of its
    channel.
    """

    raw_operations = spec.get("operations") or {}
    if not isinstance(raw_operations, dict):
        logger.warning("'operations' is not a dict; skipping.")
        return []

    operations: list[AsyncAPIOperation] = []
    for name, op_value in raw_operations.items():
        name_str = str(name)
        op_def = _resolve_if_ref(spec, op_value)
        if not isinstance(op_def, dict):
            logger.warning("Operation '%s' resolved to non-dict; skipping.", name_str)
            continue

        action = str(op_def.get("action", "")).lower()
        if action not in ("send", "receive"):
            logger.warning(
                "Operation '%s' has unrecognised action '%s'; skipping.", name_str, action
            )
            continue

        channel_name = _operation_channel_name(op_def.get("channel"))

        raw_messages = op_def.get("messages")
        if isinstance(raw_messages, list):
            messages: list[AsyncAPIMessage] = []
            for index, entry in enumerate(raw_messages):
                msg_name, msg_def = _follow_message(spec, f"{name_str}Message{index + 1}", entry)
                if msg_def is None:
                    logger.warning(
                        "Operation '%s' message #%d could not be resolved; skipping.",
                        name_str,
                        index,
                    )
                    continue
                messages.append(
                    _parse_single_message(spec, msg_name, msg_def, preserve_refs=preserve_refs)
                )
        else:
            messages = list(channel_messages.get(channel_name, []))

        description = op_def.get("description")
        operations.append(
            AsyncAPIOperation(
                name=name_str,
                action=action,
                channel=channel_name,
                messages=messages,
                description=str(description) if description else None,
            )
        )

    logger.debug("Parsed %d operations.", len(operations))
    return operations


def _parse_channels(spec: dict[str, Any], *, preserve_refs: bool) -> list[AsyncAPIChannel]:
    """Parse top-level ``channels`` and attach their operations."""

    raw_channels = spec.get("channels") or {}
    if not isinstance(raw_channels, dict):
        logger.warning("'channels' is not a dict; skipping channel parsing.")
        return []

    channels: list[AsyncAPIChannel] = []
    for name, ch_value in raw_channels.items():
        name_str = str(name)
        ch_def = _resolve_if_ref(spec, ch_value)
        if not isinstance(ch_def, dict):
            logger.warning("Channel '%s' resolved to non-dict; skipping.", name_str)
            continue

        address = ch_def.get("address")
        description = ch_def.get("description")
        channels.append(
            AsyncAPIChannel(
                name=name_str,
                address=str(address) if address is not None else None,
                description=str(description) if description else None,
                messages=_parse_channel_messages(
                    spec, name_str, ch_def, preserve_refs=preserve_refs
                ),
            )
        )

    by_name = {channel.name: channel for channel in channels}
    operations = _parse_operations(
        spec,
        {channel.name: channel.messages for channel in channels},
        preserve_refs=preserve_refs,
    )
    for operation in operations:
        channel = by_name.get(operation.channel)
        if channel is None:
            logger.warning(
                "Operation '%s' is bound to unknown channel '%s'; ignoring.",
                operation.name,
                operation.channel,
            )
            continue
        getattr(channel.operations, operation.action).append(operation)

    logger.debug("Parsed %d channels.", len(channels))
    return channels


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_asyncapi_yaml(yaml_string: str, *, preserve_refs: bool = True) -> AsyncAPIDocument:
    """Parse an AsyncAPI 3.x YAML (or JSON) string into an :class:`AsyncAPIDocument`.

    Raises:
        SpecParsingError: If the text is not valid YAML or its root is not
            a mapping.
        SpecValidationError: If the document fails validation.
    """

    try:
        parsed = yaml.safe_load(yaml_string)
    except yaml.YAMLError as exc:
        raise SpecParsingError(f"Failed to parse AsyncAPI document: {exc}") from exc
    if not isinstance(parsed, dict):
        raise SpecParsingError(
            "Failed to parse AsyncAPI document: expected a mapping at the root, "
            f"got {type(parsed).__name__}."
        )
    return parse_asyncapi(parsed, preserve_refs=preserve_refs)


def parse_asyncapi(spec: dict[str, Any], *, preserve_refs: bool = True) -> AsyncAPIDocument:
    """Validate an AsyncAPI 3.x document and extract its model.

    Args:
        spec:          A dict representing a complete AsyncAPI 3.x document,
                       typically obtained via ``yaml.safe_load()`` or
                       ``json.load()``.
        preserve_refs: Walk the raw document alongside the resolved one so
                       that ``$ref`` pointers survive.  When ``False`` every
                       reference is inlined.

    Returns:
        An :class:`AsyncAPIDocument`.  Validation warnings are logged and
        kept on :attr:`AsyncAPIDocument.warnings`.

    Raises:
        TypeError: If *spec* is not a dict.
        SpecValidationError: If validation reports any error.
        SpecParsingError: If the document nests too deeply to extract.
    """

    # --- Input validation ----------------------------------------------------
    if not isinstance(spec, dict):
        raise TypeError(
            f"Expected a dict for the AsyncAPI spec, got {type(spec).__name__}."
        )

    result = validate_asyncapi(spec)
    for warning in result.warnings:
        logger.warning("AsyncAPI warning: %s", warning)
    if not result.valid:
        for error in result.errors:
            logger.error("AsyncAPI error: %s", error)
        raise SpecValidationError(result.errors, result.warnings)

    title, version, description = _extract_info(spec)
    asyncapi_version = str(spec.get("asyncapi"))

    logger.info(
        "Parsing AsyncAPI %s spec: '%s' v%s",
        asyncapi_version,
        title,
        version,
    )

    try:
        # Keep an unmodified copy for raw_spec
        raw_spec = copy.deepcopy(spec)
        schemas = _parse_schemas(spec, preserve_refs=preserve_refs)
        messages = _parse_messages(spec, preserve_refs=preserve_refs)
        channels = _parse_channels(spec, preserve_refs=preserve_refs)
    except RecursionError as exc:
        raise SpecParsingError(
            "Failed to parse AsyncAPI document: schema nesting too deep."
        ) from exc

    document = AsyncAPIDocument(
        title=title,
        version=version,
        description=description,
        asyncapi_version=asyncapi_version,
        channels=channels,
        messages=messages,
        schemas=schemas,
        raw_spec=raw_spec,
        warnings=list(result.warnings),
    )

    logger.info(
        "Parsed spec '%s' v%s: %d channels, %d messages, %d schemas.",
        title,
        version,
        len(channels),
        len(messages),
        len(schemas),
    )

    return document
