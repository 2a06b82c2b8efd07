"""
Field schema model for the dynamic form engine.
Describes the recursive shape of a form: primitive, object and array fields.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging

from .exceptions import SchemaError
from .paths import join_path

logger = logging.getLogger(__name__)

PRIMITIVE_KINDS = {'string', 'number', 'boolean'}
SUPPORTED_KINDS = PRIMITIVE_KINDS | {'object', 'array'}

DEFAULT_ITEM_NAME = 'item'

_MISSING = object()


@dataclass(frozen=True)
class FieldSchema:
    """A single node of a form schema. Immutable once loaded."""

    name: str
    kind: str
    default_value: Any = None
    children: Tuple['FieldSchema', ...] = ()
    item_schema: Optional['FieldSchema'] = None
    label: str = ''
    required: bool = False
    depends_on: Optional[str] = None
    placeholder: Optional[str] = None
    help: Optional[str] = None
    has_default: bool = field(default=False, compare=False)

    @property
    def is_primitive(self) -> bool:
        return self.kind in PRIMITIVE_KINDS

    @property
    def display_label(self) -> str:
        return self.label or self.name


def _type_matches(kind: str, value: Any) -> bool:
    if kind == 'string':
        return isinstance(value, str)
    if kind == 'boolean':
        return isinstance(value, bool)
    if kind == 'number':
        return value is None or (isinstance(value, (int, float)) and not isinstance(value, bool))
    return False


def parse_field(raw: Any, path: str = '', problems: Optional[List[Tuple[str, str]]] = None,
                is_item: bool = False) -> Optional[FieldSchema]:
    """
    Build a FieldSchema from its YAML/JSON description.

    Problems are collected into ``problems`` rather than raised so that a
    whole definition can be reported at once; use ``parse_fields`` to get
    a SchemaError.

    Args:
        raw: Field description dictionary
        path: Path of this field, used in problem reports
        problems: Accumulator for (path, message) problems
        is_item: True when parsing an array's item schema (name optional)

    Returns:
        FieldSchema, or None when the description is unusable
    """
    if problems is None:
        problems = []

    if not isinstance(raw, dict):
        problems.append((path, "field definition must be a mapping"))
        return None

    name = raw.get('name')
    if name is None and is_item:
        name = DEFAULT_ITEM_NAME
    if not isinstance(name, str) or not name.strip():
        problems.append((path, "field must have a non-empty 'name'"))
        return None

    kind = raw.get('type', raw.get('kind'))
    if kind not in SUPPORTED_KINDS:
        problems.append((path, f"unsupported type {kind!r}; expected one of {sorted(SUPPORTED_KINDS)}"))
        return None

    has_value = 'value' in raw or 'default' in raw
    value = raw.get('value', raw.get('default'))
    raw_children = raw.get('fields', raw.get('children', _MISSING))
    raw_items = raw.get('items', raw.get('item', _MISSING))

    children: Tuple[FieldSchema, ...] = ()
    item_schema: Optional[FieldSchema] = None

    if kind in PRIMITIVE_KINDS:
        if raw_children is not _MISSING or raw_items is not _MISSING:
            problems.append((path, f"{kind} field cannot declare 'fields' or 'items'"))
        if not has_value and kind != 'number':
            problems.append((path, f"{kind} field must declare a default 'value'"))
        elif has_value and not _type_matches(kind, value):
            problems.append((path, f"default value {value!r} does not match type {kind}"))

    elif kind == 'object':
        if has_value or raw_items is not _MISSING:
            problems.append((path, "object field cannot declare 'value' or 'items'"))
        if raw_children is _MISSING or not isinstance(raw_children, list):
            problems.append((path, "object field must declare a list of 'fields'"))
        else:
            children = parse_fields(raw_children, path, problems)

    elif kind == 'array':
        if has_value or raw_children is not _MISSING:
            problems.append((path, "array field cannot declare 'value' or 'fields'"))
        if raw_items is _MISSING:
            problems.append((path, "array field must declare 'items'"))
        elif isinstance(raw_items, list) and len(raw_items) != 1:
            problems.append((path, "array 'items' must describe exactly one element type"))
        else:
            if isinstance(raw_items, list):
                raw_items = raw_items[0]
            item_schema = parse_field(raw_items, f"{path}[]", problems, is_item=True)

    depends_on = raw.get('depends_on')
    if depends_on is not None and not isinstance(depends_on, str):
        problems.append((path, "'depends_on' must be a field name"))
        depends_on = None

    return FieldSchema(
        name=name,
        kind=kind,
        default_value=value if kind in PRIMITIVE_KINDS else None,
        children=children,
        item_schema=item_schema,
        label=str(raw.get('label', '') or ''),
        required=bool(raw.get('required', False)),
        depends_on=depends_on,
        placeholder=raw.get('placeholder'),
        help=raw.get('help'),
        has_default=has_value and kind in PRIMITIVE_KINDS,
    )


def parse_fields(raw_fields: Sequence[Any], prefix: str = '',
                 problems: Optional[List[Tuple[str, str]]] = None) -> Tuple[FieldSchema, ...]:
    """
    Parse an ordered list of sibling fields.

    When called without a ``problems`` accumulator this is the public entry
    point: any problem found anywhere in the tree raises SchemaError.
    """
    owns_problems = problems is None
    if problems is None:
        problems = []

    parsed: List[FieldSchema] = []
    seen: Dict[str, int] = {}
    for index, raw in enumerate(raw_fields):
        raw_name = raw.get('name') if isinstance(raw, dict) else None
        path = join_path(prefix, raw_name) if isinstance(raw_name, str) and raw_name else f"{prefix}<{index}>"
        schema = parse_field(raw, path, problems)
        if schema is None:
            continue
        if schema.name in seen:
            problems.append((path, f"duplicate field name {schema.name!r}"))
            continue
        seen[schema.name] = index
        parsed.append(schema)

    if owns_problems and problems:
        raise SchemaError(problems)

    return tuple(parsed)


def validate_fields(fields: Sequence[FieldSchema], prefix: str = '') -> None:
    """
    Structurally validate already-built FieldSchema trees.

    Raises:
        SchemaError: listing every offending path
    """
    problems: List[Tuple[str, str]] = []
    _collect_problems(fields, prefix, problems)
    if problems:
        raise SchemaError(problems)


def _collect_problems(fields: Sequence[FieldSchema], prefix: str,
                      problems: List[Tuple[str, str]]) -> None:
    names = set()
    for schema in fields:
        path = join_path(prefix, schema.name)
        if schema.name in names:
            problems.append((path, f"duplicate field name {schema.name!r}"))
        names.add(schema.name)
        _check_node(schema, path, problems)


def _check_node(schema: FieldSchema, path: str, problems: List[Tuple[str, str]]) -> None:
    if schema.kind not in SUPPORTED_KINDS:
        problems.append((path, f"unsupported type {schema.kind!r}"))
        return

    if schema.kind in PRIMITIVE_KINDS:
        if schema.children or schema.item_schema is not None:
            problems.append((path, f"{schema.kind} field cannot have children or an item schema"))
        if not _type_matches(schema.kind, schema.default_value):
            problems.append((path, f"default value {schema.default_value!r} does not match type {schema.kind}"))
    elif schema.kind == 'object':
        if schema.item_schema is not None or schema.default_value is not None:
            problems.append((path, "object field cannot have a default value or an item schema"))
        _collect_problems(schema.children, path, problems)
    else:
        if schema.children or schema.default_value is not None:
            problems.append((path, "array field cannot have a default value or children"))
        if schema.item_schema is None:
            problems.append((path, "array field must have an item schema"))
        else:
            _check_node(schema.item_schema, f"{path}[]", problems)
