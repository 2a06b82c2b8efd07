"""
Form definition loader for the dynamic form engine.
Handles loading and validation of YAML/JSON form definitions.
"""

import json
import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Optional, List, Tuple
import logging

from .exceptions import SchemaError
from .field_schema import FieldSchema, parse_fields

# Configure logging
logger = logging.getLogger(__name__)

SCHEMAS_DIR = Path("schemas")

DEFAULT_RECORD_ID_FIELD = 'id'


@dataclass(frozen=True)
class CascadeSpec:
    """Which top-level fields drive the environment -> market selection."""

    primary: str
    secondary: str
    primary_options: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FormDefinition:
    """A complete, validated form: ordered top-level fields plus cascade wiring."""

    title: str
    fields: Tuple[FieldSchema, ...]
    cascade: Optional[CascadeSpec] = None
    record_id_field: str = DEFAULT_RECORD_ID_FIELD

    def field(self, name: str) -> Optional[FieldSchema]:
        for schema in self.fields:
            if schema.name == name:
                return schema
        return None

    def dependents_of(self, name: str) -> List[FieldSchema]:
        """Top-level fields whose visibility hangs (transitively) on ``name``."""
        result: List[FieldSchema] = []
        frontier = [name]
        while frontier:
            current = frontier.pop(0)
            for schema in self.fields:
                if schema.depends_on == current and schema not in result:
                    result.append(schema)
                    frontier.append(schema.name)
        return result


def parse_form_definition(raw: Any, source: Optional[str] = None) -> FormDefinition:
    """
    Build a FormDefinition from a parsed YAML/JSON document.

    Args:
        raw: Parsed document
        source: Where the document came from, for error messages

    Returns:
        Validated FormDefinition

    Raises:
        SchemaError: If the definition is malformed in any way
    """
    problems: List[Tuple[str, str]] = []

    if isinstance(raw, list):
        # A bare list of fields is the whole definition
        raw = {'fields': raw}

    if not isinstance(raw, dict):
        raise SchemaError([('', "form definition must be a mapping")], source)

    raw_fields = raw.get('fields')
    if not isinstance(raw_fields, list):
        raise SchemaError([('', "form definition must contain a list of 'fields'")], source)

    fields = parse_fields(raw_fields, '', problems)
    by_name: Dict[str, FieldSchema] = {schema.name: schema for schema in fields}

    for schema in fields:
        if schema.depends_on is None:
            continue
        if schema.depends_on not in by_name:
            problems.append((schema.name, f"depends_on refers to unknown field {schema.depends_on!r}"))
        elif _has_cycle(schema.name, by_name):
            problems.append((schema.name, "depends_on forms a cycle"))

    cascade = _parse_cascade(raw.get('cascade'), by_name, problems)

    record_id_field = raw.get('record_id_field', DEFAULT_RECORD_ID_FIELD)
    if not isinstance(record_id_field, str) or not record_id_field:
        problems.append(('record_id_field', "must be a non-empty string"))
        record_id_field = DEFAULT_RECORD_ID_FIELD

    if problems:
        raise SchemaError(problems, source)

    return FormDefinition(
        title=str(raw.get('title', 'Form')),
        fields=fields,
        cascade=cascade,
        record_id_field=record_id_field,
    )


def _has_cycle(start: str, by_name: Dict[str, FieldSchema]) -> bool:
    seen = {start}
    current = by_name[start].depends_on
    while current is not None and current in by_name:
        if current in seen:
            return True
        seen.add(current)
        current = by_name[current].depends_on
    return False


def _parse_cascade(raw_cascade: Any, by_name: Dict[str, FieldSchema],
                   problems: List[Tuple[str, str]]) -> Optional[CascadeSpec]:
    if raw_cascade is None:
        return None

    if not isinstance(raw_cascade, dict):
        problems.append(('cascade', "cascade must be a mapping"))
        return None

    primary = raw_cascade.get('primary')
    secondary = raw_cascade.get('secondary')

    for role, name in (('primary', primary), ('secondary', secondary)):
        schema = by_name.get(name) if isinstance(name, str) else None
        if schema is None:
            problems.append((f"cascade.{role}", f"must name a top-level field, got {name!r}"))
        elif schema.kind != 'string':
            problems.append((f"cascade.{role}", f"field {name!r} must be of type string"))

    if isinstance(secondary, str) and secondary in by_name and by_name[secondary].depends_on != primary:
        problems.append(('cascade.secondary', f"field {secondary!r} must depend on {primary!r}"))

    options = raw_cascade.get('primary_options', [])
    if not isinstance(options, list) or not all(isinstance(option, str) for option in options):
        problems.append(('cascade.primary_options', "must be a list of strings"))
        options = []

    return CascadeSpec(primary=primary, secondary=secondary, primary_options=tuple(options))


def load_form_definition(schema_path: str, schemas_dir: Optional[Path] = None) -> FormDefinition:
    """
    Load a form definition from a YAML or JSON file.

    Args:
        schema_path: Path to the definition (relative to the schemas directory
            unless it already exists as given)
        schemas_dir: Override for the schemas directory

    Returns:
        Validated FormDefinition

    Raises:
        SchemaError: If the file is missing, unparsable or invalid
    """
    base_dir = schemas_dir if schemas_dir is not None else SCHEMAS_DIR
    full_path = Path(schema_path)
    if not full_path.exists():
        full_path = base_dir / schema_path

    if not full_path.exists():
        logger.error(f"Form definition not found: {full_path}")
        raise SchemaError([('', "file not found")], str(full_path))

    try:
        with open(full_path, 'r', encoding='utf-8') as f:
            if full_path.suffix.lower() in ['.yaml', '.yml']:
                raw = yaml.safe_load(f)
            elif full_path.suffix.lower() == '.json':
                raw = json.load(f)
            else:
                raise SchemaError([('', f"unsupported file format {full_path.suffix}")], str(full_path))
    except yaml.YAMLError as e:
        logger.error(f"YAML parsing error in {full_path}: {e}")
        raise SchemaError([('', f"YAML parsing error: {e}")], str(full_path)) from e
    except json.JSONDecodeError as e:
        logger.error(f"JSON parsing error in {full_path}: {e}")
        raise SchemaError([('', f"JSON parsing error: {e}")], str(full_path)) from e

    definition = parse_form_definition(raw, str(full_path))
    logger.info(f"Successfully loaded form definition: {full_path} ({len(definition.fields)} fields)")
    return definition
