"""
Validators for form submissions.

The dispatcher does not author validation rules; it runs whichever
validator it is given. This module provides the stock ones: required-field
checks and type checks through a Pydantic model built from the field
schema.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple, Type
import logging

from pydantic import BaseModel, ConfigDict, StrictBool, StrictStr, ValidationError, create_model

from .field_schema import FieldSchema
from .paths import index_path, is_under, join_path, nest_paths

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE = "This field is required"
REQUIRED_LIST_MESSAGE = "At least one item is required"


@dataclass(frozen=True)
class FieldError:
    """A single path-addressed validation problem."""

    path: str
    message: str


class Validator(Protocol):
    def validate(self, snapshot: Dict[str, Any], required_paths: Iterable[str] = ()) -> List[FieldError]:
        ...


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


class RequiredFieldsValidator:
    """Reports every required path that is missing or blank."""

    def validate(self, snapshot: Dict[str, Any], required_paths: Iterable[str] = ()) -> List[FieldError]:
        errors: List[FieldError] = []
        for path in required_paths:
            if path in snapshot:
                if _is_blank(snapshot[path]):
                    errors.append(FieldError(path, REQUIRED_MESSAGE))
            elif not any(is_under(leaf, path) for leaf in snapshot):
                # Required lists have no leaf of their own; they need at least one row
                errors.append(FieldError(path, REQUIRED_LIST_MESSAGE))
        return errors


def _python_type(schema: FieldSchema, model_name: str) -> Any:
    if schema.kind == 'string':
        return StrictStr
    if schema.kind == 'number':
        return float
    if schema.kind == 'boolean':
        return StrictBool
    if schema.kind == 'array':
        return List[Optional[_python_type(schema.item_schema, f"{model_name}_item")]]
    return build_model(schema.children, f"{model_name}_{schema.name}")


def build_model(fields: Sequence[FieldSchema], model_name: str = "FormModel") -> Type[BaseModel]:
    """
    Create a Pydantic model mirroring a field schema.

    Every field is optional: hidden fields are absent from the payload and
    presence is the required-field validator's concern.
    """
    model_fields: Dict[str, Any] = {
        schema.name: (Optional[_python_type(schema, model_name)], None)
        for schema in fields
    }
    model = create_model(model_name, __config__=ConfigDict(extra='ignore'), **model_fields)
    logger.debug(f"Created validation model '{model_name}' with {len(model_fields)} fields")
    return model


def _loc_to_path(loc: Tuple[Any, ...]) -> str:
    path = ''
    for token in loc:
        if isinstance(token, int):
            path = index_path(path, token)
        else:
            path = join_path(path, str(token))
    return path


class SchemaTypeValidator:
    """Checks leaf value types against the form's field schema."""

    def __init__(self, fields: Sequence[FieldSchema]):
        self.model = build_model(fields)

    def validate(self, snapshot: Dict[str, Any], required_paths: Iterable[str] = ()) -> List[FieldError]:
        try:
            self.model.model_validate(nest_paths(snapshot))
        except ValidationError as e:
            return [FieldError(_loc_to_path(error['loc']), error['msg']) for error in e.errors()]
        return []


class CompositeValidator:
    """Runs several validators and reports each path's first problem only once."""

    def __init__(self, *validators: Validator):
        self.validators = list(validators)

    def validate(self, snapshot: Dict[str, Any], required_paths: Iterable[str] = ()) -> List[FieldError]:
        required = list(required_paths)
        errors: List[FieldError] = []
        seen = set()
        for validator in self.validators:
            for error in validator.validate(snapshot, required):
                if error.path in seen:
                    continue
                seen.add(error.path)
                errors.append(error)
        return errors


def default_validator(fields: Sequence[FieldSchema]) -> CompositeValidator:
    """Required-field checks followed by type checks."""
    return CompositeValidator(RequiredFieldsValidator(), SchemaTypeValidator(fields))
