"""
Dynamic form generator for the form engine.
Projects field schemas plus form state into a tree of bound field descriptors.
"""

from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple
import logging

from .field_schema import FieldSchema
from .form_state import FormState, MISSING
from .list_editor import ListRegistry
from .paths import index_path, join_path, lookup_path

logger = logging.getLogger(__name__)

OnChangeFactory = Callable[[str], Callable[[Any], None]]
OptionsProvider = Callable[[str], Optional[List[Tuple[str, str]]]]


@dataclass
class FieldDescriptor:
    """
    One node of the rendered tree handed to the widget toolkit.

    Leaves carry the bound value and an ``on_change`` callback; groups and
    lists carry children. List rows carry the row identity, which widget
    keys must use instead of the row position.
    """

    path: str
    kind: str
    label: str
    value: Any = None
    on_change: Optional[Callable[[Any], None]] = field(default=None, compare=False, repr=False)
    children: List['FieldDescriptor'] = field(default_factory=list)
    identity: Optional[str] = None
    options: Optional[List[Tuple[str, str]]] = None
    required: bool = False
    help: Optional[str] = None
    placeholder: Optional[str] = None

    @property
    def is_leaf(self) -> bool:
        return self.kind not in ('object', 'array')


def iter_leaves(descriptors: Sequence[FieldDescriptor]) -> Iterator[FieldDescriptor]:
    """Depth-first walk over every bound leaf of a rendered tree."""
    for descriptor in descriptors:
        if descriptor.is_leaf:
            yield descriptor
        else:
            yield from iter_leaves(descriptor.children)


def iter_lists(descriptors: Sequence[FieldDescriptor]) -> Iterator[FieldDescriptor]:
    """Depth-first walk over every list node of a rendered tree."""
    for descriptor in descriptors:
        if descriptor.kind == 'array':
            yield descriptor
        if not descriptor.is_leaf:
            yield from iter_lists(descriptor.children)


class FieldRenderer:
    """
    Recursive schema -> descriptor projection.

    The renderer keeps no state of its own. On first visit it seeds missing
    leaves and list editors (record value, then resolver default, then schema
    default); afterwards rendering the same schema against the same state
    yields an equal tree.
    """

    def __init__(self, on_change_factory: Optional[OnChangeFactory] = None,
                 options_provider: Optional[OptionsProvider] = None):
        self._on_change_factory = on_change_factory
        self._options_provider = options_provider

    def render(
        self,
        fields: Sequence[FieldSchema],
        state: FormState,
        lists: ListRegistry,
        record: Optional[Dict[str, Any]] = None,
        defaults: Optional[Dict[str, Any]] = None
    ) -> List[FieldDescriptor]:
        """
        Render top-level fields.

        Args:
            fields: Ordered top-level field schemas
            state: Form state to bind to
            lists: List editors of this form instance
            record: Existing record being edited, if any
            defaults: Resolver-provided defaults, if any

        Returns:
            Descriptors for every visible top-level field
        """
        by_name = {schema.name: schema for schema in fields}
        visibility: Dict[str, bool] = {}

        descriptors = []
        for schema in fields:
            if not self._is_visible(schema, by_name, state, visibility):
                logger.debug(f"[FieldRenderer.render] Hiding {schema.name}: {schema.depends_on} is empty")
                # A hidden field keeps no leaves or editors behind
                state.clear_subtree(schema.name)
                lists.clear_subtree(schema.name)
                continue
            descriptors.append(self._render_node(schema, schema.name, state, lists, record, defaults))
        return descriptors

    def _is_visible(self, schema: FieldSchema, by_name: Dict[str, FieldSchema], state: FormState,
                    visibility: Dict[str, bool]) -> bool:
        if schema.name in visibility:
            return visibility[schema.name]
        visibility[schema.name] = False  # guards against cycles
        if schema.depends_on is None:
            visible = True
        else:
            governing = by_name.get(schema.depends_on)
            visible = (
                governing is not None
                and self._is_visible(governing, by_name, state, visibility)
                and state.get(governing.name) not in (None, '')
            )
        visibility[schema.name] = visible
        return visible

    def _render_node(self, schema: FieldSchema, path: str, state: FormState, lists: ListRegistry,
                     record: Optional[Dict[str, Any]], defaults: Optional[Dict[str, Any]],
                     identity: Optional[str] = None) -> FieldDescriptor:
        if schema.kind == 'object':
            children = [
                self._render_node(child, join_path(path, child.name), state, lists, record, defaults)
                for child in schema.children
            ]
            return FieldDescriptor(
                path=path,
                kind='object',
                label=schema.display_label,
                children=children,
                identity=identity,
                help=schema.help,
            )

        if schema.kind == 'array':
            editor = lists.get(path)
            if editor is None:
                elements = self._seed_source(path, record, defaults)
                editor = lists.create(path, schema.item_schema, state,
                                      elements if isinstance(elements, (list, tuple)) else [])
            children = [
                self._render_node(schema.item_schema, index_path(path, item.ordinal_position),
                                  state, lists, record, defaults, identity=item.identity)
                for item in editor.items()
            ]
            return FieldDescriptor(
                path=path,
                kind='array',
                label=schema.display_label,
                children=children,
                identity=identity,
                required=schema.required,
                help=schema.help,
            )

        if not state.contains(path):
            seeded = self._seed_source(path, record, defaults)
            state.set(path, schema.default_value if seeded is MISSING else seeded)

        return FieldDescriptor(
            path=path,
            kind=schema.kind,
            label=schema.display_label,
            value=state.get(path),
            on_change=self._on_change(path, state),
            identity=identity,
            options=self._options_provider(path) if self._options_provider else None,
            required=schema.required,
            help=schema.help,
            placeholder=schema.placeholder,
        )

    @staticmethod
    def _seed_source(path: str, record: Optional[Dict[str, Any]], defaults: Optional[Dict[str, Any]]) -> Any:
        for source in (record, defaults):
            if source:
                value = lookup_path(source, path, MISSING)
                if value is not MISSING and value is not None:
                    return value
        return MISSING

    def _on_change(self, path: str, state: FormState) -> Callable[[Any], None]:
        if self._on_change_factory is not None:
            return self._on_change_factory(path)
        return partial(state.set, path)
