"""
Dynamic list editor for array fields.

Manages the ordered, mutable rows of an array field. Every row carries an
identity token minted when the row is created and never reused, so widgets
keyed by identity keep their values when an earlier row is removed.
"""

import itertools
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional
import logging

from .exceptions import NotFoundError
from .field_schema import FieldSchema
from .form_state import FormState, MISSING
from .paths import index_path, is_under, join_path, nest_paths

logger = logging.getLogger(__name__)

EMPTY = 'Empty'
POPULATED = 'Populated'


@dataclass(frozen=True)
class ListItem:
    """One row of a dynamic list as seen by the renderer."""

    identity: str
    ordinal_position: int
    value: Any


def seed_subtree(schema: FieldSchema, path: str, value: Any, state: FormState,
                 registry: 'ListRegistry') -> None:
    """
    Write the initial leaves for ``schema`` at ``path``.

    Args:
        schema: Schema of the node being seeded
        path: Path of the node
        value: Data to seed from (MISSING or None falls back to schema defaults)
        state: Form state receiving the leaves
        registry: Registry receiving editors for nested arrays
    """
    if schema.is_primitive:
        state.set(path, schema.default_value if value is MISSING or value is None else value)
    elif schema.kind == 'object':
        values = value if isinstance(value, dict) else {}
        for child in schema.children:
            seed_subtree(child, join_path(path, child.name), values.get(child.name, MISSING), state, registry)
    else:
        elements = value if isinstance(value, (list, tuple)) else []
        registry.create(path, schema.item_schema, state, elements)


class DynamicListEditor:
    """Add/remove/reorder editor for a single array field instance."""

    def __init__(self, path: str, item_schema: FieldSchema, state: FormState, registry: 'ListRegistry'):
        self.path = path
        self.item_schema = item_schema
        self._state = state
        self._registry = registry
        self._identities: List[str] = []

    def __len__(self) -> int:
        return len(self._identities)

    @property
    def status(self) -> str:
        return POPULATED if self._identities else EMPTY

    @property
    def identities(self) -> List[str]:
        return list(self._identities)

    def item_path(self, position: int) -> str:
        return index_path(self.path, position)

    def position_of(self, identity: str) -> int:
        try:
            return self._identities.index(identity)
        except ValueError:
            raise NotFoundError("List item", identity,
                                f"No item {identity!r} in list {self.path!r}") from None

    def seed(self, values: Iterable[Any]) -> None:
        """Seed one row per element actually present in ``values``."""
        for value in values:
            self._append(value)
        logger.debug(f"[DynamicListEditor.seed] {self.path}: {len(self._identities)} items")

    def add(self, value: Any = MISSING) -> ListItem:
        """
        Append a new row.

        Args:
            value: Initial data for the row; defaults come from the item schema

        Returns:
            The new ListItem
        """
        identity = self._append(value)
        logger.info(f"Added item {identity} to {self.path} ({len(self._identities)} items)")
        return self._item(len(self._identities) - 1)

    def remove(self, identity: str) -> ListItem:
        """
        Remove the row with ``identity`` and shift later rows down.

        Raises:
            NotFoundError: If no row currently has that identity
        """
        position = self.position_of(identity)
        removed = self._item(position)

        item_path = self.item_path(position)
        self._state.clear_subtree(item_path)
        self._registry.clear_subtree(item_path)

        old_order = list(self._identities)
        new_order = [ident for ident in old_order if ident != identity]
        self._relayout(old_order, new_order)

        logger.info(f"Removed item {identity} from {self.path} ({len(self._identities)} items left)")
        return removed

    def move(self, identity: str, new_position: int) -> None:
        """Move a row to ``new_position``; values travel with the identity."""
        position = self.position_of(identity)
        new_position = max(0, min(new_position, len(self._identities) - 1))
        if new_position == position:
            return
        old_order = list(self._identities)
        new_order = list(old_order)
        new_order.pop(position)
        new_order.insert(new_position, identity)
        self._relayout(old_order, new_order)
        logger.debug(f"[DynamicListEditor.move] {self.path}: {identity} {position} -> {new_position}")

    def items(self) -> List[ListItem]:
        """Rows in ascending ordinal position."""
        return [self._item(position) for position in range(len(self._identities))]

    def values(self) -> List[Any]:
        return [item.value for item in self.items()]

    def _append(self, value: Any) -> str:
        identity = self._registry.mint_identity()
        self._identities.append(identity)
        seed_subtree(self.item_schema, self.item_path(len(self._identities) - 1), value,
                     self._state, self._registry)
        return identity

    def _item(self, position: int) -> ListItem:
        return ListItem(
            identity=self._identities[position],
            ordinal_position=position,
            value=self._subtree_value(self.item_path(position)),
        )

    def _subtree_value(self, item_path: str) -> Any:
        if self.item_schema.is_primitive:
            return self._state.get(item_path)
        # Nest under a placeholder key so item-relative suffixes parse as paths
        leaves = {
            'value' + path[len(item_path):]: self._state.get(path)
            for path in self._state.paths_under(item_path)
        }
        empty_lists = [
            'value' + path[len(item_path):]
            for path in self._registry.empty_lists()
            if is_under(path, item_path)
        ]
        default = [] if self.item_schema.kind == 'array' else {}
        return nest_paths(leaves, empty_lists).get('value', default)

    def _relayout(self, old_order: List[str], new_order: List[str]) -> None:
        moved_leaves: Dict[str, Dict[str, Any]] = {}
        moved_lists: Dict[str, Dict[str, DynamicListEditor]] = {}
        for position, identity in enumerate(old_order):
            if identity not in new_order or new_order.index(identity) == position:
                continue
            item_path = self.item_path(position)
            moved_leaves[identity] = self._state.extract_subtree(item_path)
            moved_lists[identity] = self._registry.extract_subtree(item_path)

        for identity, leaves in moved_leaves.items():
            item_path = self.item_path(new_order.index(identity))
            self._state.insert_subtree(item_path, leaves)
            self._registry.insert_subtree(item_path, moved_lists[identity])

        self._identities = new_order


class ListRegistry:
    """
    Every list editor of one form instance, keyed by list path.

    Also owns the instance's identity counter, so identities are unique
    across all lists of the form and never reused.
    """

    def __init__(self):
        self._editors: Dict[str, DynamicListEditor] = {}
        self._counter = itertools.count(1)

    def __contains__(self, path: str) -> bool:
        return path in self._editors

    def mint_identity(self) -> str:
        return f"item-{next(self._counter)}"

    def get(self, path: str) -> Optional[DynamicListEditor]:
        return self._editors.get(path)

    def require(self, path: str) -> DynamicListEditor:
        editor = self._editors.get(path)
        if editor is None:
            raise NotFoundError("List", path)
        return editor

    def create(self, path: str, item_schema: FieldSchema, state: FormState,
               values: Iterable[Any] = ()) -> DynamicListEditor:
        """Create (or recreate) the editor for ``path`` and seed its rows."""
        if path in self._editors:
            state.clear_subtree(path)
            self.clear_subtree(path)
        editor = DynamicListEditor(path, item_schema, state, self)
        self._editors[path] = editor
        editor.seed(values)
        return editor

    def paths(self) -> List[str]:
        return list(self._editors)

    def empty_lists(self) -> List[str]:
        return [path for path, editor in self._editors.items() if len(editor) == 0]

    def clear_subtree(self, prefix: str) -> List[str]:
        removed = [path for path in self._editors if is_under(path, prefix)]
        for path in removed:
            del self._editors[path]
        return removed

    def extract_subtree(self, prefix: str) -> Dict[str, DynamicListEditor]:
        extracted: Dict[str, DynamicListEditor] = {}
        for path in [p for p in self._editors if is_under(p, prefix)]:
            extracted[path[len(prefix):]] = self._editors.pop(path)
        return extracted

    def insert_subtree(self, prefix: str, editors: Dict[str, DynamicListEditor]) -> None:
        for suffix, editor in editors.items():
            editor.path = prefix + suffix
            self._editors[editor.path] = editor
