"""
Form session management for the form engine.
Owns the state of one open form: values, list editors, cascade selections,
the loaded configuration map and the identity of the record being edited.
"""

import copy
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging

from .cascade_resolver import CascadingSelectionResolver, ConfigurationMap, SelectionChange, display_label, resolve_details
from .config_source import ConfigurationSource
from .diff_utils import calculate_changes, has_changes
from .exceptions import ConfigurationError, NotFoundError, log_error_with_context
from .form_generator import FieldDescriptor, FieldRenderer, iter_leaves, iter_lists
from .form_state import FormState
from .list_editor import ListItem, ListRegistry
from .schema_loader import FormDefinition
from .submission_handler import SubmissionDispatcher, SubmissionOutcome, SubmissionPayload, Success

logger = logging.getLogger(__name__)


class FormSession:
    """
    One open form instance.

    Everything here is private to the instance: no two sessions share form
    state, list editors or identity counters. Configuration loading and
    submission are awaited; once ``close()`` has been called their late
    results are discarded instead of being applied.
    """

    def __init__(self, definition: FormDefinition, dispatcher: SubmissionDispatcher,
                 record: Optional[Dict[str, Any]] = None, record_id: Optional[Any] = None):
        self.definition = definition
        self.dispatcher = dispatcher
        self.resolver = CascadingSelectionResolver.for_definition(definition)

        self.state = FormState()
        self.lists = ListRegistry()

        record = copy.deepcopy(record) if record else {}
        if record_id is None:
            record_id = record.get(definition.record_id_field)
        self.record_id = record_id
        self._original = self._comparable(record)
        self._record_seed = record

        self.config_map: Optional[ConfigurationMap] = None
        self.defaults: Dict[str, Any] = {}
        self.selection_version = 0
        self.loading = False
        self.load_error: Optional[ConfigurationError] = None
        self.closed = False
        self._load_generation = 0

        self._renderer = FieldRenderer(self._on_change_for, self._options_for)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_loaded(self) -> bool:
        return self.config_map is not None

    @property
    def is_submitting(self) -> bool:
        return self.dispatcher.in_flight

    async def open(self, source: ConfigurationSource) -> bool:
        """
        Load the configuration map.

        Returns:
            True if the map was applied, False if loading failed or the
            result arrived after the form was closed or reloaded
        """
        self._load_generation += 1
        generation = self._load_generation
        self.loading = True
        self.load_error = None
        try:
            config_map = await source.fetch()
        except ConfigurationError as e:
            log_error_with_context(e, "configuration load")
            if generation == self._load_generation and not self.closed:
                self.load_error = e
            return False
        finally:
            if generation == self._load_generation:
                self.loading = False

        if self.closed or generation != self._load_generation:
            logger.info("Discarding configuration map that arrived after the form moved on")
            return False

        self.config_map = config_map
        self._restore_defaults()
        self.render()
        logger.info(f"Configuration map applied to form '{self.definition.title}'")
        return True

    def close(self) -> None:
        """Tear the form down; pending loads and submissions will be discarded."""
        self.closed = True
        logger.info(f"Form '{self.definition.title}' closed")

    # ------------------------------------------------------------------
    # Rendering and editing
    # ------------------------------------------------------------------

    def render(self) -> List[FieldDescriptor]:
        """Project the current state into a descriptor tree."""
        return self._renderer.render(
            self.definition.fields, self.state, self.lists,
            record=self._record_seed, defaults=self.defaults,
        )

    def set_value(self, path: str, value: Any) -> None:
        self.state.set(path, value)
        if value in (None, ''):
            self._hide_dependents(path)

    def select_environment(self, key: Optional[str]) -> Optional[SelectionChange]:
        if self.resolver is None:
            logger.warning("Form has no cascade; environment selection ignored")
            return None
        change = self.resolver.select_primary(self.config_map, key)
        self._apply_change(change)
        self.state.set(self.resolver.primary_path, change.primary or '')
        self.render()
        return change

    def select_market(self, key: Optional[str]) -> Optional[SelectionChange]:
        if self.resolver is None:
            logger.warning("Form has no cascade; market selection ignored")
            return None
        if not self.is_loaded:
            logger.warning(f"Market {key!r} selected before the configuration map loaded; ignored")
            return None
        primary = self.state.get(self.resolver.primary_path)
        change = self.resolver.select_secondary(self.config_map, primary, key)
        self._apply_change(change)
        self.state.set(self.resolver.secondary_path, change.secondary or '')
        self.render()
        return change

    def add_item(self, list_path: str) -> ListItem:
        return self.lists.require(list_path).add()

    def remove_item(self, list_path: str, identity: str) -> bool:
        """
        Remove a list row.

        Returns:
            False (and nothing changes) when the row is already gone, e.g. a
            repeated click on the same remove button
        """
        try:
            self.lists.require(list_path).remove(identity)
        except NotFoundError as e:
            logger.warning(f"Ignoring removal: {e}")
            return False
        return True

    def move_item(self, list_path: str, identity: str, new_position: int) -> bool:
        try:
            self.lists.require(list_path).move(identity, new_position)
        except NotFoundError as e:
            logger.warning(f"Ignoring move: {e}")
            return False
        return True

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def required_paths(self, descriptors: Optional[List[FieldDescriptor]] = None) -> List[str]:
        if descriptors is None:
            descriptors = self.render()
        required = [leaf.path for leaf in iter_leaves(descriptors) if leaf.required]
        required.extend(node.path for node in iter_lists(descriptors) if node.required)
        return required

    def payload(self, extra_fields: Optional[Dict[str, Any]] = None) -> SubmissionPayload:
        self.render()
        return SubmissionPayload(
            fields=self.state.snapshot(),
            record_id=self.record_id,
            extra_fields=dict(extra_fields or {}),
            empty_lists=tuple(self.lists.empty_lists()),
        )

    def pending_changes(self) -> List[str]:
        """Paths that differ from the record the form was opened with (or last saved)."""
        return calculate_changes(self._original, self._comparable(self.payload().as_record()))

    def has_pending_changes(self) -> bool:
        return has_changes(self._original, self._comparable(self.payload().as_record()))

    async def submit(self, extra_fields: Optional[Dict[str, Any]] = None) -> SubmissionOutcome:
        """Validate and create/update; the entered values are kept whatever happens."""
        descriptors = self.render()
        payload = self.payload(extra_fields)
        outcome = await self.dispatcher.dispatch(
            payload.fields,
            record_id=payload.record_id,
            required_paths=self.required_paths(descriptors),
            extra_fields=payload.extra_fields,
            empty_lists=payload.empty_lists,
        )
        return self._apply_outcome(outcome)

    async def publish(self) -> SubmissionOutcome:
        descriptors = self.render()
        payload = self.payload()
        outcome = await self.dispatcher.publish(
            payload.fields,
            self.record_id,
            required_paths=self.required_paths(descriptors),
            empty_lists=payload.empty_lists,
        )
        return self._apply_outcome(outcome)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _apply_outcome(self, outcome: SubmissionOutcome) -> SubmissionOutcome:
        if self.closed:
            logger.info("Form closed during submission; outcome not applied")
            return outcome
        if isinstance(outcome, Success):
            self.record_id = outcome.record.get(self.definition.record_id_field, self.record_id)
            self._original = self._comparable(outcome.record)
            logger.info(f"Form '{self.definition.title}' saved as record {self.record_id}")
        return outcome

    def _apply_change(self, change: SelectionChange) -> None:
        for path in change.clear_paths:
            self.state.clear_subtree(path)
            self.lists.clear_subtree(path)
            # The loaded record described the old selection
            self._record_seed.pop(path, None)
        self.defaults = change.defaults
        self.selection_version += 1
        logger.info(
            f"Selection changed: environment={change.primary!r} market={change.secondary!r}, "
            f"cleared {len(change.clear_paths)} dependent fields"
        )

    def _hide_dependents(self, name: str) -> None:
        dependents = self.definition.dependents_of(name)
        for schema in dependents:
            self.state.clear_subtree(schema.name)
            self.lists.clear_subtree(schema.name)
            self._record_seed.pop(schema.name, None)
        if dependents:
            logger.info(f"{name} emptied; cleared {len(dependents)} dependent fields")

    def _restore_defaults(self) -> None:
        if self.resolver is None:
            return
        self.render()
        details = resolve_details(
            self.config_map,
            self.state.get(self.resolver.primary_path),
            self.state.get(self.resolver.secondary_path),
        )
        self.defaults = details.as_defaults() if details is not None else {}

    def _comparable(self, record: Dict[str, Any]) -> Dict[str, Any]:
        names = {schema.name for schema in self.definition.fields}
        return {key: value for key, value in record.items() if key in names}

    def _on_change_for(self, path: str) -> Callable[[Any], None]:
        if self.resolver is not None:
            if path == self.resolver.primary_path:
                return self.select_environment
            if path == self.resolver.secondary_path:
                return self.select_market
        return partial(self.set_value, path)

    def _options_for(self, path: str) -> Optional[List[Tuple[str, str]]]:
        if self.resolver is None:
            return None
        if path == self.resolver.primary_path:
            return [(key, display_label(key)) for key in self.definition.cascade.primary_options]
        if path == self.resolver.secondary_path:
            return self.resolver.options(self.config_map, self.state.get(self.resolver.primary_path))
        return None
