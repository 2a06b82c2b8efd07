"""
Submission handler for the form engine.
Runs validation, routes the payload to create or update, and reports the outcome.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Tuple, Union
import logging

from .exceptions import DispatchFailure, ValidationFailure
from .paths import nest_paths
from .record_store import RecordStore
from .ui_feedback import ERROR, SUCCESS, WARNING, LogNotifier, NotificationEvent, Notifier
from .validation import FieldError, Validator

# Configure logging
logger = logging.getLogger(__name__)

VALIDATION = 'validation'
DISPATCH = 'dispatch'
IN_FLIGHT = 'in_flight'
MISSING_RECORD = 'missing_record'


@dataclass(frozen=True)
class Messages:
    """Notifier texts for one kind of submission."""

    success: Tuple[str, str] = ("Saved", "The record has been saved!")
    failure: Tuple[str, str] = ("Error", "Failed to save the record!")
    invalid: Tuple[str, str] = ("Error", "Please fix the errors in the form!")


SAVE_MESSAGES = Messages()
PUBLISH_MESSAGES = Messages(
    success=("Published", "The post has been published!"),
    failure=("Error", "Failed to publish the post!"),
)


@dataclass(frozen=True)
class SubmissionPayload:
    """Flattened form snapshot plus the identity that selects create vs update."""

    fields: Dict[str, Any]
    record_id: Optional[Any] = None
    extra_fields: Dict[str, Any] = field(default_factory=dict)
    empty_lists: Tuple[str, ...] = ()

    @property
    def is_update(self) -> bool:
        return self.record_id is not None

    def as_record(self) -> Dict[str, Any]:
        """Nested record sent to the store."""
        record = nest_paths(self.fields, self.empty_lists)
        record.update(self.extra_fields)
        return record


@dataclass(frozen=True)
class Success:
    record: Dict[str, Any]
    operation: str


@dataclass(frozen=True)
class Failure:
    reason: str
    kind: str
    validation_errors: Tuple[FieldError, ...] = ()
    error: Optional[Exception] = field(default=None, compare=False)


SubmissionOutcome = Union[Success, Failure]


class SubmissionDispatcher:
    """
    Validates a form snapshot and sends it to the record store.

    Exactly one outcome and exactly one notifier event are produced per
    attempt. Nothing is retried; a caller that wants a retry submits again.
    """

    def __init__(self, store: RecordStore, validator: Validator, notifier: Optional[Notifier] = None):
        self.store = store
        self.validator = validator
        self.notifier = notifier or LogNotifier()
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def dispatch(
        self,
        snapshot: Dict[str, Any],
        record_id: Optional[Any] = None,
        required_paths: Iterable[str] = (),
        extra_fields: Optional[Dict[str, Any]] = None,
        empty_lists: Iterable[str] = (),
        messages: Messages = SAVE_MESSAGES
    ) -> SubmissionOutcome:
        """
        Validate and submit one payload.

        Args:
            snapshot: Flattened form state
            record_id: Identity of the record being edited; None creates a new one
            required_paths: Paths the validator must treat as required
            extra_fields: Top-level fields merged into the record (e.g. a status)
            empty_lists: List paths currently holding no rows
            messages: Notifier texts

        Returns:
            Success or Failure
        """
        if self._in_flight:
            logger.warning("Submission ignored: another submission is still in flight")
            return self._report(
                Failure("A submission is already in progress", IN_FLIGHT),
                (WARNING, "Busy", "A submission is already in progress"),
            )

        errors = self._validate(snapshot, required_paths)
        if errors:
            logger.warning(f"Validation failed: {len(errors)} errors")
            failure = ValidationFailure(errors)
            return self._report(
                Failure(failure.message, VALIDATION, tuple(errors), failure),
                (ERROR,) + messages.invalid,
            )

        payload = SubmissionPayload(
            fields=dict(snapshot),
            record_id=record_id,
            extra_fields=dict(extra_fields or {}),
            empty_lists=tuple(empty_lists),
        )

        self._in_flight = True
        try:
            if payload.is_update:
                operation = 'update'
                record = await self.store.update(payload.record_id, payload.as_record())
            else:
                operation = 'create'
                record = await self.store.create(payload.as_record())
        except DispatchFailure as e:
            logger.error(f"Submission failed: {e}")
            return self._report(Failure(e.message, DISPATCH, error=e), (ERROR,) + messages.failure)
        except Exception as e:
            logger.error(f"Submission error: {e}", exc_info=True)
            failure = DispatchFailure('update' if payload.is_update else 'create', e)
            return self._report(Failure(failure.message, DISPATCH, error=failure), (ERROR,) + messages.failure)
        finally:
            self._in_flight = False

        logger.info(f"Submission succeeded ({operation})")
        return self._report(Success(record, operation), (SUCCESS,) + messages.success)

    async def publish(
        self,
        snapshot: Dict[str, Any],
        record_id: Optional[Any],
        required_paths: Iterable[str] = (),
        empty_lists: Iterable[str] = ()
    ) -> SubmissionOutcome:
        """Update an existing record with ``status: published``."""
        if record_id is None:
            logger.warning("Publish requested before the record was saved")
            return self._report(
                Failure("Only saved records can be published", MISSING_RECORD),
                (ERROR,) + PUBLISH_MESSAGES.failure,
            )
        return await self.dispatch(
            snapshot,
            record_id=record_id,
            required_paths=required_paths,
            extra_fields={'status': 'published'},
            empty_lists=empty_lists,
            messages=PUBLISH_MESSAGES,
        )

    def _validate(self, snapshot: Dict[str, Any], required_paths: Iterable[str]) -> list:
        try:
            return list(self.validator.validate(snapshot, list(required_paths)))
        except Exception as e:
            # Fail closed: a broken validator never lets a payload through
            logger.error(f"Validation error: {e}", exc_info=True)
            return [FieldError('', f"Validation system error: {e}")]

    def _report(self, outcome: SubmissionOutcome, event: Tuple[str, str, str]) -> SubmissionOutcome:
        kind, message, description = event
        self.notifier.notify(NotificationEvent(kind, message, description))
        return outcome
