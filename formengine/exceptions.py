"""
Custom exception classes for the dynamic form engine.

This module provides the error taxonomy shared by schema loading, the
cascading resolver, the list editor and the submission dispatcher, with
centralized helpers for logging and user-facing formatting.
"""

import logging
from typing import Optional, Dict, Any, List, Sequence, Tuple

logger = logging.getLogger(__name__)


class FormEngineError(Exception):
    """
    Base exception for form engine errors.

    Attributes:
        message: Error message
        context: Additional context information
        recovery_suggestions: List of suggested recovery actions
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None,
                 recovery_suggestions: Optional[List[str]] = None):
        self.message = message
        self.context = context or {}
        self.recovery_suggestions = recovery_suggestions or []
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def get_full_details(self) -> Dict[str, Any]:
        """Get complete error details including context and suggestions."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'context': self.context,
            'recovery_suggestions': self.recovery_suggestions
        }


class SchemaError(FormEngineError):
    """
    Exception raised when field definitions are malformed.

    Fatal at load time: a form is never rendered from a schema that
    raised this error.
    """

    def __init__(self, problems: Sequence[Tuple[str, str]], source: Optional[str] = None):
        self.problems = list(problems)
        self.source = source

        lines = [f"{path or '<root>'}: {problem}" for path, problem in self.problems]
        prefix = f"Invalid form schema in {source}" if source else "Invalid form schema"
        message = f"{prefix}: " + "; ".join(lines)

        context = {
            'source': source,
            'paths': [path for path, _ in self.problems]
        }

        recovery_suggestions = [
            "Check that every field declares a supported 'type'",
            "Primitive fields need a 'value', objects need 'fields', arrays need 'items'",
            "Make sure field names are unique among their siblings"
        ]

        super().__init__(message, context, recovery_suggestions)

    @property
    def paths(self) -> List[str]:
        return [path for path, _ in self.problems]


class NotFoundError(FormEngineError):
    """Exception raised when a lookup targets something that is no longer there."""

    def __init__(self, what: str, key: Any, message: Optional[str] = None):
        self.what = what
        self.key = key

        if message is None:
            message = f"{what} not found: {key!r}"

        super().__init__(message, {'what': what, 'key': key})


class ValidationFailure(FormEngineError):
    """
    Structured, path-addressed validation failure.

    Attributes:
        errors: List of FieldError(path, message) entries
    """

    def __init__(self, errors: Sequence[Any], message: Optional[str] = None):
        self.errors = list(errors)

        if message is None:
            message = f"Validation failed for {len(self.errors)} field(s)"

        context = {'paths': [getattr(error, 'path', None) for error in self.errors]}

        super().__init__(message, context, ["Please fix the errors in the form!"])


class DispatchFailure(FormEngineError):
    """Exception raised when the record store rejects a create or update call."""

    def __init__(self, operation: str, original_error: Optional[Exception] = None,
                 message: Optional[str] = None, status_code: Optional[int] = None):
        self.operation = operation
        self.original_error = original_error
        self.status_code = status_code

        if message is None:
            detail = str(original_error) if original_error else "unknown error"
            message = f"Record store {operation} failed: {detail}"

        context = {
            'operation': operation,
            'status_code': status_code,
            'original_error_type': type(original_error).__name__ if original_error else None
        }

        recovery_suggestions = [
            "Your changes are still in the form; submit again to retry",
            "Check that the record service is reachable"
        ]

        super().__init__(message, context, recovery_suggestions)


class ConfigurationError(FormEngineError):
    """Exception raised when the configuration map cannot be loaded or has a bad shape."""

    def __init__(self, source: str, original_error: Optional[Exception] = None,
                 message: Optional[str] = None):
        self.source = source
        self.original_error = original_error

        if message is None:
            detail = str(original_error) if original_error else "unexpected shape"
            message = f"Failed to load configuration map from {source}: {detail}"

        context = {
            'source': source,
            'original_error_type': type(original_error).__name__ if original_error else None
        }

        recovery_suggestions = [
            "Verify the configuration service URL in config.yaml",
            "The map must look like {environment: {market: {hostUrl, tokenUrl, appIds}}}"
        ]

        super().__init__(message, context, recovery_suggestions)


def log_error_with_context(error: FormEngineError, operation: str) -> None:
    """
    Log error with full context information.

    Args:
        error: FormEngineError instance
        operation: Description of the operation that failed
    """
    logger.error(f"Form engine error during {operation}")
    logger.error(f"Error type: {type(error).__name__}")
    logger.error(f"Error message: {error.message}")

    if error.context:
        logger.error("Error context:")
        for key, value in error.context.items():
            logger.error(f"  {key}: {value}")

    if error.recovery_suggestions:
        logger.info("Recovery suggestions:")
        for i, suggestion in enumerate(error.recovery_suggestions, 1):
            logger.info(f"  {i}. {suggestion}")


def create_user_friendly_error_message(error: FormEngineError) -> Dict[str, Any]:
    """
    Create user-friendly error message for display in UI.

    Args:
        error: FormEngineError instance

    Returns:
        Dictionary with formatted error information for UI display
    """
    error_details = error.get_full_details()

    error_type_info = {
        'SchemaError': {
            'title': 'Form Definition Error',
            'icon': '📋',
            'severity': 'error'
        },
        'NotFoundError': {
            'title': 'Not Found',
            'icon': '🔍',
            'severity': 'warning'
        },
        'ValidationFailure': {
            'title': 'Validation Error',
            'icon': '✅',
            'severity': 'warning'
        },
        'DispatchFailure': {
            'title': 'Submission Error',
            'icon': '🌐',
            'severity': 'error'
        },
        'ConfigurationError': {
            'title': 'Configuration Error',
            'icon': '⚙️',
            'severity': 'error'
        }
    }

    error_type = error_details['error_type']
    type_info = error_type_info.get(error_type, {
        'title': 'Form Error',
        'icon': '❌',
        'severity': 'error'
    })

    return {
        'title': f"{type_info['icon']} {type_info['title']}",
        'message': error_details['message'],
        'severity': type_info['severity'],
        'context': error_details['context'],
        'recovery_suggestions': error_details['recovery_suggestions']
    }
