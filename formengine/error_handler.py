"""
Error handling utilities for the form engine app.
Turns form engine errors into user-friendly Streamlit messages with recovery hints.
"""

import streamlit as st
import logging
from typing import Any, Callable, Dict, Optional

from .exceptions import FormEngineError, create_user_friendly_error_message, log_error_with_context

logger = logging.getLogger(__name__)


class ErrorType:
    """Error type constants."""
    SCHEMA = "schema"
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    NETWORK = "network"
    SYSTEM = "system"


class ErrorHandler:
    """Error handling for the form engine app."""

    @staticmethod
    def handle_error(
        error: Exception,
        context: str,
        error_type: str = ErrorType.SYSTEM,
        user_message: Optional[str] = None,
        show_details: bool = False
    ) -> Dict[str, Any]:
        """
        Log an error and show it to the user.

        Args:
            error: The exception that occurred
            context: Context where the error occurred
            error_type: Type of error (from ErrorType constants)
            user_message: Custom user-friendly message
            show_details: Whether to expand the technical details

        Returns:
            The formatted message that was displayed
        """
        if isinstance(error, FormEngineError):
            log_error_with_context(error, context)
            formatted = create_user_friendly_error_message(error)
        else:
            logger.error(f"Error in {context}: {str(error)}", exc_info=True)
            formatted = {
                'title': ErrorHandler._get_user_friendly_message(error, error_type),
                'message': str(error),
                'severity': 'error',
                'context': {},
                'recovery_suggestions': []
            }

        if user_message:
            formatted['message'] = user_message

        ErrorHandler._display_error(formatted, error, context, show_details)
        return formatted

    @staticmethod
    def _get_user_friendly_message(error: Exception, error_type: str) -> str:
        """Generate user-friendly error titles for errors outside the form engine taxonomy."""
        error_messages = {
            ErrorType.SCHEMA: {
                KeyError: "📋 Required schema field is missing. Please verify the form definition.",
                ValueError: "📋 Form definition contains invalid values.",
                "default": "📋 Form definition error occurred."
            },
            ErrorType.CONFIGURATION: {
                "default": "⚙️ The configuration map could not be loaded."
            },
            ErrorType.VALIDATION: {
                ValueError: "✅ Data validation failed. Please check your input and try again.",
                TypeError: "✅ Invalid data type provided. Please ensure data matches expected format.",
                "default": "✅ Validation error occurred. Please review your data and try again."
            },
            ErrorType.NETWORK: {
                ConnectionError: "🌐 Network connection error. Please check your connection.",
                TimeoutError: "⏱️ Request timed out. Please try again.",
                "default": "🌐 Network error occurred. Please check your connection and try again."
            },
            ErrorType.SYSTEM: {
                MemoryError: "💻 System is running low on memory. Please try again or contact support.",
                "default": "💻 System error occurred. Please try again or contact support."
            }
        }

        error_type_messages = error_messages.get(error_type, error_messages[ErrorType.SYSTEM])

        for exception_type, message in error_type_messages.items():
            if exception_type != "default" and isinstance(error, exception_type):
                return message

        return error_type_messages.get("default", "An unexpected error occurred.")

    @staticmethod
    def _display_error(formatted: Dict[str, Any], error: Exception, context: str,
                       show_details: bool = False) -> None:
        """Display a formatted error with its recovery suggestions."""
        if formatted['severity'] == 'warning':
            st.warning(f"**{formatted['title']}**\n\n{formatted['message']}")
        else:
            st.error(f"**{formatted['title']}**\n\n{formatted['message']}")

        if formatted['recovery_suggestions']:
            st.info("💡 **Suggested Actions:**")
            for suggestion in formatted['recovery_suggestions']:
                st.info(f"• {suggestion}")

        with st.expander("🔍 Technical Details", expanded=show_details):
            st.write(f"**Error Type:** {type(error).__name__}")
            st.write(f"**Context:** {context}")
            for key, value in formatted['context'].items():
                st.write(f"**{key}:** {value}")

    @staticmethod
    def with_error_handling(
        func: Callable,
        context: str,
        error_type: str = ErrorType.SYSTEM,
        user_message: Optional[str] = None,
        default_return: Any = None
    ) -> Any:
        """
        Run ``func`` and report any exception instead of raising it.

        Returns:
            Function result or default_return on error
        """
        try:
            return func()
        except Exception as e:
            ErrorHandler.handle_error(e, context, error_type, user_message)
            return default_return
