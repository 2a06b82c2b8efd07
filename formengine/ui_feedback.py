"""
UI feedback utilities for the form engine.
Provides the notifier the submission dispatcher reports to, plus small
Streamlit feedback helpers used by the form view.
"""

import streamlit as st
from contextlib import contextmanager
from dataclasses import dataclass
from typing import List, Optional, Protocol
import logging

# Configure logging
logger = logging.getLogger(__name__)

SUCCESS = 'success'
ERROR = 'error'
WARNING = 'warning'
INFO = 'info'


@dataclass(frozen=True)
class NotificationEvent:
    """One success or failure report, e.g. ('success', 'Published', 'The post has been published!')."""

    kind: str
    message: str
    description: str = ''


class Notifier(Protocol):
    def notify(self, event: NotificationEvent) -> None:
        ...


class LogNotifier:
    """Notifier that only writes to the log (headless use)."""

    def notify(self, event: NotificationEvent) -> None:
        level = logging.ERROR if event.kind == ERROR else logging.INFO
        logger.log(level, f"[{event.kind}] {event.message}: {event.description}")


class MemoryNotifier:
    """Notifier that keeps every event, for inspection."""

    def __init__(self):
        self.events: List[NotificationEvent] = []

    def notify(self, event: NotificationEvent) -> None:
        self.events.append(event)


class Notify:
    """
    Toast-first notification helper.
    Prefers st.toast for non-blocking notifications, falling back to the
    standard message boxes when toasts fail.

    The API includes: success, info, warn, error.
    """

    icons = {
        SUCCESS: '✅',
        INFO: 'ℹ️',
        WARNING: '⚠️',
        ERROR: '❌'
    }

    @staticmethod
    def _display_notification(message: str, notification_type: str = INFO) -> None:
        """Internal method to display notification based on type."""
        icon = Notify.icons.get(notification_type, 'ℹ️')
        try:
            st.toast(message, icon=icon)
        except Exception as e:
            logger.error(f"Error using st.toast: {e}", exc_info=True)
            full_message = f"{icon} {message}"
            if notification_type == SUCCESS:
                st.success(full_message)
            elif notification_type == WARNING:
                st.warning(full_message)
            elif notification_type == ERROR:
                st.error(full_message)
            else:
                st.info(full_message)

    @staticmethod
    def success(message: str) -> None:
        """Show success notification."""
        Notify._display_notification(message, SUCCESS)

    @staticmethod
    def info(message: str) -> None:
        """Show info notification."""
        Notify._display_notification(message, INFO)

    @staticmethod
    def warn(message: str) -> None:
        """Show warning notification."""
        Notify._display_notification(message, WARNING)

    @staticmethod
    def error(message: str) -> None:
        """Show error notification."""
        Notify._display_notification(message, ERROR)


class StreamlitNotifier:
    """Notifier that presents dispatcher events as Streamlit toasts."""

    def notify(self, event: NotificationEvent) -> None:
        text = f"{event.message}: {event.description}" if event.description else event.message
        show = {SUCCESS: Notify.success, WARNING: Notify.warn, ERROR: Notify.error}.get(event.kind, Notify.info)
        show(text)


def show_validation_results(errors: List[str], warnings: Optional[List[str]] = None):
    """Show validation results with errors and warnings."""
    if warnings is None:
        warnings = []

    if errors:
        st.error("❌ **Validation Errors:**")
        for error in errors:
            st.error(f"  • {error}")

    if warnings:
        st.warning("⚠️ **Warnings:**")
        for warning in warnings:
            st.warning(f"  • {warning}")


@contextmanager
def show_loading(message: str = "Loading..."):
    """Context manager for spinner loading indicator."""
    with st.spinner(message):
        yield
