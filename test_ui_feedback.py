"""
Unit tests for ui_feedback module.
"""

import logging
from unittest.mock import patch, MagicMock

from formengine.ui_feedback import (
    ERROR,
    SUCCESS,
    WARNING,
    LogNotifier,
    MemoryNotifier,
    NotificationEvent,
    Notify,
    StreamlitNotifier,
    show_loading,
    show_validation_results,
)


class TestNotifiers:
    """Test class for notifier implementations."""

    def test_memory_notifier_keeps_events(self):
        notifier = MemoryNotifier()
        event = NotificationEvent(SUCCESS, 'Published', 'The post has been published!')

        notifier.notify(event)

        assert notifier.events == [event]

    def test_log_notifier_levels(self, caplog):
        notifier = LogNotifier()
        with caplog.at_level(logging.INFO, logger='formengine.ui_feedback'):
            notifier.notify(NotificationEvent(SUCCESS, 'Saved'))
            notifier.notify(NotificationEvent(ERROR, 'Error', 'Failed to publish the post!'))

        levels = [record.levelno for record in caplog.records]
        assert levels == [logging.INFO, logging.ERROR]

    @patch('streamlit.toast')
    def test_streamlit_notifier_uses_toast(self, mock_toast):
        StreamlitNotifier().notify(NotificationEvent(SUCCESS, 'Published', 'The post has been published!'))

        mock_toast.assert_called_once_with('Published: The post has been published!', icon='✅')

    @patch('formengine.ui_feedback.Notify.error')
    @patch('formengine.ui_feedback.Notify.warn')
    def test_streamlit_notifier_routes_by_kind(self, mock_warn, mock_error):
        notifier = StreamlitNotifier()

        notifier.notify(NotificationEvent(WARNING, 'Submission in progress'))
        notifier.notify(NotificationEvent(ERROR, 'Save failed', 'timeout'))

        mock_warn.assert_called_once_with('Submission in progress')
        mock_error.assert_called_once_with('Save failed: timeout')


class TestNotify:
    """Test class for toast notifications."""

    @patch('streamlit.toast')
    def test_error_toast(self, mock_toast):
        Notify.error("Failed")
        mock_toast.assert_called_once_with("Failed", icon='❌')

    @patch('streamlit.error')
    @patch('streamlit.toast')
    def test_falls_back_when_toast_fails(self, mock_toast, mock_error):
        mock_toast.side_effect = RuntimeError("no toast")

        Notify.error("Failed")

        mock_error.assert_called_once_with("❌ Failed")

    @patch('streamlit.success')
    @patch('streamlit.toast')
    def test_success_fallback(self, mock_toast, mock_success):
        mock_toast.side_effect = RuntimeError("no toast")
        Notify.success("Saved")
        mock_success.assert_called_once_with("✅ Saved")


class TestFeedbackHelpers:
    """Test class for validation display and loading helpers."""

    @patch('streamlit.warning')
    @patch('streamlit.error')
    def test_show_validation_results(self, mock_error, mock_warning):
        show_validation_results(["hostUrl: This field is required"], ["tokenUrl is empty"])

        assert mock_error.call_count == 2
        assert mock_warning.call_count == 2

    @patch('streamlit.error')
    def test_no_errors_shows_nothing(self, mock_error):
        show_validation_results([])
        mock_error.assert_not_called()

    @patch('streamlit.spinner')
    def test_show_loading(self, mock_spinner):
        mock_context = MagicMock()
        mock_spinner.return_value = mock_context

        with show_loading("Loading configuration map..."):
            pass

        mock_spinner.assert_called_once_with("Loading configuration map...")
        mock_context.__enter__.assert_called_once()
