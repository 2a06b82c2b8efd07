"""
Main Streamlit application for the form engine.
Schema-driven editor for environment/market configuration records.
"""

import asyncio
import logging

import streamlit as st

from formengine.config_loader import configure_logging, get_config_value, load_config
from formengine.config_source import DEFAULT_CONFIG_URL, FileConfigurationSource, HttpConfigurationSource
from formengine.error_handler import ErrorHandler, ErrorType
from formengine.exceptions import SchemaError
from formengine.form_view import FormView
from formengine.record_store import HttpRecordStore, InMemoryRecordStore
from formengine.schema_loader import load_form_definition
from formengine.session_manager import FormSession
from formengine.submission_handler import Failure, SubmissionDispatcher
from formengine.ui_feedback import StreamlitNotifier, show_loading, show_validation_results
from formengine.validation import default_validator

config = load_config()

# Configure logging dynamically from config
try:
    configure_logging(config)
    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured to level: {get_config_value(config, 'logging', 'level', 'INFO')}")
except Exception as e:
    # Fallback to INFO if config reading fails
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)
    logger.warning(f"Failed to configure logging from config, using INFO: {e}")

st.set_page_config(
    page_title=get_config_value(config, 'app', 'page_title', 'Configuration Editor'),
    page_icon="⚙️",
    layout="wide"
)


def build_record_store():
    """HTTP store when a base URL is configured, otherwise a per-browser-session in-memory store."""
    base_url = get_config_value(config, 'record_store', 'base_url')
    if base_url:
        return HttpRecordStore(
            base_url,
            resource=get_config_value(config, 'record_store', 'resource', 'configs'),
            timeout=get_config_value(config, 'record_store', 'timeout', 10.0),
        )
    if 'memory_store' not in st.session_state:
        logger.info("No record store URL configured; records are kept in memory")
        st.session_state.memory_store = InMemoryRecordStore()
    return st.session_state.memory_store


def build_configuration_source():
    path = get_config_value(config, 'configuration_source', 'file')
    if path:
        return FileConfigurationSource(path)
    return HttpConfigurationSource(
        get_config_value(config, 'configuration_source', 'url', DEFAULT_CONFIG_URL),
        timeout=get_config_value(config, 'configuration_source', 'timeout', 10.0),
    )


def open_session() -> FormSession:
    """Load the form definition and open a session for it (edit mode when ?id= is given)."""
    definition_name = get_config_value(config, 'form', 'definition', 'config_form.yaml')
    try:
        definition = load_form_definition(definition_name)
    except SchemaError as e:
        ErrorHandler.handle_error(e, "form definition loading", ErrorType.SCHEMA, show_details=True)
        st.stop()

    store = build_record_store()
    dispatcher = SubmissionDispatcher(store, default_validator(definition.fields), StreamlitNotifier())

    record = None
    record_id = st.query_params.get("id")
    if record_id:
        record = ErrorHandler.with_error_handling(
            lambda: asyncio.run(store.fetch(record_id)), f"loading record {record_id}", ErrorType.NETWORK
        )
        if record is None:
            record_id = None

    session = FormSession(definition, dispatcher, record=record, record_id=record_id)
    with show_loading("Loading configuration map..."):
        asyncio.run(session.open(build_configuration_source()))
    return session


def render_outcome(outcome) -> None:
    if isinstance(outcome, Failure) and outcome.validation_errors:
        show_validation_results([f"{error.path}: {error.message}" for error in outcome.validation_errors])


def main():
    """Main application entry point."""
    if 'form_session' not in st.session_state:
        st.session_state.form_session = open_session()
    session: FormSession = st.session_state.form_session

    st.title(session.definition.title)

    if session.load_error is not None:
        ErrorHandler.handle_error(session.load_error, "configuration map loading", ErrorType.CONFIGURATION)
        if st.button("Retry loading"):
            with show_loading("Loading configuration map..."):
                asyncio.run(session.open(build_configuration_source()))
            st.rerun()

    if FormView.render(session):
        st.rerun()

    pending = session.pending_changes()
    if pending:
        st.caption(f"Unsaved changes: {', '.join(pending)}")

    col1, col2, col3 = st.columns([1, 1, 4])
    with col1:
        unchanged = session.record_id is not None and not session.has_pending_changes()
        if st.button("Save", type="primary", disabled=session.is_submitting or unchanged):
            render_outcome(asyncio.run(session.submit()))
    with col2:
        if st.button("Publish", disabled=session.record_id is None or session.is_submitting):
            render_outcome(asyncio.run(session.publish()))

    if session.record_id is not None:
        st.caption(f"Editing record {session.record_id}")


if __name__ == "__main__":
    main()
