"""
Streamlit form view.
Paints the descriptor tree produced by a FormSession and routes widget
changes back through each descriptor's on_change callback.
"""

import streamlit as st
from typing import Any, List, Optional
import logging

from .form_generator import FieldDescriptor
from .session_manager import FormSession

logger = logging.getLogger(__name__)

PLACEHOLDER_OPTION = "-- Select --"


class FormView:
    """Streamlit widgets for a rendered form."""

    @staticmethod
    def render(session: FormSession) -> bool:
        """
        Paint the whole form.

        Returns:
            True when the form structure changed (cascade selection, row added
            or removed) and the page should rerun to show the new tree
        """
        descriptors = session.render()
        key_prefix = f"form_v{session.selection_version}"
        structure_changed = False
        for descriptor in descriptors:
            if FormView._render_descriptor(descriptor, session, key_prefix):
                structure_changed = True
        return structure_changed

    @staticmethod
    def widget_key(descriptor: FieldDescriptor, parent_key: str) -> str:
        """Widget key built from row identities, never from row positions."""
        segment = descriptor.identity or descriptor.path.rsplit('.', 1)[-1]
        return f"{parent_key}.{segment}"

    @staticmethod
    def _render_descriptor(descriptor: FieldDescriptor, session: FormSession, parent_key: str) -> bool:
        key = FormView.widget_key(descriptor, parent_key)

        if descriptor.kind == 'object':
            st.markdown(f"**{descriptor.label}**")
            changed = False
            with st.container():
                for child in descriptor.children:
                    if FormView._render_descriptor(child, session, key):
                        changed = True
            return changed

        if descriptor.kind == 'array':
            return FormView._render_list(descriptor, session, key)

        value = FormView._render_leaf(descriptor, key)
        if value != descriptor.value and descriptor.on_change is not None:
            logger.debug(f"[FormView] {descriptor.path} changed")
            descriptor.on_change(value)
            # Selectors drive the cascade, so the tree below them changes
            return descriptor.options is not None
        return False

    @staticmethod
    def _render_list(descriptor: FieldDescriptor, session: FormSession, key: str) -> bool:
        label = f"{descriptor.label} *" if descriptor.required else descriptor.label
        st.markdown(f"**{label}**")
        if descriptor.help:
            st.caption(descriptor.help)

        changed = False
        if not descriptor.children:
            st.caption("No items yet")

        for child in descriptor.children:
            col1, col2 = st.columns([4, 1])
            with col1:
                if FormView._render_descriptor(child, session, key):
                    changed = True
            with col2:
                if st.button("Remove", key=f"remove_{key}.{child.identity}"):
                    if session.remove_item(descriptor.path, child.identity):
                        changed = True

        if st.button(f"Add {descriptor.label}", key=f"add_{key}"):
            session.add_item(descriptor.path)
            changed = True

        return changed

    @staticmethod
    def _render_leaf(descriptor: FieldDescriptor, key: str) -> Any:
        label = f"{descriptor.label} *" if descriptor.required else descriptor.label

        if descriptor.options is not None:
            return FormView._render_selectbox(descriptor, label, key)

        if descriptor.kind == 'boolean':
            return st.checkbox(label, value=bool(descriptor.value), key=key, help=descriptor.help)

        if descriptor.kind == 'number':
            return st.number_input(label, value=descriptor.value, key=key, help=descriptor.help)

        value = st.text_input(
            label,
            value=descriptor.value if descriptor.value is not None else "",
            key=key,
            help=descriptor.help,
            placeholder=descriptor.placeholder,
        )
        return value if value is not None else ""

    @staticmethod
    def _render_selectbox(descriptor: FieldDescriptor, label: str, key: str) -> str:
        keys: List[str] = [''] + [option for option, _ in descriptor.options]
        labels = dict(descriptor.options)
        index = keys.index(descriptor.value) if descriptor.value in keys else 0

        def format_option(option: str) -> str:
            return labels.get(option, PLACEHOLDER_OPTION)

        selected: Optional[str] = st.selectbox(
            label,
            options=keys,
            index=index,
            format_func=format_option,
            key=key,
            help=descriptor.help,
            disabled=len(keys) == 1,
        )
        return selected or ''
