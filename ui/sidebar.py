import streamlit as st

from core.store import JsonSnapshotStore


def render_subject_sidebar(store: JsonSnapshotStore):
    """Pick the application to validate; returns its subject id or ``None``."""
    st.sidebar.header("Antrag")
    subjects = store.subjects()
    if not subjects:
        st.sidebar.info(f"Keine Anträge unter {store.root} gefunden.")
        return None
    return st.sidebar.selectbox("Antragsteller", subjects, key="subject_id")
