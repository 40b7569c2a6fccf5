import logging
import os
from datetime import date

import streamlit as st

from core.store import JsonSnapshotStore
from core.version import __version__
from foerdercheck.presets import DISCLAIMER
from foerdercheck.service import run_validation_sync
from ui.report_view import render_report
from ui.sidebar import render_subject_sidebar

logging.basicConfig(
    level=os.environ.get("FOERDERCHECK_LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def render_app(store: JsonSnapshotStore, today: date):
    st.title("Förder-Check")
    st.caption(f"Version {__version__}")
    subject_id = render_subject_sidebar(store)
    if subject_id is None:
        st.info("Bitte wählen Sie einen Antrag aus.")
        return
    sections = run_validation_sync(subject_id, store, today=today)
    render_report(sections)
    st.caption(DISCLAIMER)


st.set_page_config(page_title="Förder-Check", layout="wide")
render_app(JsonSnapshotStore(), date.today())
