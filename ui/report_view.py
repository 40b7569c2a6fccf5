import streamlit as st

from foerdercheck.results import ValidationSection


def render_section(section: ValidationSection):
    """Render one report section with its messages, calculations and links."""
    with st.expander(section.title, expanded=not section.success):
        for message in section.errors:
            st.error(message)
        for message in section.warnings:
            st.warning(message)
        for message in section.success_messages:
            st.success(message)
        if section.calculations:
            st.code("\n".join(section.calculations), language=None)
        if section.actions:
            cols = st.columns(len(section.actions))
            for col, action in zip(cols, section.actions):
                col.markdown(f"[{action.label}]({action.route})")


def render_report(sections):
    st.header("Prüfergebnis")
    errors = sum(len(s.errors) for s in sections)
    warnings = sum(len(s.warnings) for s in sections)
    cols = st.columns(3)
    cols[0].metric("Abschnitte", len(sections))
    cols[1].metric("Fehler", errors)
    cols[2].metric("Warnungen", warnings)
    if errors == 0 and warnings == 0:
        st.info("Keine Auffälligkeiten gefunden.")
    for section in sections:
        render_section(section)
