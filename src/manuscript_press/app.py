#!/usr/bin/env python
"""
Streamlit Web UI for Manuscript Press.

Run with:
    streamlit run src/manuscript_press/app.py

Features:
- Upload a Word manuscript (.docx, up to 10 MB)
- Summary of the detected structure
- Editable journal metadata (dates, ISSN, volume/issue, column mode)
- Preview of sections, tables and the Markdown/JSON structure
- Download of the journal-formatted PDF
"""

import sys
from pathlib import Path

# Add src directory to path for imports when running as script
_src_dir = Path(__file__).parent.parent
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

import logging

import pandas as pd
import streamlit as st

from manuscript_press.config import get_config
from manuscript_press.utils.export import MarkdownExporter
from manuscript_press.utils.session import Session

logger = logging.getLogger(__name__)


# Page config must be first Streamlit command
st.set_page_config(
    page_title="Manuscript Press",
    page_icon="📄",
    layout="wide",
    initial_sidebar_state="expanded"
)


def load_css():
    """Load custom CSS styles."""
    st.markdown("""
    <style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        color: #003366;
        text-align: center;
        margin-bottom: 0.25rem;
    }
    .sub-header {
        font-size: 1.1rem;
        color: #888;
        font-style: italic;
        text-align: center;
        margin-bottom: 2rem;
    }
    .section-preview {
        background-color: rgba(0, 51, 102, 0.06);
        border-radius: 5px;
        padding: 1rem;
        margin: 0.5rem 0;
        border-left: 4px solid #003366;
        color: inherit;
    }
    </style>
    """, unsafe_allow_html=True)


def init_session_state():
    """Create the per-browser-session manuscript context."""
    if "session" not in st.session_state:
        st.session_state.session = Session(config=get_config())
    if "upload_key" not in st.session_state:
        st.session_state.upload_key = 0
    return st.session_state.session


def render_sidebar(session: Session):
    """Render sidebar with the journal metadata form."""
    st.sidebar.header("⚙️ Journal Metadata")
    meta = session.metadata

    meta.received = st.sidebar.text_input("Received Date", meta.received)
    meta.accepted = st.sidebar.text_input("Accepted Date", meta.accepted)
    meta.published = st.sidebar.text_input("Published Date", meta.published)
    meta.issn = st.sidebar.text_input("ISSN", meta.issn)

    col1, col2 = st.sidebar.columns(2)
    with col1:
        meta.volume = st.text_input("Volume", meta.volume)
    with col2:
        meta.issue = st.text_input("Issue", meta.issue)
    meta.year = st.sidebar.text_input("Year", meta.year)

    st.sidebar.subheader("Layout")
    layout_options = {"Two columns": 2, "Single column": 1}
    current = "Two columns" if meta.is_two_column else "Single column"
    layout_display = st.sidebar.radio(
        "Body text",
        list(layout_options.keys()),
        index=list(layout_options.keys()).index(current),
        help="Flow sections and references through one or two columns"
    )
    meta.columns = layout_options[layout_display]

    filename_options = {"Journal + year": "year", "Journal + timestamp": "timestamp", "Journal + title": "title"}
    filename_display = st.sidebar.selectbox(
        "Download filename",
        list(filename_options.keys()),
        index=0
    )
    return filename_options[filename_display]


def render_structure(session: Session):
    """Render the detected-structure summary."""
    record = session.record
    metrics = record.metrics

    st.subheader("📊 Structure Detected")
    cols = st.columns(5)
    with cols[0]:
        st.metric("Completeness", f"{metrics.completeness:.0%}")
    with cols[1]:
        st.metric("Abstract", f"{metrics.abstract_words} words")
    with cols[2]:
        st.metric("Sections", metrics.sections_total)
    with cols[3]:
        st.metric("Tables", metrics.tables_total)
    with cols[4]:
        st.metric("References", metrics.references_total)

    title = record.title if len(record.title) <= 80 else record.title[:80] + "..."
    st.markdown(f"**Title:** {title}")
    st.markdown(f"**Authors:** {record.authors}")
    if record.keyword_list:
        st.markdown(f"**Keywords:** {record.keywords_text}")


def render_content(session: Session):
    """Render sections and tables of the extracted manuscript."""
    record = session.record

    if record.affiliations:
        with st.expander(f"🏛️ Affiliations ({len(record.affiliations)})", expanded=False):
            for affiliation in record.affiliations:
                st.write(affiliation)

    with st.expander("📝 Abstract", expanded=True):
        st.write(record.abstract or "_No abstract detected_")

    if not record.sections:
        st.info("No sections detected.")
    for section in record.sections:
        with st.expander(f"📖 {section.title}", expanded=False):
            st.write(section.content or "_Empty section_")

    for table in record.tables:
        st.caption(f"📋 **{table.caption}**")
        rows = table.padded_rows()
        if len(rows) > 1:
            try:
                df = pd.DataFrame(rows[1:], columns=rows[0])
                st.dataframe(df, use_container_width=True)
            except ValueError:
                st.markdown(table.to_markdown())
        else:
            st.markdown(table.to_markdown())

    if record.references:
        with st.expander(f"📚 References ({len(record.references)})", expanded=False):
            for reference in record.references:
                st.write(reference)


def render_actions(session: Session, filename_source: str):
    """Render the generate/download and reset buttons."""
    col1, col2 = st.columns([3, 1])

    with col1:
        if st.button("📕 Generate Journal PDF", use_container_width=True, type="primary"):
            with st.spinner("Laying out pages..."):
                rendered = session.generate(filename_source)
            if rendered is None:
                st.error(session.status)
            else:
                st.success(f"✅ {session.status}")
                st.download_button(
                    f"📥 Download {rendered.filename}",
                    rendered.data,
                    file_name=rendered.filename,
                    mime="application/pdf",
                    use_container_width=True
                )

    with col2:
        if st.button("Reset", use_container_width=True):
            session.reset()
            st.session_state.upload_key += 1
            st.rerun()


def main():
    """Main application."""
    load_css()
    session = init_session_state()
    config = session.config

    st.markdown(
        f'<h1 class="main-header">📄 {config.journal.short_name} Manuscript to PDF</h1>',
        unsafe_allow_html=True
    )
    st.markdown(
        f'<p class="sub-header">{config.journal.name} - Scholarly Formatting Engine</p>',
        unsafe_allow_html=True
    )

    filename_source = render_sidebar(session)

    st.markdown("---")

    uploaded_file = st.file_uploader(
        "Upload Manuscript (.docx)",
        type=[ext.lstrip(".") for ext in config.input.allowed_extensions],
        help="Title, authors, abstract, sections, tables and references are detected automatically",
        key=f"upload_{st.session_state.upload_key}"
    )

    if uploaded_file and uploaded_file.name != session.file_name:
        progress_bar = st.progress(0, text="Reading document...")
        loaded = session.load_upload(uploaded_file.name, uploaded_file.getvalue())
        progress_bar.progress(session.progress if loaded else 100, text="Complete!" if loaded else "Failed")
        progress_bar.empty()

        if loaded:
            st.success(f"✅ {session.status}")
        else:
            st.error(session.status)

    if session.record is not None:
        st.markdown("---")
        render_structure(session)

        st.markdown("---")
        tabs = st.tabs(["📖 Content", "📝 Markdown", "📄 Raw JSON"])

        with tabs[0]:
            render_content(session)

        with tabs[1]:
            st.code(MarkdownExporter().generate(session.record), language="markdown")

        with tabs[2]:
            st.json(session.record.to_dict())

        st.markdown("---")
        render_actions(session, filename_source)

    # Footer
    st.markdown("---")
    st.markdown(
        f"""
        <div style="text-align: center; color: #666; font-size: 0.8rem;">
            Internal Publishing Tool | {config.journal.name}
        </div>
        """,
        unsafe_allow_html=True
    )


if __name__ == "__main__":
    main()
