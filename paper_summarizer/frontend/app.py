"""
Streamlit user interface for the research paper summarizer.

This module renders the single page of the application.  Users upload
a paper (plain text, Markdown, PDF, Word or HTML), which is summarised
by the configured generation model and stored in the database.  The
paper list on the left selects or deletes papers; the panel on the
right shows the selected paper's summary, a bias analysis and a
question-and-answer form.

All state lives in a :class:`~paper_summarizer.frontend.state.PaperController`
kept in ``st.session_state``; this module only renders that state and
forwards user actions to the controller.  If no OpenAI API key is
configured, any generation step reports an error prompting the user to
set the appropriate environment variable.
"""

from __future__ import annotations

import io
import logging
import os

import pandas as pd  # type: ignore
import streamlit as st  # type: ignore

from paper_summarizer.backend import database as db
from paper_summarizer.backend import parsers
from paper_summarizer.backend.errors import PaperSummarizerError
from paper_summarizer.backend.generator import OpenAIGenerator
from paper_summarizer.backend.models import TAB_BIAS, TAB_LABELS, TAB_QA, TAB_SUMMARY, TABS
from paper_summarizer.frontend.state import PaperController

logger = logging.getLogger(__name__)


@st.cache_resource
def get_store() -> db.PaperStore:
    store = db.PaperStore()
    store.init_db()
    return store


@st.cache_resource
def get_generator() -> OpenAIGenerator:
    return OpenAIGenerator()


def _get_controller() -> PaperController:
    """Return the session's controller, creating it on the first run.

    The paper list is fetched once per session; afterwards it is kept
    up to date by the controller's own mutations.
    """
    if "controller" not in st.session_state:
        controller = PaperController(store=get_store(), generator=get_generator())
        controller.fetch_papers()
        st.session_state.controller = controller
    return st.session_state.controller


def show_uploader(controller: PaperController) -> None:
    """Display the upload control."""
    st.subheader("Upload a paper")
    uploaded = st.file_uploader(
        "Choose a research paper",
        type=parsers.SUPPORTED_EXTENSIONS,
        help="The paper's text is summarised and stored with the file name as its title",
    )
    if uploaded and st.button("Summarize paper", type="primary", disabled=controller.state.loading):
        with st.spinner("Summarizing paper…"):
            try:
                text = parsers.extract_text(io.BytesIO(uploaded.getvalue()), uploaded.name)
            except PaperSummarizerError as e:
                logger.error(f"Error reading upload {uploaded.name}: {e}")
                st.error(f"Could not read {uploaded.name}: {e}")
                return
            controller.handle_upload(text, uploaded.name)


def show_paper_list(controller: PaperController) -> None:
    """Display the stored papers with select and delete buttons."""
    st.subheader("Papers")
    papers = controller.state.papers
    if not papers:
        st.caption("No papers uploaded yet.")
        return
    selected = controller.state.selected_paper
    for paper in papers:
        col1, col2 = st.columns([5, 1])
        with col1:
            label = f"📄 {paper.title}"
            if selected is not None and selected.id == paper.id:
                label = f"**{label}**"
            st.button(
                label,
                key=f"select-{paper.id}",
                on_click=controller.select_paper,
                args=(paper,),
                use_container_width=True,
            )
            if paper.created_at:
                st.caption(paper.created_at.strftime("%Y-%m-%d %H:%M"))
        with col2:
            st.button(
                "🗑",
                key=f"delete-{paper.id}",
                help="Delete paper",
                on_click=controller.handle_delete,
                args=(paper.id,),
            )


def show_bias_tab(controller: PaperController) -> None:
    state = controller.state
    if state.bias_analysis:
        st.markdown("#### ⚠️ Bias Analysis")
        st.write(state.bias_analysis)
    elif not state.analyzing:
        st.info("No bias analysis available yet.")
        if st.button("Analyze bias"):
            with st.spinner("Analyzing bias…"):
                controller.detect_bias()
            st.rerun()


def show_qa_tab(controller: PaperController) -> None:
    state = controller.state
    with st.form("question-form"):
        question = st.text_input(
            "Ask a question about this paper",
            value=state.question,
            placeholder="e.g., What were the main findings?",
        )
        submitted = st.form_submit_button("Ask Question", disabled=state.analyzing)
    if submitted:
        with st.spinner("Thinking…"):
            controller.submit_question(question)
    if state.answer:
        st.markdown("#### ❓ Answer")
        st.write(state.answer)


def show_detail_panel(controller: PaperController) -> None:
    """Display the tabbed analysis of the selected paper."""
    state = controller.state
    paper = state.selected_paper
    if paper is None:
        st.info("Select a paper to view its analysis")
        return
    tab = st.radio(
        "View",
        TABS,
        index=TABS.index(state.active_tab),
        format_func=lambda key: TAB_LABELS[key],
        horizontal=True,
        label_visibility="collapsed",
    )
    if tab != state.active_tab:
        with st.spinner("Analyzing bias…" if tab == TAB_BIAS else "Loading…"):
            controller.switch_tab(tab)
    st.header(paper.title)
    if state.active_tab == TAB_SUMMARY:
        st.write(paper.summary)
    elif state.active_tab == TAB_BIAS:
        show_bias_tab(controller)
    elif state.active_tab == TAB_QA:
        show_qa_tab(controller)


def show_sidebar(controller: PaperController) -> None:
    """Display library statistics and the CSV export."""
    with st.sidebar:
        st.title("Library")
        try:
            stats = get_store().get_library_stats()
        except PaperSummarizerError as e:
            logger.error(f"Error loading library stats: {e}")
            st.warning("Library statistics are unavailable.")
            return
        st.metric("Papers", stats["total_papers"])
        if stats["daily_uploads"]:
            uploads_df = pd.DataFrame(stats["daily_uploads"])
            st.bar_chart(uploads_df.set_index("date")["count"])
        if controller.state.papers:
            csv_data = db.papers_to_dataframe(controller.state.papers).to_csv(index=False).encode("utf-8")
            st.download_button(
                label="Download paper list as CSV",
                data=csv_data,
                file_name="papers.csv",
                mime="text/csv",
            )


def main() -> None:
    """Entry point for the Streamlit application."""
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    st.set_page_config(
        page_title="Research Paper Summarizer",
        page_icon="📄",
        layout="wide",
    )
    controller = _get_controller()
    st.title("📄 Research Paper Summarizer")
    # Actions run while the page renders, so alerts are filled in last.
    alert_slot = st.empty()
    col1, col2 = st.columns(2)
    with col1:
        show_uploader(controller)
        st.divider()
        show_paper_list(controller)
    with col2:
        show_detail_panel(controller)
    alert = controller.consume_alert()
    if alert:
        alert_slot.error(alert)
    show_sidebar(controller)


if __name__ == "__main__":
    main()
