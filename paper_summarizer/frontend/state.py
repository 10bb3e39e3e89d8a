"""
UI state and orchestration for the paper summarizer.

All state the page renders lives in one :class:`AppState` object owned
by a :class:`PaperController`.  The controller reacts to user actions
(upload, select, delete, switch tab, ask a question) by setting an
in-flight flag, calling the paper store or the generator and updating
the state.  Failures are logged and, where the user triggered a
generation, reported through ``AppState.alert``; the state is otherwise
left as it was before the action.

The store and the generator are typed as protocols so the tests can
drive the controller with in-memory fakes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from paper_summarizer.backend.errors import PaperSummarizerError
from paper_summarizer.backend.models import TAB_BIAS, TAB_SUMMARY, TABS, Paper

logger = logging.getLogger(__name__)

UPLOAD_ERROR = "Error processing paper"
BIAS_ERROR = "Error analyzing bias"
QUESTION_ERROR = "Error answering question"


class PaperStoreProtocol(Protocol):
    def list_papers(self) -> List[Paper]: ...

    def insert_paper(self, title: str, summary: str, full_text: str) -> Paper: ...

    def delete_paper(self, paper_id: str) -> bool: ...


class GeneratorProtocol(Protocol):
    def summarize(self, text: str) -> str: ...

    def detect_bias(self, text: str) -> str: ...

    def answer_question(self, text: str, question: str) -> str: ...


@dataclass
class AppState:
    """Everything the page renders.

    ``bias_analysis``, ``question`` and ``answer`` are scratch state for
    the selected paper and are never written to the store.
    """

    papers: List[Paper] = field(default_factory=list)
    selected_paper: Optional[Paper] = None
    active_tab: str = TAB_SUMMARY
    loading: bool = False
    analyzing: bool = False
    bias_analysis: str = ""
    question: str = ""
    answer: str = ""
    alert: Optional[str] = None

    def clear_scratch(self) -> None:
        self.bias_analysis = ""
        self.question = ""
        self.answer = ""


class PaperController:
    """Coordinate the paper store and the generator for one UI session."""

    def __init__(
        self,
        store: PaperStoreProtocol,
        generator: GeneratorProtocol,
        state: Optional[AppState] = None,
    ) -> None:
        self.store = store
        self.generator = generator
        self.state = state or AppState()

    def fetch_papers(self) -> None:
        """Reload the paper list; on failure the current list is kept."""
        try:
            papers = self.store.list_papers()
        except PaperSummarizerError as e:
            logger.error(f"Error fetching papers: {e}")
            return
        self.state.papers = list(papers)

    def handle_upload(self, text: str, file_name: str) -> Optional[Paper]:
        """Summarise ``text``, store it as a new paper and select it.

        Returns the stored paper, or ``None`` if the upload was ignored
        or failed.  Nothing is persisted unless both the summary and
        the insert succeed.
        """
        if self.state.loading:
            return None
        if not text or not text.strip():
            logger.error(f"Error processing paper: no text extracted from {file_name}")
            self.state.alert = UPLOAD_ERROR
            return None
        self.state.loading = True
        try:
            summary = self.generator.summarize(text)
            paper = self.store.insert_paper(title=file_name, summary=summary, full_text=text)
        except PaperSummarizerError as e:
            logger.error(f"Error processing paper: {e}")
            self.state.alert = UPLOAD_ERROR
            return None
        finally:
            self.state.loading = False
        self.state.papers = [paper] + self.state.papers
        self.select_paper(paper)
        return paper

    def select_paper(self, paper: Optional[Paper]) -> None:
        """Make ``paper`` the selected paper.

        Scratch state belongs to the previously selected paper, so it is
        cleared whenever the selection moves to a different paper.
        """
        previous = self.state.selected_paper
        if previous is None or paper is None or previous.id != paper.id:
            self.state.clear_scratch()
        self.state.selected_paper = paper

    def switch_tab(self, tab: str) -> None:
        """Show ``tab``; opening the bias tab runs the analysis if none is cached."""
        if tab not in TABS:
            raise ValueError(f"Unknown tab: {tab}")
        self.state.active_tab = tab
        if tab == TAB_BIAS and not self.state.bias_analysis:
            self.detect_bias()

    def detect_bias(self) -> None:
        paper = self.state.selected_paper
        if paper is None or not paper.full_text or self.state.analyzing:
            return
        self.state.analyzing = True
        try:
            self.state.bias_analysis = self.generator.detect_bias(paper.full_text)
        except PaperSummarizerError as e:
            logger.error(f"Error detecting bias: {e}")
            self.state.alert = BIAS_ERROR
        finally:
            self.state.analyzing = False

    def submit_question(self, question: str) -> None:
        """Ask ``question`` about the selected paper.

        A blank question makes no request and leaves the previous answer
        in place.  The question text is kept after answering.
        """
        self.state.question = question
        paper = self.state.selected_paper
        if paper is None or not paper.full_text or not question.strip():
            return
        if self.state.analyzing:
            return
        self.state.analyzing = True
        try:
            self.state.answer = self.generator.answer_question(paper.full_text, question)
        except PaperSummarizerError as e:
            logger.error(f"Error answering question: {e}")
            self.state.alert = QUESTION_ERROR
        finally:
            self.state.analyzing = False

    def handle_delete(self, paper_id: str) -> bool:
        """Delete a paper from the store, then from the list.

        Returns ``True`` when the store delete succeeded.
        """
        try:
            self.store.delete_paper(paper_id)
        except PaperSummarizerError as e:
            logger.error(f"Error deleting paper: {e}")
            return False
        self.state.papers = [paper for paper in self.state.papers if paper.id != paper_id]
        if self.state.selected_paper is not None and self.state.selected_paper.id == paper_id:
            self.select_paper(None)
        return True

    def consume_alert(self) -> Optional[str]:
        """Return the pending alert message and clear it."""
        alert, self.state.alert = self.state.alert, None
        return alert
