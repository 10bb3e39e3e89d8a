"""Shared typed models for the paper summarizer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict

# Detail panel tabs, in display order.
TAB_SUMMARY = "summary"
TAB_BIAS = "bias"
TAB_QA = "qa"
TABS = (TAB_SUMMARY, TAB_BIAS, TAB_QA)
TAB_LABELS = {
    TAB_SUMMARY: "Summary",
    TAB_BIAS: "Bias Analysis",
    TAB_QA: "Q&A",
}


@dataclass(frozen=True)
class Paper:
    """One uploaded paper as stored in the ``papers`` table.

    ``full_text`` and ``summary`` are written once at upload time and
    never updated afterwards.
    """

    id: str
    title: str
    summary: str
    created_at: datetime
    full_text: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "summary": self.summary,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "full_text": self.full_text,
        }
