"""
Test suite for the paper store and upload text extraction.

These tests exercise the persistence layer against an in-memory SQLite
database and the text extractors against small in-memory documents.
External services such as the OpenAI API are not invoked.
"""

from __future__ import annotations

import io
import os
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import docx as docx_lib  # type: ignore
import pytest
from sqlalchemy.exc import OperationalError

from paper_summarizer.backend import database as db
from paper_summarizer.backend import parsers
from paper_summarizer.backend.errors import StoreError, UnsupportedFormatError


@pytest.fixture
def store() -> db.PaperStore:
    paper_store = db.PaperStore('sqlite:///:memory:')
    paper_store.init_db()
    return paper_store


def test_insert_and_list_papers(store: db.PaperStore) -> None:
    """An inserted paper comes back with a store-assigned id and timestamp."""
    paper = store.insert_paper(title='paper.txt', summary='A summary.', full_text='Full text.')
    assert paper.id
    assert paper.created_at is not None
    assert paper.title == 'paper.txt'
    assert paper.summary == 'A summary.'
    assert paper.full_text == 'Full text.'
    papers = store.list_papers()
    assert len(papers) == 1
    assert papers[0].id == paper.id
    assert papers[0].full_text == 'Full text.'


def test_list_papers_is_newest_first(store: db.PaperStore) -> None:
    """Papers are ordered by creation time, most recent first."""
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    with store.session() as session:
        for offset, title in enumerate(['oldest', 'middle', 'newest']):
            session.add(db.PaperRecord(
                title=title,
                summary='s',
                full_text='t',
                created_at=base + timedelta(days=offset),
            ))
    titles = [paper.title for paper in store.list_papers()]
    assert titles == ['newest', 'middle', 'oldest']


def test_delete_paper_removes_exactly_one(store: db.PaperStore) -> None:
    """Deleting removes the one matching row and leaves the rest."""
    keep = store.insert_paper(title='keep.txt', summary='s', full_text='t')
    drop = store.insert_paper(title='drop.txt', summary='s', full_text='t')
    assert store.delete_paper(drop.id) is True
    remaining = store.list_papers()
    assert [paper.id for paper in remaining] == [keep.id]
    assert store.fetch_paper(drop.id) is None


def test_delete_unknown_paper_returns_false(store: db.PaperStore) -> None:
    store.insert_paper(title='paper.txt', summary='s', full_text='t')
    assert store.delete_paper('does-not-exist') is False
    assert len(store.list_papers()) == 1


def test_fetch_paper(store: db.PaperStore) -> None:
    paper = store.insert_paper(title='paper.txt', summary='s', full_text='the text')
    fetched = store.fetch_paper(paper.id)
    assert fetched is not None
    assert fetched.title == 'paper.txt'
    assert fetched.full_text == 'the text'


def test_library_stats(store: db.PaperStore) -> None:
    """Stats report the total and group uploads by day."""
    with store.session() as session:
        session.add(db.PaperRecord(title='a', summary='s', full_text='t',
                                   created_at=datetime(2024, 3, 1, 9, 0)))
        session.add(db.PaperRecord(title='b', summary='s', full_text='t',
                                   created_at=datetime(2024, 3, 1, 17, 0)))
        session.add(db.PaperRecord(title='c', summary='s', full_text='t',
                                   created_at=datetime(2024, 3, 2, 12, 0)))
    stats = store.get_library_stats()
    assert stats['total_papers'] == 3
    assert stats['daily_uploads'] == [
        {'date': '2024-03-01', 'count': 2},
        {'date': '2024-03-02', 'count': 1},
    ]


def test_store_errors_are_wrapped(store: db.PaperStore) -> None:
    """Database failures surface as StoreError."""
    failure = OperationalError('SELECT', {}, Exception('database is locked'))
    with patch.object(store, 'SessionLocal', side_effect=failure):
        with pytest.raises(StoreError):
            store.list_papers()


def test_database_url_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Heroku-style postgres:// URLs are rewritten for SQLAlchemy."""
    monkeypatch.setenv('DATABASE_URL', 'postgres://user:pw@db.example.com/papers')
    assert db._get_database_url() == 'postgresql://user:pw@db.example.com/papers'
    monkeypatch.delenv('DATABASE_URL')
    assert db._get_database_url().startswith('sqlite:///')


def test_default_database_lives_in_working_directory(
    monkeypatch: pytest.MonkeyPatch, tmp_path
) -> None:
    monkeypatch.delenv('DATABASE_URL', raising=False)
    monkeypatch.chdir(tmp_path)
    expected = os.path.join(str(tmp_path), 'papers.db')
    assert db._get_database_url() == f'sqlite:///{expected}'


def test_papers_to_dataframe(store: db.PaperStore) -> None:
    store.insert_paper(title='paper.txt', summary='A summary.', full_text='Full text.')
    df = db.papers_to_dataframe(store.list_papers())
    assert list(df.columns) == ['id', 'title', 'summary', 'created_at']
    assert df.iloc[0]['title'] == 'paper.txt'
    assert db.papers_to_dataframe([]).empty


def test_extract_plain_text() -> None:
    content = "  Title\n\nThe body of the paper.  \n".encode('utf-8')
    text = parsers.extract_text(io.BytesIO(content), 'paper.txt')
    assert text == "Title\n\nThe body of the paper."


def test_extract_html_text() -> None:
    html = b"<html><head><style>p {}</style></head><body><h1>Title</h1><p>Body text.</p></body></html>"
    text = parsers.extract_text(io.BytesIO(html), 'paper.html')
    assert 'Title' in text
    assert 'Body text.' in text
    assert 'p {}' not in text


def test_extract_docx_text() -> None:
    document = docx_lib.Document()
    document.add_paragraph('First paragraph.')
    document.add_paragraph('')
    document.add_paragraph('Second paragraph.')
    buffer = io.BytesIO()
    document.save(buffer)
    buffer.seek(0)
    text = parsers.extract_text(buffer, 'paper.docx')
    assert text == 'First paragraph.\nSecond paragraph.'


def test_detect_format() -> None:
    assert parsers.detect_format('paper.PDF', b'') == 'pdf'
    assert parsers.detect_format('notes.md', b'# notes') == 'text'
    assert parsers.detect_format('upload', b'%PDF-1.7 ...') == 'pdf'
    assert parsers.detect_format('upload', b'<!DOCTYPE html><html></html>') == 'html'
    assert parsers.detect_format('figure.png', b'\x89PNG') == 'unknown'


def test_extract_rejects_unsupported_format() -> None:
    with pytest.raises(UnsupportedFormatError):
        parsers.extract_text(io.BytesIO(b'\x89PNG\r\n'), 'figure.png')


def test_extract_reports_unreadable_pdf() -> None:
    with pytest.raises(UnsupportedFormatError):
        parsers.extract_text(io.BytesIO(b'not really a pdf'), 'broken.pdf')
