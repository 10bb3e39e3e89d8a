"""
Database module for the research paper summarizer.

This module encapsulates all persistence logic for the app.  It uses
SQLAlchemy to manage a SQLite or hosted PostgreSQL database holding a
single ``papers`` table: one row per uploaded document with its title,
the AI-generated summary, the verbatim full text and a creation
timestamp assigned by the store.

The :class:`PaperStore` class exposes the operations the rest of the
application relies on: listing papers newest first, inserting a new
paper and returning the stored row, fetching and deleting a paper by
identifier, and reporting simple library statistics.  Rows are never
updated in place.
"""

from __future__ import annotations

import logging
import os
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Sequence

import pandas as pd  # type: ignore
from sqlalchemy import Column, DateTime, String, Text, create_engine, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .errors import StoreError
from .models import Paper

logger = logging.getLogger(__name__)

# SQLAlchemy base class used to declare models
Base = declarative_base()


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PaperRecord(Base):
    """ORM model for a single stored paper."""

    __tablename__ = 'papers'

    id = Column(String(32), primary_key=True, default=_new_id)
    title = Column(Text, nullable=False)
    summary = Column(Text, nullable=False)
    full_text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    def to_paper(self) -> Paper:
        return Paper(
            id=self.id,
            title=self.title,
            summary=self.summary,
            created_at=self.created_at,
            full_text=self.full_text,
        )


def _get_database_url() -> str:
    """Resolve the database URL from environment variables.

    A ``DATABASE_URL`` environment variable points the store at a
    hosted database.  When a PostgreSQL URL beginning with
    ``postgres://`` is supplied, it is rewritten to ``postgresql://``
    because SQLAlchemy does not recognise the former scheme.  Without
    it, a SQLite file named ``papers.db`` in the current working
    directory is used.
    """
    url = os.getenv('DATABASE_URL')
    if url:
        if url.startswith('postgres://'):
            url = url.replace('postgres://', 'postgresql://', 1)
        logger.info("Using database URL from environment")
        return url
    default_path = os.path.join(os.getcwd(), 'papers.db')
    logger.info(f"Using local SQLite database at {default_path}")
    return f"sqlite:///{default_path}"


def _create_engine(url: str) -> Any:
    # StaticPool keeps a single connection so that in-memory SQLite
    # databases survive across sessions and threads.
    if url.startswith('sqlite'):
        return create_engine(
            url,
            connect_args={'check_same_thread': False},
            poolclass=StaticPool,
        )
    return create_engine(url, pool_pre_ping=True)


class PaperStore:
    """CRUD access to the ``papers`` table.

    Every public method converts SQLAlchemy failures into
    :class:`StoreError` after logging them, so callers only need to
    handle a single exception type.  Nothing is retried.
    """

    def __init__(self, database_url: Optional[str] = None) -> None:
        self.database_url = database_url or _get_database_url()
        self.engine = _create_engine(self.database_url)
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    def init_db(self) -> None:
        """Initialise the database schema.

        Creates the ``papers`` table if it does not exist yet.  Calling
        this on an existing database is a no-op.
        """
        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            logger.error(f"Error initialising database: {e}")
            raise StoreError("Failed to initialise the papers table") from e
        logger.info("Database initialised (tables created if missing)")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Provide a transactional scope for database operations.

        The session is committed when the block exits normally, rolled
        back on any exception and always closed.
        """
        db = self.SessionLocal()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def list_papers(self) -> List[Paper]:
        """Return every stored paper, most recently created first."""
        try:
            with self.session() as db:
                rows = db.query(PaperRecord).order_by(PaperRecord.created_at.desc()).all()
                return [row.to_paper() for row in rows]
        except SQLAlchemyError as e:
            logger.error(f"Error fetching papers: {e}")
            raise StoreError("Failed to fetch papers") from e

    def insert_paper(self, title: str, summary: str, full_text: str) -> Paper:
        """Insert a new paper and return the stored row.

        The identifier and creation timestamp are assigned by the store
        and are present on the returned :class:`Paper`.
        """
        try:
            with self.session() as db:
                record = PaperRecord(title=title, summary=summary, full_text=full_text)
                db.add(record)
                db.flush()
                paper = record.to_paper()
        except SQLAlchemyError as e:
            logger.error(f"Error inserting paper {title!r}: {e}")
            raise StoreError("Failed to insert paper") from e
        logger.info(f"Inserted paper {paper.id} ({title})")
        return paper

    def fetch_paper(self, paper_id: str) -> Optional[Paper]:
        """Retrieve a single paper by its identifier, or ``None``."""
        try:
            with self.session() as db:
                record = db.query(PaperRecord).filter(PaperRecord.id == paper_id).first()
                return record.to_paper() if record else None
        except SQLAlchemyError as e:
            logger.error(f"Error fetching paper {paper_id}: {e}")
            raise StoreError("Failed to fetch paper") from e

    def delete_paper(self, paper_id: str) -> bool:
        """Delete one paper by identifier.

        Returns ``True`` when a row was removed and ``False`` when no
        paper had that identifier.
        """
        try:
            with self.session() as db:
                deleted = db.query(PaperRecord).filter(PaperRecord.id == paper_id).delete()
        except SQLAlchemyError as e:
            logger.error(f"Error deleting paper {paper_id}: {e}")
            raise StoreError("Failed to delete paper") from e
        logger.info(f"Deleted paper {paper_id} (rows removed: {deleted})")
        return deleted > 0

    def get_library_stats(self) -> Dict[str, Any]:
        """Return the total paper count and the number of uploads per day."""
        try:
            with self.session() as db:
                total = db.query(PaperRecord).count()
                day = func.date(PaperRecord.created_at)
                rows = db.query(day, func.count(PaperRecord.id)).group_by(day).order_by(day).all()
        except SQLAlchemyError as e:
            logger.error(f"Error computing library stats: {e}")
            raise StoreError("Failed to compute library stats") from e
        daily_uploads = [
            {'date': str(date), 'count': int(count)} for date, count in rows if date is not None
        ]
        return {
            'total_papers': total,
            'daily_uploads': daily_uploads,
        }


def papers_to_dataframe(papers: Sequence[Paper]) -> pd.DataFrame:
    """Tabulate papers for display and CSV export.

    The full text is left out; it is usually far too large for a table
    cell.
    """
    columns = ['id', 'title', 'summary', 'created_at']
    return pd.DataFrame(
        [{col: getattr(paper, col) for col in columns} for paper in papers],
        columns=columns,
    )
