#!/usr/bin/env python3
"""SQLAlchemy tables and session handling for the helpdesk record store."""

import os
import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from dotenv import load_dotenv
from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

load_dotenv()

project_root = Path(__file__).parent.parent.parent
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{project_root / 'data' / 'helpdesk.db'}")

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class RecordStoreError(Exception):
    """A read or write against the record store failed."""


class RecordNotFoundError(RecordStoreError):
    """The requested record does not exist."""


class Base(DeclarativeBase):
    pass


class AutomationRow(Base):
    __tablename__ = "automations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    trigger_keyword: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    trigger_location: Mapped[str] = mapped_column(String(20), nullable=False, default="title")
    reason: Mapped[Optional[str]] = mapped_column(Text)
    action_type: Mapped[str] = mapped_column(String(32), nullable=False, default="ia_reply")
    action_ia_prompt: Mapped[Optional[str]] = mapped_column(Text)
    action_status_to_set: Mapped[Optional[str]] = mapped_column(String(20))
    action_agent_id: Mapped[Optional[str]] = mapped_column(String(36))
    action_faq_id: Mapped[Optional[str]] = mapped_column(String(36))
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)


class TicketRow(Base):
    __tablename__ = "tickets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(50))
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="moyenne")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="ouvert")
    client_id: Mapped[Optional[str]] = mapped_column(String(36))
    agent_id: Mapped[Optional[str]] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)


class MessageRow(Base):
    __tablename__ = "messages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    ticket_id: Mapped[str] = mapped_column(ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_internal: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime)


class FaqRow(Base):
    __tablename__ = "faq"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)


def row_to_dict(row: Base) -> dict:
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}


class Database:

    def __init__(self, url: str = DATABASE_URL, echo: bool = False):
        self.url = url
        if url.startswith("sqlite:///"):
            db_path = url[len("sqlite:///"):]
            if db_path and db_path != ":memory:":
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.engine = create_engine(url, echo=echo)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        logger.info(f"Database configured: {self.engine.url.render_as_string(hide_password=True)}")

    def create_schema(self) -> None:
        Base.metadata.create_all(self.engine)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Commit on success, roll back and raise RecordStoreError otherwise."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Record store operation failed: {e}")
            raise RecordStoreError(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()


_default_database: Optional[Database] = None


def get_database() -> Database:
    global _default_database
    if _default_database is None:
        _default_database = Database()
        _default_database.create_schema()
    return _default_database
