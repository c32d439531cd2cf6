#!/usr/bin/env python3
import asyncio
import logging
from typing import List, Optional
from datetime import datetime
import sys
from pathlib import Path
sys.path.append(str(Path(__file__).parent.parent))

from sqlalchemy import select

from models.faq import FaqEntry
from services.database import Database, FaqRow, RecordNotFoundError, get_database, row_to_dict

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class FaqStore:

    def __init__(self, database: Optional[Database] = None):
        self.database = database or get_database()

    async def get_all(self) -> List[FaqEntry]:
        """All entries, most recently updated first."""
        return await asyncio.to_thread(self._get_all)

    async def find(self, faq_id: str) -> Optional[FaqEntry]:
        for entry in await self.get_all():
            if entry.id == faq_id:
                return entry
        return None

    async def add(self, entry: FaqEntry) -> FaqEntry:
        await asyncio.to_thread(self._add, entry)
        logger.info(f"FAQ entry added: {entry.get_preview(60)}")
        return entry

    async def update(self, faq_id: str, question: str, answer: str) -> FaqEntry:
        updated = FaqEntry(id=faq_id, question=question, answer=answer, updated_at=datetime.now())
        await asyncio.to_thread(self._update, updated)
        return updated

    async def remove(self, faq_id: str) -> None:
        await asyncio.to_thread(self._remove, faq_id)

    def _get_all(self) -> List[FaqEntry]:
        with self.database.session_scope() as session:
            rows = session.scalars(select(FaqRow).order_by(FaqRow.updated_at.desc())).all()
            return [FaqEntry.from_dict(row_to_dict(row)) for row in rows]

    def _add(self, entry: FaqEntry) -> None:
        with self.database.session_scope() as session:
            session.add(FaqRow(
                id=entry.id,
                question=entry.question,
                answer=entry.answer,
                updated_at=entry.updated_at
            ))

    def _update(self, entry: FaqEntry) -> None:
        with self.database.session_scope() as session:
            row = session.get(FaqRow, entry.id)
            if row is None:
                raise RecordNotFoundError(f"FAQ entry {entry.id} not found")
            row.question = entry.question
            row.answer = entry.answer
            row.updated_at = entry.updated_at

    def _remove(self, faq_id: str) -> None:
        with self.database.session_scope() as session:
            row = session.get(FaqRow, faq_id)
            if row is None:
                raise RecordNotFoundError(f"FAQ entry {faq_id} not found")
            session.delete(row)
