#!/usr/bin/env python3
import asyncio
import logging
from typing import List, Optional
from datetime import datetime
import sys
from pathlib import Path
sys.path.append(str(Path(__file__).parent.parent))

from sqlalchemy import select

from models.automation import AutomationRule
from services.database import Database, AutomationRow, RecordNotFoundError, get_database, row_to_dict

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class RuleStore:
    """CRUD over the automations table, always read in creation order.

    Sessions are synchronous, so each call runs in a worker thread.
    """

    def __init__(self, database: Optional[Database] = None):
        self.database = database or get_database()

    async def list(self) -> List[AutomationRule]:
        return await asyncio.to_thread(self._list)

    async def get(self, rule_id: str) -> AutomationRule:
        return await asyncio.to_thread(self._get, rule_id)

    async def upsert(self, rule: AutomationRule) -> AutomationRule:
        rule.validate_for_save()
        return await asyncio.to_thread(self._upsert, rule)

    async def remove(self, rule_id: str) -> None:
        await asyncio.to_thread(self._remove, rule_id)

    def _list(self) -> List[AutomationRule]:
        with self.database.session_scope() as session:
            rows = session.scalars(
                select(AutomationRow).order_by(AutomationRow.created_at.asc())
            ).all()
            return [AutomationRule.from_row(row_to_dict(row)) for row in rows]

    def _get(self, rule_id: str) -> AutomationRule:
        with self.database.session_scope() as session:
            row = session.get(AutomationRow, rule_id)
            if row is None:
                raise RecordNotFoundError(f"Automation {rule_id} not found")
            return AutomationRule.from_row(row_to_dict(row))

    def _upsert(self, rule: AutomationRule) -> AutomationRule:
        values = rule.to_row()

        with self.database.session_scope() as session:
            row = session.get(AutomationRow, rule.id)
            if row is None:
                row = AutomationRow(created_at=rule.created_at or datetime.now(), **values)
                session.add(row)
                logger.info(f"Automation created: {rule.name} ({rule.id})")
            else:
                for key, value in values.items():
                    setattr(row, key, value)
                logger.info(f"Automation updated: {rule.name} ({rule.id})")
            session.flush()
            return AutomationRule.from_row(row_to_dict(row))

    def _remove(self, rule_id: str) -> None:
        with self.database.session_scope() as session:
            row = session.get(AutomationRow, rule_id)
            if row is None:
                raise RecordNotFoundError(f"Automation {rule_id} not found")
            session.delete(row)
        logger.info(f"Automation removed: {rule_id}")
