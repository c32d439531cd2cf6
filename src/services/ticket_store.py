#!/usr/bin/env python3
import asyncio
import logging
from typing import List, Optional
import sys
from pathlib import Path
sys.path.append(str(Path(__file__).parent.parent))

from sqlalchemy import select

from models.ticket import SupportTicket, TicketStatus
from models.message import TicketMessage
from services.database import (
    Database, TicketRow, MessageRow, RecordNotFoundError, get_database, row_to_dict
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _ticket_from_row(row: TicketRow) -> SupportTicket:
    return SupportTicket.from_dict(row_to_dict(row))


class TicketStore:
    """Tickets and their conversation messages."""

    def __init__(self, database: Optional[Database] = None):
        self.database = database or get_database()

    async def create_ticket(self, ticket: SupportTicket) -> SupportTicket:
        return await asyncio.to_thread(self._create_ticket, ticket)

    async def get_ticket(self, ticket_id: str) -> SupportTicket:
        return await asyncio.to_thread(self._get_ticket, ticket_id)

    async def update_status(self, ticket_id: str, status) -> SupportTicket:
        return await asyncio.to_thread(self._update_status, ticket_id, status)

    async def assign_agent(self, ticket_id: str, agent_id: str) -> SupportTicket:
        return await asyncio.to_thread(self._assign_agent, ticket_id, agent_id)

    async def create_message(
        self,
        ticket_id: str,
        user_id: str,
        content: str,
        is_internal: bool = False
    ) -> TicketMessage:
        message = TicketMessage(
            ticket_id=ticket_id,
            user_id=user_id,
            content=content,
            is_internal=is_internal
        )
        await asyncio.to_thread(self._insert_message, message)
        logger.info(f"Message {message.id} posted on ticket {ticket_id}")
        return message

    async def get_ticket_messages(self, ticket_id: str, include_internal: bool = True) -> List[TicketMessage]:
        return await asyncio.to_thread(self._get_ticket_messages, ticket_id, include_internal)

    def _create_ticket(self, ticket: SupportTicket) -> SupportTicket:
        values = ticket.to_dict()
        for key in ('created_at', 'updated_at', 'resolved_at', 'closed_at'):
            values[key] = getattr(ticket, key)

        with self.database.session_scope() as session:
            row = TicketRow(**values)
            session.add(row)
            session.flush()
            logger.info(f"Ticket created: {ticket.id}")
            return _ticket_from_row(row)

    def _get_ticket(self, ticket_id: str) -> SupportTicket:
        with self.database.session_scope() as session:
            row = session.get(TicketRow, ticket_id)
            if row is None:
                raise RecordNotFoundError(f"Ticket {ticket_id} not found")
            return _ticket_from_row(row)

    def _update_status(self, ticket_id: str, status) -> SupportTicket:
        with self.database.session_scope() as session:
            row = session.get(TicketRow, ticket_id)
            if row is None:
                raise RecordNotFoundError(f"Ticket {ticket_id} not found")
            ticket = _ticket_from_row(row)
            ticket.set_status(status)
            row.status = ticket.status.value
            row.updated_at = ticket.updated_at
            row.resolved_at = ticket.resolved_at
            row.closed_at = ticket.closed_at
            logger.info(f"Ticket {ticket_id} status -> {ticket.status.value}")
            return ticket

    def _assign_agent(self, ticket_id: str, agent_id: str) -> SupportTicket:
        with self.database.session_scope() as session:
            row = session.get(TicketRow, ticket_id)
            if row is None:
                raise RecordNotFoundError(f"Ticket {ticket_id} not found")
            ticket = _ticket_from_row(row)
            ticket.assign(agent_id)
            row.agent_id = ticket.agent_id
            row.status = TicketStatus.IN_PROGRESS.value
            row.updated_at = ticket.updated_at
            logger.info(f"Ticket {ticket_id} assigned to {agent_id}")
            return ticket

    def _insert_message(self, message: TicketMessage) -> None:
        with self.database.session_scope() as session:
            if session.get(TicketRow, message.ticket_id) is None:
                raise RecordNotFoundError(f"Ticket {message.ticket_id} not found")
            session.add(MessageRow(
                id=message.id,
                ticket_id=message.ticket_id,
                user_id=message.user_id,
                content=message.content,
                is_internal=message.is_internal,
                created_at=message.created_at
            ))

    def _get_ticket_messages(self, ticket_id: str, include_internal: bool) -> List[TicketMessage]:
        with self.database.session_scope() as session:
            query = select(MessageRow).where(MessageRow.ticket_id == ticket_id)
            if not include_internal:
                query = query.where(MessageRow.is_internal.is_(False))
            rows = session.scalars(query.order_by(MessageRow.created_at.asc())).all()
            return [TicketMessage.from_dict(row_to_dict(row)) for row in rows]
