#!/usr/bin/env python3
from dataclasses import dataclass, field, asdict
from typing import Optional, Literal
from datetime import datetime
from enum import Enum
from uuid import uuid4


class TicketStatus(str, Enum):
    """Ticket lifecycle states, stored with the helpdesk's wire values."""
    OPEN = "ouvert"
    IN_PROGRESS = "en_cours"
    WAITING = "en_attente"
    RESOLVED = "resolu"
    CLOSED = "ferme"

    @classmethod
    def parse(cls, value) -> "TicketStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(status.value for status in cls)
            raise ValueError(f"status must be one of: {valid}")


TICKET_PRIORITIES = ["basse", "moyenne", "haute", "urgente"]


@dataclass
class SupportTicket:
    title: str
    description: str
    id: str = field(default_factory=lambda: str(uuid4()))
    category: Optional[str] = None
    priority: Literal["basse", "moyenne", "haute", "urgente"] = "moyenne"
    status: TicketStatus = TicketStatus.OPEN
    client_id: Optional[str] = None
    agent_id: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None

    def __post_init__(self):
        if not isinstance(self.title, str) or not isinstance(self.description, str):
            raise ValueError('title and description must be strings')
        self.title = ' '.join(self.title.split())
        self.description = self.description.strip()

        if not self.title:
            raise ValueError('Ticket title cannot be empty')
        if len(self.title) > 200:
            raise ValueError('Ticket title must be 200 characters or less')
        if not self.description:
            raise ValueError('Ticket description cannot be empty')

        if self.priority not in TICKET_PRIORITIES:
            raise ValueError(f'priority must be one of: {", ".join(TICKET_PRIORITIES)}')
        self.status = TicketStatus.parse(self.status)

    def to_dict(self) -> dict:
        ticket_dict = asdict(self)
        ticket_dict['status'] = self.status.value
        for key in ('created_at', 'updated_at', 'resolved_at', 'closed_at'):
            value = getattr(self, key)
            ticket_dict[key] = value.isoformat() if value else None
        return ticket_dict

    @classmethod
    def from_dict(cls, data: dict) -> 'SupportTicket':
        data = dict(data)
        for key in ('created_at', 'updated_at', 'resolved_at', 'closed_at'):
            if isinstance(data.get(key), str):
                data[key] = datetime.fromisoformat(data[key])
        return cls(**data)

    def set_status(self, status) -> None:
        self.status = TicketStatus.parse(status)
        now = datetime.now()
        self.updated_at = now
        if self.status == TicketStatus.RESOLVED:
            self.resolved_at = now
        elif self.status == TicketStatus.CLOSED:
            self.closed_at = now

    def assign(self, agent_id: str) -> None:
        if not agent_id:
            raise ValueError('agent_id cannot be empty')
        self.agent_id = agent_id
        self.status = TicketStatus.IN_PROGRESS
        self.updated_at = datetime.now()


@dataclass(frozen=True)
class TicketAutomationInput:
    """Read-only view of a freshly created ticket handed to the automation engine."""
    id: str
    title: str
    description: str
    message: Optional[str] = None

    @classmethod
    def from_ticket(cls, ticket: SupportTicket, message: Optional[str] = None) -> 'TicketAutomationInput':
        return cls(
            id=ticket.id,
            title=ticket.title,
            description=ticket.description,
            message=message or None
        )

    def to_dict(self) -> dict:
        return asdict(self)
