#!/usr/bin/env python3
from dataclasses import dataclass, field, asdict
from typing import Optional
from datetime import datetime
from uuid import uuid4


@dataclass
class TicketMessage:
    ticket_id: str
    user_id: str
    content: str
    is_internal: bool = False
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.ticket_id:
            raise ValueError('ticket_id cannot be empty')
        if not self.user_id:
            raise ValueError('user_id cannot be empty')
        if not isinstance(self.content, str) or not self.content.strip():
            raise ValueError('Message content cannot be empty')
        self.content = self.content.strip()

    def to_dict(self) -> dict:
        message_dict = asdict(self)
        message_dict['created_at'] = self.created_at.isoformat()
        message_dict['updated_at'] = self.updated_at.isoformat() if self.updated_at else None
        return message_dict

    @classmethod
    def from_dict(cls, data: dict) -> 'TicketMessage':
        data = dict(data)
        for key in ('created_at', 'updated_at'):
            if isinstance(data.get(key), str):
                data[key] = datetime.fromisoformat(data[key])
        return cls(**data)
