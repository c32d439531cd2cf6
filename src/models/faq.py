#!/usr/bin/env python3
"""FAQ entries referenced by AI reply automations."""

from dataclasses import dataclass, field, asdict
from typing import Optional
from datetime import datetime
from uuid import uuid4


@dataclass
class FaqEntry:
    question: str
    answer: str
    id: str = field(default_factory=lambda: str(uuid4()))
    updated_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        if not isinstance(self.question, str) or not self.question.strip():
            raise ValueError('FAQ question cannot be empty')
        if not isinstance(self.answer, str) or not self.answer.strip():
            raise ValueError('FAQ answer cannot be empty')
        self.question = self.question.strip()
        self.answer = self.answer.strip()

    def to_dict(self) -> dict:
        faq_dict = asdict(self)
        faq_dict['updated_at'] = self.updated_at.isoformat()
        return faq_dict

    @classmethod
    def from_dict(cls, data: dict) -> 'FaqEntry':
        data = dict(data)
        if isinstance(data.get('updated_at'), str):
            data['updated_at'] = datetime.fromisoformat(data['updated_at'])
        return cls(**data)

    def as_prompt_block(self) -> str:
        """Render the entry the way generation prompts quote it."""
        return f"FAQ to take into account:\nQ: {self.question}\nA: {self.answer}"

    def get_preview(self, max_length: Optional[int] = 80) -> str:
        if max_length is None or len(self.question) <= max_length:
            return self.question
        return self.question[:max_length].rstrip() + "..."
