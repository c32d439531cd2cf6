#!/usr/bin/env python3
"""Prompt assembly for AI reply automations.

Two shapes of prompt are produced. Without an admin instruction a full
default prompt is synthesized from the ticket. With one, the admin text is
kept verbatim and only completed: ticket context is prepended when the
admin text does not seem to carry it, and the FAQ block is added unless
the admin text already refers to the FAQ.
Both checks are plain substring tests, so an admin prompt that merely says
"id" or "message" somewhere will skip the ticket context. That is accepted.
"""

import re
from typing import Optional
import sys
from pathlib import Path
sys.path.append(str(Path(__file__).parent.parent))

from models.faq import FaqEntry
from models.ticket import TicketAutomationInput

STYLE_INSTRUCTION = (
    "Be concise and stay on topic. "
    "You may use Markdown (headings, lists, links, bold, italics, tables, code) "
    "to structure the answer."
)

DEFAULT_INSTRUCTION = (
    "Give a professional, helpful, concise and reassuring answer suited to the "
    "context of the ticket."
)

TICKET_CONTEXT_PATTERN = re.compile(r"ticket|title|description|message|id", re.IGNORECASE)
FAQ_CONTEXT_PATTERN = re.compile(r"faq|q:|r:", re.IGNORECASE)


def _ticket_lines(ticket: TicketAutomationInput) -> str:
    lines = [
        f"Title: {ticket.title}",
        f"Description: {ticket.description}",
        f"ID: {ticket.id}",
    ]
    if ticket.message:
        lines.append(f"Message: {ticket.message}")
    return "\n".join(lines)


def mentions_ticket_context(prompt: str) -> bool:
    return bool(TICKET_CONTEXT_PATTERN.search(prompt))


def mentions_faq(prompt: str) -> bool:
    return bool(FAQ_CONTEXT_PATTERN.search(prompt))


def build_prompt(
    ticket: TicketAutomationInput,
    admin_prompt: Optional[str] = None,
    faq: Optional[FaqEntry] = None
) -> str:
    admin_prompt = (admin_prompt or "").strip()
    faq_block = f"\n\n{faq.as_prompt_block()}" if faq else ""

    if not admin_prompt:
        return (
            f"Here is a customer ticket:\n{_ticket_lines(ticket)}{faq_block}\n"
            f"{DEFAULT_INSTRUCTION}\n{STYLE_INSTRUCTION}"
        )

    prompt = f"{admin_prompt}\n\n{STYLE_INSTRUCTION}"
    if mentions_faq(admin_prompt):
        faq_block = ""

    if not mentions_ticket_context(admin_prompt):
        return f"Ticket context:\n{_ticket_lines(ticket)}{faq_block}\n\n{prompt}"

    return prompt + faq_block
