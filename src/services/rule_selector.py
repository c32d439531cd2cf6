#!/usr/bin/env python3
import logging
from typing import Iterable, Optional
import sys
from pathlib import Path
sys.path.append(str(Path(__file__).parent.parent))

from models.automation import AutomationRule, TriggerLocation
from models.ticket import TicketAutomationInput
from services.text_matcher import TextMatcher

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def resolve_trigger_text(rule: AutomationRule, ticket: TicketAutomationInput) -> Optional[str]:
    """Ticket field a rule looks at, or None when the ticket has no such text."""
    location = rule.trigger.location
    if location == TriggerLocation.TITLE:
        return ticket.title
    if location == TriggerLocation.DESCRIPTION:
        return ticket.description
    if location == TriggerLocation.MESSAGE:
        return ticket.message or None
    return None


def select_rule(
    rules: Iterable[AutomationRule],
    ticket: TicketAutomationInput,
    matcher: Optional[TextMatcher] = None
) -> Optional[AutomationRule]:
    """First enabled rule, in the given order, whose trigger matches the ticket."""
    matcher = matcher or TextMatcher()

    for rule in rules:
        if not rule.enabled:
            continue
        text = resolve_trigger_text(rule, ticket)
        if text is None:
            continue
        if matcher.matches(text, rule.trigger.keyword):
            logger.info(f"Automation '{rule.name}' ({rule.id}) matched ticket {ticket.id}")
            return rule

    return None
