#!/usr/bin/env python3
# Ticket models
from .ticket import SupportTicket, TicketStatus, TicketAutomationInput

# Message and FAQ records
from .message import TicketMessage
from .faq import FaqEntry

# Automation rule models
from .automation import (
    AutomationRule, AutomationTrigger, AutomationAction,
    TriggerLocation, ActionType
)

# Common utility models
from .common import ErrorResponse

__version__ = "1.0.0"
__all__ = [
    "SupportTicket",
    "TicketStatus",
    "TicketAutomationInput",
    "TicketMessage",
    "FaqEntry",
    "AutomationRule",
    "AutomationTrigger",
    "AutomationAction",
    "TriggerLocation",
    "ActionType",
    "ErrorResponse",
]
