#!/usr/bin/env python3
"""Shared service instances handed to the routes through FastAPI's Depends."""

from functools import lru_cache
import sys
from pathlib import Path
sys.path.append(str(Path(__file__).parent.parent))

from services.database import get_database
from services.rule_store import RuleStore
from services.ticket_store import TicketStore
from services.faq_store import FaqStore
from services.llm_service import LLMService
from services.automation_service import AutomationService


@lru_cache
def get_rule_store() -> RuleStore:
    return RuleStore(get_database())


@lru_cache
def get_ticket_store() -> TicketStore:
    return TicketStore(get_database())


@lru_cache
def get_faq_store() -> FaqStore:
    return FaqStore(get_database())


@lru_cache
def get_llm_service() -> LLMService:
    return LLMService()


@lru_cache
def get_automation_service() -> AutomationService:
    return AutomationService(
        rule_store=get_rule_store(),
        ticket_store=get_ticket_store(),
        faq_store=get_faq_store(),
        llm_service=get_llm_service()
    )
