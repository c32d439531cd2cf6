#!/usr/bin/env python3
import os
import logging
from typing import Optional
import sys
from pathlib import Path
sys.path.append(str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from models.automation import AutomationRule, ActionType
from models.faq import FaqEntry
from models.ticket import TicketAutomationInput
from services.prompt_builder import build_prompt
from services.llm_service import LLMService
from services.ticket_store import TicketStore
from services.faq_store import FaqStore
from services.database import RecordStoreError

load_dotenv()

# System account that signs automated messages
AI_ACCOUNT_ID = os.getenv("AI_ACCOUNT_ID", "68496c98-c438-4791-a50a-fb4e15928ada")

FALLBACK_REPLY = "Thank you for your request! An agent will take care of your ticket very shortly."

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ActionDispatcher:

    def __init__(
        self,
        ticket_store: Optional[TicketStore] = None,
        faq_store: Optional[FaqStore] = None,
        llm_service: Optional[LLMService] = None,
        ai_account_id: str = AI_ACCOUNT_ID
    ):
        self.ticket_store = ticket_store or TicketStore()
        self.faq_store = faq_store or FaqStore()
        self.llm_service = llm_service or LLMService()
        self.ai_account_id = ai_account_id

    async def dispatch(self, rule: AutomationRule, ticket: TicketAutomationInput) -> bool:
        """Run the rule's single action. True once something was committed."""
        action_type = rule.action.type
        logger.info(f"Dispatching '{action_type.value}' from automation '{rule.name}' on ticket {ticket.id}")

        if action_type == ActionType.IA_REPLY:
            return await self._reply_with_ai(rule, ticket)
        if action_type == ActionType.STATUS_CHANGE:
            await self.ticket_store.update_status(ticket.id, rule.action.status_to_set)
            return True
        if action_type == ActionType.ASSIGN_AGENT:
            await self.ticket_store.assign_agent(ticket.id, rule.action.agent_id)
            return True

        logger.warning(f"Unknown action type on automation {rule.id}: {action_type}")
        return False

    async def _load_faq(self, faq_id: Optional[str]) -> Optional[FaqEntry]:
        if not faq_id:
            return None
        try:
            faq = await self.faq_store.find(faq_id)
        except RecordStoreError as e:
            logger.warning(f"FAQ {faq_id} could not be loaded, prompt built without it: {e}")
            return None
        if faq is None:
            logger.warning(f"FAQ {faq_id} linked to an automation no longer exists")
        return faq

    async def _reply_with_ai(self, rule: AutomationRule, ticket: TicketAutomationInput) -> bool:
        faq = await self._load_faq(rule.action.faq_id)
        prompt = build_prompt(ticket, rule.action.ia_prompt, faq)

        try:
            content = await self.llm_service.generate_response(prompt)
        except Exception as e:
            logger.warning(f"AI reply generation failed for ticket {ticket.id}, using fallback: {e}")
            content = ""

        if not content or not content.strip():
            content = FALLBACK_REPLY

        await self.ticket_store.create_message(
            ticket_id=ticket.id,
            user_id=self.ai_account_id,
            content=content,
            is_internal=False
        )
        return True
