#!/usr/bin/env python3
import logging
from dataclasses import dataclass
from typing import Optional
import time
import sys
from pathlib import Path
sys.path.append(str(Path(__file__).parent.parent))

from models.ticket import SupportTicket, TicketAutomationInput
from services.rule_selector import select_rule
from services.text_matcher import TextMatcher
from services.action_dispatcher import ActionDispatcher, AI_ACCOUNT_ID
from services.rule_store import RuleStore
from services.ticket_store import TicketStore
from services.faq_store import FaqStore
from services.llm_service import LLMService
from services.database import RecordStoreError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_ACKNOWLEDGEMENT = (
    "Thank you for your request! An agent will take care of your ticket very shortly. "
    "Thank you for your patience."
)


@dataclass
class TicketCreationResult:
    ticket: SupportTicket
    automation_triggered: bool
    automation_failed: bool = False


class AutomationService:

    def __init__(
        self,
        rule_store: Optional[RuleStore] = None,
        ticket_store: Optional[TicketStore] = None,
        faq_store: Optional[FaqStore] = None,
        dispatcher: Optional[ActionDispatcher] = None,
        llm_service: Optional[LLMService] = None,
        matcher: Optional[TextMatcher] = None,
        ai_account_id: str = AI_ACCOUNT_ID
    ):
        self.rule_store = rule_store or RuleStore()
        self.ticket_store = ticket_store or TicketStore()
        self.llm_service = llm_service or LLMService()
        self.dispatcher = dispatcher or ActionDispatcher(
            ticket_store=self.ticket_store,
            faq_store=faq_store or FaqStore(self.ticket_store.database),
            llm_service=self.llm_service,
            ai_account_id=ai_account_id
        )
        self.matcher = matcher or TextMatcher()
        self.ai_account_id = ai_account_id

        logger.info("Automation service initialized")

    async def on_ticket_created(self, ticket: TicketAutomationInput) -> bool:
        """Run at most one automation for a new ticket.

        Rules are read fresh on every call. Returns True when the selected
        rule committed its action, so the caller can skip its own default reply.
        """
        rules = await self.rule_store.list()
        rule = select_rule(rules, ticket, self.matcher)
        if rule is None:
            logger.info(f"No automation matched ticket {ticket.id}")
            return False

        return await self.dispatcher.dispatch(rule, ticket)

    async def create_ticket(
        self,
        ticket: SupportTicket,
        first_message: Optional[str] = None
    ) -> TicketCreationResult:
        """Store the ticket, then run automations or the default acknowledgement.

        Once the ticket is stored, record-store failures in the follow-up steps
        are logged and reported through ``automation_failed`` instead of raised,
        so callers never retry a ticket that already exists.
        """
        first_message = (first_message or "").strip() or None
        if first_message and not ticket.client_id:
            raise ValueError("A first message requires client_id")

        start_time = time.time()
        created = await self.ticket_store.create_ticket(ticket)
        automation_input = TicketAutomationInput.from_ticket(created, first_message)

        triggered = False
        failed = False
        try:
            if first_message:
                await self.ticket_store.create_message(
                    ticket_id=created.id,
                    user_id=created.client_id,
                    content=first_message
                )
            triggered = await self.on_ticket_created(automation_input)
            if not triggered:
                await self._post_default_acknowledgement(automation_input)
        except RecordStoreError as e:
            logger.error(f"Follow-up of ticket {created.id} failed after creation: {e}")
            triggered = False
            failed = True
            await self._post_error_note(created.id, e)

        logger.info(
            f"Ticket {created.id} created in {time.time() - start_time:.2f}s "
            f"(automation: {'failed' if failed else 'yes' if triggered else 'no'})"
        )
        return TicketCreationResult(ticket=created, automation_triggered=triggered, automation_failed=failed)

    async def _post_error_note(self, ticket_id: str, error: Exception) -> None:
        try:
            await self.ticket_store.create_message(
                ticket_id=ticket_id,
                user_id=self.ai_account_id,
                content=f"Automation error: {error}",
                is_internal=True
            )
        except RecordStoreError as e:
            logger.error(f"Could not record the automation error on ticket {ticket_id}: {e}")

    async def _post_default_acknowledgement(self, ticket: TicketAutomationInput) -> None:
        prompt = (
            f"Here is a customer ticket:\nTitle: {ticket.title}\nDescription: {ticket.description}\n"
            "Give a short recommendation or piece of advice (3 sentences max) about this ticket, "
            "then add: \"An agent will take care of your request, thank you for your patience.\""
        )
        try:
            content = await self.llm_service.generate_response(prompt)
        except Exception as e:
            logger.warning(f"Default acknowledgement generation failed for ticket {ticket.id}: {e}")
            content = ""

        await self.ticket_store.create_message(
            ticket_id=ticket.id,
            user_id=self.ai_account_id,
            content=(content or "").strip() or DEFAULT_ACKNOWLEDGEMENT,
            is_internal=False
        )
