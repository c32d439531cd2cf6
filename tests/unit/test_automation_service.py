#!/usr/bin/env python3
import sys
from datetime import datetime, timedelta
from pathlib import Path
import pytest
from unittest.mock import AsyncMock, MagicMock
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from models.automation import AutomationAction
from models.faq import FaqEntry
from models.ticket import SupportTicket, TicketAutomationInput, TicketStatus
from services.automation_service import AutomationService, DEFAULT_ACKNOWLEDGEMENT
from services.action_dispatcher import FALLBACK_REPLY
from services.database import RecordNotFoundError, RecordStoreError
from services.llm_service import GenerationError

AI_ACCOUNT = "ai-account-under-test"


@pytest.fixture
def service(rule_store, ticket_store, faq_store, mock_llm):
    return AutomationService(
        rule_store=rule_store,
        ticket_store=ticket_store,
        faq_store=faq_store,
        llm_service=mock_llm,
        ai_account_id=AI_ACCOUNT
    )


async def _stored_ticket(ticket_store, title, description="Le client affiche une erreur.", **kwargs):
    ticket = await ticket_store.create_ticket(SupportTicket(title=title, description=description, **kwargs))
    return TicketAutomationInput.from_ticket(ticket)


class TestOnTicketCreated:

    @pytest.mark.asyncio
    async def test_matching_rule_posts_ai_reply(self, service, rule_store, ticket_store, make_rule, mock_llm):
        await rule_store.upsert(make_rule("connexion"))
        ticket = await _stored_ticket(ticket_store, "Problème de connexion VPN")

        assert await service.on_ticket_created(ticket) is True

        messages = await ticket_store.get_ticket_messages(ticket.id)
        assert len(messages) == 1
        assert messages[0].user_id == AI_ACCOUNT
        assert messages[0].is_internal is False
        assert messages[0].content == "Here is how to fix your VPN connection."
        mock_llm.generate_response.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_enabled_rule_does_nothing(self, service, rule_store, ticket_store, make_rule, mock_llm):
        await rule_store.upsert(make_rule("vpn", enabled=False))
        ticket = await _stored_ticket(ticket_store, "VPN bloqué")

        assert await service.on_ticket_created(ticket) is False

        assert await ticket_store.get_ticket_messages(ticket.id) == []
        mock_llm.generate_response.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unrelated_ticket_does_not_match(self, service, rule_store, ticket_store, make_rule, mock_llm):
        await rule_store.upsert(make_rule("facturation"))
        ticket = await _stored_ticket(ticket_store, "Mon imprimante ne fonctionne plus")

        assert await service.on_ticket_created(ticket) is False
        mock_llm.generate_response.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_only_first_matching_rule_fires(self, service, rule_store, ticket_store, make_rule, mock_llm):
        base = datetime(2026, 1, 1, 9, 0, 0)
        await rule_store.upsert(make_rule(
            "vpn", name="older",
            action=AutomationAction(type="status_change", status_to_set="en_attente"),
            created_at=base
        ))
        await rule_store.upsert(make_rule("connexion", name="newer", created_at=base + timedelta(minutes=5)))
        ticket = await _stored_ticket(ticket_store, "Problème de connexion VPN")

        assert await service.on_ticket_created(ticket) is True

        stored = await ticket_store.get_ticket(ticket.id)
        assert stored.status == TicketStatus.WAITING
        assert await ticket_store.get_ticket_messages(ticket.id) == []
        mock_llm.generate_response.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rules_are_read_on_every_call(self, service, rule_store, ticket_store, make_rule):
        ticket = await _stored_ticket(ticket_store, "Problème de connexion VPN")
        assert await service.on_ticket_created(ticket) is False

        await rule_store.upsert(make_rule("vpn"))

        assert await service.on_ticket_created(ticket) is True

    @pytest.mark.asyncio
    async def test_linked_faq_is_used(self, service, rule_store, ticket_store, faq_store, make_rule, mock_llm):
        faq = await faq_store.add(FaqEntry(question="VPN error 809?", answer="Open UDP port 500."))
        await rule_store.upsert(make_rule("vpn", action=AutomationAction(type="ia_reply", faq_id=faq.id)))
        ticket = await _stored_ticket(ticket_store, "VPN erreur 809")

        await service.on_ticket_created(ticket)

        assert "A: Open UDP port 500." in mock_llm.generate_response.await_args.args[0]

    @pytest.mark.asyncio
    async def test_missing_faq_still_replies(self, service, rule_store, ticket_store, make_rule, mock_llm):
        await rule_store.upsert(make_rule("vpn", action=AutomationAction(type="ia_reply", faq_id="gone")))
        ticket = await _stored_ticket(ticket_store, "VPN erreur 809")

        assert await service.on_ticket_created(ticket) is True
        assert "FAQ to take into account" not in mock_llm.generate_response.await_args.args[0]

    @pytest.mark.asyncio
    async def test_generation_failure_posts_fallback(self, service, rule_store, ticket_store, make_rule, mock_llm):
        mock_llm.generate_response.side_effect = GenerationError("quota exceeded")
        await rule_store.upsert(make_rule("vpn"))
        ticket = await _stored_ticket(ticket_store, "VPN erreur 809")

        assert await service.on_ticket_created(ticket) is True

        messages = await ticket_store.get_ticket_messages(ticket.id)
        assert [m.content for m in messages] == [FALLBACK_REPLY]

    @pytest.mark.asyncio
    async def test_assign_agent_rule(self, service, rule_store, ticket_store, make_rule):
        await rule_store.upsert(make_rule(
            "facture, facturation",
            action=AutomationAction(type="assign_agent", agent_id="agent-billing")
        ))
        ticket = await _stored_ticket(ticket_store, "Question sur ma facture")

        assert await service.on_ticket_created(ticket) is True

        stored = await ticket_store.get_ticket(ticket.id)
        assert stored.agent_id == "agent-billing"
        assert stored.status == TicketStatus.IN_PROGRESS

    @pytest.mark.asyncio
    async def test_dispatch_failure_propagates(self, rule_store, make_rule):
        dispatcher = MagicMock()
        dispatcher.dispatch = AsyncMock(side_effect=RuntimeError("write failed"))
        service = AutomationService(
            rule_store=rule_store,
            ticket_store=MagicMock(),
            dispatcher=dispatcher,
            llm_service=MagicMock()
        )
        await rule_store.upsert(make_rule("vpn"))
        ticket = TicketAutomationInput(id="t-1", title="VPN", description="down")

        with pytest.raises(RuntimeError):
            await service.on_ticket_created(ticket)


class TestCreateTicket:

    @pytest.mark.asyncio
    async def test_automation_reply_skips_default_acknowledgement(self, service, rule_store, ticket_store, make_rule):
        await rule_store.upsert(make_rule("vpn"))

        result = await service.create_ticket(
            SupportTicket(title="VPN down", description="Since this morning", client_id="client-1"),
            first_message="Please help quickly"
        )

        assert result.automation_triggered is True
        messages = await ticket_store.get_ticket_messages(result.ticket.id)
        assert [m.user_id for m in messages] == ["client-1", AI_ACCOUNT]
        assert messages[0].content == "Please help quickly"

    @pytest.mark.asyncio
    async def test_default_acknowledgement_when_nothing_fires(self, service, ticket_store, mock_llm):
        mock_llm.generate_response.return_value = "Try restarting the printer."

        result = await service.create_ticket(SupportTicket(title="Printer jam", description="Floor 2"))

        assert result.automation_triggered is False
        messages = await ticket_store.get_ticket_messages(result.ticket.id)
        assert len(messages) == 1
        assert messages[0].user_id == AI_ACCOUNT
        assert messages[0].content == "Try restarting the printer."

    @pytest.mark.asyncio
    async def test_default_acknowledgement_falls_back_to_canned_text(self, service, ticket_store, mock_llm):
        mock_llm.generate_response.side_effect = GenerationError("timeout")

        result = await service.create_ticket(SupportTicket(title="Printer jam", description="Floor 2"))

        messages = await ticket_store.get_ticket_messages(result.ticket.id)
        assert [m.content for m in messages] == [DEFAULT_ACKNOWLEDGEMENT]

    @pytest.mark.asyncio
    async def test_first_message_feeds_message_trigger(self, service, rule_store, ticket_store, make_rule):
        await rule_store.upsert(make_rule("urgent", location="message"))

        result = await service.create_ticket(
            SupportTicket(title="Accès portail", description="Impossible de me connecter", client_id="client-1"),
            first_message="C'est urgent"
        )

        assert result.automation_triggered is True
        assert result.automation_failed is False

    @pytest.mark.asyncio
    async def test_first_message_requires_client(self, service, ticket_store):
        ticket = SupportTicket(title="VPN down", description="Since this morning")

        with pytest.raises(ValueError):
            await service.create_ticket(ticket, first_message="Please help")

        with pytest.raises(RecordNotFoundError):
            await ticket_store.get_ticket(ticket.id)

    @pytest.mark.asyncio
    async def test_blank_first_message_is_ignored(self, service, ticket_store):
        result = await service.create_ticket(
            SupportTicket(title="Printer jam", description="Floor 2"),
            first_message="   "
        )

        messages = await ticket_store.get_ticket_messages(result.ticket.id)
        assert [m.user_id for m in messages] == [AI_ACCOUNT]

    @pytest.mark.asyncio
    async def test_ticket_kept_when_message_writes_fail(self, service, rule_store, ticket_store, make_rule):
        await rule_store.upsert(make_rule("vpn"))
        ticket_store.create_message = AsyncMock(side_effect=RecordStoreError("messages table locked"))

        result = await service.create_ticket(SupportTicket(title="VPN down", description="Since this morning"))

        assert result.automation_triggered is False
        assert result.automation_failed is True
        stored = await ticket_store.get_ticket(result.ticket.id)
        assert stored.title == "VPN down"

    @pytest.mark.asyncio
    async def test_automation_failure_leaves_internal_note(self, service, rule_store, ticket_store, make_rule):
        await rule_store.upsert(make_rule(
            "vpn", action=AutomationAction(type="status_change", status_to_set="resolu")
        ))
        ticket_store.update_status = AsyncMock(side_effect=RecordStoreError("tickets table locked"))

        result = await service.create_ticket(SupportTicket(title="VPN down", description="Since this morning"))

        assert result.automation_failed is True
        messages = await ticket_store.get_ticket_messages(result.ticket.id)
        assert len(messages) == 1
        assert messages[0].user_id == AI_ACCOUNT
        assert messages[0].is_internal is True
        assert "tickets table locked" in messages[0].content
        assert messages[0].content.startswith("Automation error:")
