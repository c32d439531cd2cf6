#!/usr/bin/env python3
import sys
from pathlib import Path
import pytest
from unittest.mock import AsyncMock, MagicMock

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from models.automation import AutomationRule, AutomationTrigger, AutomationAction
from services.database import Database
from services.rule_store import RuleStore
from services.ticket_store import TicketStore
from services.faq_store import FaqStore


def _make_rule(keyword, location="title", action=None, enabled=True, name=None, **kwargs):
    return AutomationRule(
        name=name or f"rule-{keyword}",
        trigger=AutomationTrigger(keyword=keyword, location=location),
        action=action or AutomationAction(type="ia_reply"),
        enabled=enabled,
        **kwargs
    )


@pytest.fixture
def make_rule():
    """Rule factory so tests only spell out what they care about."""
    return _make_rule


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'helpdesk.db'}")
    db.create_schema()
    yield db
    db.dispose()


@pytest.fixture
def rule_store(database):
    return RuleStore(database)


@pytest.fixture
def ticket_store(database):
    return TicketStore(database)


@pytest.fixture
def faq_store(database):
    return FaqStore(database)


@pytest.fixture
def mock_llm():
    llm = MagicMock()
    llm.generate_response = AsyncMock(return_value="Here is how to fix your VPN connection.")
    llm.suggest_keywords = AsyncMock(return_value=["vpn", "network"])
    return llm
