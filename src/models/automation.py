#!/usr/bin/env python3
"""Automation rule models: trigger, action variants and the rule itself."""

from dataclasses import dataclass, field, asdict
from typing import Dict, Any, Optional, List
from datetime import datetime
from enum import Enum
from uuid import uuid4

from .ticket import TicketStatus


class TriggerLocation(str, Enum):
    """Ticket field a trigger keyword is searched in."""
    TITLE = "title"
    DESCRIPTION = "description"
    MESSAGE = "message"


class ActionType(str, Enum):
    """Action variants an automation can run once it fires."""
    IA_REPLY = "ia_reply"
    STATUS_CHANGE = "status_change"
    ASSIGN_AGENT = "assign_agent"


# Fields that belong to each action variant
ACTION_FIELDS = {
    ActionType.IA_REPLY: ("ia_prompt", "faq_id"),
    ActionType.STATUS_CHANGE: ("status_to_set",),
    ActionType.ASSIGN_AGENT: ("agent_id",),
}


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def split_keywords(keyword: Optional[str]) -> List[str]:
    """Comma-separated alternatives, trimmed, empties dropped."""
    return [part.strip() for part in (keyword or "").split(",") if part.strip()]


@dataclass
class AutomationTrigger:
    keyword: str = ""
    location: TriggerLocation = TriggerLocation.TITLE

    def __post_init__(self):
        self.keyword = (self.keyword or "").strip()
        try:
            self.location = TriggerLocation(self.location)
        except ValueError:
            valid = ", ".join(loc.value for loc in TriggerLocation)
            raise ValueError(f"trigger location must be one of: {valid}")

    def get_keywords(self) -> List[str]:
        return split_keywords(self.keyword)

    def to_dict(self) -> Dict[str, Any]:
        return {"keyword": self.keyword, "location": self.location.value}


@dataclass
class AutomationAction:
    type: ActionType = ActionType.IA_REPLY
    ia_prompt: Optional[str] = None
    faq_id: Optional[str] = None
    status_to_set: Optional[TicketStatus] = None
    agent_id: Optional[str] = None

    def __post_init__(self):
        try:
            self.type = ActionType(self.type)
        except ValueError:
            valid = ", ".join(action.value for action in ActionType)
            raise ValueError(f"action type must be one of: {valid}")

        self.ia_prompt = _blank_to_none(self.ia_prompt)
        self.faq_id = _blank_to_none(self.faq_id)
        self.agent_id = _blank_to_none(self.agent_id)
        if _blank_to_none(self.status_to_set) is None:
            self.status_to_set = None
        else:
            self.status_to_set = TicketStatus.parse(self.status_to_set)

    def switch_to(self, action_type) -> None:
        """Change the variant, dropping every field the new variant does not own."""
        self.type = ActionType(action_type)
        kept = ACTION_FIELDS[self.type]
        for fields in ACTION_FIELDS.values():
            for name in fields:
                if name not in kept:
                    setattr(self, name, None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "iaPrompt": self.ia_prompt,
            "faqId": self.faq_id,
            "statusToSet": self.status_to_set.value if self.status_to_set else None,
            "agentId": self.agent_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AutomationAction':
        return cls(
            type=data.get("type", ActionType.IA_REPLY),
            ia_prompt=data.get("iaPrompt", data.get("ia_prompt")),
            faq_id=data.get("faqId", data.get("faq_id")),
            status_to_set=data.get("statusToSet", data.get("status_to_set")),
            agent_id=data.get("agentId", data.get("agent_id")),
        )


@dataclass
class AutomationRule:
    """Keyword-triggered automation configured by an administrator.

    Rules are matched in store order (creation time ascending) and the
    first match wins, so ``created_at`` is part of the rule's behaviour.
    """

    name: str
    trigger: AutomationTrigger
    action: AutomationAction = field(default_factory=AutomationAction)
    id: str = field(default_factory=lambda: str(uuid4()))
    reason: Optional[str] = None
    enabled: bool = True
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if isinstance(self.trigger, dict):
            self.trigger = AutomationTrigger(**self.trigger)
        if isinstance(self.action, dict):
            self.action = AutomationAction.from_dict(self.action)
        self.name = (self.name or "").strip()
        self.reason = _blank_to_none(self.reason)
        self.enabled = bool(self.enabled)
        if not self.id:
            self.id = str(uuid4())

    def validate_for_save(self) -> None:
        """Reject rules the dispatcher could not execute."""
        if not self.name:
            raise ValueError("Automation name cannot be empty")
        if not self.trigger.get_keywords():
            raise ValueError("Trigger keyword cannot be empty")
        if self.action.type == ActionType.STATUS_CHANGE and self.action.status_to_set is None:
            raise ValueError("status_change actions require statusToSet")
        if self.action.type == ActionType.ASSIGN_AGENT and not self.action.agent_id:
            raise ValueError("assign_agent actions require agentId")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "trigger": self.trigger.to_dict(),
            "reason": self.reason,
            "action": self.action.to_dict(),
            "enabled": self.enabled,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AutomationRule':
        created_at = data.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        return cls(
            id=data.get("id") or str(uuid4()),
            name=data.get("name", ""),
            trigger=AutomationTrigger(**(data.get("trigger") or {})),
            reason=data.get("reason"),
            action=AutomationAction.from_dict(data.get("action") or {}),
            enabled=data.get("enabled", True),
            created_at=created_at,
        )

    def to_row(self) -> Dict[str, Any]:
        """Flat column layout used by the automations table."""
        return {
            "id": self.id,
            "name": self.name,
            "trigger_keyword": self.trigger.keyword,
            "trigger_location": self.trigger.location.value,
            "reason": self.reason,
            "action_type": self.action.type.value,
            "action_ia_prompt": self.action.ia_prompt,
            "action_status_to_set": self.action.status_to_set.value if self.action.status_to_set else None,
            "action_agent_id": self.action.agent_id,
            "action_faq_id": self.action.faq_id,
            "enabled": self.enabled,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'AutomationRule':
        return cls(
            id=row["id"],
            name=row.get("name", ""),
            trigger=AutomationTrigger(
                keyword=row.get("trigger_keyword") or "",
                location=row.get("trigger_location") or TriggerLocation.TITLE,
            ),
            reason=row.get("reason"),
            action=AutomationAction(
                type=row.get("action_type") or ActionType.IA_REPLY,
                ia_prompt=row.get("action_ia_prompt"),
                faq_id=row.get("action_faq_id"),
                status_to_set=row.get("action_status_to_set"),
                agent_id=row.get("action_agent_id"),
            ),
            enabled=row.get("enabled", True),
            created_at=row.get("created_at"),
        )
