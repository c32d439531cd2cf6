#!/usr/bin/env python3
"""Administration endpoints: automation rules and FAQ entries."""

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field
from typing import List, Optional
import logging
import sys
from pathlib import Path
sys.path.append(str(Path(__file__).parent.parent))

from models.automation import AutomationRule, TriggerLocation, ActionType
from models.faq import FaqEntry
from models.ticket import TicketStatus
from services.rule_store import RuleStore
from services.faq_store import FaqStore
from services.llm_service import LLMService, GenerationError
from api.dependencies import get_rule_store, get_faq_store, get_llm_service

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class TriggerModel(BaseModel):
    keyword: str = ""
    location: TriggerLocation = TriggerLocation.TITLE


class ActionModel(BaseModel):
    type: ActionType = ActionType.IA_REPLY
    iaPrompt: Optional[str] = None
    faqId: Optional[str] = None
    statusToSet: Optional[TicketStatus] = None
    agentId: Optional[str] = None


class AutomationRequest(BaseModel):
    id: Optional[str] = None
    name: str
    trigger: TriggerModel
    reason: Optional[str] = None
    action: ActionModel = Field(default_factory=ActionModel)
    enabled: bool = True


class KeywordSuggestionRequest(BaseModel):
    keyword: str = Field(..., min_length=1)


class KeywordSuggestionResponse(BaseModel):
    keyword: str
    suggestions: List[str]


class FaqRequest(BaseModel):
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)


router = APIRouter()


@router.get("")
async def list_automations(rule_store: RuleStore = Depends(get_rule_store)):
    rules = await rule_store.list()
    return [rule.to_dict() for rule in rules]


@router.put("")
async def save_automation(request: AutomationRequest, rule_store: RuleStore = Depends(get_rule_store)):
    try:
        rule = AutomationRule.from_dict(request.model_dump(mode="json"))
        saved = await rule_store.upsert(rule)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return saved.to_dict()


@router.delete("/{rule_id}", status_code=204)
async def delete_automation(rule_id: str, rule_store: RuleStore = Depends(get_rule_store)):
    await rule_store.remove(rule_id)
    return Response(status_code=204)


@router.post("/suggest-keywords", response_model=KeywordSuggestionResponse)
async def suggest_keywords(
    request: KeywordSuggestionRequest,
    llm_service: LLMService = Depends(get_llm_service)
):
    try:
        suggestions = await llm_service.suggest_keywords(request.keyword)
    except GenerationError as e:
        logger.error(f"Keyword suggestion failed: {e}")
        raise HTTPException(status_code=502, detail="Keyword suggestion is temporarily unavailable")
    return KeywordSuggestionResponse(keyword=request.keyword, suggestions=suggestions)


faq_router = APIRouter()


@faq_router.get("")
async def list_faq(faq_store: FaqStore = Depends(get_faq_store)):
    entries = await faq_store.get_all()
    return [entry.to_dict() for entry in entries]


@faq_router.post("", status_code=201)
async def add_faq(request: FaqRequest, faq_store: FaqStore = Depends(get_faq_store)):
    entry = await faq_store.add(FaqEntry(question=request.question, answer=request.answer))
    return entry.to_dict()


@faq_router.put("/{faq_id}")
async def update_faq(faq_id: str, request: FaqRequest, faq_store: FaqStore = Depends(get_faq_store)):
    entry = await faq_store.update(faq_id, request.question, request.answer)
    return entry.to_dict()


@faq_router.delete("/{faq_id}", status_code=204)
async def delete_faq(faq_id: str, faq_store: FaqStore = Depends(get_faq_store)):
    await faq_store.remove(faq_id)
    return Response(status_code=204)
