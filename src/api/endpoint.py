#!/usr/bin/env python3
"""Ticket endpoints for the helpdesk automation service."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from typing import List, Optional
import logging
import sys
from pathlib import Path
sys.path.append(str(Path(__file__).parent.parent))

from models.ticket import SupportTicket, TicketStatus
from services.ticket_store import TicketStore
from services.automation_service import AutomationService
from api.dependencies import get_ticket_store, get_automation_service

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# Request/Response models
class TicketRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    category: Optional[str] = None
    priority: str = "moyenne"
    client_id: Optional[str] = None
    message: Optional[str] = None


class TicketResponse(BaseModel):
    ticket: dict
    automation_triggered: bool
    automation_failed: bool = False


class MessageResponse(BaseModel):
    id: str
    ticket_id: str
    user_id: str
    content: str
    is_internal: bool
    created_at: str


class StatusRequest(BaseModel):
    status: TicketStatus


class AssignRequest(BaseModel):
    agent_id: str = Field(..., min_length=1)


# Create router
router = APIRouter()


@router.post("/tickets", response_model=TicketResponse, status_code=201)
async def create_ticket(
    request: TicketRequest,
    automation_service: AutomationService = Depends(get_automation_service)
):
    try:
        ticket = SupportTicket(
            title=request.title,
            description=request.description,
            category=request.category,
            priority=request.priority,
            client_id=request.client_id
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    result = await automation_service.create_ticket(ticket, first_message=request.message)
    return TicketResponse(
        ticket=result.ticket.to_dict(),
        automation_triggered=result.automation_triggered,
        automation_failed=result.automation_failed
    )


@router.get("/tickets/{ticket_id}")
async def get_ticket(ticket_id: str, ticket_store: TicketStore = Depends(get_ticket_store)):
    ticket = await ticket_store.get_ticket(ticket_id)
    return ticket.to_dict()


@router.get("/tickets/{ticket_id}/messages", response_model=List[MessageResponse])
async def get_ticket_messages(
    ticket_id: str,
    include_internal: bool = True,
    ticket_store: TicketStore = Depends(get_ticket_store)
):
    await ticket_store.get_ticket(ticket_id)
    messages = await ticket_store.get_ticket_messages(ticket_id, include_internal=include_internal)
    return [MessageResponse(**message.to_dict()) for message in messages]


@router.patch("/tickets/{ticket_id}/status")
async def update_ticket_status(
    ticket_id: str,
    request: StatusRequest,
    ticket_store: TicketStore = Depends(get_ticket_store)
):
    ticket = await ticket_store.update_status(ticket_id, request.status)
    return ticket.to_dict()


@router.patch("/tickets/{ticket_id}/assign")
async def assign_ticket(
    ticket_id: str,
    request: AssignRequest,
    ticket_store: TicketStore = Depends(get_ticket_store)
):
    ticket = await ticket_store.assign_agent(ticket_id, request.agent_id)
    return ticket.to_dict()


@router.get("/health")
async def health_check():
    return "ok"
