"""
TapCard - Routes de dispatch (webhooks, relance IA, test webhook)

Codes retour /dispatch-lead-webhooks:
- 400: lead_id manquant
- 404: lead introuvable
- 403: lead hors fenêtre anti-rejeu (ne pas retry)
- 500: erreur interne (retry possible)
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Optional
import logging

from models.lead import FollowUpLead
from services.follow_up import compose_follow_up
from services.replay_guard import check_dispatch_allowed, NOT_FOUND, STALE
from services.webhook_dispatcher import dispatch_lead_webhooks, get_webhook, send_test_webhook

logger = logging.getLogger("routes.dispatch")

router = APIRouter(tags=["Dispatch"])


class DispatchRequest(BaseModel):
    lead_id: Optional[str] = None


class FollowUpRequest(BaseModel):
    lead_id: Optional[str] = None
    company_id: Optional[str] = None
    lead: Optional[FollowUpLead] = None


async def _guarded_lead(lead_id: str, action: str):
    guard = await check_dispatch_allowed(lead_id, action=action)
    if guard.outcome == NOT_FOUND:
        raise HTTPException(status_code=404, detail="Lead not found")
    if guard.outcome == STALE:
        raise HTTPException(status_code=403, detail="Lead too old")
    return guard.lead


@router.post("/dispatch-lead-webhooks")
async def dispatch_webhooks(data: DispatchRequest):
    if not data.lead_id:
        raise HTTPException(status_code=400, detail="lead_id required")

    lead = await _guarded_lead(data.lead_id, "webhooks")

    try:
        return await dispatch_lead_webhooks(lead)
    except Exception as e:
        logger.exception(f"Dispatch webhooks lead {data.lead_id} en erreur")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/compose-follow-up")
async def follow_up(data: FollowUpRequest):
    """
    Deux formats:
    - {"lead_id"}: lead chargé en base, soumis au replay guard
    - {"company_id", "lead": {name, email, phone?, profile_id?}}
    """
    if data.lead_id:
        lead = await _guarded_lead(data.lead_id, "follow_up")
        company_id = lead.company_id
        follow_up_lead = FollowUpLead(
            name=lead.name, email=lead.email, phone=lead.phone, profile_id=lead.profile_id
        )
    elif data.company_id and data.lead and data.lead.name and data.lead.email:
        company_id = data.company_id
        follow_up_lead = data.lead
    else:
        raise HTTPException(status_code=400, detail="lead_id or (company_id + lead.name + lead.email) required")

    return await compose_follow_up(company_id, follow_up_lead)


@router.post("/integrations/{integration_id}/test")
async def test_webhook(integration_id: str):
    """Envoi d'un payload de test vers un webhook"""
    integration = await get_webhook(integration_id)
    if not integration:
        raise HTTPException(status_code=404, detail="Webhook not found")
    if not integration.config.url:
        raise HTTPException(status_code=400, detail="Webhook URL not configured")

    return await send_test_webhook(integration)
