"""
TapCard - Suite asynchrone d'un lead capturé

Après l'insertion durable du lead: webhooks et relance IA, indépendants,
chacun derrière le replay guard. Aucun échec ici ne remonte au visiteur.
"""

import asyncio
import logging
from typing import Dict, Any

from models.lead import FollowUpLead
from services.follow_up import compose_follow_up
from services.replay_guard import check_dispatch_allowed
from services.webhook_dispatcher import dispatch_lead_webhooks

logger = logging.getLogger("lead_pipeline")


async def dispatch_webhooks_for_lead(lead_id: str) -> Dict[str, Any]:
    guard = await check_dispatch_allowed(lead_id, action="webhooks")
    if not guard.allowed:
        return {"skipped": guard.outcome}
    return await dispatch_lead_webhooks(guard.lead)


async def follow_up_for_lead(lead_id: str) -> Dict[str, Any]:
    guard = await check_dispatch_allowed(lead_id, action="follow_up")
    if not guard.allowed:
        return {"skipped": guard.outcome}
    lead = guard.lead
    return await compose_follow_up(
        lead.company_id,
        FollowUpLead(name=lead.name, email=lead.email, phone=lead.phone, profile_id=lead.profile_id)
    )


async def run_post_submit(lead_id: str) -> Dict[str, Any]:
    """
    Lance webhooks + relance en parallèle; collecte chaque issue sans
    qu'un échec annule l'autre.
    """
    webhooks, follow_up = await asyncio.gather(
        dispatch_webhooks_for_lead(lead_id),
        follow_up_for_lead(lead_id),
        return_exceptions=True
    )
    if isinstance(webhooks, Exception):
        logger.error(f"Dispatch webhooks lead {lead_id} échoué: {str(webhooks)}")
        webhooks = {"error": str(webhooks)}
    if isinstance(follow_up, Exception):
        logger.error(f"Relance lead {lead_id} échouée: {str(follow_up)}")
        follow_up = {"error": str(follow_up)}
    return {"webhooks": webhooks, "follow_up": follow_up}
