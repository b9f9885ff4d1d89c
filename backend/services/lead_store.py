"""
TapCard - Persistance des leads

1 lead + 1 event lead_submit par soumission.
Le lead est le résultat durable: un échec d'écriture de l'event est
journalisé mais jamais remonté au visiteur.
"""

import logging
from typing import Optional, Dict, Any

from config import db, now_iso, new_id
from models.event import EventType
from models.lead import NormalizedLead, LeadDocument
from services.event_logger import log_event

logger = logging.getLogger("lead_store")

GENERIC_ERROR_MESSAGE = "Erro ao enviar. Tente novamente."


class LeadPersistenceError(Exception):
    """Le store a refusé l'insertion du lead (message visiteur générique)"""

    def __init__(self, reason: str = ""):
        super().__init__(reason or GENERIC_ERROR_MESSAGE)
        self.reason = reason
        self.public_message = GENERIC_ERROR_MESSAGE


async def create_lead(
    lead: NormalizedLead,
    company_id: str,
    profile_id: Optional[str] = None,
    card_id: Optional[str] = None,
    device: Optional[str] = None
) -> Dict[str, Any]:
    """
    Insère le lead puis l'event lead_submit.

    Returns: {"id", "created_at"} (created_at fait foi pour le replay guard)
    Raises: LeadPersistenceError si l'insertion du lead échoue
    """
    if lead.consent is not True:
        raise LeadPersistenceError("consent must be true at persistence time")

    created_at = now_iso()
    lead_doc = LeadDocument(
        id=new_id(),
        company_id=company_id,
        profile_id=profile_id,
        card_id=card_id,
        name=lead.name,
        email=lead.email,
        phone=lead.phone or None,
        consent=True,
        created_at=created_at,
        updated_at=created_at
    ).model_dump()

    try:
        await db.leads.insert_one(lead_doc)
    except Exception as e:
        logger.error(f"Insertion lead refusée (company={company_id}): {str(e)}")
        raise LeadPersistenceError(str(e)) from e

    logger.info(f"Lead {lead_doc['id']} créé pour company {company_id}")

    try:
        await log_event(
            event_type=EventType.LEAD_SUBMIT,
            company_id=company_id,
            profile_id=profile_id,
            card_id=card_id,
            device=device
        )
    except Exception as e:
        logger.error(f"Event lead_submit non enregistré pour lead {lead_doc['id']}: {str(e)}")

    return {"id": lead_doc["id"], "created_at": created_at}


async def get_lead(lead_id: str) -> Optional[LeadDocument]:
    if not lead_id:
        return None
    doc = await db.leads.find_one({"id": lead_id}, {"_id": 0})
    return LeadDocument(**doc) if doc else None
