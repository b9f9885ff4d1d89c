"""
Routes Publiques - cartes NFC, profils, capture de leads
Endpoints SANS authentification pour:
- Résolution des cartes NFC (slug)
- Affichage des profils publiés
- Soumission de leads (validation serveur, jamais de confiance au client)
- Tracking CTA + export vCard
"""

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request, Response
from pydantic import BaseModel
from typing import Optional
import logging

from config import db
from models.event import EventType, CtaType
from models.lead import LeadSubmitPublic
from services.event_logger import classify_device, log_event_background
from services.lead_intake import validate_lead, CAPTURE_DISABLED
from services.lead_pipeline import run_post_submit
from services.lead_store import create_lead, LeadPersistenceError
from services.profile_loader import load_profile
from services.tag_resolver import resolve_tag
from services.vcard import build_vcard, vcard_filename, content_disposition

logger = logging.getLogger("routes.public")

router = APIRouter(prefix="/public", tags=["Public"])

PROFILE_NOT_FOUND = {"code": "not_found", "message": "Perfil não encontrado"}


class CtaClick(BaseModel):
    cta_type: CtaType


def _user_agent(request: Request) -> str:
    return request.headers.get("user-agent", "")


# ==================== CARTES NFC ====================

@router.get("/c/{slug}")
async def resolve_card(slug: str, request: Request):
    """
    Résout une carte NFC scannée vers son profil publié.
    404 avec un code distinct: not_found | deactivated | unlinked
    """
    resolution = await resolve_tag(slug, user_agent=_user_agent(request))
    if not resolution.resolved:
        raise HTTPException(
            status_code=404,
            detail={"code": resolution.outcome, "message": resolution.message}
        )

    loaded = await load_profile(
        resolution.profile_id,
        user_agent=_user_agent(request),
        utm_source=request.query_params.get("utm_source")
    )
    if not loaded:
        raise HTTPException(status_code=404, detail=PROFILE_NOT_FOUND)

    return {"profile_id": resolution.profile_id, "card_id": resolution.card.id, **loaded.to_dict()}


# ==================== PROFILS ====================

@router.get("/profiles/{profile_id}")
async def get_public_profile(profile_id: str, request: Request, utm_source: Optional[str] = None):
    """Profil publié + entreprise + layout résolu. Non publié == inexistant."""
    loaded = await load_profile(profile_id, user_agent=_user_agent(request), utm_source=utm_source)
    if not loaded:
        raise HTTPException(status_code=404, detail=PROFILE_NOT_FOUND)
    return loaded.to_dict()


@router.post("/profiles/{profile_id}/cta")
async def track_cta(profile_id: str, data: CtaClick, request: Request):
    loaded = await load_profile(profile_id, track_view=False)
    if not loaded:
        raise HTTPException(status_code=404, detail=PROFILE_NOT_FOUND)

    log_event_background(
        event_type=EventType.CTA_CLICK,
        company_id=loaded.profile.company_id,
        profile_id=loaded.profile.id,
        cta_type=data.cta_type.value,
        device=classify_device(_user_agent(request))
    )
    return {"success": True}


@router.get("/profiles/{profile_id}/vcard")
async def download_vcard(profile_id: str, request: Request):
    loaded = await load_profile(profile_id, track_view=False)
    if not loaded:
        raise HTTPException(status_code=404, detail=PROFILE_NOT_FOUND)

    log_event_background(
        event_type=EventType.CTA_CLICK,
        company_id=loaded.profile.company_id,
        profile_id=loaded.profile.id,
        cta_type=CtaType.SAVE_CONTACT.value,
        device=classify_device(_user_agent(request))
    )
    return Response(
        content=build_vcard(loaded.profile, loaded.company),
        media_type="text/vcard",
        headers={"Content-Disposition": content_disposition(vcard_filename(loaded.profile))}
    )


# ==================== SOUMISSION LEAD ====================

@router.post("/profiles/{profile_id}/leads", status_code=201)
async def submit_lead(
    profile_id: str,
    data: LeadSubmitPublic,
    request: Request,
    background_tasks: BackgroundTasks
):
    """
    Soumission de lead depuis une page profil publique.

    Flow:
    1. Charger profil publié + layout (gate capture revérifié côté serveur)
    2. Valider (name → email → phone → consent)
    3. Insérer lead + event lead_submit
    4. En tâche de fond: webhooks + relance (replay guard)
    """
    loaded = await load_profile(profile_id, track_view=False)
    if not loaded:
        raise HTTPException(status_code=404, detail=PROFILE_NOT_FOUND)

    result = validate_lead(data, loaded.layout)
    if not result.ok:
        status_code = 403 if result.error_code == CAPTURE_DISABLED else 422
        raise HTTPException(status_code=status_code, detail=result.to_dict())

    card_id = None
    if data.card_id:
        card = await db.nfc_cards.find_one(
            {"id": data.card_id, "company_id": loaded.profile.company_id},
            {"_id": 0}
        )
        card_id = card["id"] if card else None

    try:
        created = await create_lead(
            result.lead,
            company_id=loaded.profile.company_id,
            profile_id=loaded.profile.id,
            card_id=card_id,
            device=classify_device(_user_agent(request))
        )
    except LeadPersistenceError as e:
        raise HTTPException(status_code=503, detail={"code": "persistence_failed", "message": e.public_message})

    background_tasks.add_task(run_post_submit, created["id"])

    return {
        "success": True,
        "lead_id": created["id"],
        "created_at": created["created_at"],
        "message": "Contato enviado com sucesso!"
    }
