"""
TapCard - Chargement des profils publics

Un profil non publié se comporte exactement comme un profil inexistant
(pas d'énumération possible). C'est ici que la capture de leads est
autorisée ou non pour la page; services.lead_intake le revérifie.
"""

import asyncio
import logging
from typing import Optional, Dict, Any

from config import db
from models.event import EventType
from models.profile import ProfileDocument, CompanyDocument, ProfileLayout, resolve_layout
from services.event_logger import classify_device, log_event_background

logger = logging.getLogger("profile_loader")


class LoadedProfile:
    """Profil publié + entreprise + layout résolu"""

    def __init__(
        self,
        profile: ProfileDocument,
        company: Optional[CompanyDocument],
        layout: ProfileLayout
    ):
        self.profile = profile
        self.company = company
        self.layout = layout

    @property
    def lead_capture_enabled(self) -> bool:
        return self.layout.lead_capture_enabled

    def to_dict(self) -> Dict[str, Any]:
        return {
            "profile": self.profile.model_dump(),
            "company": self.company.model_dump() if self.company else None,
            "layout": self.layout.model_dump(),
            "lead_capture_enabled": self.lead_capture_enabled
        }


async def get_published_profile(profile_id: str) -> Optional[ProfileDocument]:
    """Retourne le profil seulement s'il est publié"""
    if not profile_id:
        return None
    doc = await db.profiles.find_one({"id": profile_id, "published": True}, {"_id": 0})
    if not doc:
        return None
    return ProfileDocument(**doc)


async def load_company_context(company_id: str):
    """Entreprise + layout de l'entreprise, chargés en parallèle"""
    company_doc, layout_doc = await asyncio.gather(
        db.companies.find_one({"id": company_id}, {"_id": 0}),
        db.profile_layouts.find_one({"company_id": company_id}, {"_id": 0}),
    )
    company = CompanyDocument(**company_doc) if company_doc else None
    return company, resolve_layout(layout_doc, company_id)


async def load_profile(
    profile_id: str,
    user_agent: Optional[str] = None,
    utm_source: Optional[str] = None,
    track_view: bool = True
) -> Optional[LoadedProfile]:
    """
    Charge un profil publié pour affichage.
    Enregistre un event profile_view (fire-and-forget) si track_view.
    """
    profile = await get_published_profile(profile_id)
    if not profile:
        return None

    company, layout = await load_company_context(profile.company_id)

    if track_view:
        log_event_background(
            event_type=EventType.PROFILE_VIEW,
            company_id=profile.company_id,
            profile_id=profile.id,
            device=classify_device(user_agent),
            source=utm_source or None
        )

    return LoadedProfile(profile, company, layout)
