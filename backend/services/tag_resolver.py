"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  SERVICE DE RÉSOLUTION DES CARTES NFC                                        ║
║                                                                              ║
║  slug → carte → profil lié                                                   ║
║  - carte inconnue        → not_found                                         ║
║  - carte non active      → deactivated                                       ║
║  - carte sans profil     → unlinked                                          ║
║  - sinon                 → resolved + event nfc_tap (fire-and-forget)        ║
║                                                                              ║
║  Aucun event n'est écrit pour les trois issues non utilisables.              ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import logging
from typing import Optional, Dict, Any

from config import db
from models.card import CardDocument
from models.event import EventType
from services.event_logger import classify_device, log_event_background

logger = logging.getLogger("tag_resolver")

RESOLVED = "resolved"
NOT_FOUND = "not_found"
DEACTIVATED = "deactivated"
UNLINKED = "unlinked"

# Messages visiteur: volontairement peu informatifs
VISITOR_MESSAGES = {
    NOT_FOUND: "Cartão não encontrado.",
    DEACTIVATED: "Este cartão está desativado.",
    UNLINKED: "Este cartão ainda não possui um perfil vinculado.",
}


class TagResolution:
    """Résultat de la résolution d'un slug"""

    def __init__(
        self,
        outcome: str,
        card: Optional[CardDocument] = None,
        profile_id: Optional[str] = None
    ):
        self.outcome = outcome
        self.card = card
        self.profile_id = profile_id

    @property
    def resolved(self) -> bool:
        return self.outcome == RESOLVED

    @property
    def message(self) -> str:
        return VISITOR_MESSAGES.get(self.outcome, "")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome,
            "card_id": self.card.id if self.card else None,
            "profile_id": self.profile_id,
            "message": self.message
        }


async def resolve_tag(slug: str, user_agent: Optional[str] = None) -> TagResolution:
    """
    Résout un slug de carte NFC vers le profil lié.
    Enregistre un event nfc_tap uniquement si la carte est active et liée.
    """
    slug = (slug or "").strip()
    if not slug:
        return TagResolution(NOT_FOUND)

    doc = await db.nfc_cards.find_one({"slug": slug}, {"_id": 0})
    if not doc:
        logger.info(f"Slug inconnu: {slug}")
        return TagResolution(NOT_FOUND)

    card = CardDocument(**doc)

    if not card.is_active:
        logger.info(f"Carte {card.id} désactivée (slug={slug})")
        return TagResolution(DEACTIVATED, card=card)

    if not card.profile_id:
        logger.info(f"Carte {card.id} sans profil (slug={slug})")
        return TagResolution(UNLINKED, card=card)

    log_event_background(
        event_type=EventType.NFC_TAP,
        company_id=card.company_id,
        profile_id=card.profile_id,
        card_id=card.id,
        device=classify_device(user_agent),
        source="nfc"
    )

    return TagResolution(RESOLVED, card=card, profile_id=card.profile_id)
