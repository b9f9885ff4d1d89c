"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  GARDE ANTI-REJEU DU DISPATCH                                                ║
║                                                                              ║
║  Le déclencheur de dispatch est public (lead_id devinable/observable).       ║
║  Un lead créé il y a plus de REPLAY_WINDOW_SECONDS est refusé: aucun         ║
║  webhook ni relance n'est émis.                                              ║
║                                                                              ║
║  Pas de clé d'idempotence: deux dispatchs dans la fenêtre passent tous       ║
║  les deux.                                                                   ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any

import config
from config import parse_iso
from models.lead import LeadDocument
from services.lead_store import get_lead

logger = logging.getLogger("replay_guard")

ALLOWED = "allowed"
NOT_FOUND = "not_found"
STALE = "stale"


class GuardResult:
    """Résultat du contrôle anti-rejeu"""

    def __init__(
        self,
        outcome: str,
        lead: Optional[LeadDocument] = None,
        age_seconds: Optional[float] = None
    ):
        self.outcome = outcome
        self.lead = lead
        self.age_seconds = age_seconds

    @property
    def allowed(self) -> bool:
        return self.outcome == ALLOWED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome,
            "lead_id": self.lead.id if self.lead else None,
            "age_seconds": self.age_seconds
        }


async def check_dispatch_allowed(
    lead_id: str,
    action: str = "dispatch",
    now: Optional[datetime] = None
) -> GuardResult:
    """
    Charge le lead et vérifie son âge avant toute action de dispatch.
    action sert uniquement à la journalisation (webhooks, follow_up, ...).
    """
    lead = await get_lead(lead_id)
    if not lead:
        logger.info(f"[{action}] lead introuvable: {lead_id}")
        return GuardResult(NOT_FOUND)

    now = now or datetime.now(timezone.utc)
    age = (now - parse_iso(lead.created_at)).total_seconds()

    if age > config.REPLAY_WINDOW_SECONDS:
        logger.warning(f"[{action}] lead {lead_id} trop ancien ({age:.0f}s), dispatch refusé")
        return GuardResult(STALE, lead=lead, age_seconds=age)

    return GuardResult(ALLOWED, lead=lead, age_seconds=age)
