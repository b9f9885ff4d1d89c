"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  TapCard - Modèle Carte NFC                                                  ║
║                                                                              ║
║  RÈGLES:                                                                     ║
║  1. Une carte non active ne résout JAMAIS vers un profil                     ║
║  2. Une carte n'est jamais supprimée tant que des events la référencent      ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict
from enum import Enum


class CardStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class CardDocument(BaseModel):
    """Structure d'une carte en base (collection nfc_cards)"""
    model_config = ConfigDict(extra="ignore")

    id: str
    slug: str
    company_id: str
    # Texte libre en base (null, "", "suspended"...): tout ce qui n'est pas "active" est inactif
    status: Optional[str] = CardStatus.INACTIVE.value
    profile_id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    @property
    def is_active(self) -> bool:
        return self.status == CardStatus.ACTIVE.value
