"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  TapCard - Modèle Lead                                                       ║
║                                                                              ║
║  RÈGLES FONDAMENTALES:                                                       ║
║  1. consent doit être True au moment de l'insertion                          ║
║  2. company_id obligatoire, profile_id / card_id optionnels                  ║
║  3. phone absent → None (jamais "")                                          ║
║  4. created_at fait foi pour la fenêtre anti-rejeu                           ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from typing import Optional, Any
from pydantic import BaseModel, ConfigDict


class LeadSubmitPublic(BaseModel):
    """
    Lead soumis depuis une page profil publique.
    Les champs sont bruts: la validation est faite par services.lead_intake
    pour garder un ordre d'erreur stable (name → email → phone → consent).
    """
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    # Brut: seul le booléen JSON true est accepté par validate_lead (pas de coercion "1", "yes")
    consent: Any = None
    card_id: Optional[str] = None


class NormalizedLead(BaseModel):
    """Lead validé et normalisé, prêt pour la persistance"""
    name: str
    email: str
    phone: Optional[str] = None
    consent: bool = True


class LeadDocument(BaseModel):
    """
    Structure complète d'un lead en base de données
    """
    model_config = ConfigDict(extra="ignore")

    id: str
    company_id: str
    profile_id: Optional[str] = None
    card_id: Optional[str] = None

    name: str
    email: str
    phone: Optional[str] = None
    consent: bool = True

    created_at: str = ""
    updated_at: str = ""


class FollowUpLead(BaseModel):
    """Lead passé directement au composeur de relance"""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    profile_id: Optional[str] = None
