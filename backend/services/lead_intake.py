"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  VALIDATION DES LEADS VISITEURS                                              ║
║                                                                              ║
║  Règles:                                                                     ║
║  - capture désactivée (layout) → capture_disabled, quels que soient champs  ║
║  - name: obligatoire, 1-100 caractères après trim                            ║
║  - email: obligatoire, format email, ≤ 255                                   ║
║  - phone: optionnel, ≤ 20, aucun format imposé, vide → None                  ║
║  - consent: strictement True, sinon consent_required                         ║
║                                                                              ║
║  Ordre d'erreur stable: name → email → phone → consent                       ║
║  Fonction pure: aucune écriture.                                             ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import re
from typing import Optional, Dict, Any

from models.lead import LeadSubmitPublic, NormalizedLead
from models.profile import ProfileLayout

NAME_MAX = 100
EMAIL_MAX = 255
PHONE_MAX = 20

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

CAPTURE_DISABLED = "capture_disabled"
INVALID_INPUT = "invalid_input"
CONSENT_REQUIRED = "consent_required"

MESSAGES = {
    "capture": "Captura de contatos desativada.",
    "name_required": "Nome obrigatório",
    "name_too_long": f"Nome deve ter no máximo {NAME_MAX} caracteres",
    "email_invalid": "Email inválido",
    "phone_too_long": f"Telefone deve ter no máximo {PHONE_MAX} caracteres",
    "consent": "Consentimento obrigatório",
}


class LeadValidationResult:
    """Résultat de la validation d'un lead visiteur"""

    def __init__(
        self,
        lead: Optional[NormalizedLead] = None,
        error_code: Optional[str] = None,
        field: Optional[str] = None,
        message: str = ""
    ):
        self.lead = lead
        self.error_code = error_code
        self.field = field
        self.message = message

    @property
    def ok(self) -> bool:
        return self.error_code is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.error_code,
            "field": self.field,
            "message": self.message
        }


def _fail(code: str, field: Optional[str], message_key: str) -> LeadValidationResult:
    return LeadValidationResult(error_code=code, field=field, message=MESSAGES[message_key])


def is_valid_email_format(email: str) -> bool:
    """Vérifie le format email basique"""
    if not email:
        return False
    return bool(EMAIL_PATTERN.match(email))


def validate_lead(data: LeadSubmitPublic, layout: ProfileLayout) -> LeadValidationResult:
    """
    Valide et normalise une soumission visiteur.
    Le gate layout est contrôlé en premier: le masquage du formulaire côté
    client ne suffit jamais.
    """
    if not layout.lead_capture_enabled:
        return _fail(CAPTURE_DISABLED, None, "capture")

    name = (data.name or "").strip()
    if not name:
        return _fail(INVALID_INPUT, "name", "name_required")
    if len(name) > NAME_MAX:
        return _fail(INVALID_INPUT, "name", "name_too_long")

    email = (data.email or "").strip()
    if len(email) > EMAIL_MAX or not is_valid_email_format(email):
        return _fail(INVALID_INPUT, "email", "email_invalid")

    phone = (data.phone or "").strip()
    if len(phone) > PHONE_MAX:
        return _fail(INVALID_INPUT, "phone", "phone_too_long")

    if data.consent is not True:
        return _fail(CONSENT_REQUIRED, "consent", "consent")

    return LeadValidationResult(
        lead=NormalizedLead(name=name, email=email, phone=phone or None, consent=True)
    )
