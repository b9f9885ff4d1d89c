"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  TapCard - Modèles Profil / Entreprise / Layout                              ║
║                                                                              ║
║  RÈGLES:                                                                     ║
║  1. Seul un profil published=True est visible par un visiteur                ║
║  2. Un layout par entreprise (singleton), jamais par profil                  ║
║  3. Layout absent → tous les flags visibles, via LAYOUT_DEFAULTS             ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError


DEFAULT_CTA_ORDER = ["whatsapp", "instagram", "linkedin", "website"]

# Valeur par défaut de chaque flag quand le layout est absent ou incomplet
LAYOUT_DEFAULTS: Dict[str, Any] = {
    "show_bio": True,
    "show_company_header": True,
    "show_contact": True,
    "show_lead_form": True,
    "show_save_contact": True,
    "show_social": True,
    "show_stats_row": True,
    "show_video": True,
    "cta_order": DEFAULT_CTA_ORDER,
    "font_style": "default",
    "button_style": "rounded",
    "background_style": "solid",
}


class ProfileDocument(BaseModel):
    """Profil public (collection profiles)"""
    model_config = ConfigDict(extra="ignore")

    id: str
    company_id: str
    name: str
    role_title: Optional[str] = None
    bio: Optional[str] = None
    whatsapp: Optional[str] = None
    instagram: Optional[str] = None
    linkedin: Optional[str] = None
    website: Optional[str] = None
    photo_url: Optional[str] = None
    video_url: Optional[str] = None
    published: bool = False


class CompanyDocument(BaseModel):
    """Entreprise propriétaire des profils (collection companies)"""
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    follow_up_email: bool = False
    primary_color: Optional[str] = None
    hide_branding: bool = False


class ProfileLayout(BaseModel):
    """Layout résolu: chaque flag a toujours une valeur explicite"""
    model_config = ConfigDict(extra="ignore")

    company_id: Optional[str] = None
    show_bio: bool = True
    show_company_header: bool = True
    show_contact: bool = True
    show_lead_form: bool = True
    show_save_contact: bool = True
    show_social: bool = True
    show_stats_row: bool = True
    show_video: bool = True
    cta_order: List[str] = Field(default_factory=lambda: list(DEFAULT_CTA_ORDER))
    font_style: str = "default"
    button_style: str = "rounded"
    background_style: str = "solid"

    @property
    def lead_capture_enabled(self) -> bool:
        return self.show_lead_form is True


_FLAG = TypeAdapter(bool)


def _as_flag(value: Any, default: bool) -> bool:
    """Flag stocké → bool (True/False, 0/1, "true"/"false", "yes"/"no"...); illisible ou null → défaut"""
    if value is None:
        return default
    try:
        return _FLAG.validate_python(value)
    except ValidationError:
        return default


def resolve_layout(layout_doc: Optional[dict], company_id: Optional[str] = None) -> ProfileLayout:
    """
    Résout la configuration d'affichage d'une entreprise.

    Chaque flag absent, null ou illisible prend la valeur de LAYOUT_DEFAULTS.
    Les flags show_* passent par la conversion booléenne pydantic: un
    show_lead_form stocké False, 0 ou "false" désactive la capture.
    """
    stored = layout_doc or {}
    resolved = {}
    for key, default in LAYOUT_DEFAULTS.items():
        value = stored.get(key)
        if isinstance(default, bool):
            value = _as_flag(value, default)
        elif value is None:
            value = list(default) if isinstance(default, list) else default
        resolved[key] = value

    resolved["company_id"] = stored.get("company_id", company_id)
    return ProfileLayout(**resolved)
