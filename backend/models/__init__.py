"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  TapCard - Models Package                                                    ║
║                                                                              ║
║  Exports tous les modèles pour import facile                                 ║
║  from models import CardStatus, LeadDocument, EventType, etc.                ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

# Carte NFC
from .card import (
    CardStatus,
    CardDocument
)

# Profil / Entreprise / Layout
from .profile import (
    LAYOUT_DEFAULTS,
    DEFAULT_CTA_ORDER,
    ProfileDocument,
    CompanyDocument,
    ProfileLayout,
    resolve_layout
)

# Lead
from .lead import (
    LeadSubmitPublic,
    NormalizedLead,
    LeadDocument,
    FollowUpLead
)

# Events
from .event import (
    EventType,
    DeviceClass,
    CtaType,
    VALID_EVENT_TYPES
)

# Intégrations
from .integration import (
    IntegrationType,
    WebhookConfig,
    UnknownConfig,
    Integration,
    parse_integration
)
