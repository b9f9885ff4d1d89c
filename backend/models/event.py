"""
TapCard - Events analytiques (append-only)
"""

from enum import Enum


class EventType(str, Enum):
    PROFILE_VIEW = "profile_view"
    CTA_CLICK = "cta_click"
    NFC_TAP = "nfc_tap"
    LEAD_SUBMIT = "lead_submit"
    FOLLOW_UP_SENT = "follow_up_sent"


class DeviceClass(str, Enum):
    MOBILE = "mobile"
    TABLET = "tablet"
    DESKTOP = "desktop"


class CtaType(str, Enum):
    WHATSAPP = "whatsapp"
    INSTAGRAM = "instagram"
    LINKEDIN = "linkedin"
    WEBSITE = "website"
    SAVE_CONTACT = "save_contact"


VALID_EVENT_TYPES = [e.value for e in EventType]
