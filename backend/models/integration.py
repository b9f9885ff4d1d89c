"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  TapCard - Intégrations externes                                             ║
║                                                                              ║
║  Le document stocke un sac "config" libre; il est converti en variante       ║
║  typée par type d'intégration (seul "webhook" est utilisé).                  ║
║  Seules les intégrations webhook active=True reçoivent le fan-out.           ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from typing import Optional, Union
from pydantic import BaseModel
from enum import Enum


class IntegrationType(str, Enum):
    WEBHOOK = "webhook"


class WebhookConfig(BaseModel):
    """Config typée d'un webhook"""
    url: Optional[str] = None
    secret: Optional[str] = None


class UnknownConfig(BaseModel):
    """Config d'un type d'intégration non géré par le pipeline"""
    raw: dict = {}


class Integration(BaseModel):
    id: str
    company_id: str
    type: str
    active: bool = False
    config: Union[WebhookConfig, UnknownConfig]

    @property
    def is_webhook(self) -> bool:
        return self.type == IntegrationType.WEBHOOK.value and isinstance(self.config, WebhookConfig)


def parse_integration(doc: dict) -> Integration:
    """Convertit un document brut en Integration typée"""
    raw_config = doc.get("config") or {}
    if doc.get("type") == IntegrationType.WEBHOOK.value:
        config = WebhookConfig(
            url=raw_config.get("url") or None,
            secret=raw_config.get("secret") or None,
        )
    else:
        config = UnknownConfig(raw=raw_config)

    return Integration(
        id=doc["id"],
        company_id=doc.get("company_id", ""),
        type=doc.get("type", ""),
        active=bool(doc.get("active", False)),
        config=config,
    )
