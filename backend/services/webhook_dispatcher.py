"""
Service de fan-out des leads vers les webhooks des entreprises

Format payload:
    {
        "event": "lead.created",
        "timestamp": "2026-01-01T10:00:00+00:00",
        "company_id": "...",
        "lead": {"name": "...", "email": "...", "phone": null, "profile_id": "..."}
    }

- Auth: header X-Webhook-Secret si un secret est configuré
- Chaque endpoint est tenté exactement une fois, en parallèle
- Un échec (timeout, réseau, non-2xx) n'empêche jamais les autres envois
- Pas de retry: un échec est terminal pour cette tentative
"""

import asyncio
import logging
from typing import List, Optional, Dict, Any

import httpx

import config
from config import db, now_iso
from models.integration import Integration, IntegrationType, parse_integration
from models.lead import LeadDocument

logger = logging.getLogger("webhook_dispatcher")

SECRET_HEADER = "X-Webhook-Secret"


def http_client() -> httpx.AsyncClient:
    """Client HTTP des livraisons (timeout borné par endpoint)"""
    return httpx.AsyncClient(timeout=config.WEBHOOK_TIMEOUT_SECONDS)


async def get_active_webhooks(company_id: str) -> List[Integration]:
    """Intégrations webhook actives d'une entreprise"""
    docs = await db.integrations.find(
        {"company_id": company_id, "type": IntegrationType.WEBHOOK.value, "active": True},
        {"_id": 0}
    ).to_list(None)
    return [i for i in (parse_integration(d) for d in docs) if i.is_webhook and i.active]


def build_lead_payload(lead: LeadDocument, event: str = "lead.created") -> Dict[str, Any]:
    return {
        "event": event,
        "timestamp": now_iso(),
        "company_id": lead.company_id,
        "lead": {
            "name": lead.name,
            "email": lead.email,
            "phone": lead.phone or None,
            "profile_id": lead.profile_id or None,
        }
    }


def _headers(integration: Integration) -> Dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if integration.config.secret:
        headers[SECRET_HEADER] = integration.config.secret
    return headers


async def deliver(
    client: httpx.AsyncClient,
    integration: Integration,
    payload: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Livre un payload à un webhook.

    Returns:
        {"id", "status": success|error|timeout|connection_error|skipped,
         "status_code"?, "error"?}
    """
    url = integration.config.url
    if not url:
        return {"id": integration.id, "status": "skipped", "reason": "no url"}

    try:
        resp = await client.post(url, json=payload, headers=_headers(integration))
    except httpx.TimeoutException as e:
        logger.warning(f"Webhook {integration.id} timeout: {url}")
        return {"id": integration.id, "status": "timeout", "error": str(e) or "timeout"}
    except httpx.HTTPError as e:
        logger.warning(f"Webhook {integration.id} connection error: {url}")
        return {"id": integration.id, "status": "connection_error", "error": str(e)}

    if resp.is_success:
        return {"id": integration.id, "status": "success", "status_code": resp.status_code}

    logger.warning(f"Webhook {integration.id} rejected ({resp.status_code}): {url}")
    return {"id": integration.id, "status": "error", "status_code": resp.status_code}


async def dispatch_lead_webhooks(
    lead: LeadDocument,
    client: Optional[httpx.AsyncClient] = None
) -> Dict[str, Any]:
    """
    Envoie le lead à tous les webhooks actifs de son entreprise.

    Returns: {"dispatched": nb 2xx, "total": nb intégrations, "results": [...]}
    """
    integrations = await get_active_webhooks(lead.company_id)
    if not integrations:
        return {"dispatched": 0, "total": 0, "results": []}

    payload = build_lead_payload(lead)

    owns_client = client is None
    if owns_client:
        client = http_client()

    try:
        outcomes = await asyncio.gather(
            *(deliver(client, integration, payload) for integration in integrations),
            return_exceptions=True
        )
    finally:
        if owns_client:
            await client.aclose()

    results = []
    for integration, outcome in zip(integrations, outcomes):
        if isinstance(outcome, Exception):
            logger.error(f"Webhook {integration.id} error: {str(outcome)}")
            outcome = {"id": integration.id, "status": "error", "error": str(outcome)}
        results.append(outcome)

    dispatched = sum(1 for r in results if r["status"] == "success")
    logger.info(f"Dispatched {dispatched}/{len(integrations)} webhooks for company {lead.company_id}")

    return {"dispatched": dispatched, "total": len(integrations), "results": results}


# ==================== TEST MANUEL ====================

async def get_webhook(integration_id: str) -> Optional[Integration]:
    doc = await db.integrations.find_one(
        {"id": integration_id, "type": IntegrationType.WEBHOOK.value},
        {"_id": 0}
    )
    return parse_integration(doc) if doc else None


async def send_test_webhook(
    integration: Integration,
    client: Optional[httpx.AsyncClient] = None
) -> Dict[str, Any]:
    """
    Envoi à la demande d'un payload de test vers un webhook (actif ou non).
    """
    payload = {
        "event": "test",
        "timestamp": now_iso(),
        "company_id": integration.company_id,
        "lead": {"name": "Teste", "email": "teste@exemplo.com", "phone": None},
    }

    owns_client = client is None
    if owns_client:
        client = http_client()
    try:
        result = await deliver(client, integration, payload)
    finally:
        if owns_client:
            await client.aclose()

    return {
        "success": result["status"] == "success",
        "status": result.get("status_code"),
        "result": result["status"]
    }
