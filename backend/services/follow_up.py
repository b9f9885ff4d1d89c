"""
Service de rédaction des emails de relance (IA)

- follow_up_email désactivé → {"sent": False, "reason": "disabled"}, aucun appel IA
- clé IA absente          → {"sent": False, "reason": "not_configured"}
- échec IA                → {"sent": False, "reason": "generation_failed"}
- succès                  → event follow_up_sent (trace durable) + corps généré

Aucun transport email: rédiger et tracer est la responsabilité ici.
Ne lève jamais vers l'appelant.
"""

import logging
from typing import Optional, Dict, Any

import httpx

import config
from config import db
from models.event import EventType
from models.lead import FollowUpLead
from services.event_logger import log_event

logger = logging.getLogger("follow_up")

MAX_TOKENS = 300


def http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=config.AI_TIMEOUT_SECONDS)


def build_messages(company_name: str, lead_name: str) -> list:
    return [
        {
            "role": "system",
            "content": (
                f"You are a professional follow-up email writer for {company_name}. "
                "Write a short, warm, personalized follow-up email in Portuguese (Brazilian). "
                "The email should thank the lead for connecting and express interest in keeping in touch. "
                "Keep it under 150 words. Return ONLY the email body text, no subject line, no greeting prefix."
            ),
        },
        {
            "role": "user",
            "content": (
                f'Write a follow-up email for a lead named "{lead_name}" '
                "who just shared their contact via our digital business card."
            ),
        },
    ]


async def generate_email_body(
    company_name: str,
    lead_name: str,
    client: httpx.AsyncClient
) -> Optional[str]:
    """Appel chat-completions; None si échec"""
    try:
        resp = await client.post(
            config.AI_GATEWAY_URL,
            json={
                "model": config.AI_MODEL,
                "messages": build_messages(company_name, lead_name),
                "max_tokens": MAX_TOKENS,
            },
            headers={
                "Authorization": f"Bearer {config.AI_API_KEY}",
                "Content-Type": "application/json"
            }
        )
    except httpx.HTTPError as e:
        logger.error(f"AI gateway unreachable: {str(e) or type(e).__name__}")
        return None

    if not resp.is_success:
        logger.error(f"AI gateway error {resp.status_code}: {resp.text[:200]}")
        return None

    try:
        data = resp.json()
        body = data["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        logger.error(f"AI gateway malformed response: {str(e)}")
        return None

    body = (body or "").strip()
    return body or None


async def compose_follow_up(
    company_id: str,
    lead: FollowUpLead,
    client: Optional[httpx.AsyncClient] = None
) -> Dict[str, Any]:
    """
    Rédige et trace la relance d'un lead pour une entreprise.
    """
    company = await db.companies.find_one({"id": company_id}, {"_id": 0})
    if not company or not company.get("follow_up_email"):
        return {"sent": False, "reason": "disabled"}

    if not config.AI_API_KEY:
        logger.error("AI_API_KEY non configurée")
        return {"sent": False, "reason": "not_configured"}

    owns_client = client is None
    if owns_client:
        client = http_client()
    try:
        email_body = await generate_email_body(company.get("name", ""), lead.name or "", client)
    finally:
        if owns_client:
            await client.aclose()

    if not email_body:
        return {"sent": False, "reason": "generation_failed"}

    try:
        await log_event(
            event_type=EventType.FOLLOW_UP_SENT,
            company_id=company_id,
            profile_id=lead.profile_id or None,
            metadata={
                "lead_email": lead.email,
                "lead_name": lead.name,
                "email_body": email_body,
            }
        )
    except Exception as e:
        logger.error(f"Event follow_up_sent non enregistré ({lead.email}): {str(e)}")
        return {"sent": False, "reason": "record_failed"}

    logger.info(f"Follow-up généré pour {lead.email} (company {company_id})")
    return {"sent": True, "email_body": email_body}
