"""
TapCard - Event Logger

Append-only analytics/audit trail (collection: events).
Single function to call from any route/service; events are never updated
or deleted by the pipeline.
"""

import asyncio
import logging
import re
from typing import Optional, Set

from config import db, now_iso, new_id
from models.event import EventType, DeviceClass

logger = logging.getLogger("event_logger")

_MOBILE_UA = re.compile(r"mobile", re.IGNORECASE)

# Strong refs so pending background writes are not garbage collected
_pending: Set[asyncio.Task] = set()


def classify_device(user_agent: Optional[str]) -> str:
    """Coarse device class from the User-Agent header (mobile / desktop)."""
    if user_agent and _MOBILE_UA.search(user_agent):
        return DeviceClass.MOBILE.value
    return DeviceClass.DESKTOP.value


async def log_event(
    event_type: EventType,
    company_id: str,
    profile_id: str = None,
    card_id: str = None,
    device: str = None,
    source: str = None,
    cta_type: str = None,
    metadata: dict = None
) -> dict:
    """
    Write a single event to the events collection.

    Args:
        event_type: profile_view | cta_click | nfc_tap | lead_submit | follow_up_sent
        company_id: owning company (always required)
        profile_id / card_id: optional scoping
        device: mobile | tablet | desktop
        source: nfc, utm_source value, ...
        cta_type: for cta_click only
        metadata: free-form dict (follow-up body, lead email, ...)
    """
    doc = {
        "id": new_id(),
        "event_type": EventType(event_type).value,
        "company_id": company_id,
        "profile_id": profile_id,
        "card_id": card_id,
        "device": device,
        "source": source,
        "cta_type": cta_type,
        "metadata": metadata or {},
        "created_at": now_iso()
    }
    await db.events.insert_one(doc)
    doc.pop("_id", None)
    return doc


async def _log_event_safely(**kwargs) -> None:
    try:
        await log_event(**kwargs)
    except Exception as e:
        logger.error(f"Event {kwargs.get('event_type')} non enregistré: {str(e)}")


def log_event_background(**kwargs) -> asyncio.Task:
    """
    Fire-and-forget event write.
    Failures are logged on their own channel and never reach the caller.
    """
    task = asyncio.create_task(_log_event_safely(**kwargs))
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task


async def drain_pending_events() -> None:
    """Wait for in-flight background event writes (shutdown, tests)."""
    if _pending:
        await asyncio.gather(*list(_pending), return_exceptions=True)
