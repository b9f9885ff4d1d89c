"""
TapCard - Notifications temps réel des nouveaux leads

Un change stream MongoDB sur la collection leads (inserts uniquement)
pousse {"type": "lead.created", "name", "email"} aux sessions dashboard
abonnées au canal de l'entreprise.

Best-effort: au plus une fois par session connectée, pas d'historique.
Une session qui échoue à l'envoi est retirée.
"""

import asyncio
import logging
from collections import defaultdict
from typing import Dict, Set, Optional, Any

from pymongo.errors import PyMongoError

logger = logging.getLogger("realtime")

INSERT_ONLY_PIPELINE = [{"$match": {"operationType": "insert"}}]


class LeadNotifier:
    """Canaux par entreprise → sessions dashboard (objets avec send_json)"""

    def __init__(self):
        self._channels: Dict[str, Set[Any]] = defaultdict(set)
        self._task: Optional[asyncio.Task] = None

    def subscribe(self, company_id: str, session) -> None:
        self._channels[company_id].add(session)
        logger.info(f"Session dashboard abonnée à {company_id} ({len(self._channels[company_id])} actives)")

    def unsubscribe(self, company_id: str, session) -> None:
        sessions = self._channels.get(company_id)
        if not sessions:
            return
        sessions.discard(session)
        if not sessions:
            del self._channels[company_id]

    def session_count(self, company_id: str) -> int:
        return len(self._channels.get(company_id, ()))

    async def publish(self, company_id: str, message: dict) -> int:
        """Envoie à chaque session du canal; retourne le nombre d'envois réussis"""
        delivered = 0
        for session in list(self._channels.get(company_id, ())):
            try:
                await session.send_json(message)
                delivered += 1
            except Exception as e:
                logger.info(f"Session dashboard retirée ({company_id}): {str(e)}")
                self.unsubscribe(company_id, session)
        return delivered

    async def handle_change(self, change: dict) -> int:
        if change.get("operationType") != "insert":
            return 0
        lead = change.get("fullDocument") or {}
        company_id = lead.get("company_id")
        if not company_id:
            return 0
        return await self.publish(company_id, {
            "type": "lead.created",
            "name": lead.get("name"),
            "email": lead.get("email"),
        })

    async def watch(self, collection) -> None:
        """Consomme le change stream jusqu'à annulation"""
        try:
            async with collection.watch(INSERT_ONLY_PIPELINE) as stream:
                logger.info("Change stream leads démarré")
                async for change in stream:
                    try:
                        await self.handle_change(change)
                    except Exception as e:
                        logger.error(f"Notification lead échouée: {str(e)}")
        except PyMongoError as e:
            # Standalone MongoDB: pas de change streams
            logger.warning(f"Change stream leads indisponible: {str(e)}")

    def start(self, collection) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.watch(collection))
        return self._task

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None


notifier = LeadNotifier()
