"""
TapCard - Canal temps réel des leads (dashboard)
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
import logging

from services.realtime import notifier

logger = logging.getLogger("routes.realtime")

router = APIRouter(tags=["Realtime"])


@router.websocket("/ws/companies/{company_id}/leads")
async def lead_channel(websocket: WebSocket, company_id: str):
    # TODO: restreindre aux membres de l'entreprise une fois l'auth dashboard branchée sur ce service
    await websocket.accept()
    notifier.subscribe(company_id, websocket)
    try:
        while True:
            # Le client n'envoie rien d'utile; on attend la déconnexion
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        notifier.unsubscribe(company_id, websocket)
