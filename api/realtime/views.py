# api/realtime/views.py
"""
WebSocket channel for live inventory and workshop events.
"""
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from core.notifier import Notifier

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    Receive ``bike:*`` and ``workorder:*`` events. Clients may send
    ``{"type": "ping"}`` and get a ``pong`` back.
    """
    notifier: Notifier = websocket.app.state.notifier
    client_ip = websocket.client.host if websocket.client else None

    await websocket.accept()
    if not await notifier.connect(websocket, client_ip):
        return

    try:
        while True:
            raw = await websocket.receive_text()
            await notifier.handle_message(websocket, raw)
    except WebSocketDisconnect:
        pass
    except Exception as exc:
        logger.error("WebSocket error: %s", exc, exc_info=True)
    finally:
        await notifier.disconnect(websocket)
