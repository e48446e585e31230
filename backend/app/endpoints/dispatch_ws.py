# app/endpoints/dispatch_ws.py
import logging

from fastapi import WebSocket, WebSocketDisconnect, status

from app.services.identity import resolve_connection_role

logger = logging.getLogger(__name__)


async def ws_dispatch(websocket: WebSocket):
    """
    Live request feed for a role partition (``/ws/dispatch?role=responder``).

    The connection joins the channel only once the handshake is accepted;
    a socket still connecting cannot be written to. Incoming messages are
    ignored; the loop only waits for the client to go away.
    """
    role = resolve_connection_role(websocket)
    if role is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    channel = websocket.app.state.dispatch
    await websocket.accept()
    channel.connect(websocket, role)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        channel.disconnect(websocket)
