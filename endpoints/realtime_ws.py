from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from endpoints.logs import log_action
from realtime import manager

router = APIRouter()


@router.websocket("/ws")
async def catalog_ws(websocket: WebSocket):
    """Live catalog updates. The server pushes ChangeEvents; clients may send 'ping'."""
    client = websocket.client.host if websocket.client else "unknown"
    await manager.connect(websocket)
    log_action("ws_connected", context={"client_ip": client, "connections": manager.connection_count})
    try:
        while True:
            message = await websocket.receive_text()
            if message == "ping":
                await websocket.send_json({"event": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        await manager.unregister(websocket)
        log_action("ws_disconnected", context={"client_ip": client, "connections": manager.connection_count})
