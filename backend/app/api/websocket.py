"""WebSocket endpoints for real-time communication."""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from backend.app.websocket.manager import CHANNELS, manager

router = APIRouter(tags=["websocket"])


@router.websocket("/ws/{channel}")
async def websocket_endpoint(websocket: WebSocket, channel: str):
    """
    WebSocket endpoint for real-time portal updates.

    Channels and the events sent on them:
    - reports: report_updated (teaser resolved), reports_changed
    - ideas: idea_updated (title resolved)
    """
    if channel not in CHANNELS:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await manager.connect(websocket, channel)

    try:
        # Keep connection alive and listen for client messages
        while True:
            data = await websocket.receive_text()

            # Heartbeat
            if data == "ping":
                await websocket.send_json({"type": "pong"})

    except WebSocketDisconnect:
        manager.disconnect(websocket, channel)
