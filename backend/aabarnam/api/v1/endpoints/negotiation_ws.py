"""
Negotiation WebSocket endpoint.

WHAT: Per-connection bargaining channel
WHY: The customer chats with the manager and sees the price move live
HOW: One NegotiationSession per socket, registered on app.state.sessions;
     JSON frames {"event": name, "data": payload} both ways
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from ....core.session_manager import SessionManager
from ....middleware.error_handler import status_for
from ....models.api_schemas import InboundFrame, SendMessagePayload, StartNegotiationPayload
from ....negotiation.session import NegotiationSession
from ....utils.exceptions import BusinessException
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


async def _dispatch(session: NegotiationSession, frame: InboundFrame) -> bool:
    """Route one inbound frame. Returns False for an unknown event."""
    if frame.event == "start_negotiation":
        payload = StartNegotiationPayload.model_validate(frame.data)
        await session.start(payload.product_id)
    elif frame.event == "send_message":
        payload = SendMessagePayload.model_validate(frame.data)
        await session.user_message(payload.text)
    elif frame.event == "user_hesitating":
        await session.hesitate()
    elif frame.event == "user_leaving":
        await session.leaving_intent()
    else:
        return False
    return True


@router.websocket("/ws/negotiate")
async def negotiate(websocket: WebSocket):
    """
    Bargaining channel.

    Inbound events: start_negotiation{product_id}, send_message{text},
    user_hesitating{}, user_leaving{}.
    Outbound events: system_message{text}, ai_typing (bool),
    price_update{message, status, breakdown}, error{code, message}.
    """
    await websocket.accept()
    sessions: SessionManager = websocket.app.state.sessions

    async def emit(event: str, data) -> None:
        await websocket.send_json({"event": event, "data": data})

    async def send_error(code: str, message: str, status: int = 400) -> None:
        await emit("error", {"code": code, "message": message, "status": status})

    session = sessions.create(emit)
    logger.info(f"Negotiation socket connected: {session.session_id}")

    try:
        while True:
            try:
                raw = await websocket.receive_json()
            except ValueError:
                await send_error("MALFORMED_FRAME", "Frames must be JSON objects")
                continue

            try:
                frame = InboundFrame.model_validate(raw)
                if not await _dispatch(session, frame):
                    await send_error("UNKNOWN_EVENT", f"Unknown event: {frame.event}")
            except ValidationError as e:
                await send_error("INVALID_PAYLOAD", f"Invalid frame: {e.error_count()} error(s)")
            except BusinessException as e:
                logger.warning(f"Session {session.session_id}: {e.code} - {e.message}")
                await send_error(e.code, e.message, status_for(e))

    except WebSocketDisconnect:
        logger.info(f"Negotiation socket disconnected: {session.session_id}")
    finally:
        await sessions.remove(session.session_id)
