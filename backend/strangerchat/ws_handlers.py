"""
Обработка сообщений WebSocket: new_partner, end_session, chat, typing.
Соединение сразу ставится в пейринг при подключении, снимается при отключении.
"""
import json
import logging
import uuid
from typing import Any, Callable

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect

from .constants import (
    CLOSE_DUPLICATE_ID,
    EVENT_CHAT,
    EVENT_END_SESSION,
    EVENT_NEW_PARTNER,
    EVENT_TYPING,
)
from .pairing import Matchmaker
from .registry import DuplicateIdError, NotFoundError
from .ws_manager import WSManager

logger = logging.getLogger(__name__)

Handler = Callable[[Matchmaker, str, dict[str, Any]], None]


def _on_new_partner(mm: Matchmaker, conn_id: str, data: dict[str, Any]) -> None:
    mm.join_or_pair(conn_id)


def _on_end_session(mm: Matchmaker, conn_id: str, data: dict[str, Any]) -> None:
    mm.end_session(conn_id)


def _on_chat(mm: Matchmaker, conn_id: str, data: dict[str, Any]) -> None:
    if "message" not in data:
        logger.warning("WS: chat without message from %s", conn_id)
        return
    mm.chat(conn_id, data["message"])


def _on_typing(mm: Matchmaker, conn_id: str, data: dict[str, Any]) -> None:
    is_typing = data.get("is_typing")
    if not isinstance(is_typing, bool):
        logger.warning("WS: typing with non-bool is_typing=%r from %s", is_typing, conn_id)
        return
    mm.typing(conn_id, is_typing)


HANDLERS: dict[str, Handler] = {
    EVENT_NEW_PARTNER: _on_new_partner,
    EVENT_END_SESSION: _on_end_session,
    EVENT_CHAT: _on_chat,
    EVENT_TYPING: _on_typing,
}


def dispatch(mm: Matchmaker, conn_id: str, event: str | None, data: dict[str, Any]) -> bool:
    """
    Вызвать операцию пейринга для события.
    Ошибки логируются здесь и не прерывают обработку следующих сообщений.
    Возвращает True если обработчик отработал без ошибок.
    """
    handler = HANDLERS.get(event) if event else None
    if handler is None:
        logger.warning("WS: unknown event %r from %s", event, conn_id)
        return False
    try:
        handler(mm, conn_id, data)
    except NotFoundError as e:
        logger.info("WS: %s ignored: %s", event, e)
        return False
    except Exception:
        logger.exception("WS: error handling %s from %s", event, conn_id)
        return False
    return True


def handle_ws_message(mm: Matchmaker, raw: str, conn_id: str) -> bool:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("WS: invalid JSON from %s: %s", conn_id, e)
        return False
    if not isinstance(data, dict):
        logger.warning("WS: expected JSON object from %s", conn_id)
        return False
    t = data.get("type")
    logger.debug("WS: msg from %s type=%s", conn_id, t)
    return dispatch(mm, conn_id, t, data)


async def ws_loop(ws: WebSocket, mm: Matchmaker, manager: WSManager) -> None:
    """
    Принять соединение, выдать id, поставить в пейринг и читать сообщения до отключения.
    """
    conn_id = uuid.uuid4().hex
    attached = registered = False
    reason = None
    try:
        await ws.accept()
        try:
            manager.connect(ws, conn_id)
            attached = True
            mm.connect(conn_id)
        except DuplicateIdError:
            logger.error("WS: duplicate connection id %s, closing %s", conn_id, CLOSE_DUPLICATE_ID)
            await ws.close(code=CLOSE_DUPLICATE_ID)
            return
        registered = True
        while True:
            msg = await ws.receive_text()
            handle_ws_message(mm, msg, conn_id)
    except WebSocketDisconnect as e:
        reason = e.reason or f"code {e.code}"
        logger.info("WS: client disconnected code=%s reason=%s conn_id=%s", e.code, e.reason or "", conn_id)
    except Exception as e:
        reason = str(e) or type(e).__name__
        logger.exception("WS: error conn_id=%s: %s", conn_id, e)
    finally:
        if registered:
            mm.disconnect(conn_id, reason)
        if attached:
            manager.disconnect(conn_id)
