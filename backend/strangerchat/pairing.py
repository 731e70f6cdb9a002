"""
Пейринг собеседников (in-memory): одно место ожидания, счётчики присутствия.
Все операции синхронные и выполняются в event loop без await,
поэтому каждое событие применяется целиком до начала следующего.
"""
import logging
from typing import Any, Protocol

from .constants import (
    EVENT_CHAT,
    EVENT_PAIRED,
    EVENT_PRESENCE_STATS,
    EVENT_SESSION_ENDED,
    EVENT_TYPING,
    ROLE_PARTNER,
    ROLE_SELF,
    Role,
)
from .registry import Connection, ConnectionRegistry

logger = logging.getLogger(__name__)


class Broadcaster(Protocol):
    def send_to(self, conn_id: str, event: str, payload: dict[str, Any]) -> bool: ...

    def broadcast_all(self, event: str, payload: dict[str, Any]) -> None: ...


def session_ended_payload(role: Role, reason: str | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"role": role}
    if reason is not None:
        payload["reason"] = reason
    return payload


class Matchmaker:
    def __init__(self, broadcaster: Broadcaster, registry: ConnectionRegistry | None = None):
        self.broadcaster = broadcaster
        self.registry = registry if registry is not None else ConnectionRegistry()
        self.waiting_id: str | None = None
        self.active_count = 0
        self.total_count = 0

    def snapshot(self) -> dict[str, Any]:
        return {
            "active": self.active_count,
            "total": self.total_count,
            "waiting": self.waiting_id is not None,
        }

    def broadcast_stats(self) -> None:
        self.broadcaster.broadcast_all(EVENT_PRESENCE_STATS, {"active_count": self.active_count})

    def connect(self, conn_id: str) -> Connection:
        """
        Новое соединение: регистрация и сразу попытка найти собеседника.
        DuplicateIdError пробрасывается — регистрацию нужно прервать.
        """
        conn = self.registry.register(conn_id)
        self.total_count += 1
        logger.info("%s connect (total=%s)", conn_id, self.total_count)
        self.join_or_pair(conn_id)
        return conn

    def join_or_pair(self, conn_id: str) -> str | None:
        """
        Поставить в ожидание или сразу связать с ждущим.
        Возвращает id собеседника, если пара составлена, иначе None.
        """
        conn = self.registry.get(conn_id)
        partner_id = None
        if conn.is_paired:
            logger.warning("%s asked for a partner while paired with %s", conn_id, conn.partner_id)
        elif self.waiting_id is not None and self.waiting_id != conn_id:
            partner = self.registry.get(self.waiting_id)
            self._pair(conn, partner)
            partner_id = partner.id
        else:
            self.waiting_id = conn_id
            logger.info("%s waiting for a partner", conn_id)
        self.broadcast_stats()
        return partner_id

    def _pair(self, conn: Connection, partner: Connection) -> None:
        conn.partner_id = partner.id
        conn.is_typing = False
        partner.partner_id = conn.id
        partner.is_typing = False
        self.waiting_id = None
        self.active_count += 2
        self.broadcaster.send_to(conn.id, EVENT_PAIRED, {})
        self.broadcaster.send_to(partner.id, EVENT_PAIRED, {})
        logger.info("paired %s with %s (active=%s)", conn.id, partner.id, self.active_count)

    def end_session(self, conn_id: str) -> None:
        """
        Добровольный выход из разговора без отключения.
        Обе стороны возвращаются в состояние "без собеседника", в очередь никто не встаёт.
        Ждущий (ещё без пары) просто покидает место ожидания.
        """
        conn = self.registry.get(conn_id)
        partner_id = conn.partner_id
        if self.waiting_id is not None and self.waiting_id in (conn_id, partner_id):
            self.waiting_id = None
        conn.unpair()
        if partner_id is not None:
            partner = self.registry.find(partner_id)
            if partner is not None:
                partner.unpair()
                self.broadcaster.send_to(partner_id, EVENT_SESSION_ENDED, session_ended_payload(ROLE_PARTNER))
            self.active_count -= 2
            logger.info("%s ended session with %s (active=%s)", conn_id, partner_id, self.active_count)
        self.broadcaster.send_to(conn_id, EVENT_SESSION_ENDED, session_ended_payload(ROLE_SELF))
        self.broadcast_stats()

    def disconnect(self, conn_id: str, reason: str | None = None) -> bool:
        """
        Соединение закрыто транспортом. Повторный вызов для того же id ничего не делает.
        Возвращает True если запись была удалена.
        """
        conn = self.registry.find(conn_id)
        if conn is None:
            logger.info("%s disconnect ignored: not registered", conn_id)
            return False
        partner_id = conn.partner_id
        if partner_id is not None:
            partner = self.registry.find(partner_id)
            if partner is not None:
                self.broadcaster.send_to(
                    partner_id,
                    EVENT_SESSION_ENDED,
                    session_ended_payload(ROLE_PARTNER, reason),
                )
                partner.unpair()
            self.active_count -= 2
        self.registry.remove(conn_id)
        # Ожидание и пара взаимоисключающие, а ожидание не входит в active_count
        if self.waiting_id is not None and self.waiting_id in (conn_id, partner_id):
            self.waiting_id = None
        self.total_count -= 1
        logger.info("%s disconnect reason=%s (total=%s)", conn_id, reason or "", self.total_count)
        self.broadcast_stats()
        return True

    def chat(self, conn_id: str, message: Any) -> bool:
        partner = self._registered_partner(conn_id)
        if partner is None:
            logger.debug("%s chat dropped: no partner", conn_id)
            return False
        self.broadcaster.send_to(partner.id, EVENT_CHAT, {"message": message})
        return True

    def typing(self, conn_id: str, is_typing: bool) -> bool:
        """Переслать смену состояния набора; повтор того же значения не отправляется."""
        partner = self._registered_partner(conn_id)
        if partner is None:
            return False
        conn = self.registry.get(conn_id)
        if conn.is_typing == is_typing:
            return False
        conn.is_typing = is_typing
        self.broadcaster.send_to(partner.id, EVENT_TYPING, {"is_typing": is_typing})
        return True

    def _registered_partner(self, conn_id: str) -> Connection | None:
        conn = self.registry.find(conn_id)
        if conn is None:
            return None
        return self.registry.find(conn.partner_id)
