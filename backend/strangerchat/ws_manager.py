"""
Менеджер WebSocket: подключения по id, доставка событий конкретному соединению и всем.
Отправка не блокирует пейринг: события кладутся в очередь соединения,
отдельная задача на каждое соединение пишет их в сокет.
"""
import asyncio
import logging
from typing import Any

from fastapi import WebSocket

from .registry import DuplicateIdError

logger = logging.getLogger(__name__)


class Connection:
    def __init__(self, ws: WebSocket, conn_id: str):
        self.ws = ws
        self.conn_id = conn_id
        self.outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self.writer: asyncio.Task | None = None


class WSManager:
    def __init__(self):
        self._by_id: dict[str, Connection] = {}

    def __contains__(self, conn_id: object) -> bool:
        return conn_id in self._by_id

    def connect(self, ws: WebSocket, conn_id: str) -> Connection:
        if conn_id in self._by_id:
            raise DuplicateIdError(conn_id)
        conn = Connection(ws, conn_id)
        self._by_id[conn_id] = conn
        conn.writer = asyncio.create_task(self._write_loop(conn))
        return conn

    def disconnect(self, conn_id: str) -> None:
        conn = self._by_id.pop(conn_id, None)
        if conn and conn.writer:
            conn.writer.cancel()

    def send_to(self, conn_id: str, event: str, payload: dict[str, Any]) -> bool:
        conn = self._by_id.get(conn_id)
        if not conn:
            return False
        conn.outbox.put_nowait({"type": event, **payload})
        return True

    def broadcast_all(self, event: str, payload: dict[str, Any]) -> None:
        msg = {"type": event, **payload}
        for conn in list(self._by_id.values()):
            conn.outbox.put_nowait(msg)

    async def _write_loop(self, conn: Connection) -> None:
        """
        Писать события в сокет по порядку. При ошибке записи соединение
        убирается из рассылки и закрывается: цикл чтения получит отключение
        и снимет его с пейринга.
        """
        while True:
            msg = await conn.outbox.get()
            try:
                await conn.ws.send_json(msg)
            except Exception as e:
                logger.warning("send to %s: %s, closing", conn.conn_id, e)
                break
        if self._by_id.get(conn.conn_id) is conn:
            del self._by_id[conn.conn_id]
        try:
            await conn.ws.close()
        except Exception as e:
            logger.info("close %s: %s", conn.conn_id, e)
