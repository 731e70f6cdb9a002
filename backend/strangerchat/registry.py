"""
Реестр открытых соединений (in-memory).
Одна запись на соединение: собеседник и последнее объявленное состояние набора.
"""
from dataclasses import dataclass
from typing import Iterator


class RegistryError(Exception):
    pass


class DuplicateIdError(RegistryError):
    """Транспорт выдал id, который уже зарегистрирован."""

    def __init__(self, conn_id: str):
        super().__init__(f"connection {conn_id!r} is already registered")
        self.conn_id = conn_id


class NotFoundError(RegistryError):
    def __init__(self, conn_id: str):
        super().__init__(f"connection {conn_id!r} is not registered")
        self.conn_id = conn_id


@dataclass
class Connection:
    id: str
    partner_id: str | None = None
    is_typing: bool = False

    @property
    def is_paired(self) -> bool:
        return self.partner_id is not None

    def unpair(self) -> None:
        self.partner_id = None
        self.is_typing = False


class ConnectionRegistry:
    def __init__(self):
        self._by_id: dict[str, Connection] = {}

    def register(self, conn_id: str) -> Connection:
        if conn_id in self._by_id:
            raise DuplicateIdError(conn_id)
        conn = Connection(id=conn_id)
        self._by_id[conn_id] = conn
        return conn

    def get(self, conn_id: str) -> Connection:
        conn = self._by_id.get(conn_id)
        if conn is None:
            raise NotFoundError(conn_id)
        return conn

    def find(self, conn_id: str | None) -> Connection | None:
        """Запись или None: для мест, где отсутствие — ожидаемая гонка с disconnect."""
        if conn_id is None:
            return None
        return self._by_id.get(conn_id)

    def remove(self, conn_id: str) -> Connection:
        if conn_id not in self._by_id:
            raise NotFoundError(conn_id)
        return self._by_id.pop(conn_id)

    def __contains__(self, conn_id: object) -> bool:
        return conn_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[Connection]:
        return iter(list(self._by_id.values()))
