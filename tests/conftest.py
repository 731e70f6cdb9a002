from __future__ import annotations

from typing import Any

import pytest

from strangerchat.pairing import Matchmaker


class FakeBroadcaster:
    """Records everything the matchmaker tries to deliver."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, dict[str, Any]]] = []
        self.broadcasts: list[tuple[str, dict[str, Any]]] = []

    def send_to(self, conn_id: str, event: str, payload: dict[str, Any]) -> bool:
        self.sent.append((conn_id, event, payload))
        return True

    def broadcast_all(self, event: str, payload: dict[str, Any]) -> None:
        self.broadcasts.append((event, payload))

    def events_for(self, conn_id: str, event: str | None = None) -> list[dict[str, Any]]:
        return [p for target, e, p in self.sent if target == conn_id and (event is None or e == event)]

    def last_active_count(self) -> int:
        event, payload = self.broadcasts[-1]
        assert event == "presence_stats"
        return payload["active_count"]

    def clear(self) -> None:
        self.sent.clear()
        self.broadcasts.clear()


def assert_invariants(mm: Matchmaker) -> None:
    conns = list(mm.registry)
    ids = {c.id for c in conns}
    paired = [c for c in conns if c.partner_id is not None]

    for conn in paired:
        assert conn.partner_id in ids
        assert mm.registry.get(conn.partner_id).partner_id == conn.id
        assert conn.partner_id != conn.id

    assert mm.active_count >= 0
    assert mm.active_count % 2 == 0
    assert mm.active_count == len(paired)
    assert mm.total_count == len(conns)

    if mm.waiting_id is not None:
        assert mm.waiting_id in ids
        assert mm.registry.get(mm.waiting_id).partner_id is None
        assert all(c.partner_id != mm.waiting_id for c in conns)


@pytest.fixture
def broadcaster() -> FakeBroadcaster:
    return FakeBroadcaster()


@pytest.fixture
def mm(broadcaster: FakeBroadcaster) -> Matchmaker:
    return Matchmaker(broadcaster)
