import pytest

from strangerchat.registry import ConnectionRegistry, DuplicateIdError, NotFoundError


def test_register_creates_default_entry() -> None:
    registry = ConnectionRegistry()

    conn = registry.register("a")

    assert conn.id == "a"
    assert conn.partner_id is None
    assert conn.is_typing is False
    assert "a" in registry
    assert len(registry) == 1


def test_register_duplicate_raises() -> None:
    registry = ConnectionRegistry()
    registry.register("a")

    with pytest.raises(DuplicateIdError) as exc:
        registry.register("a")

    assert exc.value.conn_id == "a"
    assert len(registry) == 1


def test_get_and_remove_missing_raise_not_found() -> None:
    registry = ConnectionRegistry()

    with pytest.raises(NotFoundError):
        registry.get("ghost")
    with pytest.raises(NotFoundError):
        registry.remove("ghost")


def test_find_returns_none_for_missing_or_none() -> None:
    registry = ConnectionRegistry()
    registry.register("a")

    assert registry.find("a") is registry.get("a")
    assert registry.find("ghost") is None
    assert registry.find(None) is None


def test_remove_deletes_entry() -> None:
    registry = ConnectionRegistry()
    registry.register("a")
    registry.register("b")

    removed = registry.remove("a")

    assert removed.id == "a"
    assert "a" not in registry
    assert [c.id for c in registry] == ["b"]


def test_unpair_resets_partner_and_typing() -> None:
    registry = ConnectionRegistry()
    conn = registry.register("a")
    conn.partner_id = "b"
    conn.is_typing = True

    conn.unpair()

    assert conn.partner_id is None
    assert conn.is_typing is False
    assert not conn.is_paired
