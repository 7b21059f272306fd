"""ContactWriter: one row per (owner, email), duplicates are success."""

from cardlink.application import (
    AlreadyExists,
    ContactCreated,
    ContactWriter,
    StorageError,
    WriteFailed,
)
from cardlink.domain import ADDED_VIA_SHARE_CODE, TIER_A_PLAYER, TIER_ACQUAINTANCE, ContactCard
from cardlink.infrastructure import InMemoryContactRepository, InMemoryStore


def _bob(**overrides) -> ContactCard:
    fields = dict(owner_id="bob", name="Bob", email="bob@example.com", company="Acme")
    fields.update(overrides)
    return ContactCard(**fields)


class _BrokenRepository(InMemoryContactRepository):
    def add(self, contact):
        raise StorageError("connection reset")


def test_first_write_creates_row() -> None:
    store = InMemoryStore()
    writer = ContactWriter(store.contact_repository("alice"))
    result = writer.upsert_contact("alice", _bob(), TIER_A_PLAYER, ADDED_VIA_SHARE_CODE)
    assert isinstance(result, ContactCreated)
    assert result.name == "Bob"
    row = store.contacts[("alice", "bob@example.com")]
    assert row.id == result.contact_id
    assert row.tier == TIER_A_PLAYER
    assert row.company == "Acme"


def test_second_write_is_already_exists_and_keeps_one_row() -> None:
    store = InMemoryStore()
    writer = ContactWriter(store.contact_repository("alice"))
    writer.upsert_contact("alice", _bob(), TIER_ACQUAINTANCE, ADDED_VIA_SHARE_CODE)
    again = writer.upsert_contact(
        "alice", _bob(email="  BOB@Example.com "), TIER_A_PLAYER, ADDED_VIA_SHARE_CODE
    )
    assert again == AlreadyExists(owner_id="alice", email="bob@example.com")
    assert len(store.contacts) == 1
    # The existing row is not overwritten.
    assert store.contacts[("alice", "bob@example.com")].tier == TIER_ACQUAINTANCE


def test_write_outside_scope_is_write_failed() -> None:
    store = InMemoryStore()
    writer = ContactWriter(store.contact_repository("alice"))
    result = writer.upsert_contact("mallory", _bob(), TIER_ACQUAINTANCE, ADDED_VIA_SHARE_CODE)
    assert isinstance(result, WriteFailed)
    assert store.contacts == {}


def test_storage_error_is_write_failed() -> None:
    writer = ContactWriter(_BrokenRepository(InMemoryStore(), user_id="alice"))
    result = writer.upsert_contact("alice", _bob(), TIER_ACQUAINTANCE, ADDED_VIA_SHARE_CODE)
    assert result == WriteFailed(reason="Failed to add contact to your list.")
