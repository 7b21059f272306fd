"""MutualLinkService end to end over one in-memory store."""

import dataclasses

from cardlink.application import (
    ElevatedContactBoundary,
    InvalidFormat,
    LinkOutcome,
    MutualLinkService,
    NotFound,
    RequesterCardMissing,
    SelfLinkRejected,
    WriteFailed,
)
from cardlink.application.dto import (
    LINK_COMPLETED,
    LINK_FAILED,
    LINK_PARTIAL,
    PARTIAL_LINK_MESSAGE,
    SIDE_ALREADY_EXISTED,
    SIDE_CREATED,
    SIDE_FAILED,
    SIDE_SKIPPED,
)
from cardlink.domain import (
    ADDED_VIA_MUTUAL_CONTACT,
    ADDED_VIA_QR_CODE,
    ADDED_VIA_SHARE_CODE,
    TIER_A_PLAYER,
    TIER_ACQUAINTANCE,
    ContactCard,
)
from cardlink.infrastructure import InMemoryStore


class _FailingReciprocal:
    def __init__(self):
        self.calls = []

    def write_reciprocal(self, caller_id, target, source):
        self.calls.append((caller_id, target.owner_id, source.owner_id))
        return WriteFailed(reason="boundary down")


def _store() -> InMemoryStore:
    store = InMemoryStore()
    cards = store.card_repository()
    cards.save(
        ContactCard(owner_id="alice", name="Alice", email="alice@example.com", share_code="0a0b0c0d")
    )
    cards.save(
        ContactCard(
            owner_id="bob",
            name="Bob",
            email="bob@example.com",
            share_code="a1b2c3d4",
            username="bobby",
            company="Acme",
        )
    )
    return store


def _service(store: InMemoryStore, requester: str = "alice", reciprocal=None) -> MutualLinkService:
    if reciprocal is None:
        reciprocal = ElevatedContactBoundary(store.card_repository(), store.contact_repository())
    return MutualLinkService(
        requester,
        store.card_repository(requester),
        store.contact_repository(requester),
        reciprocal,
    )


def test_scan_of_public_url_completes_mutual_link() -> None:
    store = _store()
    outcome = _service(store).link_from_scan("https://app.example/public/a1b2c3d4")

    assert isinstance(outcome, LinkOutcome)
    assert outcome.status == LINK_COMPLETED
    assert outcome.own_side == SIDE_CREATED
    assert outcome.counterpart_side == SIDE_CREATED
    assert outcome.target_owner_id == "bob"
    assert outcome.target_name == "Bob"

    mine = store.contacts[("alice", "bob@example.com")]
    assert mine.tier == TIER_ACQUAINTANCE
    assert mine.added_via == ADDED_VIA_SHARE_CODE
    assert mine.company == "Acme"
    theirs = store.contacts[("bob", "alice@example.com")]
    assert theirs.tier == TIER_ACQUAINTANCE
    assert theirs.added_via == ADDED_VIA_MUTUAL_CONTACT
    assert theirs.name == "Alice"


def test_relink_reports_already_existed_without_new_rows() -> None:
    store = _store()
    service = _service(store)
    service.link_by_code("a1b2c3d4")
    again = service.link_by_code("A1B2C3D4")

    assert again.status == LINK_COMPLETED
    assert again.own_side == SIDE_ALREADY_EXISTED
    assert again.counterpart_side == SIDE_ALREADY_EXISTED
    assert len(store.contacts) == 2


def test_linking_from_the_other_side_is_already_existed() -> None:
    store = _store()
    _service(store, requester="bob").link_by_code("0a0b0c0d")
    outcome = _service(store, requester="alice").link_by_code("a1b2c3d4")
    assert outcome.own_side == SIDE_ALREADY_EXISTED
    assert outcome.counterpart_side == SIDE_ALREADY_EXISTED
    assert len(store.contacts) == 2


def test_failed_reciprocal_gives_partial_and_keeps_own_row() -> None:
    store = _store()
    outcome = _service(store, reciprocal=_FailingReciprocal()).link_by_code("a1b2c3d4")

    assert outcome.status == LINK_PARTIAL
    assert outcome.is_partial
    assert not outcome.is_mutual
    assert outcome.own_side == SIDE_CREATED
    assert outcome.counterpart_side == SIDE_FAILED
    assert outcome.message == PARTIAL_LINK_MESSAGE
    assert ("alice", "bob@example.com") in store.contacts
    assert ("bob", "alice@example.com") not in store.contacts


def test_retry_after_partial_completes_missing_side() -> None:
    store = _store()
    _service(store, reciprocal=_FailingReciprocal()).link_by_code("a1b2c3d4")
    retry = _service(store).link_by_code("a1b2c3d4")
    assert retry.status == LINK_COMPLETED
    assert retry.own_side == SIDE_ALREADY_EXISTED
    assert retry.counterpart_side == SIDE_CREATED
    assert len(store.contacts) == 2


def test_own_side_failure_skips_reciprocal() -> None:
    store = _store()
    reciprocal = _FailingReciprocal()
    # Contacts repository scoped to someone else: every own-side write is refused.
    service = MutualLinkService(
        "alice",
        store.card_repository("alice"),
        store.contact_repository("mallory"),
        reciprocal,
    )
    outcome = service.link_by_code("a1b2c3d4")
    assert outcome.status == LINK_FAILED
    assert outcome.own_side == SIDE_FAILED
    assert outcome.counterpart_side == SIDE_SKIPPED
    assert reciprocal.calls == []
    assert store.contacts == {}


def test_self_link_writes_nothing() -> None:
    store = _store()
    reciprocal = _FailingReciprocal()
    result = _service(store, reciprocal=reciprocal).link_from_scan("/contact/0a0b0c0d")
    assert result == SelfLinkRejected(owner_id="alice")
    assert reciprocal.calls == []
    assert store.contacts == {}


def test_requester_without_card_writes_nothing() -> None:
    store = _store()
    result = _service(store, requester="carol").link_by_code("a1b2c3d4")
    assert result == RequesterCardMissing(requester_id="carol")
    assert store.contacts == {}


def test_unknown_or_malformed_input_writes_nothing() -> None:
    store = _store()
    service = _service(store)
    assert isinstance(service.link_by_code("deadbeef"), NotFound)
    assert isinstance(service.link_by_code("not-a-code"), InvalidFormat)
    assert isinstance(service.link_from_scan("hello there"), InvalidFormat)
    assert isinstance(service.link_from_scan(""), InvalidFormat)
    assert store.contacts == {}


def test_link_by_username_is_case_sensitive() -> None:
    store = _store()
    service = _service(store)
    assert isinstance(service.link_by_username("Bobby"), NotFound)
    outcome = service.link_by_username("bobby")
    assert outcome.status == LINK_COMPLETED


def test_chosen_tier_applies_to_own_side_only() -> None:
    store = _store()
    _service(store).link_by_code("a1b2c3d4", tier=TIER_A_PLAYER, added_via=ADDED_VIA_QR_CODE)
    mine = store.contacts[("alice", "bob@example.com")]
    assert mine.tier == TIER_A_PLAYER
    assert mine.added_via == ADDED_VIA_QR_CODE
    theirs = store.contacts[("bob", "alice@example.com")]
    assert theirs.tier == TIER_ACQUAINTANCE
    assert theirs.added_via == ADDED_VIA_MUTUAL_CONTACT


def test_deactivated_target_is_not_found() -> None:
    store = _store()
    bob = store.card_repository().get_active_by_owner("bob")
    store.card_repository().save(dataclasses.replace(bob, is_active=False))
    assert isinstance(_service(store).link_by_code("a1b2c3d4"), NotFound)
    assert store.contacts == {}


def test_own_row_note_follows_how_the_link_was_made() -> None:
    store = _store()
    _service(store).link_by_code("a1b2c3d4", added_via=ADDED_VIA_QR_CODE)
    assert store.contacts[("alice", "bob@example.com")].notes == "Added via QR code"

    store = _store()
    _service(store).link_by_code("a1b2c3d4")
    assert store.contacts[("alice", "bob@example.com")].notes == "Added via share code"

    store = _store()
    _service(store).link_by_username("bobby")
    assert store.contacts[("alice", "bob@example.com")].notes == "Added via username"

    store = _store()
    _service(store).link_from_scan("https://app.example/public/bobby")
    assert store.contacts[("alice", "bob@example.com")].notes == "Added via username"
