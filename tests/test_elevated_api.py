"""Elevated boundary HTTP surface: request validation and authorization."""

import pytest
from fastapi.testclient import TestClient

from api import elevated
from cardlink.domain import ADDED_VIA_SHARE_CODE, TIER_ACQUAINTANCE, Contact, ContactCard
from cardlink.infrastructure import InMemoryStore

ALICE = ContactCard(owner_id="alice", name="Alice", email="alice@example.com", share_code="0a0b0c0d")
BOB = ContactCard(owner_id="bob", name="Bob", email="bob@example.com", share_code="a1b2c3d4")

URL = "/functions/add-mutual-contact"


@pytest.fixture
def store():
    store = InMemoryStore()
    store.card_repository().save(ALICE)
    store.card_repository().save(BOB)
    elevated.app.state.store = store
    yield store
    elevated.app.state.store = None


@pytest.fixture
def client(store):
    return TestClient(elevated.app)


def _body(caller="alice", target="bob"):
    return {"currentUserId": caller, "otherUserContactCard": {"user_id": target, "name": "Bob"}}


def _start_link(store):
    store.contact_repository("alice").add(
        Contact.from_card("alice", BOB, tier=TIER_ACQUAINTANCE, added_via=ADDED_VIA_SHARE_CODE)
    )


def test_missing_fields_are_400(client):
    assert client.post(URL, json={}, headers={"X-User-Id": "alice"}).status_code == 400
    assert client.post(URL, json={"currentUserId": "alice"}, headers={"X-User-Id": "alice"}).status_code == 400


def test_missing_caller_identity_is_401(client):
    assert client.post(URL, json=_body()).status_code == 401


def test_caller_must_match_current_user(client):
    r = client.post(URL, json=_body(caller="alice"), headers={"X-User-Id": "mallory"})
    assert r.status_code == 403


def test_caller_without_card_is_400(client):
    r = client.post(URL, json=_body(caller="carol"), headers={"X-User-Id": "carol"})
    assert r.status_code == 400


def test_unknown_target_is_403(client):
    r = client.post(URL, json=_body(target="ghost"), headers={"X-User-Id": "alice"})
    assert r.status_code == 403


def test_no_link_in_flight_is_403(client, store):
    r = client.post(URL, json=_body(), headers={"X-User-Id": "alice"})
    assert r.status_code == 403
    assert r.json()["success"] is False
    assert ("bob", "alice@example.com") not in store.contacts


def test_created_then_already_existed(client, store):
    _start_link(store)
    r = client.post(URL, json=_body(), headers={"X-User-Id": "alice"})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["status"] == "created"
    assert body["contactId"] == store.contacts[("bob", "alice@example.com")].id

    again = client.post(URL, json=_body(), headers={"X-User-Id": "alice"})
    assert again.status_code == 200
    assert again.json()["status"] == "already_existed"
    assert len(store.contacts) == 2
