"""HttpReciprocalWriter against a fake session and against the real elevated app."""

import pytest
import requests
from fastapi.testclient import TestClient

from api import elevated
from cardlink.application import (
    AlreadyExists,
    ContactCreated,
    LinkNotAuthorized,
    WriteFailed,
)
from cardlink.domain import ADDED_VIA_SHARE_CODE, TIER_ACQUAINTANCE, Contact, ContactCard
from cardlink.infrastructure import HttpReciprocalWriter, InMemoryStore

ALICE = ContactCard(owner_id="alice", name="Alice", email="Alice@Example.com", share_code="0a0b0c0d")
BOB = ContactCard(owner_id="bob", name="Bob", email="bob@example.com", share_code="a1b2c3d4")


class _Response:
    def __init__(self, status_code, data):
        self.status_code = status_code
        self._data = data

    def json(self):
        if isinstance(self._data, Exception):
            raise self._data
        return self._data


class _Session:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def _writer(session) -> HttpReciprocalWriter:
    return HttpReciprocalWriter("http://boundary.local/", timeout=3.0, session=session)


def test_request_shape():
    session = _Session(_Response(200, {"success": True, "status": "created", "contactId": "c-1"}))
    _writer(session).write_reciprocal("alice", BOB, ALICE)

    sent = session.requests[0]
    assert sent["url"] == "http://boundary.local/functions/add-mutual-contact"
    assert sent["headers"] == {"X-User-Id": "alice"}
    assert sent["timeout"] == 3.0
    assert sent["json"]["currentUserId"] == "alice"
    assert sent["json"]["otherUserContactCard"]["user_id"] == "bob"
    assert sent["json"]["otherUserContactCard"]["email"] == "bob@example.com"


@pytest.mark.parametrize(
    "response, expected",
    [
        (
            _Response(200, {"success": True, "status": "created", "contactId": "c-1"}),
            ContactCreated(contact_id="c-1", name="Alice"),
        ),
        (
            _Response(200, {"success": True, "status": "already_existed"}),
            AlreadyExists(owner_id="bob", email="alice@example.com"),
        ),
        (
            _Response(403, {"success": False, "error": "No link attempt in progress"}),
            LinkNotAuthorized(reason="No link attempt in progress"),
        ),
        (
            _Response(500, {"success": False, "error": "Could not add you"}),
            WriteFailed(reason="Could not add you"),
        ),
        (_Response(502, ValueError("not json")), WriteFailed(reason="HTTP 502")),
    ],
)
def test_response_mapping(response, expected):
    assert _writer(_Session(response)).write_reciprocal("alice", BOB, ALICE) == expected


def test_transport_error_is_write_failed():
    session = _Session(error=requests.exceptions.ConnectionError("refused"))
    result = _writer(session).write_reciprocal("alice", BOB, ALICE)
    assert isinstance(result, WriteFailed)


def test_against_elevated_app():
    store = InMemoryStore()
    store.card_repository().save(ALICE)
    store.card_repository().save(BOB)
    store.contact_repository().add(
        Contact.from_card("alice", BOB, tier=TIER_ACQUAINTANCE, added_via=ADDED_VIA_SHARE_CODE)
    )
    elevated.app.state.store = store
    try:
        writer = HttpReciprocalWriter("http://testserver", session=TestClient(elevated.app))
        created = writer.write_reciprocal("alice", BOB, ALICE)
        assert isinstance(created, ContactCreated)
        assert created.contact_id == store.contacts[("bob", "alice@example.com")].id
        assert isinstance(writer.write_reciprocal("alice", BOB, ALICE), AlreadyExists)
    finally:
        elevated.app.state.store = None
