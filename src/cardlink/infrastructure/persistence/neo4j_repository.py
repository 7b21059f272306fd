"""Neo4j implementation of the card and contact repositories.

Graph: (:ContactCard {id, owner_id, share_code, username, is_active, ...}) and
(:Contact {id, owner_id, email, ...}). A Contact carries its owner's id and no
relationship to the counterpart's Contact; the two halves of a mutual link are
independent nodes. Uniqueness lives in constraints (see ensure_constraints),
so concurrent inserts of the same (owner_id, email) end in a ConstraintError
for the loser.
"""

import json
from contextlib import contextmanager
from datetime import date, datetime

from neo4j.exceptions import ConstraintError, DriverError, Neo4jError

from cardlink.application.ports import (
    DuplicateCardFieldError,
    DuplicateContactError,
    StorageError,
    check_owner_scope,
)
from cardlink.domain import Contact, ContactCard
from cardlink.domain.entities import normalize_email

_CONSTRAINT_QUERIES = (
    """
    CREATE CONSTRAINT contact_card_id_unique IF NOT EXISTS
    FOR (c:ContactCard) REQUIRE c.id IS UNIQUE
    """,
    """
    CREATE CONSTRAINT contact_card_share_code_unique IF NOT EXISTS
    FOR (c:ContactCard) REQUIRE c.share_code IS UNIQUE
    """,
    """
    CREATE CONSTRAINT contact_card_username_unique IF NOT EXISTS
    FOR (c:ContactCard) REQUIRE c.username IS UNIQUE
    """,
    """
    CREATE CONSTRAINT contact_owner_email_unique IF NOT EXISTS
    FOR (c:Contact) REQUIRE (c.owner_id, c.email) IS NODE UNIQUE
    """,
)

_SAVE_CARD_QUERY = """
MERGE (c:ContactCard {id: $id})
SET c = $props
WITH c
OPTIONAL MATCH (other:ContactCard {owner_id: c.owner_id})
WHERE other.id <> c.id AND c.is_active = true AND other.is_active = true
SET other.is_active = false
"""

_CARD_CONFLICT_QUERY = """
MATCH (c:ContactCard)
WHERE c.id <> $id AND (c.share_code = $share_code OR ($username IS NOT NULL AND c.username = $username))
RETURN c.share_code AS share_code, c.username AS username
LIMIT 1
"""

_CARD_FIELDS = (
    "phone",
    "company",
    "industry",
    "linkedin",
    "facebook",
    "whatsapp",
    "notes",
    "username",
)
_CONTACT_FIELDS = (
    "phone",
    "company",
    "industry",
    "linkedin",
    "facebook",
    "whatsapp",
    "notes",
)


def ensure_constraints(driver) -> None:
    """Create the uniqueness constraints if missing. Call once at startup."""
    with driver.session() as session:
        for query in _CONSTRAINT_QUERIES:
            session.run(query).consume()


@contextmanager
def _storage_errors():
    try:
        yield
    except (Neo4jError, DriverError) as e:
        raise StorageError(str(e)) from e


def _iso_to_datetime(s: str) -> datetime:
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def _card_to_props(card: ContactCard) -> dict:
    props = {
        "id": card.id,
        "owner_id": card.owner_id,
        "name": card.name,
        "email": card.email,
        "share_code": card.share_code,
        "services": list(card.services),
        "websites": list(card.websites),
        "is_active": card.is_active,
        "public_visibility": json.dumps(card.public_visibility or {}, sort_keys=True),
        "created_at": card.created_at.isoformat(),
        "updated_at": card.updated_at.isoformat(),
    }
    for name in _CARD_FIELDS:
        value = getattr(card, name)
        if value is not None:
            props[name] = value
    return props


def _node_to_card(node) -> ContactCard:
    return ContactCard(
        id=node["id"],
        owner_id=node["owner_id"],
        name=node["name"],
        email=node["email"],
        share_code=node["share_code"],
        services=tuple(node.get("services") or ()),
        websites=tuple(node.get("websites") or ()),
        is_active=bool(node.get("is_active")),
        public_visibility=json.loads(node.get("public_visibility") or "{}"),
        created_at=_iso_to_datetime(node["created_at"]),
        updated_at=_iso_to_datetime(node["updated_at"]),
        **{name: node.get(name) for name in _CARD_FIELDS},
    )


def _contact_to_props(contact: Contact) -> dict:
    props = {
        "id": contact.id,
        "owner_id": contact.owner_id,
        "name": contact.name,
        "email": normalize_email(contact.email),
        "tier": contact.tier,
        "added_via": contact.added_via,
        "services": list(contact.services),
        "websites": list(contact.websites),
        "added_date": contact.added_date.isoformat(),
        "created_at": contact.created_at.isoformat(),
    }
    for name in _CONTACT_FIELDS:
        value = getattr(contact, name)
        if value is not None:
            props[name] = value
    return props


def _node_to_contact(node) -> Contact:
    return Contact(
        id=node["id"],
        owner_id=node["owner_id"],
        name=node["name"],
        email=node["email"],
        tier=node["tier"],
        added_via=node["added_via"],
        services=tuple(node.get("services") or ()),
        websites=tuple(node.get("websites") or ()),
        added_date=date.fromisoformat(node["added_date"]),
        created_at=_iso_to_datetime(node["created_at"]),
        **{name: node.get(name) for name in _CONTACT_FIELDS},
    )


class Neo4jStore:
    """Hands out repositories bound to one driver (one set of database credentials)."""

    def __init__(self, driver) -> None:
        self._driver = driver

    def card_repository(self, user_id: str | None = None) -> "Neo4jContactCardRepository":
        return Neo4jContactCardRepository(self._driver, user_id=user_id)

    def contact_repository(self, user_id: str | None = None) -> "Neo4jContactRepository":
        return Neo4jContactRepository(self._driver, user_id=user_id)


class Neo4jContactCardRepository:
    """Cards in Neo4j. With user_id set, writes and private reads are limited to that owner."""

    def __init__(self, driver, user_id: str | None = None) -> None:
        self._driver = driver
        self._user_id = user_id

    def _single_card(self, query: str, **params) -> ContactCard | None:
        with _storage_errors(), self._driver.session() as session:
            record = session.run(query, **params).single()
        if not record:
            return None
        return _node_to_card(record["c"])

    def get_active_by_code(self, share_code: str) -> ContactCard | None:
        return self._single_card(
            "MATCH (c:ContactCard {share_code: $code, is_active: true}) RETURN c LIMIT 1",
            code=share_code,
        )

    def get_active_by_username(self, username: str) -> ContactCard | None:
        return self._single_card(
            "MATCH (c:ContactCard {username: $username, is_active: true}) RETURN c LIMIT 1",
            username=username,
        )

    def get_active_by_owner(self, owner_id: str) -> ContactCard | None:
        return self._single_card(
            "MATCH (c:ContactCard {owner_id: $owner_id, is_active: true}) RETURN c LIMIT 1",
            owner_id=owner_id,
        )

    def get_by_owner(self, owner_id: str) -> ContactCard | None:
        check_owner_scope(self._user_id, owner_id)
        return self._single_card(
            """
            MATCH (c:ContactCard {owner_id: $owner_id})
            RETURN c
            ORDER BY c.is_active DESC, c.updated_at DESC
            LIMIT 1
            """,
            owner_id=owner_id,
        )

    def save(self, card: ContactCard) -> None:
        check_owner_scope(self._user_id, card.owner_id)
        with _storage_errors(), self._driver.session() as session:
            conflict = session.run(
                _CARD_CONFLICT_QUERY,
                id=card.id,
                share_code=card.share_code,
                username=card.username,
            ).single()
            if conflict:
                if conflict["share_code"] == card.share_code:
                    raise DuplicateCardFieldError("share_code", card.share_code)
                raise DuplicateCardFieldError("username", card.username)
            try:
                session.run(_SAVE_CARD_QUERY, id=card.id, props=_card_to_props(card)).consume()
            except ConstraintError as e:
                # Lost a race against another writer between the check and the write.
                if "username" in str(e):
                    raise DuplicateCardFieldError("username", card.username) from e
                raise DuplicateCardFieldError("share_code", card.share_code) from e

    def share_code_exists(self, share_code: str) -> bool:
        with _storage_errors(), self._driver.session() as session:
            record = session.run(
                "MATCH (c:ContactCard {share_code: $code}) RETURN count(c) AS n",
                code=share_code,
            ).single()
        return bool(record and record["n"])

    def username_owner(self, username: str) -> str | None:
        with _storage_errors(), self._driver.session() as session:
            record = session.run(
                "MATCH (c:ContactCard {username: $username}) RETURN c.owner_id AS owner_id LIMIT 1",
                username=username,
            ).single()
        if not record:
            return None
        return record["owner_id"]

    def delete_by_owner(self, owner_id: str) -> int:
        check_owner_scope(self._user_id, owner_id)
        with _storage_errors(), self._driver.session() as session:
            record = session.run(
                """
                MATCH (c:ContactCard {owner_id: $owner_id})
                WITH c, c.id AS id
                DELETE c
                RETURN count(id) AS n
                """,
                owner_id=owner_id,
            ).single()
        return record["n"] if record else 0


class Neo4jContactRepository:
    """Contacts in Neo4j, one node per (owner_id, email)."""

    def __init__(self, driver, user_id: str | None = None) -> None:
        self._driver = driver
        self._user_id = user_id

    def add(self, contact: Contact) -> None:
        check_owner_scope(self._user_id, contact.owner_id)
        with _storage_errors(), self._driver.session() as session:
            try:
                session.run(
                    "CREATE (c:Contact) SET c = $props",
                    props=_contact_to_props(contact),
                ).consume()
            except ConstraintError as e:
                raise DuplicateContactError(
                    f"{contact.email} already in list of {contact.owner_id}"
                ) from e

    def find_by_email(self, owner_id: str, email: str) -> Contact | None:
        check_owner_scope(self._user_id, owner_id)
        with _storage_errors(), self._driver.session() as session:
            record = session.run(
                "MATCH (c:Contact {owner_id: $owner_id, email: $email}) RETURN c LIMIT 1",
                owner_id=owner_id,
                email=normalize_email(email),
            ).single()
        return _node_to_contact(record["c"]) if record else None

    def get(self, owner_id: str, contact_id: str) -> Contact | None:
        check_owner_scope(self._user_id, owner_id)
        with _storage_errors(), self._driver.session() as session:
            record = session.run(
                "MATCH (c:Contact {owner_id: $owner_id, id: $id}) RETURN c",
                owner_id=owner_id,
                id=contact_id,
            ).single()
        return _node_to_contact(record["c"]) if record else None

    def list_for_owner(self, owner_id: str) -> list[Contact]:
        check_owner_scope(self._user_id, owner_id)
        with _storage_errors(), self._driver.session() as session:
            result = session.run(
                """
                MATCH (c:Contact {owner_id: $owner_id})
                RETURN c
                ORDER BY c.created_at DESC
                """,
                owner_id=owner_id,
            )
            return [_node_to_contact(rec["c"]) for rec in result]

    def update(self, contact: Contact) -> bool:
        check_owner_scope(self._user_id, contact.owner_id)
        with _storage_errors(), self._driver.session() as session:
            try:
                record = session.run(
                    """
                    MATCH (c:Contact {owner_id: $owner_id, id: $id})
                    SET c = $props
                    RETURN 1 AS ok
                    """,
                    owner_id=contact.owner_id,
                    id=contact.id,
                    props=_contact_to_props(contact),
                ).single()
            except ConstraintError as e:
                raise DuplicateContactError(
                    f"{contact.email} already in list of {contact.owner_id}"
                ) from e
        return record is not None

    def delete(self, owner_id: str, contact_id: str) -> bool:
        check_owner_scope(self._user_id, owner_id)
        with _storage_errors(), self._driver.session() as session:
            record = session.run(
                """
                MATCH (c:Contact {owner_id: $owner_id, id: $id})
                DELETE c
                RETURN 1 AS ok
                """,
                owner_id=owner_id,
                id=contact_id,
            ).single()
        return record is not None

    def delete_all_for_owner(self, owner_id: str) -> int:
        check_owner_scope(self._user_id, owner_id)
        with _storage_errors(), self._driver.session() as session:
            record = session.run(
                """
                MATCH (c:Contact {owner_id: $owner_id})
                WITH c, c.id AS id
                DELETE c
                RETURN count(id) AS n
                """,
                owner_id=owner_id,
            ).single()
        return record["n"] if record else 0
