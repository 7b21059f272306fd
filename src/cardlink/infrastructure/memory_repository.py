"""In-memory implementation of the card and contact repositories (no DB).

One InMemoryStore is the shared "database"; repositories are views over it,
either scoped to one owner or elevated (user_id=None).
"""

import dataclasses

from cardlink.application.ports import (
    DuplicateCardFieldError,
    DuplicateContactError,
    check_owner_scope,
)
from cardlink.domain import Contact, ContactCard
from cardlink.domain.entities import normalize_email


class InMemoryStore:
    """Tables keyed the way the real store enforces uniqueness."""

    def __init__(self) -> None:
        self.cards: dict[str, ContactCard] = {}
        # (owner_id, email) -> Contact: the uniqueness constraint is the key itself.
        self.contacts: dict[tuple[str, str], Contact] = {}

    def card_repository(self, user_id: str | None = None) -> "InMemoryContactCardRepository":
        return InMemoryContactCardRepository(self, user_id=user_id)

    def contact_repository(self, user_id: str | None = None) -> "InMemoryContactRepository":
        return InMemoryContactRepository(self, user_id=user_id)


class InMemoryContactCardRepository:
    def __init__(self, store: InMemoryStore, user_id: str | None = None) -> None:
        self._store = store
        self._user_id = user_id

    def get_active_by_code(self, share_code: str) -> ContactCard | None:
        for card in self._store.cards.values():
            if card.is_active and card.share_code == share_code:
                return card
        return None

    def get_active_by_username(self, username: str) -> ContactCard | None:
        for card in self._store.cards.values():
            if card.is_active and card.username is not None and card.username == username:
                return card
        return None

    def get_active_by_owner(self, owner_id: str) -> ContactCard | None:
        for card in self._store.cards.values():
            if card.is_active and card.owner_id == owner_id:
                return card
        return None

    def get_by_owner(self, owner_id: str) -> ContactCard | None:
        check_owner_scope(self._user_id, owner_id)
        owned = [c for c in self._store.cards.values() if c.owner_id == owner_id]
        if not owned:
            return None
        return max(owned, key=lambda c: (c.is_active, c.updated_at))

    def save(self, card: ContactCard) -> None:
        check_owner_scope(self._user_id, card.owner_id)
        for other in self._store.cards.values():
            if other.id == card.id:
                continue
            if other.share_code == card.share_code:
                raise DuplicateCardFieldError("share_code", card.share_code)
            if card.username is not None and other.username == card.username:
                raise DuplicateCardFieldError("username", card.username)
        if card.is_active:
            for other_id, other in list(self._store.cards.items()):
                if other.owner_id == card.owner_id and other.id != card.id and other.is_active:
                    self._store.cards[other_id] = dataclasses.replace(other, is_active=False)
        self._store.cards[card.id] = card

    def share_code_exists(self, share_code: str) -> bool:
        return any(c.share_code == share_code for c in self._store.cards.values())

    def username_owner(self, username: str) -> str | None:
        for card in self._store.cards.values():
            if card.username == username:
                return card.owner_id
        return None

    def delete_by_owner(self, owner_id: str) -> int:
        check_owner_scope(self._user_id, owner_id)
        ids = [cid for cid, c in self._store.cards.items() if c.owner_id == owner_id]
        for cid in ids:
            del self._store.cards[cid]
        return len(ids)


class InMemoryContactRepository:
    def __init__(self, store: InMemoryStore, user_id: str | None = None) -> None:
        self._store = store
        self._user_id = user_id

    def add(self, contact: Contact) -> None:
        check_owner_scope(self._user_id, contact.owner_id)
        key = (contact.owner_id, normalize_email(contact.email))
        if key in self._store.contacts:
            raise DuplicateContactError(f"{key[1]} already in list of {key[0]}")
        self._store.contacts[key] = contact

    def find_by_email(self, owner_id: str, email: str) -> Contact | None:
        check_owner_scope(self._user_id, owner_id)
        return self._store.contacts.get((owner_id, normalize_email(email)))

    def get(self, owner_id: str, contact_id: str) -> Contact | None:
        check_owner_scope(self._user_id, owner_id)
        for (owner, _), contact in self._store.contacts.items():
            if owner == owner_id and contact.id == contact_id:
                return contact
        return None

    def list_for_owner(self, owner_id: str) -> list[Contact]:
        check_owner_scope(self._user_id, owner_id)
        owned = [c for (owner, _), c in self._store.contacts.items() if owner == owner_id]
        return sorted(owned, key=lambda c: c.created_at, reverse=True)

    def update(self, contact: Contact) -> bool:
        check_owner_scope(self._user_id, contact.owner_id)
        for key, existing in list(self._store.contacts.items()):
            if existing.owner_id == contact.owner_id and existing.id == contact.id:
                new_key = (contact.owner_id, normalize_email(contact.email))
                if new_key != key and new_key in self._store.contacts:
                    raise DuplicateContactError(f"{new_key[1]} already in list of {new_key[0]}")
                del self._store.contacts[key]
                self._store.contacts[new_key] = contact
                return True
        return False

    def delete(self, owner_id: str, contact_id: str) -> bool:
        check_owner_scope(self._user_id, owner_id)
        for key, contact in list(self._store.contacts.items()):
            if key[0] == owner_id and contact.id == contact_id:
                del self._store.contacts[key]
                return True
        return False

    def delete_all_for_owner(self, owner_id: str) -> int:
        check_owner_scope(self._user_id, owner_id)
        keys = [key for key in self._store.contacts if key[0] == owner_id]
        for key in keys:
            del self._store.contacts[key]
        return len(keys)
