"""Application ports (interfaces) and the storage errors adapters raise through them.

Repositories come in two flavours built from the same class: owner-scoped
(constructed with the acting user's id, refuses other owners' rows, like a
row-level security policy) and elevated (``user_id=None``, only handed to the
reciprocal boundary).
"""

from typing import Protocol

from cardlink.application.dto import (
    AlreadyExists,
    ContactCreated,
    LinkNotAuthorized,
    WriteFailed,
)
from cardlink.domain import Contact, ContactCard


class StorageError(Exception):
    """The backing store failed (connection, query, unexpected driver error)."""


class PermissionDenied(StorageError):
    """An owner-scoped repository was asked to touch another owner's rows."""


class DuplicateContactError(StorageError):
    """Uniqueness on (owner_id, email) rejected an insert."""


class DuplicateCardFieldError(StorageError):
    """share_code or username already used by another card."""

    def __init__(self, field_name: str, value: str) -> None:
        super().__init__(f"{field_name} already in use: {value}")
        self.field_name = field_name
        self.value = value


class ContactCardRepository(Protocol):
    """Stores ContactCards. Public lookups only ever see active cards."""

    def get_active_by_code(self, share_code: str) -> ContactCard | None:
        ...

    def get_active_by_username(self, username: str) -> ContactCard | None:
        """Exact, case-sensitive match."""
        ...

    def get_active_by_owner(self, owner_id: str) -> ContactCard | None:
        ...

    def get_by_owner(self, owner_id: str) -> ContactCard | None:
        """Owner's most recent card, active or not. Owner-scoped."""
        ...

    def save(self, card: ContactCard) -> None:
        """Insert or replace by card.id. Deactivates the owner's other cards when card is active."""
        ...

    def share_code_exists(self, share_code: str) -> bool:
        """True if any card (active or not) uses the code."""
        ...

    def username_owner(self, username: str) -> str | None:
        """Owner id holding the username on any card, or None."""
        ...

    def delete_by_owner(self, owner_id: str) -> int:
        """Hard-delete all the owner's cards. Returns number deleted."""
        ...


class ContactRepository(Protocol):
    """Stores Contact rows, each belonging to exactly one owner."""

    def add(self, contact: Contact) -> None:
        """Insert. Raises DuplicateContactError on (owner_id, email) conflict."""
        ...

    def find_by_email(self, owner_id: str, email: str) -> Contact | None:
        ...

    def get(self, owner_id: str, contact_id: str) -> Contact | None:
        ...

    def list_for_owner(self, owner_id: str) -> list[Contact]:
        """Newest first."""
        ...

    def update(self, contact: Contact) -> bool:
        """Replace by id within its owner. Returns False if not found."""
        ...

    def delete(self, owner_id: str, contact_id: str) -> bool:
        ...

    def delete_all_for_owner(self, owner_id: str) -> int:
        ...


ReciprocalResult = ContactCreated | AlreadyExists | LinkNotAuthorized | WriteFailed


class ReciprocalWriter(Protocol):
    """Writes the requester into the target's list. In-process or over HTTP."""

    def write_reciprocal(
        self, caller_id: str, target: ContactCard, source: ContactCard
    ) -> ReciprocalResult:
        ...


def check_owner_scope(user_id: str | None, owner_id: str) -> None:
    """Raise PermissionDenied when an owner-scoped repository reaches outside its owner."""
    if user_id is not None and owner_id != user_id:
        raise PermissionDenied(f"user {user_id} cannot access rows of owner {owner_id}")
