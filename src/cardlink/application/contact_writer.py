"""Insert one contact row for one owner, treating a duplicate as success."""

import logging

from cardlink.application.dto import AlreadyExists, ContactCreated, WriteFailed
from cardlink.application.ports import ContactRepository, DuplicateContactError, StorageError
from cardlink.domain import Contact, ContactCard

logger = logging.getLogger(__name__)


class ContactWriter:
    def __init__(self, contacts: ContactRepository) -> None:
        self._contacts = contacts

    def upsert_contact(
        self,
        owner_id: str,
        counterpart: ContactCard,
        tier: str,
        added_via: str,
        *,
        notes: str | None = None,
    ) -> ContactCreated | AlreadyExists | WriteFailed:
        """Store counterpart in owner_id's list.

        Relies on the store's (owner_id, email) uniqueness instead of a pre-check,
        so two concurrent adds of the same person end as one row plus AlreadyExists.
        """
        contact = Contact.from_card(
            owner_id, counterpart, tier=tier, added_via=added_via, notes=notes
        )
        try:
            self._contacts.add(contact)
        except DuplicateContactError:
            logger.info(
                "Contact %s already in list of owner %s", contact.email, owner_id
            )
            return AlreadyExists(owner_id=owner_id, email=contact.email)
        except StorageError:
            logger.exception("Failed to add contact for owner %s", owner_id)
            return WriteFailed(reason="Failed to add contact to your list.")
        return ContactCreated(contact_id=contact.id, name=contact.name)
