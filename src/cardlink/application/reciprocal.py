"""Elevated execution boundary: the only writer into another owner's contact list.

Holds unscoped repositories (the elevated credentials). It is not a general
"write into anyone's contacts" primitive: every call must prove the caller is
the requester of an in-flight link, i.e. the caller already holds the target
in their own list. The row it writes is built from the caller's stored active
card, never from client-supplied data.
"""

import logging

from cardlink.application.dto import (
    AlreadyExists,
    ContactCreated,
    LinkNotAuthorized,
    WriteFailed,
)
from cardlink.application.ports import (
    ContactCardRepository,
    ContactRepository,
    DuplicateContactError,
    ReciprocalResult,
)
from cardlink.domain import (
    ADDED_VIA_MUTUAL_CONTACT,
    TIER_ACQUAINTANCE,
    Contact,
    ContactCard,
)
from cardlink.domain.entities import normalize_email

logger = logging.getLogger(__name__)

RECIPROCAL_NOTE = "Added via mutual contact"


class ElevatedContactBoundary:
    def __init__(self, cards: ContactCardRepository, contacts: ContactRepository) -> None:
        self._cards = cards
        self._contacts = contacts

    def write_reciprocal(
        self, caller_id: str, target: ContactCard, source: ContactCard
    ) -> ReciprocalResult:
        """Add the caller (source) to target.owner_id's list as an Acquaintance.

        Never raises: every failure comes back as LinkNotAuthorized or WriteFailed.
        """
        try:
            checked = self._authorize(caller_id, target, source)
            if isinstance(checked, LinkNotAuthorized):
                logger.warning(
                    "Reciprocal write refused for caller %s: %s", caller_id, checked.reason
                )
                return checked
            caller_card, target_owner_id = checked
            return self._insert(target_owner_id, caller_card)
        except Exception:
            logger.exception(
                "Reciprocal write failed for caller %s into owner %s",
                caller_id,
                getattr(target, "owner_id", None),
            )
            return WriteFailed(reason="Could not add you to their contacts.")

    def _authorize(
        self, caller_id: str, target: ContactCard, source: ContactCard
    ) -> tuple[ContactCard, str] | LinkNotAuthorized:
        caller_id = (caller_id or "").strip()
        if not caller_id:
            return LinkNotAuthorized(reason="Missing caller identity.")
        if source is None or source.owner_id != caller_id:
            return LinkNotAuthorized(reason="Source card does not belong to the caller.")
        if target is None or not target.owner_id:
            return LinkNotAuthorized(reason="Missing target.")
        if target.owner_id == caller_id:
            return LinkNotAuthorized(reason="Cannot add yourself as a contact.")

        caller_card = self._cards.get_active_by_owner(caller_id)
        if caller_card is None:
            return LinkNotAuthorized(reason="Caller has no active contact card.")
        target_card = self._cards.get_active_by_owner(target.owner_id)
        if target_card is None:
            return LinkNotAuthorized(reason="Target has no active contact card.")

        # The requester side is written first; its presence is the in-flight link.
        if self._contacts.find_by_email(caller_id, normalize_email(target_card.email)) is None:
            return LinkNotAuthorized(reason="No link attempt in progress for this target.")
        return caller_card, target_card.owner_id

    def _insert(self, target_owner_id: str, caller_card: ContactCard) -> ReciprocalResult:
        email = normalize_email(caller_card.email)
        if self._contacts.find_by_email(target_owner_id, email) is not None:
            return AlreadyExists(owner_id=target_owner_id, email=email)
        contact = Contact.from_card(
            target_owner_id,
            caller_card,
            tier=TIER_ACQUAINTANCE,
            added_via=ADDED_VIA_MUTUAL_CONTACT,
            notes=RECIPROCAL_NOTE,
        )
        try:
            self._contacts.add(contact)
        except DuplicateContactError:
            return AlreadyExists(owner_id=target_owner_id, email=email)
        logger.info("Reciprocal contact added to owner %s", target_owner_id)
        return ContactCreated(contact_id=contact.id, name=contact.name)
