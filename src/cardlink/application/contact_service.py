"""The acting user's own contact list: list, search, edit, delete."""

import dataclasses

from cardlink.application.dto import (
    ContactNotFound,
    ContactSummary,
    Invalid,
)
from cardlink.application.ports import ContactRepository
from cardlink.domain import Contact
from cardlink.domain.entities import TIERS


def _summary(contact: Contact) -> ContactSummary:
    return ContactSummary(
        contact_id=contact.id,
        name=contact.name,
        email=contact.email,
        tier=contact.tier,
        added_via=contact.added_via,
        added_date=contact.added_date,
        created_at=contact.created_at,
        company=contact.company,
        phone=contact.phone,
        notes=contact.notes,
    )


class ContactService:
    """Operates on one owner's rows only. Deleting here never touches the counterpart's copy."""

    def __init__(self, owner_id: str, repository: ContactRepository) -> None:
        self._owner_id = owner_id
        self._repo = repository

    def list_contacts(self, tier: str | None = None) -> list[ContactSummary]:
        """Return all my contacts, newest first, optionally for one tier."""
        return [
            _summary(c)
            for c in self._repo.list_for_owner(self._owner_id)
            if tier is None or c.tier == tier
        ]

    def search_contacts(self, keyword: str) -> list[ContactSummary]:
        """Case-insensitive partial match on name, email, company, industry, services and notes."""
        if not keyword or not keyword.strip():
            return []
        needle = keyword.strip().lower()
        out = []
        for contact in self._repo.list_for_owner(self._owner_id):
            haystack = " ".join(
                part
                for part in (
                    contact.name,
                    contact.email,
                    contact.company or "",
                    contact.industry or "",
                    " ".join(contact.services),
                    contact.notes or "",
                )
            ).lower()
            if needle in haystack:
                out.append(_summary(contact))
        return out

    def get_contact(self, contact_id: str) -> ContactSummary | None:
        contact = self._repo.get(self._owner_id, contact_id)
        if contact is None:
            return None
        return _summary(contact)

    def update_contact(
        self,
        contact_id: str,
        *,
        tier: str | None = None,
        notes: str | None = None,
    ) -> ContactSummary | ContactNotFound | Invalid:
        """Change my tier or notes for a contact. The other side's row is unaffected."""
        if tier is not None and tier not in TIERS:
            return Invalid(reason=f"Unknown tier: {tier!r}")
        contact = self._repo.get(self._owner_id, contact_id)
        if contact is None:
            return ContactNotFound(contact_id=contact_id)
        changes = {}
        if tier is not None:
            changes["tier"] = tier
        if notes is not None:
            changes["notes"] = notes
        if not changes:
            return _summary(contact)
        updated = dataclasses.replace(contact, **changes)
        if not self._repo.update(updated):
            return ContactNotFound(contact_id=contact_id)
        return _summary(updated)

    def delete_contact(self, contact_id: str) -> bool:
        """Remove my row only. Returns False if I hold no such contact."""
        return self._repo.delete(self._owner_id, contact_id)
