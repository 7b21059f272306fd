"""The acting user's own card: publish, edit, rotate share code, claim a username."""

import dataclasses
import logging
import re
from collections.abc import Callable
from datetime import datetime, timezone

from cardlink.application.card_resolver import CardResolver
from cardlink.application.dto import (
    CardMissing,
    ContactCardData,
    Invalid,
    InvalidFormat,
    NotFound,
    UsernameTaken,
)
from cardlink.application.ports import (
    ContactCardRepository,
    ContactRepository,
    DuplicateCardFieldError,
)
from cardlink.domain import ContactCard
from cardlink.domain.entities import (
    PUBLIC_FIELDS,
    generate_share_code,
    is_share_code,
    is_valid_username,
)

logger = logging.getLogger(__name__)

_MAX_CODE_ATTEMPTS = 10
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class CardService:
    def __init__(
        self,
        owner_id: str,
        cards: ContactCardRepository,
        contacts: ContactRepository | None = None,
        *,
        normalize_phone: Callable[[str], str | None] | None = None,
    ) -> None:
        self._owner_id = owner_id
        self._cards = cards
        self._contacts = contacts
        self._normalize_phone = normalize_phone
        self._resolver = CardResolver(cards)

    def get_my_card(self) -> ContactCard | None:
        return self._cards.get_by_owner(self._owner_id)

    def save_my_card(self, data: ContactCardData) -> ContactCard | Invalid:
        """Create the card on first call, update fields afterwards.

        Share code, username and is_active are kept. A deactivated card stays
        hidden; use reactivate_card to publish it again under a new code.
        """
        if not (data.name or "").strip():
            return Invalid(reason="Name is required.")
        email = (data.email or "").strip()
        if not _EMAIL_RE.match(email):
            return Invalid(reason=f"Invalid email: {data.email!r}")
        unknown = set(data.public_visibility or {}) - set(PUBLIC_FIELDS)
        if unknown:
            return Invalid(reason=f"Unknown visibility fields: {', '.join(sorted(unknown))}")

        phone = (data.phone or "").strip() or None
        if phone and self._normalize_phone:
            phone = self._normalize_phone(phone) or phone

        fields = dict(
            name=data.name,
            email=email,
            phone=phone,
            company=data.company,
            industry=data.industry,
            services=tuple(data.services or ()),
            linkedin=data.linkedin,
            facebook=data.facebook,
            whatsapp=data.whatsapp,
            websites=tuple(data.websites or ()),
            notes=data.notes,
            public_visibility=dict(data.public_visibility or {}),
        )
        existing = self._cards.get_by_owner(self._owner_id)
        if existing is None:
            card = ContactCard(
                owner_id=self._owner_id,
                share_code=self._new_share_code(),
                **fields,
            )
            logger.info("Created contact card for owner %s", self._owner_id)
        else:
            card = dataclasses.replace(
                existing, updated_at=datetime.now(timezone.utc), **fields
            )
        self._cards.save(card)
        return card

    def regenerate_share_code(self) -> ContactCard | CardMissing:
        """Replace the code in place. The old code stops resolving immediately."""
        card = self._cards.get_by_owner(self._owner_id)
        if card is None:
            return CardMissing(owner_id=self._owner_id)
        for _ in range(_MAX_CODE_ATTEMPTS):
            updated = dataclasses.replace(
                card,
                share_code=self._new_share_code(),
                updated_at=datetime.now(timezone.utc),
            )
            try:
                self._cards.save(updated)
            except DuplicateCardFieldError:
                continue
            logger.info("Share code regenerated for owner %s", self._owner_id)
            return updated
        raise RuntimeError("Could not allocate a unique share code.")

    def set_username(self, username: str | None) -> ContactCard | CardMissing | InvalidFormat | UsernameTaken:
        """Claim a username; None or blank clears it."""
        card = self._cards.get_by_owner(self._owner_id)
        if card is None:
            return CardMissing(owner_id=self._owner_id)
        name = (username or "").strip() or None
        if name is not None:
            if not is_valid_username(name):
                return InvalidFormat(
                    value=username,
                    reason="Username must be 3-30 letters, digits, '.', '_' or '-' and not look like a share code.",
                )
            holder = self._cards.username_owner(name)
            if holder is not None and holder != self._owner_id:
                return UsernameTaken(username=name)
        updated = dataclasses.replace(card, username=name, updated_at=datetime.now(timezone.utc))
        try:
            self._cards.save(updated)
        except DuplicateCardFieldError:
            return UsernameTaken(username=name or "")
        return updated

    def suggest_username(self) -> str | CardMissing:
        """Slug of the card name, with a numeric suffix until it is free."""
        card = self._cards.get_by_owner(self._owner_id)
        if card is None:
            return CardMissing(owner_id=self._owner_id)
        base = re.sub(r"[^a-z0-9]+", "", card.name.lower())[:24] or "user"
        if len(base) < 3:
            base = (base + "user")[:24]
        candidate = base
        suffix = 1
        while not is_valid_username(candidate) or self._taken_by_other(candidate):
            candidate = f"{base}{suffix}"
            suffix += 1
        return candidate

    def deactivate_card(self) -> ContactCard | CardMissing:
        """Hide the card from every lookup without deleting it."""
        card = self._cards.get_by_owner(self._owner_id)
        if card is None:
            return CardMissing(owner_id=self._owner_id)
        updated = dataclasses.replace(card, is_active=False, updated_at=datetime.now(timezone.utc))
        self._cards.save(updated)
        logger.info("Contact card deactivated for owner %s", self._owner_id)
        return updated

    def reactivate_card(self) -> ContactCard | CardMissing:
        """Publish a deactivated card again. The code it had while hidden is never reused."""
        card = self._cards.get_by_owner(self._owner_id)
        if card is None:
            return CardMissing(owner_id=self._owner_id)
        if card.is_active:
            return card
        updated = dataclasses.replace(
            card,
            is_active=True,
            share_code=self._new_share_code(),
            updated_at=datetime.now(timezone.utc),
        )
        self._cards.save(updated)
        logger.info("Contact card reactivated for owner %s", self._owner_id)
        return updated

    def delete_account_data(self) -> int:
        """Account deletion: remove my cards and my own contact rows.

        Other owners' copies of me stay; they are their rows, not mine.
        """
        removed = self._cards.delete_by_owner(self._owner_id)
        if self._contacts is not None:
            removed += self._contacts.delete_all_for_owner(self._owner_id)
        logger.info("Deleted account data for owner %s (%d rows)", self._owner_id, removed)
        return removed

    def public_profile(self, identifier: str) -> dict | InvalidFormat | NotFound:
        """Card as shown at /public/<identifier>, hidden fields removed."""
        value = (identifier or "").strip()
        if is_share_code(value):
            card = self._resolver.resolve_by_code(value)
        else:
            card = self._resolver.resolve_by_username(value)
        if isinstance(card, InvalidFormat | NotFound):
            return card
        return public_view(card)

    def _taken_by_other(self, username: str) -> bool:
        holder = self._cards.username_owner(username)
        return holder is not None and holder != self._owner_id

    def _new_share_code(self) -> str:
        for _ in range(_MAX_CODE_ATTEMPTS):
            code = generate_share_code()
            if not self._cards.share_code_exists(code):
                return code
        raise RuntimeError("Could not allocate a unique share code.")


def public_view(card: ContactCard) -> dict:
    out = {
        "name": card.name,
        "share_code": card.share_code,
        "username": card.username,
    }
    for name in PUBLIC_FIELDS:
        if card.is_public(name):
            value = getattr(card, name)
            out[name] = list(value) if isinstance(value, tuple) else value
    return out
