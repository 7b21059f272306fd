"""Mutual linking: resolve a card, add it to my list, then add me to theirs.

The two writes cross an authority boundary (my owner-scoped repository, then
the elevated reciprocal writer) and are not one transaction. If my side
succeeds and theirs fails, my row stays and the outcome is partial; retrying the
same code is safe because both sides are idempotent.
"""

import logging

from cardlink.application.card_resolver import CardResolver
from cardlink.application.contact_writer import ContactWriter
from cardlink.application.dto import (
    PARTIAL_LINK_MESSAGE,
    SIDE_ALREADY_EXISTED,
    SIDE_CREATED,
    SIDE_FAILED,
    SIDE_SKIPPED,
    AlreadyExists,
    ContactCreated,
    InvalidFormat,
    LinkOutcome,
    NotFound,
    RequesterCardMissing,
    SelfLinkRejected,
)
from cardlink.application.ports import (
    ContactCardRepository,
    ContactRepository,
    ReciprocalWriter,
)
from cardlink.domain import (
    ADDED_VIA_QR_CODE,
    ADDED_VIA_SHARE_CODE,
    TIER_ACQUAINTANCE,
    ContactCard,
    InvalidIdentifier,
    UsernameRef,
    parse_identifier,
)

logger = logging.getLogger(__name__)

LinkResult = LinkOutcome | InvalidFormat | NotFound | SelfLinkRejected | RequesterCardMissing

_OWN_SIDE_NOTES = {
    ADDED_VIA_SHARE_CODE: "Added via share code",
    ADDED_VIA_QR_CODE: "Added via QR code",
}
USERNAME_NOTE = "Added via username"


def _side_status(result) -> str:
    if isinstance(result, ContactCreated):
        return SIDE_CREATED
    if isinstance(result, AlreadyExists):
        return SIDE_ALREADY_EXISTED
    return SIDE_FAILED


class MutualLinkService:
    """Link attempts for one requester. Build one per request; holds no state between calls."""

    def __init__(
        self,
        requester_id: str,
        cards: ContactCardRepository,
        contacts: ContactRepository,
        reciprocal: ReciprocalWriter,
    ) -> None:
        self._requester_id = requester_id
        self._cards = cards
        self._resolver = CardResolver(cards)
        self._writer = ContactWriter(contacts)
        self._reciprocal = reciprocal

    def link_by_code(
        self,
        code: str,
        *,
        tier: str = TIER_ACQUAINTANCE,
        added_via: str = ADDED_VIA_SHARE_CODE,
    ) -> LinkResult:
        target = self._resolver.resolve_by_code(code)
        if isinstance(target, InvalidFormat | NotFound):
            return target
        return self.link_to_card(target, tier=tier, added_via=added_via)

    def link_by_username(
        self,
        username: str,
        *,
        tier: str = TIER_ACQUAINTANCE,
        added_via: str = ADDED_VIA_SHARE_CODE,
    ) -> LinkResult:
        target = self._resolver.resolve_by_username(username)
        if isinstance(target, InvalidFormat | NotFound):
            return target
        return self.link_to_card(target, tier=tier, added_via=added_via, notes=USERNAME_NOTE)

    def link_from_scan(
        self,
        raw_text: str,
        *,
        tier: str = TIER_ACQUAINTANCE,
        added_via: str = ADDED_VIA_SHARE_CODE,
    ) -> LinkResult:
        """Accepts a QR payload, a pasted URL or a bare code."""
        ref = parse_identifier(raw_text)
        if isinstance(ref, InvalidIdentifier):
            return InvalidFormat(
                value=raw_text or "",
                reason=f"No share code or username found in {raw_text!r}.",
            )
        target = self._resolver.resolve(ref)
        if isinstance(target, InvalidFormat | NotFound):
            return target
        notes = USERNAME_NOTE if isinstance(ref, UsernameRef) else None
        return self.link_to_card(target, tier=tier, added_via=added_via, notes=notes)

    def link_to_card(
        self,
        target: ContactCard,
        *,
        tier: str = TIER_ACQUAINTANCE,
        added_via: str = ADDED_VIA_SHARE_CODE,
        notes: str | None = None,
    ) -> LinkOutcome | SelfLinkRejected | RequesterCardMissing:
        """notes defaults to one describing added_via."""
        if target.owner_id == self._requester_id:
            return SelfLinkRejected(owner_id=self._requester_id)

        # My side is copied from what they published and theirs from my stored card,
        # so I need one before anything is written.
        my_card = self._cards.get_active_by_owner(self._requester_id)
        if my_card is None:
            logger.info("Link refused: requester %s has no active card", self._requester_id)
            return RequesterCardMissing(requester_id=self._requester_id)

        own = self._writer.upsert_contact(
            self._requester_id, target, tier, added_via, notes=notes or _OWN_SIDE_NOTES.get(added_via)
        )
        own_side = _side_status(own)
        if own_side == SIDE_FAILED:
            return LinkOutcome(
                own_side=SIDE_FAILED,
                counterpart_side=SIDE_SKIPPED,
                target_owner_id=target.owner_id,
                target_name=target.name,
                message=own.reason,
            )

        theirs = self._reciprocal.write_reciprocal(self._requester_id, target, my_card)
        counterpart_side = _side_status(theirs)
        if counterpart_side == SIDE_FAILED:
            logger.warning(
                "Partial link %s -> %s: %s",
                self._requester_id,
                target.owner_id,
                getattr(theirs, "reason", theirs),
            )
            message = PARTIAL_LINK_MESSAGE
        else:
            message = (
                f"{target.name} has been added to your network, "
                "and you've been added to theirs!"
            )
        return LinkOutcome(
            own_side=own_side,
            counterpart_side=counterpart_side,
            target_owner_id=target.owner_id,
            target_name=target.name,
            message=message,
        )
