"""Look up a published ContactCard by share code or username."""

from cardlink.application.dto import InvalidFormat, NotFound
from cardlink.application.ports import ContactCardRepository
from cardlink.domain import ContactCard, ShareCodeRef, UsernameRef
from cardlink.domain.entities import is_share_code


class CardResolver:
    """Read-only. Deactivated cards are never returned, so a regenerated or
    revoked code stops working on the next lookup."""

    def __init__(self, cards: ContactCardRepository) -> None:
        self._cards = cards

    def resolve_by_code(self, code: str) -> ContactCard | InvalidFormat | NotFound:
        normalized = (code or "").strip().lower()
        if not is_share_code(normalized):
            return InvalidFormat(
                value=code or "",
                reason=f"Share code must be 8 hex characters, got {code!r}.",
            )
        card = self._cards.get_active_by_code(normalized)
        if card is None or not card.is_active:
            return NotFound(identifier=normalized)
        return card

    def resolve_by_username(self, username: str) -> ContactCard | InvalidFormat | NotFound:
        name = (username or "").strip()
        if not name:
            return InvalidFormat(value=username or "", reason="Username is required.")
        card = self._cards.get_active_by_username(name)
        if card is None or not card.is_active or card.username != name:
            return NotFound(identifier=name)
        return card

    def resolve(self, ref: ShareCodeRef | UsernameRef) -> ContactCard | InvalidFormat | NotFound:
        if isinstance(ref, ShareCodeRef):
            return self.resolve_by_code(ref.value)
        return self.resolve_by_username(ref.value)
