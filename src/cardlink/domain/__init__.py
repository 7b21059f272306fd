"""Domain layer: entities, value objects and identifier parsing. No dependencies on outer layers."""

from cardlink.domain.entities import (
    ADDED_VIA_MUTUAL_CONTACT,
    ADDED_VIA_QR_CODE,
    ADDED_VIA_SHARE_CODE,
    TIER_A_PLAYER,
    TIER_ACQUAINTANCE,
    Contact,
    ContactCard,
)
from cardlink.domain.identifiers import (
    InvalidIdentifier,
    ShareCodeRef,
    UsernameRef,
    parse_identifier,
)

__all__ = [
    "ADDED_VIA_MUTUAL_CONTACT",
    "ADDED_VIA_QR_CODE",
    "ADDED_VIA_SHARE_CODE",
    "TIER_ACQUAINTANCE",
    "TIER_A_PLAYER",
    "Contact",
    "ContactCard",
    "InvalidIdentifier",
    "ShareCodeRef",
    "UsernameRef",
    "parse_identifier",
]
