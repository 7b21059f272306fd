"""Application layer: use cases, ports, and DTOs. Depends only on domain."""

from cardlink.application.card_resolver import CardResolver
from cardlink.application.card_service import CardService, public_view
from cardlink.application.contact_service import ContactService
from cardlink.application.contact_writer import ContactWriter
from cardlink.application.dto import (
    AlreadyExists,
    CardMissing,
    ContactCardData,
    ContactCreated,
    ContactNotFound,
    ContactSummary,
    Invalid,
    InvalidFormat,
    LinkNotAuthorized,
    LinkOutcome,
    NotFound,
    RequesterCardMissing,
    SelfLinkRejected,
    UsernameTaken,
    WriteFailed,
)
from cardlink.application.link_service import MutualLinkService
from cardlink.application.ports import (
    ContactCardRepository,
    ContactRepository,
    DuplicateCardFieldError,
    DuplicateContactError,
    PermissionDenied,
    ReciprocalWriter,
    StorageError,
)
from cardlink.application.reciprocal import ElevatedContactBoundary

__all__ = [
    "AlreadyExists",
    "CardMissing",
    "CardResolver",
    "CardService",
    "ContactCardData",
    "ContactCardRepository",
    "ContactCreated",
    "ContactNotFound",
    "ContactRepository",
    "ContactService",
    "ContactSummary",
    "ContactWriter",
    "DuplicateCardFieldError",
    "DuplicateContactError",
    "ElevatedContactBoundary",
    "Invalid",
    "InvalidFormat",
    "LinkNotAuthorized",
    "LinkOutcome",
    "MutualLinkService",
    "NotFound",
    "PermissionDenied",
    "ReciprocalWriter",
    "RequesterCardMissing",
    "SelfLinkRejected",
    "StorageError",
    "UsernameTaken",
    "WriteFailed",
    "public_view",
]
