"""Input DTOs and result types for card, contact and link use cases."""

from dataclasses import dataclass, field
from datetime import date, datetime

SIDE_CREATED = "created"
SIDE_ALREADY_EXISTED = "already_existed"
SIDE_FAILED = "failed"
SIDE_SKIPPED = "skipped"

LINK_COMPLETED = "completed"
LINK_PARTIAL = "partial"
LINK_FAILED = "failed"

PARTIAL_LINK_MESSAGE = (
    "Contact added to your list, but couldn't add you to theirs. "
    "They may need to add you manually."
)


@dataclass(frozen=True)
class ContactCardData:
    """Editable fields of the acting user's own card (create or update)."""

    name: str
    email: str
    phone: str | None = None
    company: str | None = None
    industry: str | None = None
    services: tuple[str, ...] = ()
    linkedin: str | None = None
    facebook: str | None = None
    whatsapp: str | None = None
    websites: tuple[str, ...] = ()
    notes: str | None = None
    public_visibility: dict[str, bool] = field(default_factory=dict)


@dataclass(frozen=True)
class ContactSummary:
    """One contact as returned by list_contacts and search_contacts."""

    contact_id: str
    name: str
    email: str
    tier: str
    added_via: str
    added_date: date
    created_at: datetime
    company: str | None = None
    phone: str | None = None
    notes: str | None = None


# --- resolution / link failures (no write attempted) ---


@dataclass(frozen=True)
class InvalidFormat:
    """Malformed share code or username. value echoes what the user typed."""

    value: str
    reason: str


@dataclass(frozen=True)
class NotFound:
    """Valid format but no active card (possibly a regenerated or deactivated code)."""

    identifier: str


@dataclass(frozen=True)
class SelfLinkRejected:
    """The resolved card belongs to the requester."""

    owner_id: str


@dataclass(frozen=True)
class RequesterCardMissing:
    """The requester has not published an active card yet."""

    requester_id: str


# --- single-side write results ---


@dataclass(frozen=True)
class ContactCreated:
    """A new contact row was stored."""

    contact_id: str
    name: str


@dataclass(frozen=True)
class AlreadyExists:
    """The owner already holds a row for this email. Counts as success."""

    owner_id: str
    email: str


@dataclass(frozen=True)
class WriteFailed:
    """Storage error. reason is safe to show; details are only logged."""

    reason: str


@dataclass(frozen=True)
class LinkNotAuthorized:
    """The elevated boundary refused the reciprocal write."""

    reason: str


# --- aggregated link result ---


@dataclass(frozen=True)
class LinkOutcome:
    """Result of one mutual link attempt. Not persisted."""

    own_side: str
    counterpart_side: str
    target_owner_id: str
    target_name: str
    message: str = ""

    @property
    def status(self) -> str:
        if self.own_side == SIDE_FAILED:
            return LINK_FAILED
        if self.is_mutual:
            return LINK_COMPLETED
        return LINK_PARTIAL

    @property
    def is_mutual(self) -> bool:
        ok = (SIDE_CREATED, SIDE_ALREADY_EXISTED)
        return self.own_side in ok and self.counterpart_side in ok

    @property
    def is_partial(self) -> bool:
        return self.status == LINK_PARTIAL


# --- own card / contact management ---


@dataclass(frozen=True)
class Invalid:
    """Input rejected (e.g. empty name, bad email, unknown tier)."""

    reason: str


@dataclass(frozen=True)
class UsernameTaken:
    username: str


@dataclass(frozen=True)
class CardMissing:
    """The acting user has no card to operate on."""

    owner_id: str


@dataclass(frozen=True)
class ContactNotFound:
    contact_id: str
