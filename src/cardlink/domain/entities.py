"""Domain entities: ContactCard (own publishable identity) and Contact (one owner's record of someone)."""

import re
import secrets
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

SHARE_CODE_LENGTH = 8
SHARE_CODE_RE = re.compile(r"^[a-f0-9]{8}$")

USERNAME_RE = re.compile(r"^[A-Za-z0-9_.-]{3,30}$")

TIER_A_PLAYER = "A-player"
TIER_ACQUAINTANCE = "Acquaintance"
TIERS = (TIER_A_PLAYER, TIER_ACQUAINTANCE)

ADDED_VIA_SHARE_CODE = "share_code"
ADDED_VIA_QR_CODE = "qr_code"
ADDED_VIA_MUTUAL_CONTACT = "mutual_contact"
ADDED_VIA = (ADDED_VIA_SHARE_CODE, ADDED_VIA_QR_CODE, ADDED_VIA_MUTUAL_CONTACT)

# Card fields an owner can hide from the public profile.
PUBLIC_FIELDS = (
    "email",
    "phone",
    "company",
    "industry",
    "services",
    "linkedin",
    "facebook",
    "whatsapp",
    "websites",
    "notes",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_share_code() -> str:
    """Return a random 8-char lowercase hex code. Uniqueness is checked by the caller."""
    return secrets.token_hex(SHARE_CODE_LENGTH // 2)


def is_share_code(value: str | None) -> bool:
    return bool(value) and SHARE_CODE_RE.match(value) is not None


def normalize_email(value: str | None) -> str:
    return (value or "").strip().lower()


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def _clean_list(values) -> tuple[str, ...]:
    if not values:
        return ()
    return tuple(v.strip() for v in values if v and v.strip())


@dataclass(frozen=True)
class ContactCard:
    """
    A user's own publishable identity, addressed externally by share_code or username.
    Only active cards are visible to lookups; at most one active card per owner.
    """

    owner_id: str
    name: str
    email: str
    share_code: str = field(default_factory=generate_share_code)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    phone: str | None = None
    company: str | None = None
    industry: str | None = None
    services: tuple[str, ...] = ()
    linkedin: str | None = None
    facebook: str | None = None
    whatsapp: str | None = None
    websites: tuple[str, ...] = ()
    notes: str | None = None
    username: str | None = None
    is_active: bool = True
    public_visibility: dict[str, bool] = field(default_factory=dict, hash=False)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        if not self.owner_id or not self.owner_id.strip():
            raise ValueError("ContactCard owner_id must be non-empty.")
        name = (self.name or "").strip()
        if not name:
            raise ValueError("ContactCard name must be non-empty.")
        object.__setattr__(self, "name", name)
        email = (self.email or "").strip()
        if not email:
            raise ValueError("ContactCard email must be non-empty.")
        object.__setattr__(self, "email", email)
        if not is_share_code(self.share_code):
            raise ValueError(
                f"ContactCard share_code must be {SHARE_CODE_LENGTH} lowercase hex chars."
            )
        username = _clean(self.username)
        if username is not None and not is_valid_username(username):
            raise ValueError(f"Invalid username: {username!r}")
        object.__setattr__(self, "username", username)
        for attr in ("phone", "company", "industry", "linkedin", "facebook", "whatsapp", "notes"):
            object.__setattr__(self, attr, _clean(getattr(self, attr)))
        object.__setattr__(self, "services", _clean_list(self.services))
        object.__setattr__(self, "websites", _clean_list(self.websites))
        unknown = set(self.public_visibility or {}) - set(PUBLIC_FIELDS)
        if unknown:
            raise ValueError(f"Unknown public_visibility fields: {sorted(unknown)}")

    def is_public(self, field_name: str) -> bool:
        """Missing entries in public_visibility mean visible."""
        return bool((self.public_visibility or {}).get(field_name, True))


def is_valid_username(value: str) -> bool:
    """Usernames must not look like share codes, otherwise /public/<x> is ambiguous."""
    return bool(USERNAME_RE.match(value)) and not is_share_code(value.lower())


@dataclass(frozen=True)
class Contact:
    """
    One owner's private, directional record of a counterpart.
    Never points at the counterpart's own Contact; the two rows of a mutual link are independent.
    """

    owner_id: str
    name: str
    email: str
    tier: str = TIER_ACQUAINTANCE
    added_via: str = ADDED_VIA_SHARE_CODE
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    phone: str | None = None
    company: str | None = None
    industry: str | None = None
    services: tuple[str, ...] = ()
    linkedin: str | None = None
    facebook: str | None = None
    whatsapp: str | None = None
    websites: tuple[str, ...] = ()
    notes: str | None = None
    added_date: date = field(default_factory=lambda: _utcnow().date())
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        if not self.owner_id or not self.owner_id.strip():
            raise ValueError("Contact owner_id must be non-empty.")
        name = (self.name or "").strip()
        if not name:
            raise ValueError("Contact name must be non-empty.")
        object.__setattr__(self, "name", name)
        email = normalize_email(self.email)
        if not email:
            raise ValueError("Contact email must be non-empty.")
        object.__setattr__(self, "email", email)
        if self.tier not in TIERS:
            raise ValueError(f"Unknown tier: {self.tier!r}")
        if self.added_via not in ADDED_VIA:
            raise ValueError(f"Unknown added_via: {self.added_via!r}")
        object.__setattr__(self, "services", _clean_list(self.services))
        object.__setattr__(self, "websites", _clean_list(self.websites))
        object.__setattr__(self, "notes", _clean(self.notes))

    @classmethod
    def from_card(
        cls,
        owner_id: str,
        card: ContactCard,
        *,
        tier: str,
        added_via: str,
        notes: str | None = None,
    ) -> "Contact":
        """Copy the counterpart's published card into a row owned by owner_id."""
        return cls(
            owner_id=owner_id,
            name=card.name,
            email=card.email,
            tier=tier,
            added_via=added_via,
            phone=card.phone,
            company=card.company,
            industry=card.industry,
            services=card.services,
            linkedin=card.linkedin,
            facebook=card.facebook,
            whatsapp=card.whatsapp,
            websites=card.websites,
            notes=notes,
        )
