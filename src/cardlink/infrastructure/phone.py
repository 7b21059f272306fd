"""Phone number normalization to E.164 for card storage."""

import os

import phonenumbers


def default_region() -> str | None:
    """Region used for numbers typed without a country code (PHONE_DEFAULT_REGION, e.g. "US")."""
    return (os.environ.get("PHONE_DEFAULT_REGION") or "").strip().upper() or None


def normalize_phone(raw: str, region: str | None = None) -> str | None:
    """Return the E.164 form of the number, or None if it cannot be parsed as valid.

    region applies only when the input has no leading +; an explicit country
    code always wins.
    """
    if not raw or not str(raw).strip():
        return None
    try:
        parsed = phonenumbers.parse(str(raw).strip(), region)
    except phonenumbers.NumberParseException:
        return None
    if not phonenumbers.is_valid_number(parsed):
        return None
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)
