"""Turn scanned or typed text into a share code or username reference.

Accepts printed/QR URLs (``.../contact/<code>``, ``.../public/<code-or-username>``),
bare codes, and text with scanner noise around a code. Pure: no lookups happen here,
a username is only a candidate until the resolver finds a card for it.
"""

import re
from dataclasses import dataclass

KIND_SHARE_CODE = "share_code"
KIND_USERNAME = "username"
KIND_INVALID = "invalid"

_HEX8 = re.compile(r"^[a-f0-9]{8}$", re.IGNORECASE)
_CONTACT_PATH = re.compile(r"/contact/([a-f0-9]{8})", re.IGNORECASE)
_PUBLIC_PATH = re.compile(r"/public/([^/?#\s]+)", re.IGNORECASE)
_URL_PATH = re.compile(r"https?://[^/]+/(?:public|contact)/([^/?#\s]+)", re.IGNORECASE)
_HEX8_ANYWHERE = re.compile(r"[a-f0-9]{8}", re.IGNORECASE)


@dataclass(frozen=True)
class ShareCodeRef:
    value: str
    kind: str = KIND_SHARE_CODE


@dataclass(frozen=True)
class UsernameRef:
    value: str
    kind: str = KIND_USERNAME


@dataclass(frozen=True)
class InvalidIdentifier:
    raw: str
    kind: str = KIND_INVALID


ParsedIdentifier = ShareCodeRef | UsernameRef | InvalidIdentifier


def _classify(token: str) -> ShareCodeRef | UsernameRef | None:
    token = token.strip()
    if not token:
        return None
    if _HEX8.match(token):
        return ShareCodeRef(value=token.lower())
    return UsernameRef(value=token)


def parse_identifier(raw_text: str | None) -> ParsedIdentifier:
    """Classify raw text. Rules are ordered; the first match wins."""
    text = (raw_text or "").strip()
    if not text:
        return InvalidIdentifier(raw=raw_text or "")

    if "/contact/" in text:
        match = _CONTACT_PATH.search(text)
        if match:
            return ShareCodeRef(value=match.group(1).lower())

    if "/public/" in text:
        match = _PUBLIC_PATH.search(text)
        if match:
            ref = _classify(match.group(1))
            if ref is not None:
                return ref

    if _HEX8.match(text):
        return ShareCodeRef(value=text.lower())

    if "http" in text:
        match = _URL_PATH.search(text)
        if match:
            ref = _classify(match.group(1))
            if ref is not None:
                return ref

    match = _HEX8_ANYWHERE.search(text)
    if match:
        return ShareCodeRef(value=match.group(0).lower())

    return InvalidIdentifier(raw=raw_text)
