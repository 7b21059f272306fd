"""Reach the elevated boundary when it runs as a separate service (api.elevated)."""

import logging

import requests

from cardlink.application.dto import (
    AlreadyExists,
    ContactCreated,
    LinkNotAuthorized,
    WriteFailed,
)
from cardlink.application.ports import ReciprocalResult
from cardlink.domain import ContactCard
from cardlink.domain.entities import normalize_email

logger = logging.getLogger(__name__)

ENDPOINT_PATH = "/functions/add-mutual-contact"
USER_ID_HEADER = "X-User-Id"


def card_payload(card: ContactCard) -> dict:
    """Wire shape of otherUserContactCard."""
    return {
        "user_id": card.owner_id,
        "name": card.name,
        "email": card.email,
        "phone": card.phone,
        "company": card.company,
        "industry": card.industry,
        "services": list(card.services),
        "linkedin": card.linkedin,
        "facebook": card.facebook,
        "whatsapp": card.whatsapp,
        "websites": list(card.websites),
    }


class HttpReciprocalWriter:
    """ReciprocalWriter over HTTP. Transport errors become WriteFailed, never exceptions."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self._url = base_url.rstrip("/") + ENDPOINT_PATH
        self._timeout = timeout
        self._session = session or requests.Session()

    def write_reciprocal(
        self, caller_id: str, target: ContactCard, source: ContactCard
    ) -> ReciprocalResult:
        body = {"currentUserId": caller_id, "otherUserContactCard": card_payload(target)}
        try:
            response = self._session.post(
                self._url,
                json=body,
                headers={USER_ID_HEADER: caller_id},
                timeout=self._timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.warning("Reciprocal service unreachable at %s: %s", self._url, e)
            return WriteFailed(reason="Reciprocal service unreachable.")

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.status_code == 200 and data.get("success"):
            if data.get("status") == "already_existed":
                return AlreadyExists(owner_id=target.owner_id, email=normalize_email(source.email))
            return ContactCreated(contact_id=data.get("contactId") or "", name=source.name)
        error = data.get("error") or f"HTTP {response.status_code}"
        if response.status_code == 403:
            return LinkNotAuthorized(reason=error)
        logger.warning("Reciprocal service returned %s: %s", response.status_code, error)
        return WriteFailed(reason=error)
