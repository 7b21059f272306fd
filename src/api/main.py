"""
FastAPI backend: own card, own contacts, public profiles and mutual linking.
Run with uvicorn: uvicorn api.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Header, HTTPException, Request
from pydantic import BaseModel

from api.config import (
    USER_ID_HEADER,
    elevated_driver,
    reciprocal_boundary_url,
    reciprocal_timeout,
    user_driver,
)
from cardlink.application import (
    CardMissing,
    CardService,
    ContactCardData,
    ContactNotFound,
    ContactService,
    ContactSummary,
    ElevatedContactBoundary,
    Invalid,
    InvalidFormat,
    LinkOutcome,
    MutualLinkService,
    NotFound,
    RequesterCardMissing,
    SelfLinkRejected,
    UsernameTaken,
)
from cardlink.application.dto import LINK_FAILED
from cardlink.domain import ADDED_VIA_QR_CODE, ADDED_VIA_SHARE_CODE, TIER_ACQUAINTANCE, ContactCard
from cardlink.domain.entities import TIERS
from cardlink.infrastructure import HttpReciprocalWriter, Neo4jStore, ensure_constraints
from cardlink.infrastructure.phone import default_region, normalize_phone

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)
logger = logging.getLogger(__name__)

# Sources a client may claim for its own side; mutual_contact is reserved for the boundary.
CLIENT_SOURCES = (ADDED_VIA_SHARE_CODE, ADDED_VIA_QR_CODE)


def _user_store(app: FastAPI):
    if getattr(app.state, "user_store", None) is None:
        app.state.driver = user_driver()
        app.state.user_store = Neo4jStore(app.state.driver)
    return app.state.user_store


def _elevated_store(app: FastAPI):
    if getattr(app.state, "elevated_store", None) is None:
        app.state.elevated_driver = elevated_driver()
        app.state.elevated_store = Neo4jStore(app.state.elevated_driver)
    return app.state.elevated_store


def _reciprocal_writer(app: FastAPI):
    """In-process boundary by default; HTTP when RECIPROCAL_BOUNDARY_URL is set."""
    if getattr(app.state, "reciprocal_writer", None) is None:
        url = reciprocal_boundary_url()
        if url:
            app.state.reciprocal_writer = HttpReciprocalWriter(url, timeout=reciprocal_timeout())
        else:
            store = _elevated_store(app)
            app.state.reciprocal_writer = ElevatedContactBoundary(
                store.card_repository(), store.contact_repository()
            )
    return app.state.reciprocal_writer


def _require_user(x_user_id: str | None) -> str:
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail=f"{USER_ID_HEADER} header is required")
    return user_id


def get_card_service(user_id: str, app: FastAPI) -> CardService:
    store = _user_store(app)
    region = default_region()
    return CardService(
        user_id,
        store.card_repository(user_id),
        store.contact_repository(user_id),
        normalize_phone=lambda raw: normalize_phone(raw, region),
    )


def get_contact_service(user_id: str, app: FastAPI) -> ContactService:
    return ContactService(user_id, _user_store(app).contact_repository(user_id))


def get_link_service(user_id: str, app: FastAPI) -> MutualLinkService:
    store = _user_store(app)
    return MutualLinkService(
        user_id,
        store.card_repository(user_id),
        store.contact_repository(user_id),
        _reciprocal_writer(app),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.driver = None
    app.state.elevated_driver = None
    try:
        if getattr(app.state, "user_store", None) is None:
            app.state.driver = user_driver()
            ensure_constraints(app.state.driver)
            app.state.user_store = Neo4jStore(app.state.driver)
        yield
    finally:
        for name in ("driver", "elevated_driver"):
            driver = getattr(app.state, name, None)
            if driver is not None:
                driver.close()


app = FastAPI(title="cardlink API", lifespan=lifespan)


# --- REST: health ---


@app.get("/health")
def health():
    return {"status": "ok"}


# --- REST: own card ---


class CardBody(BaseModel):
    name: str
    email: str
    phone: str | None = None
    company: str | None = None
    industry: str | None = None
    services: list[str] = []
    linkedin: str | None = None
    facebook: str | None = None
    whatsapp: str | None = None
    websites: list[str] = []
    notes: str | None = None
    public_visibility: dict[str, bool] = {}


class UsernameBody(BaseModel):
    username: str | None = None


def _card_json(card: ContactCard) -> dict:
    return {
        "id": card.id,
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
        "notes": card.notes,
        "share_code": card.share_code,
        "username": card.username,
        "is_active": card.is_active,
        "public_visibility": dict(card.public_visibility or {}),
        "updated_at": card.updated_at.isoformat(),
    }


def _card_or_404(result):
    if isinstance(result, CardMissing):
        raise HTTPException(status_code=404, detail="Create your contact card first")
    return _card_json(result)


@app.get("/cards/me")
def get_my_card(request: Request, x_user_id: str | None = Header(None, alias=USER_ID_HEADER)):
    card = get_card_service(_require_user(x_user_id), request.app).get_my_card()
    if card is None:
        raise HTTPException(status_code=404, detail="Create your contact card first")
    return _card_json(card)


@app.put("/cards/me")
def save_my_card(
    body: CardBody,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    service = get_card_service(_require_user(x_user_id), request.app)
    result = service.save_my_card(
        ContactCardData(
            name=body.name,
            email=body.email,
            phone=body.phone,
            company=body.company,
            industry=body.industry,
            services=tuple(body.services),
            linkedin=body.linkedin,
            facebook=body.facebook,
            whatsapp=body.whatsapp,
            websites=tuple(body.websites),
            notes=body.notes,
            public_visibility=body.public_visibility,
        )
    )
    if isinstance(result, Invalid):
        raise HTTPException(status_code=400, detail=result.reason)
    return _card_json(result)


@app.post("/cards/me/share-code")
def regenerate_share_code(request: Request, x_user_id: str | None = Header(None, alias=USER_ID_HEADER)):
    service = get_card_service(_require_user(x_user_id), request.app)
    return _card_or_404(service.regenerate_share_code())


@app.put("/cards/me/username")
def set_username(
    body: UsernameBody,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    service = get_card_service(_require_user(x_user_id), request.app)
    result = service.set_username(body.username)
    if isinstance(result, InvalidFormat):
        raise HTTPException(status_code=400, detail=result.reason)
    if isinstance(result, UsernameTaken):
        raise HTTPException(status_code=409, detail=f"Username {result.username!r} is taken")
    return _card_or_404(result)


@app.get("/cards/me/username-suggestion")
def suggest_username(request: Request, x_user_id: str | None = Header(None, alias=USER_ID_HEADER)):
    result = get_card_service(_require_user(x_user_id), request.app).suggest_username()
    if isinstance(result, CardMissing):
        raise HTTPException(status_code=404, detail="Create your contact card first")
    return {"username": result}


@app.post("/cards/me/deactivate")
def deactivate_card(request: Request, x_user_id: str | None = Header(None, alias=USER_ID_HEADER)):
    service = get_card_service(_require_user(x_user_id), request.app)
    return _card_or_404(service.deactivate_card())


@app.post("/cards/me/reactivate")
def reactivate_card(request: Request, x_user_id: str | None = Header(None, alias=USER_ID_HEADER)):
    service = get_card_service(_require_user(x_user_id), request.app)
    return _card_or_404(service.reactivate_card())


@app.delete("/cards/me")
def delete_account_data(request: Request, x_user_id: str | None = Header(None, alias=USER_ID_HEADER)):
    removed = get_card_service(_require_user(x_user_id), request.app).delete_account_data()
    return {"deleted": removed}


@app.get("/public/{identifier}")
def public_profile(identifier: str, request: Request):
    # Public lookups read active cards only; any scope works, use an anonymous one.
    store = _user_store(request.app)
    service = CardService("anonymous", store.card_repository("anonymous"))
    result = service.public_profile(identifier)
    if isinstance(result, InvalidFormat):
        raise HTTPException(status_code=400, detail=result.reason)
    if isinstance(result, NotFound):
        raise HTTPException(status_code=404, detail="Profile not found")
    return result


# --- REST: contacts ---


class ContactListItem(BaseModel):
    id: str
    name: str
    email: str
    tier: str
    added_via: str
    added_date: str
    created_at: str
    company: str | None = None
    phone: str | None = None
    notes: str | None = None


class ContactPatch(BaseModel):
    tier: str | None = None
    notes: str | None = None


def _list_item(s: ContactSummary) -> ContactListItem:
    return ContactListItem(
        id=s.contact_id,
        name=s.name,
        email=s.email,
        tier=s.tier,
        added_via=s.added_via,
        added_date=s.added_date.isoformat(),
        created_at=s.created_at.isoformat(),
        company=s.company,
        phone=s.phone,
        notes=s.notes,
    )


@app.get("/contacts")
def list_contacts(
    request: Request,
    tier: str | None = None,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    service = get_contact_service(_require_user(x_user_id), request.app)
    return [_list_item(s) for s in service.list_contacts(tier=tier)]


@app.get("/contacts/search")
def search_contacts(
    q: str,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    service = get_contact_service(_require_user(x_user_id), request.app)
    return [_list_item(s) for s in service.search_contacts(q)]


@app.get("/contacts/{contact_id}")
def get_contact(
    contact_id: str,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    summary = get_contact_service(_require_user(x_user_id), request.app).get_contact(contact_id)
    if summary is None:
        raise HTTPException(status_code=404, detail="Contact not found")
    return _list_item(summary)


@app.patch("/contacts/{contact_id}")
def update_contact(
    contact_id: str,
    body: ContactPatch,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    service = get_contact_service(_require_user(x_user_id), request.app)
    result = service.update_contact(contact_id, tier=body.tier, notes=body.notes)
    if isinstance(result, Invalid):
        raise HTTPException(status_code=400, detail=result.reason)
    if isinstance(result, ContactNotFound):
        raise HTTPException(status_code=404, detail="Contact not found")
    return _list_item(result)


@app.delete("/contacts/{contact_id}", status_code=204)
def delete_contact(
    contact_id: str,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    service = get_contact_service(_require_user(x_user_id), request.app)
    if not service.delete_contact(contact_id):
        raise HTTPException(status_code=404, detail="Contact not found")


# --- REST: mutual links ---


class LinkByCodeBody(BaseModel):
    code: str
    tier: str = TIER_ACQUAINTANCE
    source: str = ADDED_VIA_SHARE_CODE


class LinkByUsernameBody(BaseModel):
    username: str
    tier: str = TIER_ACQUAINTANCE
    source: str = ADDED_VIA_SHARE_CODE


class LinkByScanBody(BaseModel):
    text: str
    tier: str = TIER_ACQUAINTANCE
    source: str = ADDED_VIA_SHARE_CODE


def _check_link_options(tier: str, source: str) -> None:
    if tier not in TIERS:
        raise HTTPException(status_code=400, detail=f"Unknown tier: {tier!r}")
    if source not in CLIENT_SOURCES:
        raise HTTPException(status_code=400, detail=f"Unknown source: {source!r}")


def _link_response(result) -> dict:
    if isinstance(result, InvalidFormat):
        raise HTTPException(status_code=400, detail=result.reason)
    if isinstance(result, NotFound):
        raise HTTPException(status_code=404, detail="Contact not found with this share code or username")
    if isinstance(result, SelfLinkRejected):
        raise HTTPException(status_code=400, detail="Cannot add yourself as a contact")
    if isinstance(result, RequesterCardMissing):
        raise HTTPException(status_code=400, detail="Please create your contact card first")
    if not isinstance(result, LinkOutcome):
        raise HTTPException(status_code=500, detail="Unexpected link result")
    if result.status == LINK_FAILED:
        raise HTTPException(status_code=500, detail=result.message or "Failed to add contact")
    return {
        "success": True,
        "status": result.status,
        "partial": result.is_partial,
        "ownSide": result.own_side,
        "counterpartSide": result.counterpart_side,
        "message": result.message,
        "targetUser": {"user_id": result.target_owner_id, "name": result.target_name},
    }


@app.post("/links/code")
def link_by_code(
    body: LinkByCodeBody,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    _check_link_options(body.tier, body.source)
    service = get_link_service(_require_user(x_user_id), request.app)
    return _link_response(service.link_by_code(body.code, tier=body.tier, added_via=body.source))


@app.post("/links/username")
def link_by_username(
    body: LinkByUsernameBody,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    _check_link_options(body.tier, body.source)
    service = get_link_service(_require_user(x_user_id), request.app)
    return _link_response(
        service.link_by_username(body.username, tier=body.tier, added_via=body.source)
    )


@app.post("/links/scan")
def link_from_scan(
    body: LinkByScanBody,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    _check_link_options(body.tier, body.source)
    service = get_link_service(_require_user(x_user_id), request.app)
    return _link_response(service.link_from_scan(body.text, tier=body.tier, added_via=body.source))
