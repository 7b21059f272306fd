"""
Elevated boundary service: the only process holding credentials that can write
into any user's contact list. Exposes a single narrowly scoped operation.
Run with uvicorn: uvicorn api.elevated:app --port 8011
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from api.config import USER_ID_HEADER, elevated_driver
from cardlink.application import (
    AlreadyExists,
    ContactCreated,
    ElevatedContactBoundary,
    LinkNotAuthorized,
)
from cardlink.infrastructure import Neo4jStore, ensure_constraints

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)
logger = logging.getLogger(__name__)


class OtherUserContactCard(BaseModel):
    user_id: str | None = None
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    industry: str | None = None
    services: list[str] | None = None
    linkedin: str | None = None
    facebook: str | None = None
    whatsapp: str | None = None
    websites: list[str] | None = None


class AddMutualContactBody(BaseModel):
    currentUserId: str | None = None
    otherUserContactCard: OtherUserContactCard | None = None


def _get_store(app: FastAPI):
    if getattr(app.state, "store", None) is None:
        app.state.driver = elevated_driver()
        app.state.store = Neo4jStore(app.state.driver)
    return app.state.store


def _reply(status_code: int, **content) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content)


def add_mutual_contact(store, caller_header: str | None, body: AddMutualContactBody) -> JSONResponse:
    """Validate the request, then run the boundary with the caller's stored card as source."""
    caller_id = (body.currentUserId or "").strip()
    other = body.otherUserContactCard
    if not caller_id or other is None or not (other.user_id or "").strip():
        return _reply(400, success=False, error="Missing currentUserId or otherUserContactCard")
    caller_header = (caller_header or "").strip()
    if not caller_header:
        return _reply(401, success=False, error="No caller identity")
    if caller_header != caller_id:
        return _reply(403, success=False, error="Caller does not match currentUserId")

    logger.info("Processing mutual contact addition for user %s", caller_id)
    cards = store.card_repository()
    source = cards.get_active_by_owner(caller_id)
    if source is None:
        return _reply(400, success=False, error="User contact card not found")
    target = cards.get_active_by_owner(other.user_id.strip())
    if target is None:
        return _reply(403, success=False, error="Target has no active contact card.")

    boundary = ElevatedContactBoundary(cards, store.contact_repository())
    result = boundary.write_reciprocal(caller_id, target, source)
    if isinstance(result, ContactCreated):
        return _reply(
            200,
            success=True,
            status="created",
            contactId=result.contact_id,
            message="Mutual contact addition completed successfully",
        )
    if isinstance(result, AlreadyExists):
        return _reply(
            200,
            success=True,
            status="already_existed",
            message="You are already in their contacts",
        )
    if isinstance(result, LinkNotAuthorized):
        return _reply(403, success=False, error=result.reason)
    return _reply(500, success=False, error="Could not add you to their contacts")


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.driver = None
    try:
        if getattr(app.state, "store", None) is None:
            app.state.driver = elevated_driver()
            ensure_constraints(app.state.driver)
            app.state.store = Neo4jStore(app.state.driver)
        yield
    finally:
        if getattr(app.state, "driver", None) is not None:
            app.state.driver.close()


app = FastAPI(title="cardlink elevated boundary", lifespan=lifespan)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/functions/add-mutual-contact")
def add_mutual_contact_endpoint(
    body: AddMutualContactBody,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    return add_mutual_contact(_get_store(request.app), x_user_id, body)
