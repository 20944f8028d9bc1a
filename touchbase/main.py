import asyncio
import logging

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Response
from sqlalchemy.orm import Session

from . import store
from .config import settings
from .dates import local_today
from .db import Base, engine, get_db
from .due import ContactStatus, DueKind, due_order, due_status, evaluate, filter_kind, group_by_contact
from .scheduler import run_scheduler
from .schemas import (
    ContactDetailOut,
    ContactIn,
    ContactOut,
    ContactPatch,
    FeedbackIn,
    SettingsIn,
    SettingsOut,
    TouchpointIn,
    TouchpointOut,
    TouchpointPatch,
)

logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Touchbase")


@app.on_event("startup")
async def startup():
    Base.metadata.create_all(bind=engine)
    if settings.DIGEST_ENABLED:
        # fire-and-forget scheduler
        asyncio.create_task(run_scheduler())


# ----------------------------
# Identity / error mapping
# ----------------------------
def current_user(x_user_id: str = Header(..., alias="X-User-Id")) -> str:
    user_id = x_user_id.strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Missing user")
    return user_id


def _call(fn, *args, **kwargs):
    try:
        return fn(*args, **kwargs)
    except store.NotFound as ex:
        raise HTTPException(status_code=404, detail=str(ex))
    except ValueError as ex:
        raise HTTPException(status_code=400, detail=str(ex))


def _with_status(db: Session, contact, detail: bool = False):
    touchpoints = store.list_touchpoints(db, [contact.id])
    last, status = due_status(contact, touchpoints, local_today(settings.TIMEZONE), settings.TIMEZONE)
    item = ContactStatus(contact, last, status)
    if not detail:
        return ContactOut.from_result(item)
    out = ContactDetailOut.from_result(item)
    out.touchpoints = [TouchpointOut.model_validate(tp) for tp in touchpoints]
    return out


# ----------------------------
# Routes
# ----------------------------
@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/today", response_model=list[ContactOut])
def today_view(
    status: DueKind | None = Query(None, description="Only return contacts with this status"),
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
):
    today = local_today(settings.TIMEZONE)
    contacts = store.list_contacts(db, user_id)
    grouped = group_by_contact(store.list_touchpoints(db, [c.id for c in contacts]))
    items = filter_kind(due_order(evaluate(contacts, grouped, today, settings.TIMEZONE)), status)
    return [ContactOut.from_result(i) for i in items]


@app.get("/contacts", response_model=list[ContactOut])
def list_contacts(user_id: str = Depends(current_user), db: Session = Depends(get_db)):
    today = local_today(settings.TIMEZONE)
    contacts = store.list_contacts(db, user_id)
    grouped = group_by_contact(store.list_touchpoints(db, [c.id for c in contacts]))
    return [ContactOut.from_result(i) for i in evaluate(contacts, grouped, today, settings.TIMEZONE)]


@app.post("/contacts", response_model=ContactOut, status_code=201)
def create_contact(body: ContactIn, user_id: str = Depends(current_user), db: Session = Depends(get_db)):
    data = body.model_dump(exclude={"last_contact_date"})
    c = _call(store.create_contact, db, user_id, data, last_contact_date=body.last_contact_date)
    return _with_status(db, c)


@app.get("/contacts/{contact_id}", response_model=ContactDetailOut)
def get_contact(contact_id: str, user_id: str = Depends(current_user), db: Session = Depends(get_db)):
    c = _call(store.get_contact, db, user_id, contact_id)
    return _with_status(db, c, detail=True)


@app.patch("/contacts/{contact_id}", response_model=ContactOut)
def update_contact(contact_id: str, body: ContactPatch, user_id: str = Depends(current_user),
                   db: Session = Depends(get_db)):
    c = _call(store.update_contact, db, user_id, contact_id, body.model_dump(exclude_unset=True))
    return _with_status(db, c)


@app.delete("/contacts/{contact_id}", status_code=204)
def delete_contact(contact_id: str, user_id: str = Depends(current_user), db: Session = Depends(get_db)):
    _call(store.delete_contact, db, user_id, contact_id)
    return Response(status_code=204)


@app.post("/contacts/{contact_id}/pin", response_model=ContactOut)
def pin_contact(contact_id: str, user_id: str = Depends(current_user), db: Session = Depends(get_db)):
    return _with_status(db, _call(store.set_pinned, db, user_id, contact_id, True))


@app.delete("/contacts/{contact_id}/pin", response_model=ContactOut)
def unpin_contact(contact_id: str, user_id: str = Depends(current_user), db: Session = Depends(get_db)):
    return _with_status(db, _call(store.set_pinned, db, user_id, contact_id, False))


@app.get("/contacts/{contact_id}/touchpoints", response_model=list[TouchpointOut])
def list_touchpoints(contact_id: str, user_id: str = Depends(current_user), db: Session = Depends(get_db)):
    c = _call(store.get_contact, db, user_id, contact_id)
    return store.list_touchpoints(db, [c.id])


@app.post("/contacts/{contact_id}/touchpoints", response_model=TouchpointOut, status_code=201)
def log_touchpoint(contact_id: str, body: TouchpointIn, user_id: str = Depends(current_user),
                   db: Session = Depends(get_db)):
    return _call(store.log_touchpoint, db, user_id, contact_id, body.channel, body.contact_date, body.note)


@app.patch("/touchpoints/{touchpoint_id}", response_model=TouchpointOut)
def update_touchpoint(touchpoint_id: str, body: TouchpointPatch, user_id: str = Depends(current_user),
                      db: Session = Depends(get_db)):
    return _call(store.update_touchpoint, db, user_id, touchpoint_id, body.model_dump(exclude_unset=True))


@app.delete("/touchpoints/{touchpoint_id}", status_code=204)
def delete_touchpoint(touchpoint_id: str, user_id: str = Depends(current_user), db: Session = Depends(get_db)):
    _call(store.delete_touchpoint, db, user_id, touchpoint_id)
    return Response(status_code=204)


@app.get("/settings", response_model=SettingsOut)
def get_settings(user_id: str = Depends(current_user), db: Session = Depends(get_db)):
    return store.get_or_create_user(db, user_id)


@app.put("/settings", response_model=SettingsOut)
def put_settings(body: SettingsIn, user_id: str = Depends(current_user), db: Session = Depends(get_db)):
    return _call(store.update_settings, db, user_id, body.model_dump(exclude_unset=True))


@app.post("/feedback", status_code=201)
def feedback(body: FeedbackIn, x_user_id: str | None = Header(None, alias="X-User-Id"),
             db: Session = Depends(get_db)):
    fb = _call(store.add_feedback, db, body.message, user_id=x_user_id)
    return {"id": fb.id}
