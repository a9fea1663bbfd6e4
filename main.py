import logging
from typing import Any, Dict, List, Literal, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import Field

from config import get_config
from database import get_store
from errors import EnquiryResolvedError, NotFoundError
from logging_config import configure_logging
from portal import ActionResult, PortalState
from records import RecordService
from schemas import (
    DocumentCreate,
    EnquiryCreate,
    LoginRequest,
    PortalModel,
    RequestModel,
    TicketCreate,
    TicketMessageCreate,
    TicketStatusUpdate,
    Tutorial,
    User,
    UserCreate,
    UserUpdate,
)
from security import new_session_token
from seed import COMPLAINT_TYPES
from warranty import warranty_for_user

logger = logging.getLogger(__name__)

app = FastAPI(title="Solar Support Portal API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# token -> user id
_sessions: Dict[str, str] = {}


# ---------- Helpers ----------

def _dump(value: Any) -> Any:
    if isinstance(value, User):
        return value.public()
    if isinstance(value, PortalModel):
        return value.to_record()
    if isinstance(value, (list, tuple)):
        return [_dump(v) for v in value]
    return value


def _respond(portal: PortalState, result: ActionResult) -> Dict[str, Any]:
    # the toast is delivered in this response and never shown again
    if result.toast is not None:
        portal.remove_toast(result.toast.id)
    if not result.ok:
        detail = result.toast.message if result.toast else "Action failed"
        if isinstance(result.error, NotFoundError):
            raise HTTPException(status_code=404, detail=detail)
        if isinstance(result.error, EnquiryResolvedError):
            raise HTTPException(status_code=409, detail=detail)
        raise HTTPException(status_code=400, detail=detail)
    return {
        "result": _dump(result.value),
        "toast": result.toast.to_record() if result.toast else None,
    }


# ---------- Request Models ----------

class TicketReplyRequest(RequestModel):
    text: str = Field(..., min_length=1)


# ---------- Startup: build the portal ----------

@app.on_event("startup")
async def build_portal():
    config = get_config()
    configure_logging(config.log_level, config.json_logs)
    if getattr(app.state, "portal", None) is not None:
        return
    portal = PortalState(RecordService(get_store(config)))
    await portal.refresh()
    app.state.portal = portal
    logger.info("Portal ready with %d users", len(portal.users))


def get_portal(request: Request) -> PortalState:
    portal = getattr(request.app.state, "portal", None)
    if portal is None:
        raise HTTPException(status_code=500, detail="Portal not initialised")
    return portal


# ---------- Auth dependency ----------

def get_current_user(
    authorization: Optional[str] = Header(None),
    portal: PortalState = Depends(get_portal),
) -> User:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")
    token = authorization.split(" ", 1)[1]
    user_id = _sessions.get(token)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Session expired")
    user = next((u for u in portal.users if u.id == user_id), None)
    if user is None:
        _sessions.pop(token, None)
        raise HTTPException(status_code=401, detail="User not found")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def _require_self_or_admin(user: User, user_id: str) -> None:
    if user.role != "admin" and user.id != user_id:
        raise HTTPException(status_code=403, detail="Not allowed")


# ---------- Public endpoints ----------

@app.get("/")
def root():
    return {"service": "Solar Support Portal API", "status": "ok"}


@app.get("/test")
def test_store(portal: PortalState = Depends(get_portal)):
    return {"backend": "running", "store": portal.records.store.health()}


@app.get("/complaint-types")
def complaint_types():
    return list(COMPLAINT_TYPES)


@app.post("/eoi", status_code=201)
async def submit_enquiry(payload: EnquiryCreate, portal: PortalState = Depends(get_portal)):
    return _respond(portal, await portal.add_enquiry(payload))


# ---------- Auth endpoints ----------

@app.post("/auth/login")
async def login(payload: LoginRequest, portal: PortalState = Depends(get_portal)):
    user = await portal.records.authenticate(str(payload.email), payload.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    token = new_session_token()
    _sessions[token] = user.id
    return {"token": token, "user": user.public()}


@app.post("/auth/logout")
def logout(authorization: Optional[str] = Header(None)):
    if authorization and authorization.lower().startswith("bearer "):
        _sessions.pop(authorization.split(" ", 1)[1], None)
    return {"ok": True}


@app.get("/auth/me")
def me(user: User = Depends(get_current_user)):
    return user.public()


# ---------- Users ----------

@app.get("/users")
def list_users(_admin: User = Depends(require_admin), portal: PortalState = Depends(get_portal)):
    return _dump(portal.users)


@app.post("/users", status_code=201)
async def create_user(
    payload: UserCreate,
    _admin: User = Depends(require_admin),
    portal: PortalState = Depends(get_portal),
):
    return _respond(portal, await portal.add_user(payload))


@app.put("/users/{user_id}")
async def update_user(
    user_id: str,
    payload: UserUpdate,
    user: User = Depends(get_current_user),
    portal: PortalState = Depends(get_portal),
):
    _require_self_or_admin(user, user_id)
    return _respond(portal, await portal.update_user(user_id, payload))


@app.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    _admin: User = Depends(require_admin),
    portal: PortalState = Depends(get_portal),
):
    return _respond(portal, await portal.delete_user(user_id))


@app.get("/users/{user_id}/warranty")
def get_warranty(
    user_id: str,
    user: User = Depends(get_current_user),
    portal: PortalState = Depends(get_portal),
):
    _require_self_or_admin(user, user_id)
    target = next((u for u in portal.users if u.id == user_id), None)
    if target is None:
        raise HTTPException(status_code=404, detail="User not found")
    return _dump(warranty_for_user(target))


# ---------- Documents ----------

@app.post("/users/{user_id}/documents", status_code=201)
async def add_document(
    user_id: str,
    payload: DocumentCreate,
    _admin: User = Depends(require_admin),
    portal: PortalState = Depends(get_portal),
):
    return _respond(portal, await portal.add_document_to_user(user_id, payload))


@app.post("/documents/broadcast", status_code=201)
async def broadcast_document(
    payload: DocumentCreate,
    _admin: User = Depends(require_admin),
    portal: PortalState = Depends(get_portal),
):
    return _respond(portal, await portal.add_document_to_all_customers(payload))


# ---------- Tutorials ----------

@app.get("/tutorials")
def list_tutorials(_user: User = Depends(get_current_user), portal: PortalState = Depends(get_portal)):
    return _dump(portal.tutorials)


@app.put("/tutorials")
async def replace_tutorials(
    payload: List[Tutorial],
    _admin: User = Depends(require_admin),
    portal: PortalState = Depends(get_portal),
):
    return _respond(portal, await portal.update_tutorials(payload))


# ---------- Ticketing endpoints ----------

@app.get("/tickets")
def list_tickets(user: User = Depends(get_current_user), portal: PortalState = Depends(get_portal)):
    if user.role == "admin":
        return _dump(portal.tickets)
    return _dump(portal.tickets_for(user.id))


@app.post("/tickets", status_code=201)
async def create_ticket(
    payload: TicketCreate,
    user: User = Depends(get_current_user),
    portal: PortalState = Depends(get_portal),
):
    if user.role != "customer":
        raise HTTPException(status_code=403, detail="Only customers can open tickets")
    return _respond(portal, await portal.add_ticket(user.id, payload))


@app.post("/tickets/{ticket_id}/message")
async def post_message(
    ticket_id: str,
    payload: TicketReplyRequest,
    user: User = Depends(get_current_user),
    portal: PortalState = Depends(get_portal),
):
    ticket = next((t for t in portal.tickets if t.id == ticket_id), None)
    if ticket is None:
        raise HTTPException(status_code=404, detail="Ticket not found")
    if user.role != "admin" and ticket.customer_id != user.id:
        raise HTTPException(status_code=403, detail="Not allowed")

    message = TicketMessageCreate(text=payload.text, sender=user.role)
    return _respond(portal, await portal.add_ticket_message(ticket_id, message))


@app.put("/tickets/{ticket_id}/status")
async def set_ticket_status(
    ticket_id: str,
    payload: TicketStatusUpdate,
    _admin: User = Depends(require_admin),
    portal: PortalState = Depends(get_portal),
):
    return _respond(portal, await portal.update_ticket_status(ticket_id, payload.status))


# ---------- Enquiries ----------

@app.get("/eoi")
def list_enquiries(
    status: Optional[Literal["pending", "approved", "rejected"]] = None,
    _admin: User = Depends(require_admin),
    portal: PortalState = Depends(get_portal),
):
    enquiries = portal.enquiries
    if status:
        enquiries = [e for e in enquiries if e.status == status]
    return _dump(enquiries)


@app.post("/eoi/{eoi_id}/approve", status_code=201)
async def approve_enquiry(
    eoi_id: str,
    payload: UserCreate,
    _admin: User = Depends(require_admin),
    portal: PortalState = Depends(get_portal),
):
    result = await portal.approve_enquiry(eoi_id, payload)
    response = _respond(portal, result)
    user, enquiry = result.value
    response["result"] = {"user": user.public(), "enquiry": enquiry.to_record()}
    return response


@app.post("/eoi/{eoi_id}/reject")
async def reject_enquiry(
    eoi_id: str,
    _admin: User = Depends(require_admin),
    portal: PortalState = Depends(get_portal),
):
    return _respond(portal, await portal.reject_enquiry(eoi_id))


# ---------- Notifications ----------

@app.get("/notifications")
def list_notifications(user: User = Depends(get_current_user), portal: PortalState = Depends(get_portal)):
    return {
        "items": _dump(portal.notifications_for(user.id)),
        "unread": portal.unread_count(user.id),
    }


@app.put("/notifications/read-all")
async def mark_all_read(user: User = Depends(get_current_user), portal: PortalState = Depends(get_portal)):
    await portal.mark_all_notifications_as_read(user.id)
    return {"items": _dump(portal.notifications_for(user.id)), "unread": 0}


@app.put("/notifications/{notification_id}/read")
async def mark_read(
    notification_id: str,
    user: User = Depends(get_current_user),
    portal: PortalState = Depends(get_portal),
):
    notification = next((n for n in portal.notifications if n.id == notification_id), None)
    if notification is not None and notification.user_id != user.id:
        raise HTTPException(status_code=403, detail="Not allowed")
    await portal.mark_notification_as_read(notification_id)
    return {"items": _dump(portal.notifications_for(user.id)), "unread": portal.unread_count(user.id)}


# ---------- Reports ----------

@app.get("/dashboard")
def dashboard(_admin: User = Depends(require_admin), portal: PortalState = Depends(get_portal)):
    return portal.dashboard_stats()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=get_config().port)
