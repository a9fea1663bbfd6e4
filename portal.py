"""
Application state facade.

PortalState mirrors every collection in memory and exposes the actions the
portal offers. Each action writes through the record service, updates the
mirror from what the service returned, then derives notifications and
queues a toast for the user. The write and the notifications are not
atomic: if deriving notifications fails the write stays and the failure is
logged.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, List, Optional

from errors import EnquiryResolvedError, PortalError
from events import NotificationEmitter
from records import RecordService
from schemas import (
    DocumentCreate,
    EnquiryCreate,
    ExpressionOfInterest,
    Notification,
    NotificationType,
    Ticket,
    TicketCreate,
    TicketMessageCreate,
    TicketStatus,
    Toast,
    Tutorial,
    User,
    UserCreate,
    UserRole,
    UserUpdate,
)

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    ok: bool
    value: Any = None
    toast: Optional[Toast] = None
    error: Optional[PortalError] = None


class PortalState:
    def __init__(self, records: RecordService, emitter: Optional[NotificationEmitter] = None):
        self.records = records
        self.emitter = emitter or NotificationEmitter(records)
        self.users: List[User] = []
        self.tutorials: List[Tutorial] = []
        self.tickets: List[Ticket] = []
        self.enquiries: List[ExpressionOfInterest] = []
        self.notifications: List[Notification] = []
        self.toasts: List[Toast] = []
        self.current_user: Optional[User] = None

    async def refresh(self) -> None:
        self.users = await self.records.get_users()
        self.tutorials = await self.records.get_tutorials()
        self.tickets = await self.records.get_tickets()
        self.enquiries = await self.records.get_enquiries()
        self.notifications = await self.records.get_notifications()

    # ---------- Session ----------

    def login(self, role: UserRole, user_id: Optional[str] = None) -> Optional[User]:
        """Demo login: pick a user of the given role without a password."""
        if role == "customer":
            customers = [u for u in self.users if u.role == "customer"]
            user = next((u for u in customers if u.id == user_id), None)
            if user is None and customers:
                user = customers[0]
        else:
            user = next((u for u in self.users if u.role == "admin"), None)
        self.current_user = user
        return user

    async def login_with_password(self, email: str, password: str) -> Optional[User]:
        user = await self.records.authenticate(email, password)
        if user is None:
            logger.info("Failed login for %s", email)
        self.current_user = user
        return user

    def logout(self) -> None:
        self.current_user = None

    # ---------- Toasts ----------

    def add_toast(self, message: str, type: NotificationType = "general", level: str = "info") -> Toast:
        toast = Toast(message=message, type=type, level=level)
        self.toasts.append(toast)
        return toast

    def remove_toast(self, toast_id: str) -> None:
        self.toasts = [t for t in self.toasts if t.id != toast_id]

    def _ok(self, value: Any, message: Optional[str], type: NotificationType = "general") -> ActionResult:
        toast = self.add_toast(message, type) if message else None
        return ActionResult(ok=True, value=value, toast=toast)

    def _failed(self, action: str, exc: PortalError, type: NotificationType = "general") -> ActionResult:
        logger.warning("%s failed: %s", action, exc)
        toast = self.add_toast(str(exc), type, level="error")
        return ActionResult(ok=False, toast=toast, error=exc)

    async def _emit(self, derivation: Awaitable[List[Notification]]) -> List[Notification]:
        try:
            created = await derivation
        except Exception:
            logger.exception("Notification derivation failed; primary write kept")
            return []
        self.notifications = await self.records.get_notifications()
        return created

    def _replace_user(self, user: User) -> None:
        self.users = [user if u.id == user.id else u for u in self.users]
        if self.current_user is not None and self.current_user.id == user.id:
            self.current_user = user

    def _replace_ticket(self, ticket: Ticket) -> None:
        self.tickets = [ticket if t.id == ticket.id else t for t in self.tickets]

    # ---------- Users ----------

    async def add_user(self, data: UserCreate) -> ActionResult:
        user = await self.records.add_user(data)
        self.users.append(user)
        return self._ok(user, f"Customer account for {user.full_name} created.")

    async def update_user(self, user_id: str, data: UserUpdate) -> ActionResult:
        try:
            user = await self.records.update_user(user_id, data)
        except PortalError as exc:
            return self._failed("update_user", exc)
        self._replace_user(user)
        return self._ok(user, f"Profile for {user.full_name} updated.")

    async def delete_user(self, user_id: str) -> ActionResult:
        existing = next((u for u in self.users if u.id == user_id), None)
        await self.records.delete_user(user_id)
        self.users = [u for u in self.users if u.id != user_id]
        if existing is None:
            return self._ok(None, None)
        return self._ok(None, f'Customer "{existing.full_name}" has been deleted.')

    # ---------- Tutorials ----------

    async def update_tutorials(self, tutorials: List[Tutorial]) -> ActionResult:
        self.tutorials = await self.records.update_tutorials(tutorials)
        return self._ok(self.tutorials, "Tutorials updated.")

    # ---------- Tickets ----------

    async def add_ticket(self, customer_id: str, data: TicketCreate) -> ActionResult:
        try:
            ticket = await self.records.add_ticket(
                data.subject, data.message, customer_id, data.complaint_type, data.photo_urls
            )
        except PortalError as exc:
            return self._failed("add_ticket", exc, "ticket")
        self.tickets.insert(0, ticket)
        await self._emit(self.emitter.ticket_created(ticket))
        return self._ok(ticket, "Your ticket has been submitted successfully!", "ticket")

    async def add_ticket_message(self, ticket_id: str, data: TicketMessageCreate) -> ActionResult:
        try:
            ticket = await self.records.add_ticket_message(ticket_id, data.text, data.sender)
        except PortalError as exc:
            return self._failed("add_ticket_message", exc, "ticket")
        self._replace_ticket(ticket)
        await self._emit(self.emitter.ticket_message_added(ticket, data.sender))
        return self._ok(ticket, "Your message has been sent.", "ticket")

    async def update_ticket_status(self, ticket_id: str, status: TicketStatus) -> ActionResult:
        try:
            ticket = await self.records.update_ticket_status(ticket_id, status)
        except PortalError as exc:
            return self._failed("update_ticket_status", exc, "ticket")
        self._replace_ticket(ticket)
        await self._emit(self.emitter.ticket_status_changed(ticket))
        return self._ok(ticket, f"Ticket status updated to {status}.", "ticket")

    # ---------- Documents ----------

    async def add_document_to_user(self, user_id: str, data: DocumentCreate) -> ActionResult:
        try:
            user, document = await self.records.add_document_to_user(user_id, data.name, data.url)
        except PortalError as exc:
            return self._failed("add_document_to_user", exc, "document")
        self._replace_user(user)
        await self._emit(self.emitter.document_added(user, document))
        return self._ok(document, f'Document "{document.name}" added for {user.full_name}.', "document")

    async def add_document_to_all_customers(self, data: DocumentCreate) -> ActionResult:
        users = await self.records.add_document_to_all_customers(data.name, data.url)
        self.users = users
        if self.current_user is not None:
            self.current_user = next((u for u in users if u.id == self.current_user.id), None)
        await self._emit(self.emitter.document_broadcast(users, data.name))
        return self._ok(users, f'"{data.name}" was sent to all customers.', "document")

    # ---------- Enquiries ----------

    async def add_enquiry(self, data: EnquiryCreate) -> ActionResult:
        enquiry, admins = await self.records.add_enquiry(data.name, data.email, data.phone)
        self.enquiries.insert(0, enquiry)
        await self._emit(self.emitter.enquiry_submitted(enquiry, admins))
        return self._ok(enquiry, "Your enquiry has been submitted successfully!", "eoi")

    def _find_enquiry(self, eoi_id: str) -> Optional[ExpressionOfInterest]:
        return next((e for e in self.enquiries if e.id == eoi_id), None)

    def _replace_enquiry(self, enquiry: ExpressionOfInterest) -> None:
        self.enquiries = [enquiry if e.id == enquiry.id else e for e in self.enquiries]

    async def approve_enquiry(self, eoi_id: str, data: UserCreate) -> ActionResult:
        """Create the customer account, then mark the enquiry approved."""
        try:
            enquiry = await self.records.get_enquiry(eoi_id)
            if enquiry.status != "pending":
                raise EnquiryResolvedError(eoi_id, enquiry.status)
            user = await self.records.add_user(data)
            enquiry = await self.records.update_enquiry_status(eoi_id, "approved")
        except PortalError as exc:
            return self._failed("approve_enquiry", exc, "eoi")
        self.users.append(user)
        self._replace_enquiry(enquiry)
        return self._ok((user, enquiry), f"Customer account for {user.full_name} created.")

    async def reject_enquiry(self, eoi_id: str) -> ActionResult:
        try:
            enquiry = await self.records.update_enquiry_status(eoi_id, "rejected")
        except PortalError as exc:
            return self._failed("reject_enquiry", exc, "eoi")
        self._replace_enquiry(enquiry)
        return self._ok(enquiry, f"Enquiry from {enquiry.name} rejected.")

    def pending_enquiries(self) -> List[ExpressionOfInterest]:
        return [e for e in self.enquiries if e.status == "pending"]

    # ---------- Notifications ----------

    async def mark_notification_as_read(self, notification_id: str) -> ActionResult:
        self.notifications = await self.records.mark_notification_as_read(notification_id)
        return self._ok(self.notifications, None)

    async def mark_all_notifications_as_read(self, user_id: Optional[str] = None) -> ActionResult:
        if user_id is None:
            if self.current_user is None:
                return self._ok(self.notifications, None)
            user_id = self.current_user.id
        self.notifications = await self.records.mark_all_notifications_as_read(user_id)
        return self._ok(self.notifications, None)

    def notifications_for(self, user_id: str) -> List[Notification]:
        return [n for n in self.notifications if n.user_id == user_id]

    def unread_count(self, user_id: str) -> int:
        return sum(1 for n in self.notifications_for(user_id) if not n.is_read)

    # ---------- Reports ----------

    def tickets_for(self, customer_id: str) -> List[Ticket]:
        return [t for t in self.tickets if t.customer_id == customer_id]

    def dashboard_stats(self) -> Dict[str, Any]:
        customers = sum(1 for u in self.users if u.role == "customer")
        by_status = Counter(t.status for t in self.tickets)
        return {
            "totalCustomers": customers,
            # one installed unit per customer
            "totalInstalledUnits": customers,
            "openTickets": by_status.get("Open", 0),
            "inProgressTickets": by_status.get("In Progress", 0),
            "ticketsByStatus": {status: by_status.get(status, 0) for status in ("Open", "In Progress", "Closed")},
        }
