"""
Record service: per-entity CRUD over the persistent store.

All operations are coroutines so that callers are written the same way
whether the store is local or reached over the network.
"""

import logging
from typing import List, Optional, Tuple, Type, TypeVar

from pydantic import ValidationError

from database import CollectionStore
from errors import EnquiryResolvedError, NotFoundError
from schemas import (
    Document,
    EnquiryStatus,
    ExpressionOfInterest,
    Notification,
    NotificationType,
    PortalModel,
    Sender,
    Ticket,
    TicketMessage,
    TicketStatus,
    Tutorial,
    User,
    UserCreate,
    UserUpdate,
    new_id,
    utcnow,
)
from security import hash_password, verify_password
from seed import ENQUIRIES_KEY, NOTIFICATIONS_KEY, TICKETS_KEY, TUTORIALS_KEY, USERS_KEY

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=PortalModel)


class RecordService:
    def __init__(self, store: CollectionStore):
        self.store = store

    def _load(self, key: str, model: Type[M]) -> List[M]:
        try:
            return [model.model_validate(item) for item in self.store.load(key)]
        except ValidationError as exc:
            # a malformed record corrupts the whole collection
            logger.warning("Reseeding collection %r: %d invalid field(s)", key, exc.error_count())
        return [model.model_validate(item) for item in self.store.reseed(key)]

    def _save(self, key: str, records: List[PortalModel]) -> None:
        self.store.save(key, [r.to_record() for r in records])

    # ---------- Users ----------

    async def get_users(self) -> List[User]:
        return self._load(USERS_KEY, User)

    async def get_user(self, user_id: str) -> User:
        for user in self._load(USERS_KEY, User):
            if user.id == user_id:
                return user
        raise NotFoundError("User", user_id)

    async def add_user(self, data: UserCreate) -> User:
        fields = data.model_dump(exclude={"password", "system"})
        user = User(
            id=new_id("customer"),
            role="customer",
            password_hash=hash_password(data.password) if data.password else None,
            system=data.system,
            documents=[],
            **fields,
        )
        users = self._load(USERS_KEY, User)
        users.append(user)
        self._save(USERS_KEY, users)
        logger.info("Added user %s", user.id)
        return user

    async def update_user(self, user_id: str, data: UserUpdate) -> User:
        changes = data.model_dump(exclude_unset=True, exclude={"password", "system"})
        users = self._load(USERS_KEY, User)
        for i, user in enumerate(users):
            if user.id != user_id:
                continue
            updated = user.model_copy(update=changes)
            if data.system is not None:
                updated.system = data.system
            if data.password:
                updated.password_hash = hash_password(data.password)
            users[i] = updated
            self._save(USERS_KEY, users)
            return updated
        raise NotFoundError("User", user_id)

    async def delete_user(self, user_id: str) -> None:
        users = self._load(USERS_KEY, User)
        remaining = [u for u in users if u.id != user_id]
        if len(remaining) == len(users):
            logger.info("Delete of unknown user %s ignored", user_id)
            return
        self._save(USERS_KEY, remaining)
        logger.info("Deleted user %s", user_id)

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        email = email.lower()
        for user in self._load(USERS_KEY, User):
            if user.email.lower() == email and verify_password(password, user.password_hash):
                return user
        return None

    # ---------- Tutorials ----------

    async def get_tutorials(self) -> List[Tutorial]:
        return self._load(TUTORIALS_KEY, Tutorial)

    async def update_tutorials(self, tutorials: List[Tutorial]) -> List[Tutorial]:
        tutorials = list(tutorials)
        self._save(TUTORIALS_KEY, tutorials)
        return tutorials

    # ---------- Tickets ----------

    async def get_tickets(self) -> List[Ticket]:
        return self._load(TICKETS_KEY, Ticket)

    async def add_ticket(
        self,
        subject: str,
        message: str,
        customer_id: str,
        complaint_type: str,
        photo_urls: Optional[List[str]] = None,
    ) -> Ticket:
        customer = await self.get_user(customer_id)
        now = utcnow()
        ticket = Ticket(
            id=new_id("ticket"),
            customer_id=customer.id,
            customer_name=customer.full_name,
            subject=subject,
            status="Open",
            created_at=now,
            messages=[TicketMessage(id=new_id("msg"), sender="customer", text=message, timestamp=now)],
            complaint_type=complaint_type,
            photo_urls=list(photo_urls or []),
        )
        tickets = self._load(TICKETS_KEY, Ticket)
        self._save(TICKETS_KEY, [ticket] + tickets)
        logger.info("Ticket %s opened by %s", ticket.id, customer.id)
        return ticket

    async def add_ticket_message(self, ticket_id: str, text: str, sender: Sender) -> Ticket:
        tickets = self._load(TICKETS_KEY, Ticket)
        for i, ticket in enumerate(tickets):
            if ticket.id != ticket_id:
                continue
            message = TicketMessage(id=new_id("msg"), sender=sender, text=text, timestamp=utcnow())
            updated = ticket.model_copy(update={"messages": ticket.messages + [message]})
            tickets[i] = updated
            self._save(TICKETS_KEY, tickets)
            return updated
        raise NotFoundError("Ticket", ticket_id)

    async def update_ticket_status(self, ticket_id: str, status: TicketStatus) -> Ticket:
        tickets = self._load(TICKETS_KEY, Ticket)
        for i, ticket in enumerate(tickets):
            if ticket.id != ticket_id:
                continue
            updated = ticket.model_copy(update={"status": status})
            tickets[i] = updated
            self._save(TICKETS_KEY, tickets)
            logger.info("Ticket %s status -> %s", ticket_id, status)
            return updated
        raise NotFoundError("Ticket", ticket_id)

    # ---------- Documents ----------

    async def add_document_to_user(self, user_id: str, name: str, url: str) -> Tuple[User, Document]:
        users = self._load(USERS_KEY, User)
        for i, user in enumerate(users):
            if user.id != user_id:
                continue
            document = Document(id=new_id("doc"), name=name, url=url, uploaded_at=utcnow())
            updated = user.model_copy(update={"documents": user.documents + [document]})
            users[i] = updated
            self._save(USERS_KEY, users)
            return updated, document
        raise NotFoundError("User", user_id)

    async def add_document_to_all_customers(self, name: str, url: str) -> List[User]:
        uploaded_at = utcnow()
        users = self._load(USERS_KEY, User)
        updated_users = []
        for user in users:
            if user.role == "customer":
                document = Document(id=new_id("doc"), name=name, url=url, uploaded_at=uploaded_at)
                user = user.model_copy(update={"documents": user.documents + [document]})
            updated_users.append(user)
        self._save(USERS_KEY, updated_users)
        return updated_users

    # ---------- Expressions of interest ----------

    async def get_enquiries(self) -> List[ExpressionOfInterest]:
        return self._load(ENQUIRIES_KEY, ExpressionOfInterest)

    async def get_enquiry(self, eoi_id: str) -> ExpressionOfInterest:
        for enquiry in self._load(ENQUIRIES_KEY, ExpressionOfInterest):
            if enquiry.id == eoi_id:
                return enquiry
        raise NotFoundError("Enquiry", eoi_id)

    async def add_enquiry(self, name: str, email: str, phone: str) -> Tuple[ExpressionOfInterest, List[User]]:
        enquiry = ExpressionOfInterest(
            id=new_id("eoi"),
            name=name,
            email=email,
            phone=phone,
            submitted_at=utcnow(),
            status="pending",
        )
        enquiries = self._load(ENQUIRIES_KEY, ExpressionOfInterest)
        self._save(ENQUIRIES_KEY, [enquiry] + enquiries)
        admins = [u for u in self._load(USERS_KEY, User) if u.role == "admin"]
        return enquiry, admins

    async def update_enquiry_status(self, eoi_id: str, status: EnquiryStatus) -> ExpressionOfInterest:
        enquiries = self._load(ENQUIRIES_KEY, ExpressionOfInterest)
        for i, enquiry in enumerate(enquiries):
            if enquiry.id != eoi_id:
                continue
            if enquiry.status != "pending":
                raise EnquiryResolvedError(eoi_id, enquiry.status)
            updated = enquiry.model_copy(update={"status": status})
            enquiries[i] = updated
            self._save(ENQUIRIES_KEY, enquiries)
            return updated
        raise NotFoundError("Enquiry", eoi_id)

    # ---------- Notifications ----------

    async def get_notifications(self) -> List[Notification]:
        return self._load(NOTIFICATIONS_KEY, Notification)

    async def add_notification(
        self,
        user_id: str,
        message: str,
        type: NotificationType,
        related_id: Optional[str] = None,
    ) -> Notification:
        notification = Notification(
            id=new_id("noti"),
            user_id=user_id,
            message=message,
            type=type,
            related_id=related_id,
            is_read=False,
            created_at=utcnow(),
        )
        notifications = self._load(NOTIFICATIONS_KEY, Notification)
        self._save(NOTIFICATIONS_KEY, [notification] + notifications)
        return notification

    async def mark_notification_as_read(self, notification_id: str) -> List[Notification]:
        notifications = self._load(NOTIFICATIONS_KEY, Notification)
        updated = [n.model_copy(update={"is_read": True}) if n.id == notification_id else n for n in notifications]
        self._save(NOTIFICATIONS_KEY, updated)
        return updated

    async def mark_all_notifications_as_read(self, user_id: str) -> List[Notification]:
        notifications = self._load(NOTIFICATIONS_KEY, Notification)
        updated = [n.model_copy(update={"is_read": True}) if n.user_id == user_id else n for n in notifications]
        self._save(NOTIFICATIONS_KEY, updated)
        return updated
