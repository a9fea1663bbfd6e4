"""
Notification emitter.

Turns the result of a completed mutation into notifications addressed to
the users who should hear about it. Recipients are resolved against the
current user collection; a recipient that no longer exists is skipped.
"""

import logging
from typing import Iterable, List, Optional

from records import RecordService
from schemas import Document, ExpressionOfInterest, Notification, NotificationType, Sender, Ticket, User

logger = logging.getLogger(__name__)


class NotificationEmitter:
    def __init__(self, records: RecordService):
        self.records = records

    async def _notify(
        self,
        recipients: Iterable[str],
        message: str,
        type: NotificationType,
        related_id: Optional[str],
    ) -> List[Notification]:
        known = {u.id for u in await self.records.get_users()}
        created = []
        for user_id in recipients:
            if user_id not in known:
                logger.warning("Skipping %s notification for unknown user %s", type, user_id)
                continue
            created.append(await self.records.add_notification(user_id, message, type, related_id))
        return created

    async def _admin_ids(self) -> List[str]:
        return [u.id for u in await self.records.get_users() if u.role == "admin"]

    async def _user_name(self, user_id: str) -> Optional[str]:
        for user in await self.records.get_users():
            if user.id == user_id:
                return user.full_name
        return None

    async def ticket_created(self, ticket: Ticket) -> List[Notification]:
        return await self._notify(
            await self._admin_ids(),
            f'New ticket from {ticket.customer_name}: "{ticket.subject}"',
            "ticket",
            ticket.id,
        )

    async def ticket_message_added(self, ticket: Ticket, sender: Sender) -> List[Notification]:
        if sender == "admin":
            return await self._notify(
                [ticket.customer_id],
                f'An admin replied to your ticket: "{ticket.subject}"',
                "ticket",
                ticket.id,
            )
        name = await self._user_name(ticket.customer_id) or "A customer"
        return await self._notify(
            await self._admin_ids(),
            f'{name} replied to ticket: "{ticket.subject}"',
            "ticket",
            ticket.id,
        )

    async def ticket_status_changed(self, ticket: Ticket) -> List[Notification]:
        return await self._notify(
            [ticket.customer_id],
            f'The status of your ticket "{ticket.subject}" was updated to {ticket.status}.',
            "ticket",
            ticket.id,
        )

    async def document_added(self, user: User, document: Document) -> List[Notification]:
        return await self._notify(
            [user.id],
            f'A new document "{document.name}" was added to your profile.',
            "document",
            document.id,
        )

    async def document_broadcast(self, users: List[User], name: str) -> List[Notification]:
        """One notification per customer, pointing at that customer's copy."""
        created = []
        for user in users:
            if user.role != "customer" or not user.documents:
                continue
            document = user.documents[-1]
            if document.name != name:
                continue
            created.extend(await self.document_added(user, document))
        return created

    async def enquiry_submitted(
        self, enquiry: ExpressionOfInterest, admins: Optional[List[User]] = None
    ) -> List[Notification]:
        """Notify every admin; pass ``admins`` when the caller already loaded them."""
        recipients = [a.id for a in admins] if admins is not None else await self._admin_ids()
        return await self._notify(
            recipients,
            f"New access enquiry from {enquiry.name}.",
            "eoi",
            enquiry.id,
        )
