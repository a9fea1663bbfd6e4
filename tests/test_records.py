"""Tests for the record service."""

import pytest

from errors import EnquiryResolvedError, NotFoundError
from schemas import Tutorial, UserUpdate


@pytest.mark.asyncio
async def test_add_ticket_seeds_one_customer_message(records):
    ticket = await records.add_ticket(
        "Panels dirty", "Production dropped after the storm", "customer1", "Low Production"
    )
    assert ticket.status == "Open"
    assert ticket.customer_name == "John Doe"
    assert len(ticket.messages) == 1
    assert ticket.messages[0].sender == "customer"
    assert ticket.messages[0].text == "Production dropped after the storm"
    assert ticket.messages[0].timestamp == ticket.created_at
    assert ticket.photo_urls == []

    tickets = await records.get_tickets()
    assert tickets[0].id == ticket.id


@pytest.mark.asyncio
async def test_add_ticket_unknown_customer(records):
    with pytest.raises(NotFoundError):
        await records.add_ticket("s", "m", "nobody", "Other")
    assert all(t.customer_id != "nobody" for t in await records.get_tickets())


@pytest.mark.asyncio
async def test_ticket_messages_are_append_only(records):
    before = next(t for t in await records.get_tickets() if t.id == "ticket2")
    previous = before.messages
    for i, sender in enumerate(["admin", "customer", "admin"]):
        ticket = await records.add_ticket_message("ticket2", f"reply {i}", sender)
        assert len(ticket.messages) == len(previous) + 1
        assert ticket.messages[: len(previous)] == previous
        assert ticket.messages[-1].sender == sender
        previous = ticket.messages

    stored = next(t for t in await records.get_tickets() if t.id == "ticket2")
    assert [m.text for m in stored.messages[-3:]] == ["reply 0", "reply 1", "reply 2"]


@pytest.mark.asyncio
async def test_add_ticket_message_unknown_ticket(records):
    with pytest.raises(NotFoundError):
        await records.add_ticket_message("missing", "hello", "admin")


@pytest.mark.asyncio
async def test_update_ticket_status_only_changes_status(records):
    before = next(t for t in await records.get_tickets() if t.id == "ticket1")
    ticket = await records.update_ticket_status("ticket1", "Closed")
    assert ticket.status == "Closed"
    assert ticket.model_dump(exclude={"status"}) == before.model_dump(exclude={"status"})

    with pytest.raises(NotFoundError):
        await records.update_ticket_status("missing", "Closed")


@pytest.mark.asyncio
async def test_add_user_and_authenticate(records, new_customer):
    user = await records.add_user(new_customer)
    assert user.role == "customer"
    assert user.documents == []
    assert user.password_hash and "s3cret" not in user.password_hash

    assert (await records.authenticate("SAM.PERERA@example.com", "s3cret")).id == user.id
    assert await records.authenticate("sam.perera@example.com", "wrong") is None


@pytest.mark.asyncio
async def test_update_user(records):
    user = await records.update_user("customer2", UserUpdate(address="Negombo, Sri Lanka"))
    assert user.address == "Negombo, Sri Lanka"
    assert user.full_name == "Jane Smith"
    assert (await records.get_user("customer2")).address == "Negombo, Sri Lanka"

    with pytest.raises(NotFoundError):
        await records.update_user("missing", UserUpdate(address="x"))


@pytest.mark.asyncio
async def test_delete_user_missing_is_noop(records):
    before = await records.get_users()
    await records.delete_user("missing")
    assert await records.get_users() == before

    await records.delete_user("customer2")
    assert [u.id for u in await records.get_users()] == ["customer1", "admin1"]


@pytest.mark.asyncio
async def test_update_tutorials_replaces_collection(records):
    tutorials = [Tutorial(title="Cleaning panels safely", youtube_url="https://youtu.be/abc")]
    await records.update_tutorials(tutorials)
    stored = await records.get_tutorials()
    assert [t.title for t in stored] == ["Cleaning panels safely"]


@pytest.mark.asyncio
async def test_add_document_to_user(records):
    user, document = await records.add_document_to_user("customer2", "Invoice.pdf", "data:application/pdf;base64,AA")
    assert user.documents[-1] == document
    assert len(user.documents) == 2

    with pytest.raises(NotFoundError):
        await records.add_document_to_user("missing", "x.pdf", "data:")


@pytest.mark.asyncio
async def test_broadcast_document_reaches_customers_only(records):
    users = await records.add_document_to_all_customers("W.pdf", "data:application/pdf;base64,AA")
    customers = [u for u in users if u.role == "customer"]
    admin = next(u for u in users if u.role == "admin")

    new_docs = [u.documents[-1] for u in customers]
    assert all(d.name == "W.pdf" for d in new_docs)
    assert len({d.id for d in new_docs}) == len(customers)
    assert len({d.uploaded_at for d in new_docs}) == 1
    assert admin.documents == []


@pytest.mark.asyncio
async def test_enquiry_lifecycle(records):
    enquiry, admins = await records.add_enquiry("Jane", "jane@x.com", "555")
    assert enquiry.status == "pending"
    assert [a.id for a in admins] == ["admin1"]
    assert (await records.get_enquiries())[0].id == enquiry.id

    resolved = await records.update_enquiry_status(enquiry.id, "rejected")
    assert resolved.status == "rejected"

    with pytest.raises(EnquiryResolvedError):
        await records.update_enquiry_status(enquiry.id, "approved")
    with pytest.raises(NotFoundError):
        await records.update_enquiry_status("missing", "approved")


@pytest.mark.asyncio
async def test_mark_notification_as_read_is_idempotent(records):
    once = await records.mark_notification_as_read("noti2")
    twice = await records.mark_notification_as_read("noti2")
    assert once == twice
    assert next(n for n in twice if n.id == "noti2").is_read


@pytest.mark.asyncio
async def test_mark_unknown_notification_is_noop(records):
    before = await records.get_notifications()
    assert await records.mark_notification_as_read("missing") == before


@pytest.mark.asyncio
async def test_mark_all_notifications_only_touches_one_user(records):
    before = {n.id: n for n in await records.get_notifications()}
    await records.mark_all_notifications_as_read("customer1")

    for n in await records.get_notifications():
        if n.user_id == "customer1":
            assert n.is_read
        else:
            assert n.is_read == before[n.id].is_read


@pytest.mark.asyncio
async def test_malformed_record_reseeds_collection(store, records, caplog):
    store.put_raw("tickets", "[1]")
    tickets = await records.get_tickets()
    assert {t.id for t in tickets} == {"ticket1", "ticket2", "ticket3"}
    assert [t["id"] for t in store.load("tickets")] == [t.id for t in tickets]
    assert "Reseeding collection 'tickets'" in caplog.text


@pytest.mark.asyncio
async def test_malformed_record_does_not_break_writes(store, records):
    store.put_raw("notifications", '[{"id": "noti9"}]')
    notification = await records.add_notification("customer1", "hello", "general")
    ids = [n.id for n in await records.get_notifications()]
    assert ids[0] == notification.id
    assert "noti9" not in ids
