"""Pytest configuration and fixtures for portal tests.

Every test gets a fresh in-memory store seeded with the demo collections
(customers customer1 and customer2, admin admin1).
"""

import pytest
import pytest_asyncio

from database import MemoryStore
from events import NotificationEmitter
from portal import PortalState
from records import RecordService
from schemas import UserCreate
from seed import demo_collections


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore(demo_collections())


@pytest.fixture
def records(store: MemoryStore) -> RecordService:
    return RecordService(store)


@pytest.fixture
def emitter(records: RecordService) -> NotificationEmitter:
    return NotificationEmitter(records)


@pytest_asyncio.fixture
async def portal(records: RecordService, emitter: NotificationEmitter) -> PortalState:
    state = PortalState(records, emitter)
    await state.refresh()
    return state


@pytest.fixture
def new_customer() -> UserCreate:
    return UserCreate(
        full_name="Sam Perera",
        email="sam.perera@example.com",
        contact_number="+94 77 000 0000",
        password="s3cret",
        address="Galle, Sri Lanka",
    )
