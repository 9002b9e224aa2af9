import asyncio
import os
from decimal import Decimal
from typing import Dict, List, Optional

# Настройки читаются при импорте пакета: тесты работают на SQLite в памяти без Kafka
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("KAFKA_ENABLED", "false")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from teddy_store.database import create_tables
from teddy_store.exceptions import RemoteFailure
from teddy_store.schemas.cart import CartLine, CartLineCreate, CartRecord
from teddy_store.schemas.wishlist import WishlistEntry
from teddy_store.services.cart_reconciler import CartReconciler
from teddy_store.services.wishlist_reconciler import WishlistReconciler
from teddy_store.session import SessionProvider
from teddy_store.stores.base import InsertOutcome, InsertResult


class RecordingNotifier:
    def __init__(self):
        self.notices = []

    def notify(self, kind, message):
        self.notices.append((kind, message))

    def kinds(self):
        return [kind for kind, _ in self.notices]

    def messages(self):
        return [message for _, message in self.notices]


class RecordingPublisher:
    def __init__(self):
        self.events = []
        self.producer = None

    async def publish_event(self, topic, event_type, payload, key=None):
        self.events.append({"topic": topic, "event_type": event_type, "payload": payload, "key": key})
        return True

    def topics(self):
        return [event["topic"] for event in self.events]


class FakeStoreBase:
    """Общая часть фейков: журнал вызовов, сбои по операциям, задержка чтения"""

    def __init__(self):
        self.calls: List[tuple] = []
        self.fail_on: set = set()
        self.gates: Dict[str, asyncio.Event] = {}

    def gate(self, owner: str) -> asyncio.Event:
        self.gates[owner] = asyncio.Event()
        return self.gates[owner]

    async def _enter(self, operation: str, owner: str):
        self.calls.append((operation, owner))
        gate = self.gates.get(owner) if operation.startswith("fetch") else None
        if gate is not None:
            await gate.wait()
        if operation in self.fail_on:
            raise RemoteFailure(operation, owner, ConnectionError("store unavailable"))

    def operations(self):
        return [operation for operation, _ in self.calls]


class FakeCartStore(FakeStoreBase):
    def __init__(self):
        super().__init__()
        self.records: Dict[str, CartRecord] = {}

    async def fetch_one(self, owner: str) -> Optional[CartRecord]:
        await self._enter("fetch_one", owner)
        record = self.records.get(owner)
        return record.model_copy(deep=True) if record else None

    async def upsert(self, owner: str, record: CartRecord) -> None:
        await self._enter("upsert", owner)
        self.records[owner] = record.model_copy(deep=True)

    async def update(self, owner: str, record: CartRecord) -> bool:
        await self._enter("update", owner)
        if owner not in self.records:
            return False
        self.records[owner] = record.model_copy(deep=True)
        return True

    async def delete(self, owner: str) -> None:
        await self._enter("delete", owner)
        self.records.pop(owner, None)


class FakeWishlistStore(FakeStoreBase):
    def __init__(self):
        super().__init__()
        self.rows: List[WishlistEntry] = []
        self._next_id = 0

    async def fetch_all(self, owner: str) -> List[WishlistEntry]:
        await self._enter("fetch_all", owner)
        return [row for row in self.rows if row.owner == owner]

    async def insert(self, owner: str, product_id: str) -> InsertResult:
        await self._enter("insert", owner)
        if any(row.owner == owner and row.product_id == product_id for row in self.rows):
            return InsertResult(outcome=InsertOutcome.DUPLICATE)
        self._next_id += 1
        entry = WishlistEntry(id=f"w{self._next_id}", owner=owner, product_id=product_id)
        self.rows.append(entry)
        return InsertResult(outcome=InsertOutcome.CREATED, entry=entry)

    async def delete(self, owner: str, entry_id: str) -> bool:
        await self._enter("delete", owner)
        before = len(self.rows)
        self.rows = [row for row in self.rows if not (row.id == entry_id and row.owner == owner)]
        return len(self.rows) < before


CHECKOUT = {
    "shipping": {
        "firstName": "Ada",
        "lastName": "Bear",
        "email": "ada@example.com",
        "address": "1 Honey Lane",
        "city": "Plushville",
        "zipCode": "12345",
    },
    "payment": {"cardNumber": "4242424242424242", "expiry": "12/30", "cvv": "123"},
}


def make_line(product_id="p1", price="10", quantity=1, name=None) -> CartLineCreate:
    return CartLineCreate(
        product_id=product_id,
        name=name or f"Teddy {product_id}",
        unit_price=Decimal(price),
        quantity=quantity,
        image_ref=f"/images/{product_id}.png"
    )


def make_record(owner: str, *lines: CartLineCreate) -> CartRecord:
    return CartRecord.from_lines(owner, [CartLine(**line.model_dump()) for line in lines])


@pytest.fixture
def session():
    return SessionProvider()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def cart_store():
    return FakeCartStore()


@pytest.fixture
def wishlist_store():
    return FakeWishlistStore()


@pytest.fixture
def cart(session, cart_store, notifier, publisher):
    reconciler = CartReconciler(session, cart_store, notifier, publisher)
    yield reconciler
    reconciler.close()


@pytest.fixture
def wishlist(session, wishlist_store, notifier, publisher):
    reconciler = WishlistReconciler(session, wishlist_store, notifier, publisher)
    yield reconciler
    reconciler.close()


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as db_session:
        yield db_session
