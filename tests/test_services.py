import asyncio
from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from teddy_store.exceptions import CheckoutError, NotFound, RemoteFailure, Unauthenticated
from teddy_store.models.order import Order
from teddy_store.models.product import Product
from teddy_store.schemas.notice import NoticeKind
from teddy_store.schemas.order import CheckoutRequest
from teddy_store.schemas.product import ProductSort
from teddy_store.schemas.profile import ProfileUpdate
from teddy_store.services.catalog_service import CatalogService
from teddy_store.services.checkout_service import CheckoutService
from teddy_store.services.order_service import OrderService
from teddy_store.services.profile_service import ProfileService
from teddy_store.services.reconciler import MutationOutcome

from conftest import CHECKOUT, make_line


@pytest.fixture
async def products(db):
    base = datetime(2024, 1, 1)
    rows = [
        Product(id="bear", name="Brown Bear", description="Classic cuddly bear", price=Decimal("24.99"),
                category="bears", created_at=base),
        Product(id="bunny", name="Bunny", description="Floppy ears", price=Decimal("15.00"),
                category="bunnies", created_at=base + timedelta(days=1)),
        Product(id="panda", name="Panda Bear", description=None, price=Decimal("39.50"),
                category="bears", created_at=base + timedelta(days=2)),
    ]
    db.add_all(rows)
    await db.commit()
    return rows


async def test_catalog_lists_newest_first(db, products):
    result = await CatalogService(db).list_products()
    assert [p.id for p in result] == ["panda", "bunny", "bear"]


async def test_catalog_filters_and_sorting(db, products):
    catalog = CatalogService(db)

    assert [p.id for p in await catalog.list_products(search="BEAR", sort=ProductSort.NAME_ASC)] == ["bear", "panda"]
    assert [p.id for p in await catalog.list_products(search="floppy")] == ["bunny"]
    assert [p.id for p in await catalog.list_products(category="bears", sort=ProductSort.PRICE_DESC)] == ["panda", "bear"]
    assert len(await catalog.list_products(category="all")) == 3
    assert [p.id for p in await catalog.list_products(min_price=Decimal("16"), max_price=Decimal("30"))] == ["bear"]
    assert [p.id for p in await catalog.list_products(sort=ProductSort.PRICE_ASC)] == ["bunny", "bear", "panda"]
    assert [p.id for p in await catalog.list_products(sort=ProductSort.NAME_DESC)] == ["panda", "bunny", "bear"]


async def test_catalog_categories_and_lookup(db, products):
    catalog = CatalogService(db)

    assert await catalog.list_categories() == ["all", "bears", "bunnies"]
    assert (await catalog.get_product("bunny")).name == "Bunny"
    with pytest.raises(NotFound):
        await catalog.get_product("dragon")


async def test_profile_update_creates_and_normalizes(db, notifier):
    service = ProfileService(db, notifier)

    with pytest.raises(NotFound):
        await service.get_profile("u1")

    profile = await service.update_profile("u1", ProfileUpdate(name="Ada", phone="  ", city="Plushville"))

    assert profile.name == "Ada"
    assert profile.phone is None
    assert profile.city == "Plushville"
    assert (await service.get_profile("u1")).city == "Plushville"
    assert notifier.notices[-1] == (NoticeKind.SUCCESS, "Profile updated successfully! 🎉")


async def test_profile_requires_owner(db, notifier):
    service = ProfileService(db, notifier)

    with pytest.raises(Unauthenticated):
        await service.get_profile(None)
    with pytest.raises(Unauthenticated):
        await service.update_profile(None, ProfileUpdate(name="Ada"))


def test_profile_name_is_required():
    with pytest.raises(ValidationError):
        ProfileUpdate(name="")
    with pytest.raises(ValidationError):
        ProfileUpdate(name="x" * 101)


def test_checkout_request_validation():
    bad = {**CHECKOUT, "payment": {**CHECKOUT["payment"], "cvv": "12"}}
    with pytest.raises(ValidationError):
        CheckoutRequest.model_validate(bad)

    bad = {**CHECKOUT, "shipping": {**CHECKOUT["shipping"], "email": "not-an-email"}}
    with pytest.raises(ValidationError):
        CheckoutRequest.model_validate(bad)


async def test_place_order_snapshots_cart_and_clears_it(db, session, cart, cart_store, notifier, publisher):
    session.sign_in("u1")
    await cart.wait_loaded()
    await cart.add(make_line("p1", "10", 2))
    await cart.add(make_line("p2", "5", 1))

    service = CheckoutService(OrderService(db), cart, notifier, publisher)
    order = await service.place_order(CheckoutRequest.model_validate(CHECKOUT))

    assert Decimal(str(order.total)) == Decimal("25")
    assert order.order_status == "processing"
    assert order.payment_status == "paid"
    assert [item["productId"] for item in order.items] == ["p1", "p2"]
    assert order.shipping_info["zipCode"] == "12345"
    assert "cardNumber" not in order.shipping_info

    assert cart.lines == []
    assert "u1" not in cart_store.records
    assert notifier.notices[-1] == (NoticeKind.SUCCESS, "Order placed successfully! 🎉")
    assert publisher.events[-1]["topic"] == "order.placed"

    orders = await OrderService(db).list_orders("u1")
    assert [o.id for o in orders] == [order.id]


async def test_place_order_requires_owner_and_items(db, session, cart, notifier):
    service = CheckoutService(OrderService(db), cart, notifier)
    request = CheckoutRequest.model_validate(CHECKOUT)

    with pytest.raises(Unauthenticated):
        await service.place_order(request)

    session.sign_in("u1")
    with pytest.raises(CheckoutError):
        await service.place_order(request)


async def test_failed_order_insert_keeps_cart(db, session, cart, cart_store, notifier):
    class BrokenOrders:
        async def create_order(self, owner, lines, total, shipping):
            raise RemoteFailure("create order", owner, ConnectionError("db down"))

    session.sign_in("u1")
    await cart.wait_loaded()
    await cart.add(make_line("p1", "10", 1))

    with pytest.raises(RemoteFailure):
        await CheckoutService(BrokenOrders(), cart, notifier).place_order(CheckoutRequest.model_validate(CHECKOUT))

    assert len(cart.lines) == 1
    assert "u1" in cart_store.records
    assert notifier.notices[-1] == (NoticeKind.ERROR, "Failed to place order")


async def test_orders_are_listed_newest_first(db):
    orders = OrderService(db)
    db.add_all([
        Order(id="old", user_id="u1", items=[], shipping_info={}, total=1, created_at=datetime(2024, 1, 1)),
        Order(id="new", user_id="u1", items=[], shipping_info={}, total=2, created_at=datetime(2024, 2, 1)),
        Order(id="other", user_id="u2", items=[], shipping_info={}, total=3, created_at=datetime(2024, 3, 1)),
    ])
    await db.commit()

    assert [o.id for o in await orders.list_orders("u1")] == ["new", "old"]


class GatedOrders:
    """Заказ записывается только после gate.set()"""

    def __init__(self):
        self.entered = asyncio.Event()
        self.gate = asyncio.Event()
        self.placed = []

    async def create_order(self, owner, lines, total, shipping):
        self.entered.set()
        await self.gate.wait()
        self.placed.append([line.product_id for line in lines])
        return SimpleNamespace(id=f"order-{len(self.placed)}", items=[line.to_row() for line in lines])


async def test_add_during_checkout_is_kept_for_next_order(session, cart, cart_store, notifier):
    session.sign_in("u1")
    await cart.wait_loaded()
    await cart.add(make_line("p1", "10", 1))

    orders = GatedOrders()
    service = CheckoutService(orders, cart, notifier)
    checkout = asyncio.create_task(service.place_order(CheckoutRequest.model_validate(CHECKOUT)))
    await orders.entered.wait()

    adding = asyncio.create_task(cart.add(make_line("p2", "5", 1)))
    await asyncio.sleep(0)
    assert not adding.done()

    orders.gate.set()
    await checkout

    assert await adding == MutationOutcome.APPLIED
    assert orders.placed == [["p1"]]
    assert [line.product_id for line in cart.lines] == ["p2"]
    assert [line.product_id for line in cart_store.records["u1"].lines] == ["p2"]


async def test_order_stands_when_cart_clear_fails(db, session, cart, cart_store, notifier):
    session.sign_in("u1")
    await cart.wait_loaded()
    await cart.add(make_line("p1", "10", 1))
    cart_store.fail_on.add("delete")

    order = await CheckoutService(OrderService(db), cart, notifier).place_order(CheckoutRequest.model_validate(CHECKOUT))

    assert [o.id for o in await OrderService(db).list_orders("u1")] == [order.id]
    assert [line.product_id for line in cart.lines] == ["p1"]
    assert "u1" in cart_store.records
    assert (NoticeKind.ERROR, "Failed to clear cart") in notifier.notices
    assert notifier.notices[-1] == (NoticeKind.SUCCESS, "Order placed successfully! 🎉")


async def test_checkout_fails_when_cart_cannot_be_loaded(db, session, cart, cart_store, notifier):
    cart_store.fail_on.add("fetch_one")
    session.sign_in("u1")
    await cart.wait_loaded()

    with pytest.raises(RemoteFailure):
        await CheckoutService(OrderService(db), cart, notifier).place_order(CheckoutRequest.model_validate(CHECKOUT))

    assert await OrderService(db).list_orders("u1") == []


async def test_profile_avatar_survives_later_updates(db, notifier):
    service = ProfileService(db, notifier)

    await service.update_profile("u1", ProfileUpdate(name="Ada", avatar_url="https://cdn.example.com/avatars/u1.png"))
    profile = await service.update_profile("u1", ProfileUpdate(name="Ada Bear", city="Plushville"))

    assert profile.name == "Ada Bear"
    assert profile.avatar_url == "https://cdn.example.com/avatars/u1.png"

    profile = await service.update_profile("u1", ProfileUpdate(name="Ada Bear", avatar_url=" "))
    assert profile.avatar_url is None
    assert profile.city == "Plushville"
