from teddy_store.storefront import SessionRegistry


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def make_registry(cart_store, wishlist_store, **kwargs):
    clock = FakeClock()
    registry = SessionRegistry(cart_store, wishlist_store, clock=clock, **kwargs)
    return registry, clock


async def test_same_header_returns_same_session(cart_store, wishlist_store):
    registry, _ = make_registry(cart_store, wishlist_store)

    assert registry.get("a") is registry.get("a")
    assert len(registry) == 1


async def test_idle_sessions_are_closed(cart_store, wishlist_store):
    registry, clock = make_registry(cart_store, wishlist_store, idle_timeout=60)
    stale = registry.get("stale")
    await stale.sign_in("u1")

    clock.now = 30
    registry.get("fresh")
    clock.now = 70
    registry.get("fresh")

    assert "stale" not in registry
    assert "fresh" in registry
    # Закрытая сессия отписана от смены пользователя
    stale.auth.sign_out()
    assert stale.cart.owner == "u1"


async def test_session_cap_closes_least_recently_used(cart_store, wishlist_store):
    registry, clock = make_registry(cart_store, wishlist_store, max_sessions=2)

    registry.get("a")
    clock.now = 1
    registry.get("b")
    clock.now = 2
    registry.get("a")
    clock.now = 3
    registry.get("c")

    assert "b" not in registry
    assert "a" in registry and "c" in registry
    assert len(registry) == 2


async def test_drop_and_close_all(cart_store, wishlist_store):
    registry, _ = make_registry(cart_store, wishlist_store)
    registry.get("a")
    registry.get("b")

    registry.drop("a")
    registry.drop("missing")
    assert len(registry) == 1

    registry.close_all()
    assert len(registry) == 0
