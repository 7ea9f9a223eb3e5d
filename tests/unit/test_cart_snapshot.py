import random

from storefront.cart.snapshot import CartSnapshot, SESSION_KEY


def test_add_accumulates_and_writes_session():
    session = {}
    cart = CartSnapshot(session)
    cart.add(7, 2)
    cart.add(7, 3)
    cart.add("9", "1")
    assert cart.items() == {7: 5, 9: 1}
    # Clés chaînes: la session Starlette est sérialisée en JSON
    assert session[SESSION_KEY] == {"7": 5, "9": 1}
    assert cart.item_count() == 6
    assert cart.has_items()


def test_add_ignores_invalid_entries():
    cart = CartSnapshot({})
    cart.add(7, 0)
    cart.add(7, -2)
    cart.add("abc", 1)
    cart.add(None, 1)
    assert cart.items() == {}
    assert not cart.has_items()


def test_update_quantity_sets_or_removes():
    cart = CartSnapshot({})
    cart.add(1, 4)
    cart.update_quantity(1, 2)
    assert cart.items() == {1: 2}
    cart.update_quantity(1, 0)
    assert cart.items() == {}


def test_update_quantity_on_absent_product_is_noop():
    cart = CartSnapshot({})
    cart.add(1, 1)
    cart.update_quantity(99, 3)
    assert cart.items() == {1: 1}


def test_remove_and_clear():
    cart = CartSnapshot({})
    cart.add(1, 1)
    cart.add(2, 2)
    cart.remove(1)
    cart.remove(42)
    assert cart.items() == {2: 2}
    cart.clear()
    assert cart.items() == {}
    assert cart.item_count() == 0


def test_corrupted_session_is_reset():
    session = {SESSION_KEY: "not-a-dict"}
    cart = CartSnapshot(session)
    assert cart.items() == {}
    session[SESSION_KEY] = {"3": "2", "x": 1, "4": 0}
    assert cart.items() == {3: 2}


def test_snapshots_share_the_same_session():
    session = {}
    CartSnapshot(session).add(5, 2)
    assert CartSnapshot(session).items() == {5: 2}


def test_random_operations_match_reference_model():
    rng = random.Random(1234)
    session = {}
    cart = CartSnapshot(session)
    model = {}
    for _ in range(500):
        op = rng.choice(["add", "remove", "update", "clear"])
        pid = rng.randint(1, 6)
        qty = rng.randint(-2, 5)
        if op == "add":
            cart.add(pid, qty)
            if qty >= 1:
                model[pid] = model.get(pid, 0) + qty
        elif op == "remove":
            cart.remove(pid)
            model.pop(pid, None)
        elif op == "update":
            cart.update_quantity(pid, qty)
            if qty <= 0:
                model.pop(pid, None)
            elif pid in model:
                model[pid] = qty
        else:
            if rng.random() < 0.1:
                cart.clear()
                model.clear()
        assert cart.items() == model
        assert cart.item_count() == sum(model.values())
