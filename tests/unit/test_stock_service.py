import pytest
from postgrest.exceptions import APIError

from storefront.errors import InsufficientStock, PersistenceError, ProductNotFound
from storefront.stock import service as stock


def test_normalize_items_merges_and_sorts():
    items = [
        {"product_id": 9, "quantity": 1},
        {"product_id": "7", "quantity": 2},
        {"product_id": 9, "quantity": 2},
        {"product_id": 3, "quantity": 0},
        {"product_id": None, "quantity": 1},
        {"quantity": 1},
    ]
    assert stock.normalize_items(items) == [
        {"product_id": 7, "quantity": 2},
        {"product_id": 9, "quantity": 3},
    ]


def test_translate_api_errors(monkeypatch):
    def raise_insufficient(items):
        raise APIError({"message": "insufficient_stock:9:2:1", "code": "P0001"})

    monkeypatch.setattr("storefront.stock.service.repository.call_reserve_and_decrement", raise_insufficient)
    with pytest.raises(InsufficientStock) as exc:
        stock.reserve_and_decrement_or_raise([{"product_id": 9, "quantity": 2}])
    assert (exc.value.product_id, exc.value.requested, exc.value.available) == (9, 2, 1)
    assert exc.value.shortfall == 1

    def raise_not_found(items):
        raise APIError({"message": "product_not_found:404", "code": "P0002"})

    monkeypatch.setattr("storefront.stock.service.repository.call_reserve_and_decrement", raise_not_found)
    with pytest.raises(ProductNotFound) as exc2:
        stock.reserve_and_decrement_or_raise([{"product_id": 404, "quantity": 1}])
    assert exc2.value.product_id == 404

    def raise_other(items):
        raise APIError({"message": "connection reset", "code": "08006"})

    monkeypatch.setattr("storefront.stock.service.repository.call_reserve_and_decrement", raise_other)
    with pytest.raises(PersistenceError):
        stock.reserve_and_decrement_or_raise([{"product_id": 1, "quantity": 1}])


def test_reserve_empty_items_makes_no_call(monkeypatch):
    called = []
    monkeypatch.setattr("storefront.stock.service.repository.call_reserve_and_decrement", lambda items: called.append(items))
    stock.reserve_and_decrement_or_raise([])
    assert called == []


def test_reserve_and_decrement_is_all_or_nothing(fake_db):
    fake_db.add_product(7, "199.99", 5)
    fake_db.add_product(9, "50.00", 1)

    assert stock.reserve_and_decrement([{"product_id": 7, "quantity": 2}, {"product_id": 9, "quantity": 2}]) is False
    assert fake_db.stock_of(7) == 5
    assert fake_db.stock_of(9) == 1

    assert stock.reserve_and_decrement([{"product_id": 7, "quantity": 2}, {"product_id": 9, "quantity": 1}]) is True
    assert fake_db.stock_of(7) == 3
    assert fake_db.stock_of(9) == 0


def test_reserve_exact_stock_reaches_zero(fake_db):
    fake_db.add_product(1, "10.00", 3)
    stock.reserve_and_decrement_or_raise([{"product_id": 1, "quantity": 3}])
    assert fake_db.stock_of(1) == 0
    with pytest.raises(InsufficientStock):
        stock.reserve_and_decrement_or_raise([{"product_id": 1, "quantity": 1}])
    assert fake_db.stock_of(1) == 0


def test_restore_is_additive(fake_db):
    fake_db.add_product(7, "10.00", 0)
    assert stock.restore(7, 2) is True
    assert stock.restore(7, 0) is True
    assert fake_db.stock_of(7) == 2
    assert stock.restore(404, 1) is False


def test_current_stock_and_status(fake_db):
    fake_db.add_product(1, "10.00", 20)
    fake_db.add_product(2, "10.00", 3)
    fake_db.add_product(3, "10.00", 0)
    assert stock.current_stock(1) == 20
    assert stock.current_stock(404) == 0
    assert stock.stock_status(1) == {"stock": 20, "is_available": True, "status": "in_stock"}
    assert stock.stock_status(2)["status"] == "low_stock"
    assert stock.stock_status(3) == {"stock": 0, "is_available": False, "status": "out_of_stock"}


def test_current_stock_on_db_error_returns_zero(fake_db):
    fake_db.failures[("select", "products")] = RuntimeError("db down")
    assert stock.current_stock(1) == 0


def test_low_stock_and_statistics(fake_db):
    fake_db.add_product(1, "10.00", 20)
    fake_db.add_product(2, "10.00", 3)
    fake_db.add_product(3, "10.00", 0)

    low = stock.low_stock_products(threshold=5)
    assert [p["id"] for p in low] == [3, 2]

    stats = stock.stock_statistics(threshold=5)
    assert stats == {"total_products": 3, "total_stock": 23, "out_of_stock": 1, "low_stock": 1, "in_stock": 1}


def test_statistics_on_error_returns_zeros(fake_db):
    fake_db.failures[("rpc", "stock_statistics")] = RuntimeError("db down")
    assert stock.stock_statistics() == {"total_products": 0, "total_stock": 0, "out_of_stock": 0, "low_stock": 0, "in_stock": 0}
