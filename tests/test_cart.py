import pytest
import redis

from servicehub.auth import get_current_user
from servicehub.cache import Cache, cache
from servicehub.catalog import get_product
from servicehub.domain.cart.repository import CartRepository
from servicehub.domain.cart.service import add_to_cart, summarize, update_quantity
from servicehub.exceptions import StorageUnavailableError
from servicehub.main import app
from servicehub.schemas import CurrentUser


def test_add_to_cart_merges_lines():
    headphones = get_product(1)

    items = add_to_cart([], headphones)
    items = add_to_cart(items, headphones, 2)

    assert len(items) == 1
    assert items[0].quantity == 3


def test_update_quantity_below_one_removes_line():
    items = add_to_cart([], get_product(4))

    assert update_quantity(items, 4, 0) == []


def test_summarize_applies_tax():
    items = add_to_cart([], get_product(3), 2)

    totals = summarize(items)

    assert totals.total_items == 2
    assert totals.subtotal == 49.98
    assert totals.tax == 5.0
    assert totals.total == 54.98


def test_cart_endpoints(client):
    assert client.get("/cart").json()["items"] == []

    added = client.post("/cart/items", json={"product_id": 2, "quantity": 2})
    assert added.status_code == 200
    assert added.json()["total_items"] == 2

    client.post("/cart/items", json={"product_id": 6})
    updated = client.patch("/cart/items/2", json={"quantity": 1})
    assert updated.json()["total_items"] == 2
    assert updated.json()["subtotal"] == 379.98

    removed = client.delete("/cart/items/6")
    assert [item["id"] for item in removed.json()["items"]] == [2]

    cleared = client.delete("/cart")
    assert cleared.json()["total_items"] == 0


def test_cart_is_per_user(client, api):
    client.post("/cart/items", json={"product_id": 5})

    app.dependency_overrides[get_current_user] = lambda: CurrentUser(id="user_bo", email="bo@servicehub.io")
    assert api.get("/cart").json()["items"] == []


def test_add_unknown_product(client):
    response = client.post("/cart/items", json={"product_id": 99})

    assert response.status_code == 404


def test_update_item_not_in_cart(client):
    response = client.patch("/cart/items/1", json={"quantity": 3})

    assert response.status_code == 404


def test_cart_requires_session(api):
    assert api.get("/cart").status_code in (401, 403)


class UnreachableRedis:
    """Redis client whose every command fails"""

    def get(self, key):
        raise redis.ConnectionError("redis down")

    def setex(self, key, ttl, value):
        raise redis.ConnectionError("redis down")

    def delete(self, key):
        raise redis.ConnectionError("redis down")


@pytest.fixture
def redis_down(monkeypatch):
    monkeypatch.setattr(cache, "use_redis", True)
    monkeypatch.setattr(cache, "redis_client", UnreachableRedis())


def test_failed_cart_write_raises():
    store = Cache()
    store.redis_client = UnreachableRedis()
    repo = CartRepository(store)

    with pytest.raises(StorageUnavailableError):
        repo.save("user_ann", add_to_cart([], get_product(1)))
    with pytest.raises(StorageUnavailableError):
        repo.load("user_ann")
    with pytest.raises(StorageUnavailableError):
        repo.clear("user_ann")


def test_cart_endpoints_report_unavailable_storage(client, redis_down):
    added = client.post("/cart/items", json={"product_id": 2})

    assert added.status_code == 503
    assert added.json()["detail"] == "Cart storage is temporarily unavailable. Please try again."
    assert client.get("/cart").status_code == 503
