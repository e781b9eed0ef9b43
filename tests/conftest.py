import pytest
from fastapi.testclient import TestClient

import fake_backend
from api import StoreApi
from catalog import CatalogService
from config import Settings
from database import MemoryStorage
from schemas import Product
from storefront import Storefront, StorefrontRegistry


@pytest.fixture
def cfg():
    return Settings(API_BASE_URL="http://testserver", FREE_DELIVERY_THRESHOLD=500, DELIVERY_FEE=40, TAX_RATE=0.0, PAGE_SIZE=12)


@pytest.fixture
def backend():
    fake_backend.reset()
    with TestClient(fake_backend.app) as client:
        yield client


@pytest.fixture
def api(backend):
    return StoreApi(client=backend)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def make_product():
    def _make(id=1, price=500, **kwargs):
        data = {"name": f"Product {id}", "category": "electronics", "stock": 10}
        data.update(kwargs)
        return Product(id=id, price=price, **data)
    return _make


@pytest.fixture
def store(storage, api, cfg):
    return Storefront(storage, api, CatalogService(api), cfg)


@pytest.fixture
def signed_in(store):
    assert store.auth.register("Asha", "asha@example.com", "secret1", "secret1", "+91 9876543210")
    return store


@pytest.fixture
def client(api, cfg):
    import main

    previous = main.app.state.registry
    main.app.state.registry = StorefrontRegistry(MemoryStorage(), api, CatalogService(api), cfg)
    with TestClient(main.app) as c:
        yield c
    main.app.state.registry = previous
