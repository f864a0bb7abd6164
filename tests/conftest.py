import pytest

from price_server import create_app
from price_store import ItemStore


@pytest.fixture()
def store() -> ItemStore:
    return ItemStore({"shoes": 50, "socks": 5})


@pytest.fixture()
def app(store):
    app = create_app(store)
    app.testing = True
    return app


@pytest.fixture()
def client(app):
    with app.test_client() as client:
        yield client
