from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from barbershop.auth import create_access_token
from barbershop.main import app
from barbershop.models import (
    Barber,
    Commission,
    CompletedService,
    Product,
    ProductCommission,
    ProductSale,
    Service,
    User,
)
from barbershop.repository import InMemoryRepository, MemoryStore
from barbershop.schemas import UserRole


@pytest.fixture
def store():
    """Fresh in-memory storage wired into the app for one test."""
    store = MemoryStore()
    app.state.memory_store = store
    yield store
    app.state.memory_store = None


@pytest.fixture
def repo(store):
    return InMemoryRepository(store)


@pytest.fixture
def api(store):
    return TestClient(app)


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
def user_factory(repo):
    """Creates users without a password; tests authenticate with minted tokens."""
    counter = {"n": 0}

    def create(role=UserRole.client, **kwargs):
        counter["n"] += 1
        n = counter["n"]
        defaults = {
            "username": f"user{n}",
            "email": f"user{n}@example.com",
            "full_name": f"User {n}",
            "role": role,
        }
        defaults.update(kwargs)
        return repo.add(User(**defaults))

    return create


@pytest.fixture
def barber_factory(repo, user_factory):
    def create(**kwargs):
        user = user_factory(role=UserRole.barber)
        defaults = {"user_id": user.id, "nif": "123456789", "iban": "PT50000201231234567890154"}
        defaults.update(kwargs)
        return repo.add(Barber(**defaults))

    return create


@pytest.fixture
def shop(repo, user_factory, barber_factory):
    """A small shop: one admin, two barbers, one client, a catalog and commission rates."""
    admin = user_factory(role=UserRole.admin, full_name="Ana Admin")
    barber = barber_factory()
    other_barber = barber_factory()
    client = user_factory(full_name="Carlos Client", phone="+351910000001")
    haircut = repo.add(Service(name="Haircut", price=Decimal("20.00"), duration=30))
    beard = repo.add(Service(name="Beard Trim", price=Decimal("10.00"), duration=15))
    pomade = repo.add(
        Product(name="Pomade", price=Decimal("10.00"), cost_price=Decimal("4.00"), sku="POM-1", stock_quantity=5)
    )
    repo.add(Commission(barber_id=barber.id, service_id=haircut.id, percentage=Decimal("40")))
    repo.add(ProductCommission(barber_id=barber.id, product_id=pomade.id, percentage=Decimal("20")))
    return SimpleNamespace(
        admin=admin,
        barber=barber,
        barber_user=repo.get(User, barber.user_id),
        other_barber=other_barber,
        other_barber_user=repo.get(User, other_barber.user_id),
        client=client,
        haircut=haircut,
        beard=beard,
        pomade=pomade,
    )


@pytest.fixture
def login_as(store):
    def client_for(user: User) -> TestClient:
        return TestClient(app, headers=auth_headers(user))

    return client_for


@pytest.fixture
def as_admin(shop, login_as):
    return login_as(shop.admin)


@pytest.fixture
def as_barber(shop, login_as):
    return login_as(shop.barber_user)


@pytest.fixture
def as_other_barber(shop, login_as):
    return login_as(shop.other_barber_user)


@pytest.fixture
def as_client(shop, login_as):
    return login_as(shop.client)


@pytest.fixture
def completed_service_factory(repo, shop):
    def create(**kwargs):
        defaults = {
            "barber_id": shop.barber.id,
            "service_id": shop.haircut.id,
            "client_name": "Walk-in",
            "price": Decimal("20.00"),
            "date": datetime(2024, 2, 1, 10, 0),
            "validated_by_admin": False,
        }
        defaults.update(kwargs)
        return repo.add(CompletedService(**defaults))

    return create


@pytest.fixture
def product_sale_factory(repo, shop):
    def create(**kwargs):
        defaults = {
            "barber_id": shop.barber.id,
            "product_id": shop.pomade.id,
            "client_name": "Walk-in",
            "quantity": 1,
            "unit_price": Decimal("10.00"),
            "date": datetime(2024, 2, 1, 11, 0),
            "validated_by_admin": False,
        }
        defaults.update(kwargs)
        return repo.add(ProductSale(**defaults))

    return create
