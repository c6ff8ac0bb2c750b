import os
from datetime import date
from decimal import Decimal

# Must be set before feedtrade.core.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from feedtrade.core.database import Base, engine, SessionLocal
from feedtrade.core.dependencies import get_db, get_current_active_user
from feedtrade.main import app
from feedtrade.models.contact import ContactType
from feedtrade.models.order import OrderStatus, PricingModel
from feedtrade.models.user import UserRole
from feedtrade.services import contact_service, sale_service, purchase_service, delivery_service, user_service

TODAY = date(2025, 3, 14)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def owner(db):
    return user_service.create_user(db, email="owner@example.com", password="secret123",
                                    name="Owner", role=UserRole.owner)


@pytest.fixture
def client(db, owner):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_active_user] = lambda: owner
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def customer(db):
    return contact_service.create_contact(db, name="Ahmet Çiftlik", type=ContactType.customer)


@pytest.fixture
def customer2(db):
    return contact_service.create_contact(db, name="Mehmet Besi", type=ContactType.customer)


@pytest.fixture
def supplier(db):
    return contact_service.create_contact(db, name="Konya Yem", type=ContactType.supplier)


@pytest.fixture
def sale(db, customer):
    return sale_service.create_sale(db, contact_id=customer.id, quantity=Decimal("5000"),
                                    unit_price=Decimal("10"), sale_date=TODAY,
                                    status=OrderStatus.confirmed)


@pytest.fixture
def purchase(db, supplier):
    return purchase_service.create_purchase(db, contact_id=supplier.id, quantity=Decimal("5000"),
                                            unit_price=Decimal("8"), purchase_date=TODAY,
                                            pricing_model=PricingModel.tir_ustu,
                                            status=OrderStatus.confirmed)


@pytest.fixture
def make_delivery(db, sale, purchase):
    """Delivery on the sale/purchase pair: 1000 kg at 10 / 8 unless overridden."""
    def _make(**overrides):
        fields = dict(delivery_date=TODAY, net_weight=Decimal("1000"),
                      sale_id=sale.id, purchase_id=purchase.id)
        fields.update(overrides)
        return delivery_service.create_delivery(db, **fields)
    return _make


def balance_of(db, contact) -> Decimal:
    db.expire_all()
    return Decimal(contact.account.balance)
