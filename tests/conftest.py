"""Shared pytest fixtures for storefront tests."""

import os
from decimal import Decimal

# must be set before storefront settings are imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "1"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from storefront.data.database import Base, get_db, make_engine
from storefront.data.models import ProductModel, UserModel
from storefront.domain.identity import CurrentUser
from storefront.main import app


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=True, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    def _make(name: str = "Ana", email: str | None = None, role: str = "user") -> UserModel:
        user = UserModel(name=name, email=email or f"{name.lower()}@example.com", role=role)
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_product(db):
    counter = {"n": 0}

    def _make(price="10.00", stock: int = 5, title: str | None = None, category: str = "general") -> ProductModel:
        counter["n"] += 1
        product = ProductModel(
            title=title or f"Product {counter['n']}",
            description="Test product",
            code=f"P-{counter['n']:03d}",
            price=Decimal(str(price)),
            stock=stock,
            category=category,
        )
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture
def user(make_user) -> UserModel:
    return make_user()


@pytest.fixture
def identity(user) -> CurrentUser:
    return CurrentUser(id=user.id, email=user.email, role=user.role)


def stock_of(db, product_id: int) -> int:
    """Live stock read, bypassing objects cached in the session."""
    db.expire_all()
    return db.get(ProductModel, product_id).stock


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def auth(user) -> dict:
    return {"X-User-Id": str(user.id)}
