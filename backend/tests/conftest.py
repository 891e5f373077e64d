import os

# Point the app at a throwaway database before any app module reads settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from database import get_db, init_db
from main import app
from models.product import Product
from models.users import User
from schemas.principal import AuthenticatedIdentity
from utils.tokenJWT import create_access_token


@pytest.fixture()
def engine(tmp_path):
    # File backed so every session gets its own connection, like a real server
    engine = create_engine(
        f"sqlite:///{tmp_path / 'shop.db'}", connect_args={"check_same_thread": False}
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    counter = {"n": 0}

    def _make(role="customer", name="Test User", email=None):
        counter["n"] += 1
        user = User(
            name=name,
            email=email or f"user{counter['n']}@example.com",
            # Not a real hash; these users authenticate with tokens only
            password_hash="!",
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture()
def make_product(db):
    def _make(name="Bananas", price=1.5, category="Fruits", quantity=10, image=None):
        product = Product(name=name, price=price, category=category, quantity=quantity, image=image)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


def _auth_headers(user):
    token = create_access_token({"sub": user.id, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def headers_for():
    return _auth_headers


@pytest.fixture()
def identity_for():
    def _identity(user):
        return AuthenticatedIdentity(user_id=user.id, role=user.role, email=user.email)

    return _identity


@pytest.fixture()
def customer(make_user):
    return make_user()


@pytest.fixture()
def customer_headers(customer):
    return _auth_headers(customer)


@pytest.fixture()
def admin_headers(make_user):
    return _auth_headers(make_user(role="admin", name="Admin"))
