import itertools
import os
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite://")

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.exc import OperationalError  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from storefront.db.session import init_db, make_session_factory  # noqa: E402
from storefront.models import Category, Product  # noqa: E402


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def make_product(session_factory):
    counter = itertools.count(1)

    def _make(name="Widget", price="10.00", **overrides):
        n = next(counter)
        fields = {
            "id": f"prod-{n:03d}",
            "name": name,
            "slug": f"{name.lower().replace(' ', '-')}-{n}",
            "price": Decimal(str(price)),
            "quantity": 100,
            "is_active": True,
            "is_featured": False,
            "created_at": datetime(2024, 1, 1) + timedelta(minutes=n),
        }
        fields.update(overrides)
        with session_factory() as session:
            session.add(Product(**fields))
        return fields["id"]

    return _make


@pytest.fixture
def make_category(session_factory):
    def _make(name, slug=None, **overrides):
        fields = {"id": f"cat-{name.lower()}", "name": name, "slug": slug or name.lower()}
        fields.update(overrides)
        with session_factory() as session:
            session.add(Category(**fields))
        return fields["id"]

    return _make


@pytest.fixture
def unavailable_session_factory():
    def _factory():
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    return _factory
