"""
Pytest configuration and shared fixtures for backend tests.

WHAT: Isolated settings, a fresh database per test and sample catalog data
WHY: Tests must never touch the real data directory, a live LLM or the spot feed
HOW: Environment set before any aabarnam import, tables recreated per test
"""

import os
import tempfile
from decimal import Decimal
from pathlib import Path

# Settings are read once at import time; point everything at a scratch dir first
_TEST_DIR = Path(tempfile.mkdtemp(prefix="aabarnam-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DIR / 'test.db'}"
os.environ["LOG_FILE"] = str(_TEST_DIR / "logs" / "app.log")
os.environ["LLM_PROVIDER"] = "openrouter"
os.environ["LLM_ENABLE_OPENROUTER"] = "false"
os.environ["OPENROUTER_API_KEY"] = ""
os.environ["RATE_SYNC_INTERVAL_HOURS"] = "0"
os.environ["RATE_SYNC_ON_STARTUP"] = "false"
os.environ["NEGOTIATION_IDLE_SECONDS"] = "0"

import pytest
from fastapi.testclient import TestClient

from aabarnam.core.database import Base, engine, get_db
from aabarnam.core import models  # noqa: F401  (registers tables)
from aabarnam.core.models import Product
from aabarnam.llm.provider_factory import reset_provider
from aabarnam.main import create_app
from aabarnam.services.rate_store import RateStore
from tests.fixtures.pricing_data import EXAMPLE_RATES


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (isolated component tests)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (multiple components)"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take significant time to run"
    )


@pytest.fixture(autouse=True)
def reset_provider_singleton():
    """Clear the provider cache so settings changes take effect per test."""
    reset_provider()
    yield
    reset_provider()


@pytest.fixture
def db_tables():
    """Drop and recreate every table."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def rate_store(db_tables) -> RateStore:
    """Rate store seeded with the worked-example rates."""
    store = RateStore()
    store.upsert_rates(EXAMPLE_RATES, updated_by="seed")
    return store


@pytest.fixture
def product_factory(db_tables):
    """Insert a product row; keyword overrides on top of the worked example."""
    def _create(**overrides) -> int:
        fields = dict(
            sku=None,
            name="Lakshmi Kasu Necklace",
            metal_type="22K_GOLD",
            gross_weight=Decimal("10.300"),
            net_weight=Decimal("10.000"),
            stone_weight=Decimal("0"),
            purchase_touch_pct=Decimal("92.00"),
            purchase_mc_type="BUNDLED",
            purchase_mc=Decimal("0"),
            wastage_pct=Decimal("12.00"),
            making_charge_type="FLAT",
            making_charge=Decimal("1500.00"),
        )
        fields.update(overrides)
        with get_db() as db:
            product = Product(**fields)
            db.add(product)
            db.flush()
            return product.id
    return _create


@pytest.fixture
def sample_product(product_factory, rate_store) -> int:
    """Worked-example product with example rates loaded."""
    return product_factory()


@pytest.fixture
def client(rate_store):
    """TestClient over a fresh app; lifespan runs so rate sync and sessions are live."""
    with TestClient(create_app()) as test_client:
        yield test_client
