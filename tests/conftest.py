"""
Shared test fixtures — in-memory record store, repositories, API test client.
"""

import os

import pytest
from fastapi.testclient import TestClient

# Keep tests off the filesystem before app modules read settings
os.environ["STORE_BACKEND"] = "memory"

from core.models import Material, Quote, Service
from core.repositories import CatalogRepository, CompanySettingsRepository, QuoteRepository
from core.store import MemoryStore
from web.api import app, get_store


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def catalog(store):
    return CatalogRepository(store)


@pytest.fixture
def company(store):
    return CompanySettingsRepository(store)


@pytest.fixture
def quotes(store):
    return QuoteRepository(store)


@pytest.fixture
def client(store):
    """FastAPI test client bound to the test store."""
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def copper_half():
    return Material(name='Tubo de Cobre 1/2"', unit="m", price=80, category="Tubulações")


@pytest.fixture
def copper_quarter():
    return Material(name='Tubo de Cobre 1/4"', unit="m", price=45, category="Tubulações")


@pytest.fixture
def cable():
    return Material(name="Cabo PP 3x1.5mm", unit="m", price=12, category="Cabos elétricos")


@pytest.fixture
def install():
    return Service(name="Instalação Split 12.000 BTUs", price=400, category="Instalação")


@pytest.fixture
def empty_quote():
    return Quote(client_name="Maria Souza", client_phone="(11) 99999-9999")
