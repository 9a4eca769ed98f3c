"""
Pytest configuration and shared fixtures.

Registers the integration marker and provides an in-memory store, a
session token and helpers to inject test doubles into the app.
"""

import pytest

from invoice_chat.api.deps import get_invoice_store, get_llm_client
from invoice_chat.api.main import app
from invoice_chat.core.config import settings
from invoice_chat.services.storage import InMemoryInvoiceStore


def pytest_addoption(parser):
    """Add custom command-line options"""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests against a real LLM endpoint"
    )


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test requiring a real LLM endpoint"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --run-integration is specified"""
    if config.getoption("--run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="need --run-integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture
def store():
    return InMemoryInvoiceStore()


@pytest.fixture
def auth_headers():
    """Configure one session token and return matching request headers"""
    original = settings.auth_tokens
    settings.auth_tokens = "user-1:test-token"
    yield {"Authorization": "Bearer test-token"}
    settings.auth_tokens = original


@pytest.fixture
def use_doubles(store):
    """Install a store and an LLM double into the app; returns a setter for the LLM"""
    def install(llm):
        app.dependency_overrides[get_llm_client] = lambda: llm
        return llm

    app.dependency_overrides[get_invoice_store] = lambda: store
    yield install
    app.dependency_overrides.clear()
