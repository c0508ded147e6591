"""
Pytest configuration for MoltSpace tests.
"""
import pytest

from .fakes import InMemoryStore


def pytest_configure(config):
    """Configure pytest with asyncio marker."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an async test."
    )


@pytest.fixture
def store():
    """Fresh in-memory store with repositories sharing its tables."""
    return InMemoryStore()


@pytest.fixture
def processor(store):
    return store.processor()
