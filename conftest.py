import pytest
from fastapi.testclient import TestClient

from api import create_app
from library import Library, sample_books


@pytest.fixture
def lib():
    # Each test gets its own seeded catalog
    return Library(sample_books())


@pytest.fixture
def client(lib):
    with TestClient(create_app(lib)) as test_client:
        yield test_client
