"""
Centralized test configuration and fixtures for META Storage.

This module provides shared test fixtures that:
1. Create an isolated storage root per test
2. Provide a credential store and authorizers (real and fixed clock)
3. Build the HTTP application with a TestClient
"""

import logging
from datetime import datetime
from typing import Dict, List

import pytest
from fastapi.testclient import TestClient

from shared.auth.authorizer import Authorizer, create_token
from shared.auth.credential_store import CredentialStore
from storage.events import StorageEvent
from storage.main import create_app
from storage.storage import Storage

# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


TEST_CREDENTIALS = {
    "alice": "alice-secret",
    "bob": "bob-secret",
}

# Fixed local wall-clock time used by authorizer tests
FIXED_NOW = datetime(2024, 3, 15, 10, 30, 0)


@pytest.fixture
def storage_dir(tmp_path):
    """Empty storage root directory."""
    root = tmp_path / "storage"
    root.mkdir()
    return root


@pytest.fixture
def storage(storage_dir):
    """Storage engine rooted at an isolated temp directory."""
    return Storage(str(storage_dir))


@pytest.fixture
def recorded_events(storage) -> List[StorageEvent]:
    """List collecting every event the storage fixture emits."""
    events: List[StorageEvent] = []
    storage.subscribe(events.append)
    return events


@pytest.fixture
def test_credentials() -> Dict[str, str]:
    return dict(TEST_CREDENTIALS)


@pytest.fixture
def credential_store(test_credentials):
    return CredentialStore(test_credentials)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def fixed_authorizer(credential_store):
    """Authorizer whose clock is pinned to FIXED_NOW."""
    return Authorizer(credential_store, clock=lambda: FIXED_NOW)


@pytest.fixture
def authorizer(credential_store):
    """Authorizer using the real local clock."""
    return Authorizer(credential_store)


@pytest.fixture
def auth_headers(test_credentials):
    """Valid X-ClientId/X-Token headers for client 'alice' right now."""
    return {
        "X-ClientId": "alice",
        "X-Token": create_token("alice", test_credentials["alice"], datetime.now()),
    }


@pytest.fixture
def api_client(storage, authorizer):
    """TestClient for the storage HTTP application."""
    app = create_app(storage, authorizer)

    with TestClient(app) as client:
        yield client
