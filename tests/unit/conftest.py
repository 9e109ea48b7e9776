"""Shared fixtures for unit tests: mock backends, no AWS needed."""

import pytest
import sys
import os

# Add project root to path so service_broker is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from service_broker.backends.mock.state import InMemoryStateStore
from service_broker.backends.mock.cloud import MockCloudClient


PROVISION_REQUEST = {
    "service_id": "f3c2b1a0-6d7e-4c5b-9a8f-1e2d3c4b5a69",
    "plan_id": "5a7c9e1b-2d4f-4a6b-8c0d-3e5f7a9b1c2d",
    "organization_guid": "org-guid",
    "space_guid": "space-guid",
}


@pytest.fixture
def state():
    return InMemoryStateStore()


@pytest.fixture
def cloud():
    return MockCloudClient()


@pytest.fixture
def provision_request():
    return dict(PROVISION_REQUEST)
