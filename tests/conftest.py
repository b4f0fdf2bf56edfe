"""
Pytest configuration and shared fixtures.
"""

import pytest
from unittest.mock import Mock
from urllib.parse import unquote

from odata_builder.core.config import ODataConfig
from odata_builder.core.session import BaseTransport, TransportResponse
from odata_builder.query.builder import ODataQuery


SERVICE = "https://services.example.com/odata"


@pytest.fixture
def config():
    """Plain configuration pointing at the test service."""
    return ODataConfig(service=SERVICE)


@pytest.fixture
def q(config):
    """A fresh builder without transport."""
    return ODataQuery(config)


@pytest.fixture
def mock_transport():
    """Transport double returning a canned 200 response."""
    transport = Mock(spec=BaseTransport)
    transport.request.return_value = TransportResponse(
        status_code=200,
        body='{"value": []}',
        headers={"Content-Type": "application/json"},
    )
    transport.post.return_value = TransportResponse(status_code=202)
    return transport


def clause(url, name):
    """Return the decoded value of one query clause, or None if absent."""
    if "?" not in url:
        return None
    for part in url.split("?", 1)[1].split("&"):
        key, _, value = part.partition("=")
        if key == name:
            return unquote(value)
    return None
