"""Shared fixtures for the test suite."""

import pytest

from cypher_http.config import CypherSettings
from cypher_http.domain.services.cypher import Cypher
from cypher_http.services.api_clients.base_client import AsyncHTTPClient

from helpers import AUTH_HEADERS, TX_ENDPOINT


@pytest.fixture
def settings() -> CypherSettings:
    return CypherSettings(uri="http://localhost:7474", timeout=5.0, connect_timeout=2.0)


@pytest.fixture
async def http_client(settings: CypherSettings):
    async with AsyncHTTPClient(settings=settings) as client:
        yield client


@pytest.fixture
def cypher(http_client: AsyncHTTPClient) -> Cypher:
    return Cypher(TX_ENDPOINT, http_client, AUTH_HEADERS)
