"""Request side of the transactional endpoint protocol."""

import json
from collections.abc import Iterable, Mapping
from typing import Optional

import httpx
from loguru import logger

from cypher_http.services.api_clients.base_client import AsyncHTTPClient

from ..models.statement import Statement
from .exceptions import SerializationError


def encode_statements(statements: Iterable[Statement]) -> bytes:
    """Build the ``{"statements": [...]}`` request envelope."""
    envelope = {"statements": [statement.to_dict() for statement in statements]}
    try:
        body = json.dumps(envelope, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"cannot encode request envelope: {e}") from e
    logger.opt(lazy=True).debug("Sending query:\n{}", lambda: json.dumps(envelope, indent=2))
    return body.encode("utf-8")


async def send_query(
    http: AsyncHTTPClient,
    endpoint: str,
    headers: Optional[Mapping[str, str]],
    statements: Iterable[Statement],
) -> httpx.Response:
    """POST ``statements`` to ``endpoint`` and return the raw response."""
    body = encode_statements(statements)
    return await http.post(endpoint, content=body, headers=dict(headers) if headers else None)
