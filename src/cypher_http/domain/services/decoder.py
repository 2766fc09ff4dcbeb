"""
Decoding of server responses.

Every response body goes through the same three checks, in order:

1. the body must be JSON, otherwise ``DeserializationError``;
2. a non-empty ``errors`` array raises ``Neo4jServerError``, even when
   ``results`` would decode;
3. the body is validated into the model of the call site.

An HTTP error status without envelope errors becomes ``APIHTTPError``.
"""

import json
from typing import Any, TypeVar

import httpx
from loguru import logger
from pydantic import BaseModel, TypeAdapter, ValidationError

from cypher_http.services.api_clients.base_client import APIHTTPError

from .exceptions import DeserializationError, Neo4jError, Neo4jServerError

M = TypeVar("M", bound=BaseModel)

_errors_adapter = TypeAdapter(list[Neo4jError])


def has_errors(payload: Any) -> bool:
    """True when ``payload`` is an envelope with a non-empty ``errors`` array."""
    if not isinstance(payload, dict):
        return False
    errors = payload.get("errors")
    return isinstance(errors, list) and len(errors) > 0


def extract_errors(payload: dict[str, Any]) -> list[Neo4jError]:
    """Decode the ``errors`` array of an envelope."""
    try:
        return _errors_adapter.validate_python(payload.get("errors") or [])
    except ValidationError as e:
        logger.error(f"Malformed errors array in response: {e}")
        raise DeserializationError(f"malformed errors array: {e}") from e


def load_body(response: httpx.Response) -> Any:
    """Parse the body of ``response`` as JSON."""
    try:
        return json.loads(response.content)
    except ValueError as e:  # JSONDecodeError and UnicodeDecodeError
        logger.error(f"Unable to parse response body (HTTP {response.status_code}): {e}")
        if response.is_error:
            raise APIHTTPError(
                status_code=response.status_code,
                response_content=response.text,
                message=f"Server returned HTTP {response.status_code} with a non-JSON body",
            ) from e
        raise DeserializationError(f"response body is not valid JSON: {e}") from e


def parse_payload(payload: Any, model: type[M]) -> M:
    """Apply the error probe and validate an already parsed body into ``model``."""
    if has_errors(payload):
        errors = extract_errors(payload)
        logger.error(f"Server reported {len(errors)} error(s): {[e.code for e in errors]}")
        raise Neo4jServerError(errors)
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        logger.error(f"Unable to parse response as {model.__name__}: {e}")
        raise DeserializationError(f"unexpected response shape for {model.__name__}: {e}") from e


def parse_response(response: httpx.Response, model: type[M]) -> M:
    """
    Decode ``response`` into ``model``.

    Raises:
        DeserializationError: If the body is not JSON or does not fit ``model``.
        Neo4jServerError: If the envelope reports errors.
        APIHTTPError: If the HTTP status is an error and the body carries no envelope errors.
    """
    payload = load_body(response)
    if response.is_error and not has_errors(payload):
        logger.error(f"HTTP error {response.status_code}: {response.text[:200]}")
        raise APIHTTPError(status_code=response.status_code, response_content=response.text)
    return parse_payload(payload, model)
