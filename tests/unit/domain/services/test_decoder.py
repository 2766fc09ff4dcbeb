import httpx
import pytest

from cypher_http.domain.models.envelopes import BeginResponse, OngoingResponse, QueryResponse
from cypher_http.domain.services.decoder import extract_errors, has_errors, parse_response
from cypher_http.domain.services.exceptions import (
    DeserializationError,
    Neo4jError,
    Neo4jServerError,
)
from cypher_http.services.api_clients.base_client import APIHTTPError

from helpers import envelope, result_json, tx_envelope

SYNTAX_ERROR = {"code": "Neo.ClientError.Statement.SyntaxError", "message": "Invalid input 'X'"}


def make_response(status_code: int = 200, **kwargs) -> httpx.Response:
    return httpx.Response(status_code, **kwargs)


@pytest.mark.parametrize(
    "payload, expected",
    [
        ({"results": [], "errors": []}, False),
        ({"results": []}, False),
        ({"errors": [SYNTAX_ERROR]}, True),
        ({"errors": None}, False),
        ([], False),
        ("errors", False),
    ],
)
def test_has_errors(payload, expected):
    assert has_errors(payload) is expected


def test_extract_errors():
    errors = extract_errors({"errors": [SYNTAX_ERROR]})
    assert errors == [Neo4jError(code=SYNTAX_ERROR["code"], message=SYNTAX_ERROR["message"])]


def test_malformed_errors_array():
    with pytest.raises(DeserializationError):
        extract_errors({"errors": ["not an object"]})
    with pytest.raises(DeserializationError):
        extract_errors({"errors": [{"message": "no code"}]})
    with pytest.raises(DeserializationError):
        parse_response(make_response(json=envelope(errors=[{"code": "Neo.ClientError"}])), QueryResponse)


def test_successful_query_response():
    response = make_response(json=envelope(result_json(["value"], [1])))
    result = parse_response(response, QueryResponse)
    assert len(result.results) == 1
    assert result.results[0].columns == ("value",)
    assert result.errors == []


def test_invalid_json_is_deserialization_error():
    response = make_response(content=b"{not json")
    with pytest.raises(DeserializationError):
        parse_response(response, QueryResponse)


def test_non_utf8_body_is_deserialization_error():
    response = make_response(content=b"\x80abc")
    with pytest.raises(DeserializationError):
        parse_response(response, QueryResponse)


def test_errors_take_precedence_over_results():
    body = envelope(result_json(["value"], [1]), errors=[SYNTAX_ERROR])
    with pytest.raises(Neo4jServerError) as exc_info:
        parse_response(make_response(json=body), QueryResponse)
    assert len(exc_info.value.errors) == 1
    assert exc_info.value.errors[0].code == SYNTAX_ERROR["code"]


def test_errors_in_http_error_response_are_reported_as_server_errors():
    body = envelope(errors=[{"code": "Neo.ClientError.Transaction.TransactionNotFound", "message": "gone"}])
    with pytest.raises(Neo4jServerError):
        parse_response(make_response(404, json=body), QueryResponse)


def test_http_error_without_envelope_errors():
    with pytest.raises(APIHTTPError) as exc_info:
        parse_response(make_response(500, json={"message": "boom"}), QueryResponse)
    assert exc_info.value.status_code == 500


def test_http_error_with_non_json_body():
    with pytest.raises(APIHTTPError) as exc_info:
        parse_response(make_response(502, text="Bad Gateway"), QueryResponse)
    assert exc_info.value.status_code == 502
    assert exc_info.value.response_content == "Bad Gateway"


def test_call_site_models_differ():
    body = envelope(result_json(["n"]))
    assert parse_response(make_response(json=body), QueryResponse).results[0].columns == ("n",)
    with pytest.raises(DeserializationError):
        parse_response(make_response(json=body), BeginResponse)
    with pytest.raises(DeserializationError):
        parse_response(make_response(json=body), OngoingResponse)


def test_begin_response_fields():
    result = parse_response(make_response(201, json=tx_envelope()), BeginResponse)
    assert result.commit.endswith("/commit")
    assert result.transaction.expires == "Tue, 20 Oct 2026 10:00:00 +0000"


def test_unexpected_results_shape():
    with pytest.raises(DeserializationError):
        parse_response(make_response(json={"results": "nope", "errors": []}), QueryResponse)
