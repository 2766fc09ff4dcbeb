"""Response builders and constants shared by the tests."""

TX_ENDPOINT = "http://localhost:7474/db/neo4j/tx"
COMMIT_ENDPOINT = f"{TX_ENDPOINT}/commit"
TX_RESOURCE = f"{TX_ENDPOINT}/42"
TX_COMMIT = f"{TX_RESOURCE}/commit"
AUTH_HEADERS = {"Authorization": "Basic bmVvNGo6c2VjcmV0"}
EXPIRES = "Tue, 20 Oct 2026 10:00:00 +0000"
LATER_EXPIRES = "Tue, 20 Oct 2026 10:01:00 +0000"


def result_json(columns: list[str], *rows: list) -> dict:
    """Build one entry of a response's ``results`` array."""
    return {"columns": columns, "data": [{"row": list(row), "meta": [None] * len(row)} for row in rows]}


def envelope(*results: dict, errors: list | None = None, **extra) -> dict:
    """Build a response envelope."""
    body = {"results": list(results), "errors": errors or []}
    body.update(extra)
    return body


def tx_envelope(*results: dict, expires: str = EXPIRES, errors: list | None = None) -> dict:
    """Build the envelope returned by requests against a transaction resource."""
    return envelope(*results, errors=errors, commit=TX_COMMIT, transaction={"expires": expires})
