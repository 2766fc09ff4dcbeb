"""
Auto-commit execution against the transactional endpoint.

``Cypher`` represents the endpoint itself; ``CypherQuery`` collects statements
and sends them to ``{endpoint}/commit`` in a single request.
"""

from collections.abc import Iterable, Mapping
from typing import Optional

from loguru import logger

from cypher_http.services.api_clients.base_client import AsyncHTTPClient

from ..models.envelopes import QueryResponse
from ..models.result import CypherResult
from ..models.statement import Statement, StatementLike
from .decoder import parse_response
from .exceptions import OtherError
from .protocol import send_query
from .transaction import Transaction


class Cypher:
    """
    The transactional endpoint of a server.

    Holds the endpoint URI, the shared transport and the headers (credentials
    included) sent with every request.
    """

    def __init__(
        self,
        endpoint: str,
        http: AsyncHTTPClient,
        headers: Optional[Mapping[str, str]] = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.http = http
        self.headers = dict(headers or {})

    @property
    def commit_endpoint(self) -> str:
        return f"{self.endpoint}/commit"

    def query(self) -> "CypherQuery":
        """Create an empty query batch."""
        return CypherQuery(self)

    async def exec(self, statement: StatementLike) -> CypherResult:
        """
        Run a single statement in its own auto-commit request.

        Raises:
            OtherError: If the server returns no result for the statement.
        """
        results = await self.query().with_statement(statement).send()
        return results[0]

    def transaction(self, statements: Optional[Iterable[StatementLike]] = None) -> Transaction:
        """Create a transaction that has not contacted the server yet."""
        return Transaction(self.endpoint, self.http, self.headers, statements)


class CypherQuery:
    """
    A batch of statements executed and committed in one request.

    Results come back in the order the statements were added.
    """

    def __init__(self, cypher: Cypher):
        self._cypher = cypher
        self._statements: list[Statement] = []

    def add_statement(self, statement: StatementLike) -> None:
        self._statements.append(Statement.coerce(statement))

    def with_statement(self, statement: StatementLike) -> "CypherQuery":
        self.add_statement(statement)
        return self

    @property
    def statements(self) -> list[Statement]:
        return list(self._statements)

    def set_statements(self, statements: Iterable[StatementLike]) -> None:
        self._statements = [Statement.coerce(s) for s in statements]

    async def send(self) -> list[CypherResult]:
        """
        Send all statements to the commit endpoint.

        Returns:
            One CypherResult per statement, positionally aligned.

        Raises:
            Neo4jServerError: If the server reports any error; no partial results are returned.
            OtherError: If the number of results differs from the number of statements.
            TransportError: On network or HTTP failures.
            DeserializationError: If the response cannot be decoded.
        """
        response = await send_query(
            self._cypher.http,
            self._cypher.commit_endpoint,
            self._cypher.headers,
            self._statements,
        )
        result = parse_response(response, QueryResponse)
        if self._statements and not result.results:
            logger.error("Server returned no results for a non-empty query")
            raise OtherError("No results returned from server")
        if len(result.results) != len(self._statements):
            logger.error(
                f"Server returned {len(result.results)} results for {len(self._statements)} statements"
            )
            raise OtherError(
                f"Expected {len(self._statements)} results, server returned {len(result.results)}"
            )
        logger.debug(f"Query with {len(self._statements)} statement(s) committed")
        return result.results
