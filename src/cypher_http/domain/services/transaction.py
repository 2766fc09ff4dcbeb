"""
Transaction management through the transactional HTTP endpoint.

A transaction goes through two handle types:

- ``Transaction`` has not contacted the server. It only collects the
  statements sent when the transaction is opened.
- ``StartedTransaction`` owns a live transaction resource on the server.

``Transaction.begin()``, ``StartedTransaction.commit()`` and
``StartedTransaction.rollback()`` consume the handle they are called on; any
later use of a consumed handle raises ``TransactionError``. There is therefore
at most one usable handle per server-side transaction.

Examples:
    >>> tx, results = await graph.transaction().with_statement("CREATE (n:Item)").begin()
    >>> tx.add_statement("MATCH (n:Item) RETURN count(n) AS items")
    >>> results = await tx.send()
    >>> await tx.commit()
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional
from urllib.parse import urljoin

from loguru import logger

from cypher_http.services.api_clients.base_client import AsyncHTTPClient, mask_uri

from ..models.envelopes import BeginResponse, OngoingResponse, QueryResponse
from ..models.result import CypherResult
from ..models.statement import Statement, StatementLike
from .decoder import parse_response
from .exceptions import DeserializationError, OtherError, TransactionError
from .protocol import send_query


def parse_expires(value: str) -> datetime:
    """
    Parse the RFC 822 ``transaction.expires`` value into an aware datetime.

    Raises:
        DeserializationError: If the value is not an RFC 822 date.
    """
    try:
        expires = parsedate_to_datetime(value)
    except (TypeError, ValueError) as e:
        raise DeserializationError(f"invalid transaction expiry {value!r}") from e
    if expires is None:
        raise DeserializationError(f"invalid transaction expiry {value!r}")
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    return expires


@dataclass
class _TransactionContext:
    """Endpoint, transport and headers shared by both handle types."""

    endpoint: str
    http: AsyncHTTPClient
    headers: dict[str, str] = field(default_factory=dict)


class Transaction:
    """
    A transaction that has not been opened on the server yet.

    Call begin() to open it with the collected statements.
    """

    def __init__(
        self,
        endpoint: str,
        http: AsyncHTTPClient,
        headers: Optional[Mapping[str, str]] = None,
        statements: Optional[Iterable[StatementLike]] = None,
    ):
        self._context = _TransactionContext(endpoint.rstrip("/"), http, dict(headers or {}))
        self._statements: list[Statement] = [Statement.coerce(s) for s in statements or ()]
        self._consumed = False

    def _check_usable(self) -> None:
        if self._consumed:
            logger.error("Transaction handle used after begin()")
            raise TransactionError("Transaction handle already consumed by begin()")

    @property
    def statements(self) -> list[Statement]:
        return list(self._statements)

    def add_statement(self, statement: StatementLike) -> None:
        self._check_usable()
        self._statements.append(Statement.coerce(statement))

    def with_statement(self, statement: StatementLike) -> "Transaction":
        self.add_statement(statement)
        return self

    async def begin(self) -> tuple["StartedTransaction", list[CypherResult]]:
        """
        Open the transaction on the server, running the collected statements.

        This handle is consumed whether or not the request succeeds.

        Returns:
            The started transaction and the results of the collected statements.

        Raises:
            TransactionError: If the server does not return the transaction location.
            Neo4jServerError: If the server reports errors for the statements.
            TransportError: On network or HTTP failures.
            DeserializationError: If the response cannot be decoded.
        """
        self._check_usable()
        self._consumed = True
        context = self._context
        statements, self._statements = self._statements, []

        response = await send_query(context.http, context.endpoint, context.headers, statements)
        result = parse_response(response, BeginResponse)

        location = response.headers.get("location")
        if not location:
            logger.error("Server did not return a Location header for the new transaction")
            raise TransactionError("No transaction URI returned from server")

        started = StartedTransaction(
            context,
            resource_uri=urljoin(context.endpoint, location),
            commit_uri=result.commit,
            expires_at=parse_expires(result.transaction.expires),
        )
        logger.info(f"Transaction begun at {mask_uri(location)}, expires {started.expires_at.isoformat()}")
        return started, result.results


class StartedTransaction:
    """
    A transaction open on the server.

    Statements added with add_statement() are buffered locally and sent by
    send(), exec() or commit(). Every response refreshes expires_at.
    """

    def __init__(
        self,
        context: _TransactionContext,
        resource_uri: str,
        commit_uri: str,
        expires_at: datetime,
    ):
        self._context = context
        self._resource_uri = resource_uri
        self._commit_uri = commit_uri
        self._expires_at = expires_at
        self._statements: list[Statement] = []
        self._consumed = False

    @property
    def resource_uri(self) -> str:
        return self._resource_uri

    @property
    def commit_uri(self) -> str:
        return self._commit_uri

    @property
    def expires_at(self) -> datetime:
        return self._expires_at

    @property
    def statements(self) -> list[Statement]:
        return list(self._statements)

    def is_expired(self) -> bool:
        """Whether the last known expiry lies in the past. Informational only."""
        return self._expires_at < datetime.now(timezone.utc)

    def _check_usable(self) -> None:
        if self._consumed:
            logger.error("Transaction used after commit or rollback")
            raise TransactionError("Transaction already committed or rolled back")

    def _update_expires(self, expires: str) -> None:
        fresh = parse_expires(expires)
        # expires_at only moves forward
        if fresh > self._expires_at:
            self._expires_at = fresh

    def _take_statements(self) -> list[Statement]:
        statements, self._statements = self._statements, []
        return statements

    def add_statement(self, statement: StatementLike) -> None:
        self._check_usable()
        self._statements.append(Statement.coerce(statement))

    def with_statement(self, statement: StatementLike) -> "StartedTransaction":
        self.add_statement(statement)
        return self

    async def send(self) -> list[CypherResult]:
        """
        Send the buffered statements to the open transaction.

        The buffer is cleared once the request is built, whatever the outcome.

        Raises:
            TransactionError: If the transaction was already committed or rolled back.
            Neo4jServerError: If the server reports errors for the statements.
            TransportError: On network or HTTP failures.
            DeserializationError: If the response cannot be decoded.
        """
        self._check_usable()
        context = self._context
        response = await send_query(context.http, self._resource_uri, context.headers, self._take_statements())
        result = parse_response(response, OngoingResponse)
        self._update_expires(result.transaction.expires)
        return result.results

    async def exec(self, statement: StatementLike) -> CypherResult:
        """
        Send ``statement`` together with any buffered statements and return its result.

        Raises:
            OtherError: If the server returns no results.
        """
        self.add_statement(statement)
        results = await self.send()
        if not results:
            logger.error("Server returned no results inside the transaction")
            raise OtherError("No results returned from server")
        return results[-1]

    async def commit(self) -> list[CypherResult]:
        """
        Send the buffered statements and commit the transaction.

        This handle is consumed whether or not the request succeeds.

        Returns:
            The results of the statements sent with the commit.
        """
        self._check_usable()
        self._consumed = True
        context = self._context
        response = await send_query(context.http, self._commit_uri, context.headers, self._take_statements())
        result = parse_response(response, QueryResponse)
        logger.info(f"Transaction {mask_uri(self._resource_uri)} committed")
        return result.results

    async def rollback(self) -> None:
        """
        Roll back the transaction, discarding any buffered statements.

        This handle is consumed whether or not the request succeeds.

        Raises:
            Neo4jServerError: If the server reports errors in the rollback response.
        """
        self._check_usable()
        self._consumed = True
        self._statements = []
        context = self._context
        response = await context.http.delete(self._resource_uri, headers=context.headers or None)
        parse_response(response, QueryResponse)
        logger.info(f"Transaction {mask_uri(self._resource_uri)} rolled back")

    async def reset_timeout(self) -> None:
        """
        Keep the transaction alive by sending an empty request.

        Buffered statements stay buffered; only expires_at changes.
        """
        self._check_usable()
        context = self._context
        response = await send_query(context.http, self._resource_uri, context.headers, [])
        result = parse_response(response, OngoingResponse)
        self._update_expires(result.transaction.expires)
        logger.debug(f"Transaction timeout reset, expires {self._expires_at.isoformat()}")
