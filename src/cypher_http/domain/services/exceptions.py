"""Exceptions raised by the Cypher HTTP driver."""

from pydantic import BaseModel, Field


class Neo4jError(BaseModel):
    """A single error reported by the server inside a response envelope."""

    code: str = Field(..., description="Neo4j status code")
    message: str = Field(..., description="Human readable message")

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class GraphError(Exception):
    """Base exception for all driver errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class Neo4jServerError(GraphError):
    """The server rejected one or more statements of a request."""

    def __init__(self, errors: list[Neo4jError]) -> None:
        self.errors = list(errors)
        joined = "; ".join(str(error) for error in self.errors)
        super().__init__(f"Neo4j errors: {joined}")


class TransactionError(GraphError):
    """Transaction bookkeeping failure."""

    def __init__(self, message: str):
        super().__init__(f"Transaction error: {message}")


class SerializationError(GraphError):
    """A value could not be represented as JSON."""

    def __init__(self, message: str):
        super().__init__(f"Serialization error: {message}")


class DeserializationError(GraphError):
    """A JSON value or response body does not have the expected shape."""

    def __init__(self, message: str):
        super().__init__(f"Deserialization error: {message}")


class NoSuchColumnError(DeserializationError):
    """The requested column is not part of the result."""

    def __init__(self, column: str | int, columns: list[str]) -> None:
        self.column = column
        self.columns = list(columns)
        super().__init__(f"No such column {column!r} (available: {self.columns})")


class TransportError(GraphError):
    """Network or HTTP layer failure."""

    pass


class OtherError(GraphError):
    """Catch-all for protocol violations that fit no other category."""

    pass
