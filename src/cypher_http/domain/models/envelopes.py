"""
Response envelopes of the transactional HTTP endpoint.

Each call site decodes into its own model because lifecycle responses carry
extra fields (``commit``, ``transaction.expires``) that auto-commit responses
do not.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..services.exceptions import Neo4jError
from .result import CypherResult


class TransactionInfo(BaseModel):
    expires: str = Field(..., description="RFC 822 expiry of the transaction resource")

    model_config = ConfigDict(extra="ignore")


class QueryResponse(BaseModel):
    """Body returned by auto-commit, commit and rollback requests."""

    results: list[CypherResult] = Field(default_factory=list)
    errors: list[Neo4jError] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class BeginResponse(QueryResponse):
    """Body returned when a transaction resource is created."""

    commit: str
    transaction: TransactionInfo


class OngoingResponse(QueryResponse):
    """Body returned by requests against an open transaction resource."""

    commit: Optional[str] = None
    transaction: TransactionInfo


class ServiceRoot(BaseModel):
    """Discovery document served at the server root."""

    transaction: str
    neo4j_version: str
    neo4j_edition: Optional[str] = None
    bolt_direct: Optional[str] = None
    bolt_routing: Optional[str] = None
    extensions: Optional[dict[str, Any]] = None

    model_config = ConfigDict(extra="ignore")
