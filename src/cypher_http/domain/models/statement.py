"""
Cypher statements and their parameters.

A Statement pairs the query text with a map of named parameters. Parameters are
converted to plain JSON values when they are added, so a value that cannot be
sent to the server is rejected before any request is built.
"""

import copy
import json
from collections.abc import Mapping
from functools import lru_cache
from typing import Any, Optional, TypeVar, Union

from loguru import logger
from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from ..services.exceptions import DeserializationError, SerializationError

T = TypeVar("T")


@lru_cache(maxsize=256)
def type_adapter(type_: Any) -> TypeAdapter:
    """Return a cached TypeAdapter for ``type_``."""
    return TypeAdapter(type_)


def to_json_value(value: Any) -> Any:
    """
    Convert ``value`` into a JSON-compatible Python value.

    Models, dataclasses, datetimes, enums and the like are handled by
    pydantic-core. The result is then checked against strict JSON, which has no
    NaN or Infinity.

    Raises:
        SerializationError: If the value cannot be represented as JSON.
    """
    try:
        converted = to_jsonable_python(value)
        json.dumps(converted, allow_nan=False)
    except (PydanticSerializationError, TypeError, ValueError) as e:
        logger.error(f"Cannot serialize {type(value).__name__} parameter value: {e}")
        raise SerializationError(f"{type(value).__name__} value is not JSON serializable: {e}") from e
    return converted


def from_json_value(value: Any, type_: Any) -> Any:
    """
    Validate a JSON value into ``type_``.

    Raises:
        DeserializationError: If the value does not fit ``type_``.
    """
    if type_ is Any:
        return copy.deepcopy(value)
    try:
        return type_adapter(type_).validate_python(value)
    except ValidationError as e:
        raise DeserializationError(f"cannot convert {value!r} to {type_!r}: {e}") from e
    except TypeError as e:
        # unhashable or unsupported annotations
        raise DeserializationError(f"unsupported target type {type_!r}: {e}") from e


class Statement:
    """
    Represents a single Cypher statement with its parameters.

    Examples:
        >>> stmt = Statement("MATCH (n:Person {name: $name}) RETURN n").with_param("name", "Alice")
        >>> stmt.param("name", str)
        'Alice'
    """

    __slots__ = ("_text", "_parameters")

    def __init__(self, text: str, parameters: Optional[Mapping[str, Any]] = None):
        if not isinstance(text, str):
            raise TypeError(f"Statement text must be a string, got {type(text).__name__}")
        self._text = text
        self._parameters: dict[str, Any] = {}
        if parameters is not None and not isinstance(parameters, Mapping):
            raise TypeError(f"Statement parameters must be a mapping, got {type(parameters).__name__}")
        if parameters:
            for key, value in parameters.items():
                self.add_param(key, value)

    @classmethod
    def coerce(cls, value: Union["Statement", str, tuple]) -> "Statement":
        """
        Turn a query string or a ``(text, parameters)`` tuple into a Statement.

        Statements are returned unchanged. Anything else raises TypeError.
        """
        if isinstance(value, Statement):
            return value
        if isinstance(value, str):
            return cls(value)
        if (
            isinstance(value, tuple)
            and len(value) == 2
            and isinstance(value[0], str)
            and isinstance(value[1], Mapping)
        ):
            return cls(value[0], value[1])
        raise TypeError(f"Cannot convert {type(value).__name__} to Statement")

    @property
    def text(self) -> str:
        return self._text

    @property
    def parameters(self) -> dict[str, Any]:
        """A deep copy of the serialized parameters."""
        return copy.deepcopy(self._parameters)

    def add_param(self, key: str, value: Any) -> None:
        """
        Set parameter ``key`` to the JSON form of ``value``.

        An existing parameter with the same key is replaced.

        Raises:
            SerializationError: If ``value`` cannot be represented as JSON.
        """
        if not isinstance(key, str):
            raise TypeError(f"Parameter name must be a string, got {type(key).__name__}")
        self._parameters[key] = to_json_value(value)

    def with_param(self, key: str, value: Any) -> "Statement":
        """Builder form of add_param."""
        self.add_param(key, value)
        return self

    def has_param(self, key: str) -> bool:
        return key in self._parameters

    def param(self, key: str, type_: type[T] = Any) -> Optional[T]:
        """
        Return parameter ``key`` converted to ``type_``, or None when it is absent.

        Use has_param to tell an absent parameter from a stored ``null``.

        Raises:
            DeserializationError: If the parameter exists but does not fit ``type_``.
        """
        if key not in self._parameters:
            return None
        return from_json_value(self._parameters[key], type_)

    def remove_param(self, key: str) -> None:
        self._parameters.pop(key, None)

    def to_dict(self) -> dict[str, Any]:
        """Wire form of the statement."""
        return {"statement": self._text, "parameters": dict(self._parameters)}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Statement):
            return NotImplemented
        return self._text == other._text and self._parameters == other._parameters

    def __repr__(self) -> str:
        return f"Statement(text={self._text!r}, parameters={self._parameters!r})"


def cypher_stmt(text: str, params: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Statement:
    """
    Shorthand for building a Statement.

    Parameters may be given as a mapping, as keyword arguments, or both; keyword
    arguments win on conflicting keys.

    Examples:
        >>> cypher_stmt("MATCH (n) WHERE n.value = $value RETURN n", value=42).param("value", int)
        42
    """
    statement = Statement(text, params)
    for key, value in kwargs.items():
        statement.add_param(key, value)
    return statement


StatementLike = Union[Statement, str, tuple]
