"""
Query results and typed row access

This module provides the decoded form of one statement's result and a
lightweight Row view with typed extraction of column values.
"""

import copy
from collections.abc import Iterator
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from ..services.exceptions import NoSuchColumnError
from .statement import from_json_value

T = TypeVar("T")


class RowData(BaseModel):
    """One entry of a result's ``data`` array."""

    row: tuple[Any, ...] = Field(default_factory=tuple)
    meta: Optional[tuple[Any, ...]] = None

    model_config = ConfigDict(frozen=True)


class CypherResult(BaseModel):
    """
    Columns and rows returned for a single statement

    Examples:
        >>> result = await graph.exec("MATCH (n:Person) RETURN n.name AS name")
        >>> for row in result.rows():
        ...     print(row.get("name", str))
    """

    columns: tuple[str, ...] = Field(default_factory=tuple)
    data: tuple[RowData, ...] = Field(default_factory=tuple)

    model_config = ConfigDict(frozen=True)

    def rows(self) -> Iterator["Row"]:
        """
        Iterate over the rows of this result

        Each call returns a fresh iterator; rows reference this result instead of
        copying its data.
        """
        for index in range(len(self.data)):
            yield Row(self, index)

    def __iter__(self) -> Iterator["Row"]:  # type: ignore[override]
        return self.rows()

    def __len__(self) -> int:
        return len(self.data)

    def __getitem__(self, index: int) -> "Row":
        if index < 0:
            index += len(self.data)
        if not 0 <= index < len(self.data):
            raise IndexError(f"row index {index} out of range")
        return Row(self, index)

    def is_empty(self) -> bool:
        return not self.data


class Row:
    """
    View of one row of a CypherResult

    Holds the owning result and a row index, so it stays valid for as long as the
    row is reachable.
    """

    __slots__ = ("_result", "_index")

    def __init__(self, result: CypherResult, index: int):
        self._result = result
        self._index = index

    @property
    def columns(self) -> tuple[str, ...]:
        return self._result.columns

    @property
    def _raw(self) -> tuple[Any, ...]:
        return self._result.data[self._index].row

    @property
    def values(self) -> tuple[Any, ...]:
        """A deep copy of the row values."""
        return copy.deepcopy(self._raw)

    def get(self, column: str, type_: type[T] = Any) -> T:
        """
        Get the value of a named column converted to ``type_``

        Raises:
            NoSuchColumnError: If the result has no column called ``column``
            DeserializationError: If the value does not fit ``type_``
        """
        try:
            index = self._result.columns.index(column)
        except ValueError:
            raise NoSuchColumnError(column, self._result.columns) from None
        return self.get_by_index(index, type_)

    def get_by_index(self, index: int, type_: type[T] = Any) -> T:
        """
        Get the value at a column position converted to ``type_``

        Raises:
            NoSuchColumnError: If ``index`` is out of range
            DeserializationError: If the value does not fit ``type_``
        """
        values = self._raw
        if not 0 <= index < len(values):
            raise NoSuchColumnError(index, self._result.columns)
        return from_json_value(values[index], type_)

    def as_dict(self) -> dict[str, Any]:
        return {column: copy.deepcopy(value) for column, value in zip(self._result.columns, self._raw)}

    def __repr__(self) -> str:
        return f"Row({self.as_dict()!r})"
