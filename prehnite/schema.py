"""Table schema model: column types, constraints, statistics and indexes."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional, Union

Value = Union[None, bool, int, float, str]


class ColumnType(enum.Enum):
    """The declared type of a column; the value is its on-disk tag."""

    INT = 1
    REAL = 2
    TEXT = 3
    BOOL = 4


class ForeignKeyAction(enum.Enum):
    """What happens to child rows when a referenced parent row is deleted."""

    RESTRICT = 1
    CASCADE = 2
    SET_NULL = 3


@dataclass
class ForeignKeyTarget:
    """The parent table and column a foreign-key column refers to."""

    table: str
    column: str
    on_delete: ForeignKeyAction


@dataclass
class HistogramBucket:
    """One equi-depth histogram bucket: an inclusive value range and its row count."""

    lower: Value
    upper: Value
    count: int


@dataclass
class ColumnStats:
    """Statistics gathered for a column by ANALYZE."""

    n_distinct: int
    null_count: int
    total_rows: int
    histogram: List[HistogramBucket] = field(default_factory=list)


@dataclass
class Column:
    """One column of a table."""

    name: str
    type: ColumnType
    not_null: bool = False
    foreign_key: Optional[ForeignKeyTarget] = None
    stats: Optional[ColumnStats] = None


@dataclass
class Index:
    """A secondary index over one or more columns, identified by its B+tree root."""

    name: str
    columns: List[int]
    root: int
    unique: bool = False
    is_building: bool = False


@dataclass
class Schema:
    """Everything the catalog records about one table."""

    name: str
    columns: List[Column]
    root: int
    next_rowid: int
    row_count: int = 0
    indexes: List[Index] = field(default_factory=list)
    primary_key_column: Optional[int] = None
    mutations_since_analyze: int = 0

    def column_index(self, name: str) -> Optional[int]:
        """Position of the column called `name`, or None if the table has none."""
        return next(
            (position for position, column in enumerate(self.columns) if column.name == name),
            None,
        )