# stdlib
from datetime import date, datetime
from typing import Any, Literal, Mapping, Protocol, Union
from pathlib import Path
# thirdpartylib
import polars as pl
import pandas as pd

# Verbosity for classes, functions, methods, etc.
type Verbosity = Literal[0, 1, 2]
# Mode for opening documents
type ReadMode = Literal["r"]
type WriteMode = Literal["w", "x"]
type OpenMode = Literal[ReadMode, WriteMode]
# Type alias for file/folder paths
type Address = Union[str, Path]
# Sampling granularity inferred from record spacing
type Granularity = Literal["daily", "monthly", "yearly"]
# Severity of a single validation finding
type FindingLevel = Literal["valid", "warn", "invalid"]
# Anything a date may arrive as before parsing
type DateLike = Union[str, date, datetime, pd.Timestamp, None]
# Parsed tabular rows handed over by the file parser
type DataFrame = Union[pl.DataFrame, pd.DataFrame]
# Raw row as produced by the parser (date/consumption keys)
type RawRow = Mapping[str, Any]


class RandomSource(Protocol):
    """Source of uniformly distributed floats in ``[0, 1)``."""

    def next(self) -> float: ...
