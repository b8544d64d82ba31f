# stdlib
import math
from typing import Iterable, List, Optional, Sequence
# thirdpartylib
import polars as pl
import pandas as pd
# projectlib
from smart_grid_insight.data.schemas import COLUMNS, Column, ConsumptionRecord
from smart_grid_insight.utils.dates import parse_date
from smart_grid_insight.utils.logging import Logger, resolve_logger
from smart_grid_insight.utils.numeric import to_consumption
from smart_grid_insight.utils.paths import validate_address
from smart_grid_insight.utils.typing import Address, DataFrame

# Header substrings identifying the date and consumption columns
DATE_HINTS = ("date", "time")
CONSUMPTION_HINTS = ("consumption", "kwh", "usage")

def find_column(columns: Sequence[str], hints: Sequence[str]) -> Optional[str]:
    """First column whose lower-cased name contains any of ``hints``."""
    for col in columns:
        name = str(col).strip().lower()
        if any(hint in name for hint in hints):
            return col
    return None

def read_rows(address: Address) -> pl.DataFrame:
    """
    Read a CSV export as all-string columns.

    Values are left untyped so that row-level parsing, and the logging
    of rows that fail it, happens in :func:`records_from_frame`.
    """
    path = validate_address(address, extension=".csv", mode="r")
    return pl.read_csv(path, infer_schema_length=0)

def records_from_frame(
        data: DataFrame,
        *,
        logger: Optional[Logger] = None,
    ) -> List[ConsumptionRecord]:
    """
    Convert parsed tabular rows into consumption records.

    The date and consumption columns are located by header substring
    (``date``/``time`` and ``consumption``/``kwh``/``usage``). Rows whose
    date cannot be parsed or whose consumption is not a number are
    skipped and logged with their line number in the source file,
    counting the header as line 1. Negative values are kept so that
    validation can reject them.

    Parameters
    ----------
    data : pl.DataFrame or pd.DataFrame
        Rows produced by the CSV/Excel parser.
    logger : Logger, optional
        Receives one message per skipped row at verbosity 1.

    Returns
    -------
    List[ConsumptionRecord]
        Historical records in file order, with the original dates.

    Raises
    ------
    ValueError
        If no date or no consumption column can be identified.
    """
    log = resolve_logger(logger, "loader")
    columns = list(data.columns)
    date_col = find_column(columns, DATE_HINTS)
    value_col = find_column(columns, CONSUMPTION_HINTS)
    if date_col is None or value_col is None:
        raise ValueError("Data must have date and consumption columns")

    if isinstance(data, pd.DataFrame):
        rows = data[[date_col, value_col]].to_dict("records")
    else:
        rows = list(data.select(date_col, value_col).iter_rows(named=True))

    records: List[ConsumptionRecord] = []
    for i, row in enumerate(rows):
        line = i + 2
        parsed = parse_date(row[date_col])
        if parsed is None:
            log(f"Error parsing date on line {line}: {row[date_col]}", 1)
            continue
        value = to_consumption(row[value_col])
        if value is None or math.isnan(value):
            log(
                f"Error parsing consumption on line {line}: {row[value_col]}",
                1,
            )
            continue
        records.append(ConsumptionRecord(date=parsed, consumption=value))

    log(f"Parsed {len(records)} of {len(rows)} rows", verbosity=1)
    return records

def records_to_frame(records: Iterable[ConsumptionRecord]) -> pl.DataFrame:
    """Date-sorted polars frame with one column per ``Column``."""
    ordered = sorted(records, key=lambda r: r.date)
    return pl.DataFrame(
        {
            Column.DATE.value: [r.date for r in ordered],
            Column.CONSUMPTION.value: [float(r.consumption) for r in ordered],
            Column.IS_PREDICTION.value: [r.is_prediction for r in ordered],
            Column.IS_INTERPOLATED.value: [r.is_interpolated for r in ordered],
        },
        schema={
            Column.DATE.value: pl.Date,
            Column.CONSUMPTION.value: pl.Float64,
            Column.IS_PREDICTION.value: pl.Boolean,
            Column.IS_INTERPOLATED.value: pl.Boolean,
        },
    ).select([c.value for c in COLUMNS])
