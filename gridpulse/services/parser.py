"""Demand history file parser.

Supports CSV (comma or semicolon delimited, Spanish decimal comma) and Excel
workbooks (.xlsx). Auto-detects timestamp and demand columns; converts kW, kWh and
MWh columns to average MW.
"""

import io
import logging
from typing import cast
from zipfile import BadZipFile

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from gridpulse.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

# Column-name fragments used for auto-detection (lowercase)
_TIMESTAMP_HINTS = ("time", "date", "ts", "fecha", "hora")
_VALUE_HINTS = ("mw", "kw", "demand", "demanda", "load", "carga", "value", "power")
# Energy columns need conversion to average power over the interval
_ENERGY_HINTS = ("kwh", "mwh")


def _detect_column(columns: list[str], hints: tuple[str, ...]) -> str | None:
    """Return the first column whose lowercased name contains any of the hints."""
    for col in columns:
        col_lower = str(col).lower()
        for hint in hints:
            if hint in col_lower:
                return col
    return None


def _parse_csv(data: bytes) -> pd.DataFrame:
    """Try semicolon separator first (decimal comma), then comma (decimal point)."""
    if not data or not data.strip():
        raise InvalidInputError("File is empty")

    for sep, decimal in ((";", ","), (",", ".")):
        try:
            df = pd.read_csv(
                io.BytesIO(data),
                sep=sep,
                decimal=decimal,
                encoding="utf-8-sig",  # handle BOM
                engine="python",
            )
        except pd.errors.EmptyDataError:
            raise InvalidInputError("File is empty")
        except (pd.errors.ParserError, UnicodeDecodeError):
            continue
        if len(df.columns) >= 2:
            return df

    raise InvalidInputError("Could not split file into timestamp and demand columns")


def _parse_excel(data: bytes) -> pd.DataFrame:
    if not data:
        raise InvalidInputError("File is empty")
    try:
        return pd.read_excel(io.BytesIO(data), engine="openpyxl")
    except (BadZipFile, InvalidFileException, KeyError, ValueError) as exc:
        raise InvalidInputError(f"Could not read Excel workbook: {exc}") from exc


def _detect_interval_minutes(ts_series: pd.Series) -> float:
    """Return the median gap between timestamps in minutes."""
    deltas = ts_series.sort_values().diff().dropna()
    if deltas.empty:
        return 60.0
    return max(deltas.median().total_seconds() / 60, 1.0)


def parse_demand_history(data: bytes, filename: str) -> pd.DataFrame:
    """Parse raw file bytes into a DataFrame with columns [ts, demand_mw].

    Raises:
        InvalidInputError: If the file is empty or the timestamp / demand
            column cannot be found.
    """
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "csv"

    if ext == "xls":
        raise InvalidInputError("Legacy .xls workbooks are not supported; save as .xlsx or .csv")
    if ext == "xlsx":
        df = _parse_excel(data)
    else:
        df = _parse_csv(data)

    if df.empty:
        raise InvalidInputError(f"Parsed file '{filename}' is empty")

    cols = list(df.columns)

    # ── Detect timestamp column ────────────────────────────────────────────────
    ts_col = _detect_column(cols, _TIMESTAMP_HINTS)
    if ts_col is None:
        ts_col = cols[0]
        logger.warning("No timestamp column detected; using first column '%s'", ts_col)

    # ── Detect demand column ───────────────────────────────────────────────────
    remaining = [c for c in cols if c != ts_col]
    value_col = _detect_column(remaining, _VALUE_HINTS)
    if value_col is None:
        if len(remaining) == 1:
            value_col = remaining[0]
            logger.warning("No demand column detected; using '%s'", value_col)
        else:
            raise InvalidInputError(
                f"Cannot detect demand column in {cols!r}. "
                "Expected a column containing: mw, kw, demand, demanda, load or mwh."
            )

    ts = pd.to_datetime(df[ts_col], dayfirst=True, errors="coerce")
    if ts.isna().all():
        raise InvalidInputError(f"Could not parse any timestamps from column '{ts_col}'")

    values = pd.to_numeric(df[value_col], errors="coerce")

    result = pd.DataFrame({"ts": ts, "demand_mw": values}).dropna(subset=["ts"])
    result = result.sort_values("ts").reset_index(drop=True)

    if result.empty:
        raise InvalidInputError("No valid rows remain after parsing")

    # ── Unit conversion to average MW ──────────────────────────────────────────
    col_lower = str(value_col).lower()
    if any(hint in col_lower for hint in _ENERGY_HINTS):
        hours_per_interval = _detect_interval_minutes(result["ts"]) / 60.0
        if "kwh" in col_lower:
            result["demand_mw"] = result["demand_mw"] / 1000.0 / hours_per_interval
        else:
            result["demand_mw"] = result["demand_mw"] / hours_per_interval
        logger.info(
            "Converted energy column '%s' to average MW (interval=%.0f min)",
            value_col,
            hours_per_interval * 60,
        )
    elif "kw" in col_lower:
        result["demand_mw"] = result["demand_mw"] / 1000.0

    logger.info(
        "Parsed '%s': %d records, demand column='%s'", filename, len(result), value_col
    )
    return cast(pd.DataFrame, result)
