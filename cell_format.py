import datetime as dt
import decimal
import json
from dataclasses import dataclass
from types import MappingProxyType

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    type: str


def _is_missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, (list, tuple, dict, set, np.ndarray, bytes, bytearray)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _json_default(value):
    if isinstance(value, (bytes, bytearray)):
        return list(value)
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, (pd.Timestamp, dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return list(value)
    if isinstance(value, decimal.Decimal):
        return str(value)
    if isinstance(value, pd.Timedelta):
        return str(value)
    return str(value)


def _normalize_nested(value):
    # pyarrow hands map columns back as lists of (key, value) tuples
    if isinstance(value, np.ndarray):
        value = value.tolist()
    if isinstance(value, dict):
        return {str(k): _normalize_nested(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_nested(v) for v in value]
    if _is_missing(value):
        return None
    return value


def safe_stringify(value) -> str:
    try:
        return json.dumps(
            _normalize_nested(value),
            default=_json_default,
            separators=(",", ":"),
            ensure_ascii=False,
        )
    except (TypeError, ValueError):
        return str(value)


def format_cell_value(value) -> str:
    if _is_missing(value):
        return ""
    if isinstance(value, (bool, np.bool_)):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray)):
        return f"bytes({len(value)})"
    if isinstance(value, (pd.Timestamp, dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, (list, tuple, dict, set, frozenset, np.ndarray)):
        return safe_stringify(value)
    if isinstance(value, np.generic):
        return str(value.item())
    return str(value)


def infer_column_type(value) -> str:
    if _is_missing(value):
        return "unknown"
    if pd.api.types.is_bool(value):
        return "boolean"
    if pd.api.types.is_integer(value):
        return "integer"
    if pd.api.types.is_float(value):
        return "double"
    if isinstance(value, decimal.Decimal):
        return "decimal"
    if isinstance(value, (pd.Timestamp, dt.datetime)):
        return "timestamp"
    if isinstance(value, dt.date):
        return "date"
    if isinstance(value, (bytes, bytearray)):
        return "binary"
    if isinstance(value, (list, tuple, np.ndarray)):
        return "array"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, str):
        return "string"
    return type(value).__name__


def first_non_null(frame: pd.DataFrame, name: str):
    if frame is None or name not in frame.columns:
        return None
    for value in frame[name]:
        if not _is_missing(value):
            return value
    return None


def build_column_info(metadata, frame: pd.DataFrame | None, requested_columns=()) -> list[ColumnInfo]:
    schema = list(getattr(metadata, "columns", None) or [])
    requested = list(requested_columns or [])

    if schema:
        names = requested if requested else [col.name for col in schema]
        by_name = {col.name: col.type for col in schema}
        return [
            ColumnInfo(name, by_name.get(name) or infer_column_type(first_non_null(frame, name)))
            for name in names
        ]

    if requested:
        names = requested
    elif frame is not None:
        names = [str(col) for col in frame.columns]
    else:
        names = []
    return [ColumnInfo(name, infer_column_type(first_non_null(frame, name))) for name in names]


def format_frame(frame: pd.DataFrame, columns: list[ColumnInfo]) -> tuple:
    """Materialize a frame slice as immutable ``{column: display string}`` rows."""
    if frame is None or len(frame) == 0:
        return ()
    present = [col.name for col in columns if col.name in frame.columns]
    formatted = {name: [format_cell_value(v) for v in frame[name]] for name in present}
    rows = []
    for idx in range(len(frame)):
        rows.append(MappingProxyType({name: formatted[name][idx] for name in present}))
    return tuple(rows)
