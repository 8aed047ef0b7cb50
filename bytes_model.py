from dataclasses import dataclass
from typing import Any, Optional, Sequence


@dataclass(frozen=True)
class ByteSegment:
    column_index: int
    width: int
    byte_count: int
    chunk: Any = None


@dataclass(frozen=True)
class BytesModelRow:
    row_group: Any
    chunks_by_column: tuple


@dataclass(frozen=True)
class BytesModel:
    columns: tuple
    rows: tuple


@dataclass(frozen=True)
class ColumnTotal:
    name: str
    column_index: int
    total_bytes: int


@dataclass(frozen=True)
class BytesSummary:
    total_bytes: int
    row_group_count: int
    column_count: int
    largest_column: Optional[tuple] = None  # (name, bytes, percent)


# ---------- formatting ----------
def format_count(value: int) -> str:
    return f"{int(value):,}"


def format_bytes(byte_count: int) -> str:
    byte_count = int(byte_count)
    if byte_count < 0:
        return "0 B"
    if byte_count < 1024:
        return f"{byte_count} B"
    for unit, scale in (("KB", 1024), ("MB", 1024**2)):
        if byte_count < scale * 1024:
            tenths = byte_count * 10 // scale
            return f"{tenths // 10}.{tenths % 10} {unit}"
    tenths = byte_count * 10 // 1024**3
    return f"{tenths // 10}.{tenths % 10} GB"


def format_percent(value: int, total: int) -> str:
    if total <= 0 or value <= 0:
        return "0.0%"
    scaled_tenths = value * 1000 // total
    return f"{scaled_tenths // 10}.{scaled_tenths % 10}%"


# ---------- allocation ----------
def scale_width(value: int, maximum: int, width: int) -> int:
    if width <= 0 or maximum <= 0 or value <= 0:
        return 0
    scaled = value * width // maximum
    return max(1, min(width, scaled))


def allocate_widths(
    weights: Sequence[int],
    total_weight: int,
    chart_width: int,
    refs: Optional[Sequence[Any]] = None,
) -> list[ByteSegment]:
    """Split ``chart_width`` character cells across ``weights``.

    Largest-remainder apportionment: every nonzero weight first gets one
    cell when there is room for all of them, the rest is handed out by
    floor share and the leftover cells go to the biggest remainders
    (ties to the lower index). Widths sum to ``chart_width`` whenever
    ``total_weight`` is the sum of ``weights``.
    """
    if chart_width <= 0 or total_weight <= 0 or not weights:
        return []

    weights = [max(0, int(w or 0)) for w in weights]
    nonzero = sum(1 for w in weights if w > 0)
    reserve = 0 < nonzero <= chart_width

    widths = [1 if (reserve and w > 0) else 0 for w in weights]
    remainders = [0] * len(weights)

    distributable = chart_width - (nonzero if reserve else 0)
    if distributable > 0:
        for idx, weight in enumerate(weights):
            if weight <= 0:
                continue
            scaled = weight * distributable
            widths[idx] += scaled // total_weight
            remainders[idx] = scaled % total_weight

    leftover = chart_width - sum(widths)
    if leftover > 0:
        ranked = sorted(
            (idx for idx, w in enumerate(weights) if w > 0),
            key=lambda idx: (-remainders[idx], idx),
        )
        cursor = 0
        while leftover > 0 and ranked:
            widths[ranked[cursor % len(ranked)]] += 1
            leftover -= 1
            cursor += 1

    segments = []
    for idx, weight in enumerate(weights):
        if widths[idx] <= 0:
            continue
        ref = refs[idx] if refs is not None and idx < len(refs) else None
        segments.append(ByteSegment(idx, widths[idx], weight, ref))
    return segments


def build_byte_segments(chunks_by_column, total_bytes: int, chart_width: int) -> list[ByteSegment]:
    weights = [chunk.byte_size if chunk is not None else 0 for chunk in chunks_by_column]
    return allocate_widths(weights, total_bytes, chart_width, refs=list(chunks_by_column))


# ---------- model ----------
def build_bytes_model(layout) -> BytesModel | None:
    if layout is None or not getattr(layout, "row_groups", None):
        return None

    columns: list[str] = []
    seen = set()
    for row_group in layout.row_groups:
        for chunk in row_group.chunks:
            if chunk.name not in seen:
                seen.add(chunk.name)
                columns.append(chunk.name)

    rows = []
    for row_group in layout.row_groups:
        by_name = {chunk.name: chunk for chunk in row_group.chunks}
        rows.append(
            BytesModelRow(
                row_group=row_group,
                chunks_by_column=tuple(by_name.get(name) for name in columns),
            )
        )
    return BytesModel(columns=tuple(columns), rows=tuple(rows))


def build_column_totals(model: BytesModel) -> list[ColumnTotal]:
    totals = []
    for idx, name in enumerate(model.columns):
        total = 0
        for row in model.rows:
            chunk = row.chunks_by_column[idx]
            if chunk is not None:
                total += chunk.byte_size
        totals.append(ColumnTotal(name=name, column_index=idx, total_bytes=total))
    return totals


def compute_bytes_summary(model: BytesModel, totals: list[ColumnTotal]) -> BytesSummary:
    total_bytes = sum(row.row_group.byte_size for row in model.rows)

    largest = None
    for col in totals:
        if largest is None or col.total_bytes > largest[1]:
            largest = (col.name, col.total_bytes, format_percent(col.total_bytes, total_bytes))

    return BytesSummary(
        total_bytes=total_bytes,
        row_group_count=len(model.rows),
        column_count=len(model.columns),
        largest_column=largest,
    )
