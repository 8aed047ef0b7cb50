from dataclasses import dataclass

from cell_format import ColumnInfo

MIN_COLUMN_WIDTH = 6
MAX_COLUMN_WIDTH = 40
ROW_NUMBER_MIN_WIDTH = 3
COLUMN_GAP = 2

LOADING_COLUMNS = (ColumnInfo("(loading)", ""),)


@dataclass(frozen=True)
class GridLines:
    header_name_line: str
    header_type_line: str
    separator_line: str
    row_lines: tuple
    max_line_length: int
    column_ranges: tuple  # ((start, end), ...) half-open, one per data column
    scroll_stops: tuple
    column_widths: tuple  # row-number column first


@dataclass(frozen=True)
class VisibleGrid:
    header_name: str
    header_type: str
    separator: str
    rows: tuple


def normalize_cell(value: str) -> str:
    return value.replace("\r\n", "\\n").replace("\n", "\\n").replace("\t", "\\t")


def pad_cell(value: str, width: int) -> str:
    if width <= 0:
        return ""
    normalized = normalize_cell(value)
    if len(normalized) > width:
        if width <= 3:
            return normalized[:width]
        return normalized[: width - 3] + "..."
    return normalized.ljust(width)


def _build_line(values, widths) -> str:
    gap = " " * COLUMN_GAP
    return gap.join(pad_cell(value, width) for value, width in zip(values, widths))


def build_column_ranges(widths) -> tuple[tuple, tuple]:
    """Walk column widths left to right.

    ``widths[0]`` is the row-number column and gets no range. Each data column
    owns the gap to its left, so the ranges tile everything right of the
    row-number column. Scroll stops point at the first text character.
    """
    ranges = []
    stops = [0]
    cursor = 0
    for idx, width in enumerate(widths):
        if idx > 0:
            start = cursor
            cursor += COLUMN_GAP
            stops.append(cursor)
            cursor += width
            ranges.append((start, cursor))
        else:
            cursor += width
    return tuple(ranges), tuple(stops)


def build_grid_lines(columns, rows, row_offset: int, target_width: int) -> GridLines:
    """Lay out a window of formatted rows as fixed-width text.

    ``rows`` are mappings of column name to display string (see
    ``cell_format.format_frame``); ``row_offset`` is the absolute index of the
    first row, shown 1-based in the ``#`` column.
    """
    columns = tuple(columns) or LOADING_COLUMNS
    rows = tuple(rows)

    row_number_width = max(ROW_NUMBER_MIN_WIDTH, len(str(row_offset + len(rows))))
    data_widths = []
    for col in columns:
        longest = max(len(col.name), len(col.type))
        for row in rows:
            longest = max(longest, len(row.get(col.name, "")))
        data_widths.append(min(max(longest, MIN_COLUMN_WIDTH), MAX_COLUMN_WIDTH))

    widths = [row_number_width, *data_widths]
    base_length = sum(widths) + COLUMN_GAP * (len(widths) - 1)
    if target_width > base_length:
        widths[-1] += target_width - base_length

    header_name_line = _build_line(["#", *(c.name for c in columns)], widths)
    header_type_line = _build_line(["", *(c.type for c in columns)], widths)
    separator_line = _build_line(["-" * w for w in widths], widths)
    row_lines = tuple(
        _build_line([str(row_offset + idx + 1), *(row.get(c.name, "") for c in columns)], widths)
        for idx, row in enumerate(rows)
    )

    column_ranges, scroll_stops = build_column_ranges(widths)
    max_line_length = max(
        len(header_name_line),
        len(header_type_line),
        len(separator_line),
        *(len(line) for line in row_lines),
    )
    return GridLines(
        header_name_line=header_name_line,
        header_type_line=header_type_line,
        separator_line=separator_line,
        row_lines=row_lines,
        max_line_length=max_line_length,
        column_ranges=column_ranges,
        scroll_stops=scroll_stops,
        column_widths=tuple(widths),
    )


def apply_horizontal_scroll(lines: GridLines, width: int, x_offset: int, page_size: int) -> VisibleGrid:
    x_offset = max(0, x_offset)

    def slice_line(line: str) -> str:
        if width <= 0:
            return ""
        return line[x_offset : x_offset + width].ljust(width)

    rows = [slice_line(line) for line in lines.row_lines[: max(0, page_size)]]
    blank = " " * max(0, width)
    while len(rows) < page_size:
        rows.append(blank)

    return VisibleGrid(
        header_name=slice_line(lines.header_name_line),
        header_type=slice_line(lines.header_type_line),
        separator=slice_line(lines.separator_line),
        rows=tuple(rows),
    )


# ---------- scrolling ----------
def find_column_index(x: int, ranges) -> int:
    for idx, (start, end) in enumerate(ranges):
        if start <= x < end:
            return idx
    return -1


def find_scroll_stop(current: int, stops, direction: int) -> int:
    if direction > 0:
        for stop in stops:
            if stop > current:
                return stop
        return current
    for stop in reversed(stops):
        if stop < current:
            return stop
    return 0


def clamp_scroll(value: int, maximum: int) -> int:
    if value < 0:
        return 0
    if value > maximum:
        return maximum
    return value


def max_scroll(lines: GridLines, width: int) -> int:
    return max(0, lines.max_line_length - max(0, width))
