import curses

from bytes_model import (
    build_byte_segments,
    build_bytes_model,
    build_column_totals,
    compute_bytes_summary,
    format_bytes,
    format_count,
    format_percent,
    scale_width,
)
from grid_layout import pad_cell
from navigation import SCROLL_STEP, Selection

BAR_CHAR = "█"
LEGEND_NAME_WIDTH = 10
TOTALS_NAME_WIDTH = 16


def _short(name: str, width: int) -> str:
    return name if len(name) <= width else name[: width - 1] + "…"


class BytesPaneState:
    """Selection and paging over the per row group byte chart."""

    def __init__(self, layout=None, page_size: int = 1):
        self.page_size = max(1, page_size)
        self.row_offset = 0
        self.selection: Selection | None = None
        self.mode = "chart"
        self.panel_open = False
        self.set_layout(layout)

    def set_layout(self, layout):
        self.model = build_bytes_model(layout)
        if self.model is None:
            self.totals = []
            self.summary = None
        else:
            self.totals = build_column_totals(self.model)
            self.summary = compute_bytes_summary(self.model, self.totals)
        self._reconcile()

    @property
    def rows(self) -> tuple:
        return self.model.rows if self.model is not None else ()

    @property
    def columns(self) -> tuple:
        return self.model.columns if self.model is not None else ()

    @property
    def max_offset(self) -> int:
        return max(0, len(self.rows) - self.page_size)

    @property
    def max_row_group_bytes(self) -> int:
        return max((row.row_group.byte_size for row in self.rows), default=0)

    @property
    def label_width(self) -> int:
        if not self.rows:
            return 6
        index_width = max(1, len(str(self.rows[-1].row_group.index)))
        bytes_width = max(len(format_bytes(row.row_group.byte_size)) for row in self.rows)
        return 3 + index_width + 2 + bytes_width + 2

    def chart_width(self, content_width: int) -> int:
        return max(0, content_width - self.label_width)

    def resize(self, page_size: int):
        self.page_size = max(1, page_size)
        self._reconcile()

    def _reconcile(self):
        self.row_offset = min(self.row_offset, self.max_offset)
        if not self.rows or not self.columns:
            self.selection = None
            return
        current = self.selection or Selection(0, 0)
        self.selection = Selection(
            min(current.row, len(self.rows) - 1),
            min(current.col, len(self.columns) - 1),
        )

    # ---------- movement ----------
    def _follow(self, row: int):
        if row < self.row_offset:
            self.row_offset = row
        elif row >= self.row_offset + self.page_size:
            self.row_offset = max(0, row - self.page_size + 1)

    def move_row(self, delta: int):
        if not self.rows:
            return
        current = self.selection or Selection(0, 0)
        row = min(max(current.row + delta, 0), len(self.rows) - 1)
        col = min(max(current.col, 0), max(0, len(self.columns) - 1))
        self.selection = Selection(row, col)
        self._follow(row)

    def home(self):
        col = self.selection.col if self.selection else 0
        self.selection = Selection(0, col)
        self.row_offset = 0

    def end(self):
        last = max(0, len(self.rows) - 1)
        col = self.selection.col if self.selection else 0
        self.selection = Selection(last, col)
        self.row_offset = max(0, last - self.page_size + 1)

    def move_col(self, delta: int):
        if not self.columns:
            return
        if self.selection is None:
            self.selection = Selection(0, 0)
        else:
            col = min(max(self.selection.col + delta, 0), len(self.columns) - 1)
            self.selection = Selection(self.selection.row, col)
        self.panel_open = True

    def toggle_mode(self):
        self.mode = "totals" if self.mode == "chart" else "chart"

    def handle_key(self, name: str, error: str | None = None) -> str | None:
        if name in ("q", "ctrl-c"):
            return "quit"
        if name == "esc":
            if self.panel_open:
                self.panel_open = False
                return "handled"
            return "quit"
        if name == "t":
            self.toggle_mode()
        elif name in ("s", "enter"):
            self.panel_open = not self.panel_open
        elif name == "x":
            self.panel_open = False
        elif name == "e":
            if error:
                self.panel_open = True
        elif name == "y":
            return "copy-error" if error else None
        elif name in ("j", "down"):
            self.move_row(1)
        elif name in ("k", "up"):
            self.move_row(-1)
        elif name in ("space", "pgdn"):
            self.move_row(self.page_size)
        elif name == "pgup":
            self.move_row(-self.page_size)
        elif name in ("g", "home"):
            self.home()
        elif name in ("G", "end"):
            self.end()
        elif name in ("h", "left"):
            self.move_col(-1)
        elif name in ("l", "right"):
            self.move_col(1)
        else:
            return None
        return "handled"

    def wheel(self, direction: str, delta: int = 1):
        step = max(1, delta) * SCROLL_STEP
        if direction == "up":
            self.move_row(-step)
        elif direction == "down":
            self.move_row(step)

    # ---------- chart ----------
    def visible_rows(self) -> tuple:
        return self.rows[self.row_offset : self.row_offset + self.page_size]

    def row_label(self, row) -> str:
        return pad_cell(f"rg {row.row_group.index}  {format_bytes(row.row_group.byte_size)}  ", self.label_width)

    def row_segments(self, row, chart_width: int):
        """Segments for one row group plus the blank width after them."""
        scaled = scale_width(row.row_group.byte_size, self.max_row_group_bytes, chart_width)
        segments = build_byte_segments(row.chunks_by_column, row.row_group.byte_size, scaled)
        used = sum(segment.width for segment in segments)
        return segments, max(0, chart_width - used)

    def click(self, visible_row: int, x: int, content_width: int) -> bool:
        """Select the segment under character ``x`` of chart row ``visible_row``."""
        if self.mode != "chart":
            return False
        rows = self.visible_rows()
        if visible_row < 0 or visible_row >= len(rows):
            return False
        cursor = self.label_width
        if x < cursor:
            return False
        segments, _ = self.row_segments(rows[visible_row], self.chart_width(content_width))
        for segment in segments:
            if cursor <= x < cursor + segment.width:
                self.selection = Selection(self.row_offset + visible_row, segment.column_index)
                self.panel_open = True
                return True
            cursor += segment.width
        return False

    def summary_text(self) -> str:
        if not self.rows:
            return "byte grid unavailable"
        total = len(self.rows)
        shown = len(self.visible_rows())
        first = min(self.row_offset + 1, total)
        last = min(self.row_offset + shown, total)
        return (
            f"rowgroups {format_count(first)}-{format_count(last)} of {format_count(total)}"
            f" | columns {format_count(len(self.columns))}"
        )

    def summary_line(self) -> str:
        summary = self.summary
        if summary is None:
            return ""
        text = (
            f"total {format_bytes(summary.total_bytes)} | {summary.row_group_count} row groups"
            f" | {summary.column_count} columns"
        )
        if summary.largest_column is not None:
            name, _, percent = summary.largest_column
            text += f" | largest: {name} ({percent})"
        return text

    def legend(self) -> list[tuple[int, str]]:
        total = self.summary.total_bytes if self.summary else 0
        return [
            (col.column_index, f" {_short(col.name, LEGEND_NAME_WIDTH)} {format_percent(col.total_bytes, total)}  ")
            for col in self.totals
        ]

    def totals_lines(self, content_width: int) -> list[tuple[int, str, int]]:
        """``(column index, text, bar width)`` sorted by total bytes, largest first."""
        total = self.summary.total_bytes if self.summary else 0
        bar_room = max(8, content_width - 40)
        lines = []
        for col in sorted(self.totals, key=lambda c: -c.total_bytes):
            bar = scale_width(col.total_bytes, total, bar_room) if total > 0 else 0
            name = _short(col.name, TOTALS_NAME_WIDTH).ljust(TOTALS_NAME_WIDTH)
            text = f" {name} {format_bytes(col.total_bytes).rjust(10)}  {format_percent(col.total_bytes, total).rjust(6)}  "
            lines.append((col.column_index, text, bar))
        return lines

    # ---------- detail ----------
    def detail_rows(self) -> list[tuple[str, str | None]]:
        """Panel content as ``(label, value)`` pairs; ``value`` None means a plain line."""
        if self.model is None or not self.rows or not self.columns or self.selection is None:
            return [("select a bar segment to inspect exact byte ranges", None)]

        row = self.rows[min(max(self.selection.row, 0), len(self.rows) - 1)]
        col_idx = min(max(self.selection.col, 0), len(self.columns) - 1)
        chunk = row.chunks_by_column[col_idx]
        group = row.row_group
        if chunk is None:
            return [
                (self.columns[col_idx], None),
                (f"row group {group.index}", None),
                ("", None),
                ("no chunk present", None),
            ]

        total_file = self.summary.total_bytes if self.summary else 0
        out = [
            (chunk.name, None),
            (f"row group {group.index}", None),
            ("", None),
            ("size", format_bytes(chunk.byte_size)),
            ("% of row group", format_percent(chunk.byte_size, group.byte_size)),
        ]
        if total_file > 0:
            out.append(("% of file", format_percent(chunk.byte_size, total_file)))
        if chunk.compression:
            out.extend([("", None), ("codec", chunk.compression)])
        out.append(("", None))
        if chunk.dictionary_range is not None:
            dictionary = chunk.dictionary_range
            out.append((
                "dictionary",
                f"{format_bytes(dictionary.byte_count)} ({format_percent(dictionary.byte_count, chunk.byte_size)})",
            ))
            out.append(("  range", f"{format_count(dictionary.start)} -> {format_count(dictionary.end)}"))
        data = chunk.data_range
        out.append(("data", f"{format_bytes(data.byte_count)} ({format_percent(data.byte_count, chunk.byte_size)})"))
        out.append(("  range", f"{format_count(data.start)} -> {format_count(data.end)}"))
        out.append(("", None))
        out.append((
            "byte range",
            f"{format_count(chunk.total_range.start)} -> {format_count(chunk.total_range.end)}",
        ))
        return out


class BytesPane:
    def __init__(self, colors):
        self.colors = colors
        self.chart_top = 0

    def draw(self, win, state: BytesPaneState):
        h, w = win.getmaxyx()
        win.erase()
        y = 0
        header_attr = self.colors.attr("header")
        if state.summary is not None and y < h:
            self._put(win, y, 0, f" {state.summary_line()}".ljust(w), w, header_attr)
            y += 1
        if state.totals and y < h:
            x = 0
            for column_index, text in state.legend():
                if x + 1 + len(text) > w:
                    break
                self._put(win, y, x, " ", w, self.colors.column(column_index, reverse=True))
                self._put(win, y, x + 1, text, w, self.colors.attr("muted"))
                x += 1 + len(text)
            y += 1

        if state.mode == "totals":
            for column_index, text, bar in state.totals_lines(w):
                if y >= h:
                    break
                self._put(win, y, 0, " ", w, self.colors.column(column_index, reverse=True))
                self._put(win, y, 1, text, w, self.colors.attr("text"))
                self._put(win, y, 1 + len(text), BAR_CHAR * bar, w, self.colors.column(column_index))
                y += 1
            return y

        chart_width = state.chart_width(w)
        self.chart_top = y
        for visible_idx, row in enumerate(state.visible_rows()):
            if y >= h:
                break
            absolute = state.row_offset + visible_idx
            selected_row = state.selection is not None and state.selection.row == absolute
            self._put(win, y, 0, state.row_label(row), w,
                      self.colors.attr("selected" if selected_row else "muted"))
            x = state.label_width
            segments, _ = state.row_segments(row, chart_width)
            for segment in segments:
                is_selected = selected_row and state.selection.col == segment.column_index
                attr = self.colors.column(segment.column_index, reverse=is_selected)
                self._put(win, y, x, BAR_CHAR * segment.width, w, attr)
                x += segment.width
            y += 1
        return y

    @staticmethod
    def _put(win, y, x, text, width, attr=0):
        if x >= width or not text:
            return
        try:
            win.addstr(y, x, text[: width - x], attr)
        except curses.error:
            pass
