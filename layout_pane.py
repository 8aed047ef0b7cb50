import curses

from bytes_model import format_count, format_percent
from navigation import SCROLL_STEP
from status_bar import info_row, range_text

PAGE_JUMP = 10


class LayoutPaneState:
    def __init__(self, layout=None):
        self.selected = 0
        self.scroll = 0
        # body rows visible below the nav line, set by LayoutPane.draw
        self.view_rows = 1
        self.set_layout(layout)

    def set_layout(self, layout):
        self.layout = layout
        self.selected = min(self.selected, max(0, len(self.row_groups) - 1))

    @property
    def row_groups(self) -> tuple:
        return self.layout.row_groups if self.layout is not None else ()

    @property
    def total_bytes(self) -> int:
        return sum(group.byte_size for group in self.row_groups)

    @property
    def selected_group(self):
        groups = self.row_groups
        return groups[self.selected] if groups else None

    def select(self, index: int):
        if not self.row_groups:
            return
        self.selected = min(max(index, 0), len(self.row_groups) - 1)
        self.scroll = 0

    def move(self, delta: int):
        self.select(self.selected + delta)

    @property
    def max_scroll(self) -> int:
        return max(0, len(self.body_lines(0)) - self.view_rows)

    def scroll_body(self, delta: int):
        self.scroll = min(max(0, self.scroll + delta), self.max_scroll)

    def handle_key(self, name: str) -> str | None:
        if name in ("q", "ctrl-c", "esc"):
            return "quit"
        if name in ("j", "down", "l", "right"):
            self.move(1)
        elif name in ("k", "up", "h", "left"):
            self.move(-1)
        elif name in ("space", "pgdn"):
            self.move(PAGE_JUMP)
        elif name == "pgup":
            self.move(-PAGE_JUMP)
        elif name in ("g", "home"):
            self.select(0)
        elif name in ("G", "end"):
            self.select(len(self.row_groups) - 1)
        elif name == "J":
            self.scroll_body(1)
        elif name == "K":
            self.scroll_body(-1)
        else:
            return None
        return "handled"

    def wheel(self, direction: str, delta: int = 1):
        step = max(1, delta)
        if direction == "up":
            self.move(-step)
        elif direction == "down":
            self.move(step)
        elif direction == "left":
            self.scroll_body(-step * SCROLL_STEP)
        elif direction == "right":
            self.scroll_body(step * SCROLL_STEP)

    def summary_text(self) -> str:
        if not self.row_groups:
            return "layout unavailable"
        group = self.selected_group
        return (
            f"rowgroups {format_count(len(self.row_groups))} | selected rg {format_count(group.index)}"
            f" | bytes {format_count(self.total_bytes)}"
        )

    def nav_line(self, width: int) -> str:
        groups = self.row_groups
        group = self.selected_group
        position = self.selected + 1 if groups else 0
        left = f" [ prev ] rowgroup {format_count(position)} of {format_count(len(groups))} "
        left += f"({format_count(group.index)})" if group is not None else "(n/a)"
        if group is not None:
            share = format_percent(group.byte_size, self.total_bytes)
            right = f"{format_count(group.byte_size)} bytes * {share} [ next ] "
        else:
            right = "no rowgroup [ next ] "
        return info_row(left, right, width)

    def body_lines(self, width: int) -> list[tuple[str, str]]:
        """``(style, text)`` lines of the magic, row group and chunk blocks."""
        group = self.selected_group
        if self.layout is None or group is None:
            return [("muted", "layout metadata unavailable")]

        magic = self.layout.magic
        lines = [
            ("accent", "PAR1"),
            ("text", info_row("start", format_count(magic.start), width)),
            ("text", info_row("bytes", format_count(magic.byte_count), width)),
            ("text", info_row("end", format_count(magic.end), width)),
            ("text", ""),
            ("badge", info_row(f"RowGroup {group.index}", f"bytes {format_count(group.byte_size)}", width)),
        ]
        if group.row_count is not None:
            lines.append(("text", info_row("rows", format_count(group.row_count), width)))
        for chunk in group.chunks:
            lines.append(("text", ""))
            lines.append(("column", info_row(f"Column '{chunk.name}'", f"bytes {format_count(chunk.byte_size)}", width)))
            if chunk.dictionary_range is not None:
                lines.append(("muted", info_row("Dictionary", range_text(chunk.dictionary_range), width)))
            lines.append(("muted", info_row("Data", range_text(chunk.data_range), width)))
        return lines


class LayoutPane:
    def __init__(self, colors):
        self.colors = colors

    def draw(self, win, state: LayoutPaneState):
        h, w = win.getmaxyx()
        win.erase()
        self._put(win, 0, state.nav_line(w), w, self.colors.attr("header"))
        lines = state.body_lines(w)
        room = max(0, h - 1)
        state.view_rows = room
        state.scroll = min(state.scroll, state.max_scroll)
        for row, (style, text) in enumerate(lines[state.scroll : state.scroll + room], start=1):
            attr = self.colors.column(2) if style == "column" else self.colors.attr(style)
            self._put(win, row, text, w, attr)

    @staticmethod
    def _put(win, y, text, width, attr=0):
        if not text:
            return
        try:
            win.addstr(y, 0, text[:width], attr)
        except curses.error:
            pass
