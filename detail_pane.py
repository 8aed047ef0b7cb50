import curses
import textwrap

from status_bar import info_row

CELL_HINT = "press esc/x to close"
BYTES_HINT = "click a bar segment for exact bytes"
EMPTY_DETAIL = "click a cell to see full details"


def build_cell_detail(selection, window_rows, columns, row_offset: int) -> str:
    """``row N • column`` / type / full value for the selected cell."""
    if selection is None or not columns or not window_rows:
        return EMPTY_DETAIL
    row_idx = min(selection.row, len(window_rows) - 1)
    col_idx = min(selection.col, len(columns) - 1)
    column = columns[col_idx]
    value = window_rows[row_idx].get(column.name, "")
    return f"row {row_offset + row_idx + 1} • {column.name}\n{column.type}\n\n{value}"


def build_error_detail(message: str) -> str:
    return f"error\n\n{message}"


def wrap_lines(text: str, width: int) -> list[str]:
    if width <= 0:
        return []
    out = []
    for part in text.split("\n"):
        if not part:
            out.append("")
            continue
        out.extend(textwrap.wrap(part, width, break_long_words=True, replace_whitespace=False) or [""])
    return out


class DetailPane:
    def __init__(self, colors):
        self.colors = colors

    def draw(self, win, title: str, hint: str, lines, value_rows=None):
        """Draw a boxed side panel.

        ``lines`` is free text wrapped to the panel width; ``value_rows`` are
        ``(label, value)`` pairs rendered flush right instead.
        """
        h, w = win.getmaxyx()
        win.erase()
        try:
            win.box()
        except curses.error:
            pass
        inner_w = max(0, w - 2)
        self._put(win, 0, 2, f" {title} ", w, self.colors.attr("accent"))
        self._put(win, 1, 1, hint, w, self.colors.attr("muted"))

        y = 2
        if value_rows is not None:
            for label, value in value_rows:
                if y >= h - 2:
                    break
                text = label if value is None else info_row(label, value, inner_w)
                self._put(win, y, 1, text, w, 0)
                y += 1
        else:
            for line in wrap_lines(lines, inner_w):
                if y >= h - 2:
                    break
                self._put(win, y, 1, line, w, 0)
                y += 1

        self._put(win, h - 2, 1, "[ close ]", w, self.colors.attr("accent"))

    @staticmethod
    def _put(win, y, x, text, width, attr=0):
        if y < 0 or x >= width - 1 or not text:
            return
        try:
            win.addstr(y, x, text[: width - 1 - x], attr)
        except curses.error:
            pass
