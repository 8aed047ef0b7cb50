import curses

from grid_layout import VisibleGrid
from screen_layout import TABLE_HEADER_LINES


class GridPane:
    """Draws the table tab: three header lines then one line per page row."""

    def __init__(self, colors):
        self.colors = colors

    def draw(self, win, visible: VisibleGrid, selected_row: int | None = None, loading: bool = False):
        h, w = win.getmaxyx()
        win.erase()
        if h <= 0 or w <= 0:
            return

        header = [
            (visible.header_name, self.colors.attr("accent")),
            (visible.header_type, self.colors.attr("muted")),
            (visible.separator, self.colors.attr("muted")),
        ]
        for y, (line, attr) in enumerate(header):
            self._put(win, y, line, w, attr)

        for idx, line in enumerate(visible.rows):
            y = TABLE_HEADER_LINES + idx
            if y >= h:
                break
            attr = self.colors.attr("selected") if idx == selected_row else 0
            self._put(win, y, line, w, attr)

        if loading and not any(line.strip() for line in visible.rows):
            self._put(win, min(h - 1, TABLE_HEADER_LINES), " loading...", w, self.colors.attr("muted"))

    @staticmethod
    def _put(win, y, text, width, attr=0):
        if y < 0 or not text:
            return
        try:
            win.addstr(y, 0, text[:width], attr)
        except curses.error:
            # writing the bottom-right cell raises after the text is drawn
            pass
