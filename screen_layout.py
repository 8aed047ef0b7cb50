import curses
from dataclasses import dataclass

HEADER_LINES = 1
FOOTER_LINES = 2
TABLE_HEADER_LINES = 3
SIDEBAR_WIDTH_RATIO = 0.35
SIDEBAR_MIN_WIDTH = 24
PANEL_GAP = 1


@dataclass(frozen=True)
class Rect:
    y: int
    x: int
    h: int
    w: int


@dataclass(frozen=True)
class Geometry:
    header: Rect
    table: Rect
    panel: Rect | None
    footer: Rect
    page_size: int


def sidebar_width(width: int) -> int:
    return min(width, max(SIDEBAR_MIN_WIDTH, int(width * SIDEBAR_WIDTH_RATIO)))


def compute_geometry(height: int, width: int, panel_open: bool) -> Geometry:
    height = max(1, height)
    width = max(1, width)
    body_h = max(1, height - HEADER_LINES - FOOTER_LINES)
    footer_y = min(height - 1, HEADER_LINES + body_h)

    panel = None
    table_w = width
    if panel_open:
        panel_w = sidebar_width(width)
        table_w = max(0, width - panel_w - PANEL_GAP)
        panel = Rect(HEADER_LINES, width - panel_w, body_h, panel_w)

    return Geometry(
        header=Rect(0, 0, HEADER_LINES, width),
        table=Rect(HEADER_LINES, 0, body_h, table_w),
        panel=panel,
        footer=Rect(footer_y, 0, max(1, min(FOOTER_LINES, height - footer_y)), width),
        page_size=max(1, body_h - TABLE_HEADER_LINES),
    )


def _window(rect: Rect | None):
    if rect is None or rect.h <= 0 or rect.w <= 0:
        return None
    win = curses.newwin(rect.h, rect.w, rect.y, rect.x)
    # panes never own the cursor
    win.leaveok(True)
    return win


class ScreenLayout:
    def __init__(self, stdscr, panel_open=False):
        self.stdscr = stdscr
        self.H, self.W = stdscr.getmaxyx()
        self.panel_open = panel_open
        self.geometry = compute_geometry(self.H, self.W, panel_open)

        self.header_win = _window(self.geometry.header)
        self.table_win = _window(self.geometry.table)
        self.panel_win = _window(self.geometry.panel)
        self.footer_win = _window(self.geometry.footer)

    @property
    def page_size(self) -> int:
        return self.geometry.page_size

    def matches(self, stdscr, panel_open) -> bool:
        return stdscr.getmaxyx() == (self.H, self.W) and panel_open == self.panel_open
