import curses

from bytes_pane import BytesPane, BytesPaneState
from clipboard import copy_to_clipboard
from config_paths import ensure_config_dirs
from detail_pane import BYTES_HINT, CELL_HINT, DetailPane, build_cell_detail, build_error_detail
from grid_layout import apply_horizontal_scroll, build_grid_lines
from grid_pane import GridPane
from layout_pane import LayoutPane, LayoutPaneState
from logging_setup import get_logger
from navigation import ViewportController
from palette import Palette
from screen_layout import TABLE_HEADER_LINES, ScreenLayout
from status_bar import render_footer, render_header

logger = get_logger("orchestrator")

_KEY_NAMES = {
    curses.KEY_DOWN: "down",
    curses.KEY_UP: "up",
    curses.KEY_LEFT: "left",
    curses.KEY_RIGHT: "right",
    curses.KEY_NPAGE: "pgdn",
    curses.KEY_PPAGE: "pgup",
    curses.KEY_HOME: "home",
    curses.KEY_END: "end",
    curses.KEY_BTAB: "shift-tab",
    curses.KEY_ENTER: "enter",
    curses.KEY_MOUSE: "mouse",
    curses.KEY_RESIZE: "resize",
    3: "ctrl-c",
    9: "tab",
    10: "enter",
    13: "enter",
    27: "esc",
    32: "space",
}

WHEEL_UP = getattr(curses, "BUTTON4_PRESSED", 0)
WHEEL_DOWN = getattr(curses, "BUTTON5_PRESSED", 0)
CLICK = curses.BUTTON1_PRESSED | curses.BUTTON1_CLICKED


def key_name(ch: int) -> str | None:
    if ch in _KEY_NAMES:
        return _KEY_NAMES[ch]
    if 32 < ch < 127:
        return chr(ch)
    return None


class Orchestrator:
    def __init__(self, stdscr, app_state, config=None):
        self.stdscr = stdscr
        try:
            curses.curs_set(0)
        except curses.error:
            pass
        curses.raw()
        self.stdscr.keypad(True)
        self.stdscr.nodelay(False)
        self.stdscr.timeout(100)
        curses.mousemask(curses.ALL_MOUSE_EVENTS | getattr(curses, "REPORT_MOUSE_POSITION", 0))
        curses.mouseinterval(0)

        ensure_config_dirs()

        self.state = app_state
        self.config = config or {}
        self.cache = app_state.cache
        self.colors = Palette()

        self.grid = GridPane(self.colors)
        self.detail = DetailPane(self.colors)
        self.bytes_pane = BytesPane(self.colors)
        self.layout_pane = LayoutPane(self.colors)

        self.controller = ViewportController(self.cache)
        self.bytes_state = BytesPaneState()
        self.layout_state = LayoutPaneState()

        self.layout: ScreenLayout | None = None
        self.visible_count = 0
        self.exit_requested = False

        self._relayout()
        self.cache.request_metadata()
        self.controller.request_rows()

    # ---------------- helpers ----------------

    @property
    def active_tab(self) -> str:
        return self.controller.state.active_tab

    def _panel_open(self) -> bool:
        if self.active_tab == "table":
            return self.controller.state.panel_open
        if self.active_tab == "bytes":
            return self.bytes_state.panel_open
        return False

    def _relayout(self):
        panel_open = self._panel_open()
        if self.layout is None or not self.layout.matches(self.stdscr, panel_open):
            self.layout = ScreenLayout(self.stdscr, panel_open=panel_open)
        geometry = self.layout.geometry
        self.controller.resize(geometry.page_size, geometry.table.w)
        self.bytes_state.resize(geometry.page_size)

    def _copy_error(self):
        error = self.cache.error
        if not error:
            return
        if copy_to_clipboard(error, self.config.get("CLIPBOARD_INTERFACE_COMMAND")):
            self.state.set_notice("copied error to clipboard")
        else:
            self.state.set_notice("clipboard unavailable")

    # ---------------- cache events ----------------

    def _apply_events(self, events):
        for event in events:
            if event.kind == "metadata":
                self.state.sync_tabs()
                self.controller.set_tab(self.state.tabs.active)
                self.bytes_state.set_layout(self.state.layout)
                self.layout_state.set_layout(self.state.layout)
                # a metadata row count may shrink the reachable range
                self.controller.resize(self.controller.state.page_size, self.controller.state.viewport_width)
            elif event.kind == "error":
                logger.info("showing error panel")
                self.controller.on_error()
                self.bytes_state.panel_open = True

    # ---------------- UI ----------------

    def _header_context(self, rows_shown: int, first_row: int) -> dict:
        ctx = {
            "title": self.state.title,
            "loading": self.cache.loading,
            "error": self.cache.error,
            "created_by": self.state.created_by,
            "optimized": self.state.optimized,
            "active_tab": self.active_tab,
            "available_tabs": self.state.tabs.available_tabs,
            "offset": first_row,
            "rows": rows_shown,
            "columns": len(self.cache.columns),
            "total": self.cache.effective_total,
        }
        if self.active_tab == "bytes":
            ctx["summary"] = self.bytes_state.summary_text()
        elif self.active_tab == "layout":
            ctx["summary"] = self.layout_state.summary_text()
        return ctx

    def _draw_table(self):
        layout = self.layout
        geometry = layout.geometry
        view = self.controller.state
        first, rows = self.cache.visible_rows(view.row_offset, view.page_size)
        lines = build_grid_lines(self.cache.columns, rows, first, geometry.table.w)

        before = view.row_offset
        self.controller.update_lines(lines, len(rows))
        if self.controller.state.row_offset != before:
            self.controller.request_rows()
        view = self.controller.state
        self.visible_count = len(rows)

        if layout.table_win is not None:
            visible = apply_horizontal_scroll(lines, geometry.table.w, view.column_scroll, view.page_size)
            selected = view.selection.row if view.selection is not None else None
            self.grid.draw(layout.table_win, visible, selected, self.cache.loading)
            layout.table_win.noutrefresh()

        if layout.panel_win is not None:
            if self.cache.error:
                self.detail.draw(layout.panel_win, "error detail", CELL_HINT,
                                 build_error_detail(self.cache.error))
            else:
                text = build_cell_detail(view.selection, rows, self.cache.columns, first)
                self.detail.draw(layout.panel_win, "cell detail", CELL_HINT, text)
            layout.panel_win.noutrefresh()
        return first, len(rows)

    def _draw_bytes(self):
        layout = self.layout
        if layout.table_win is not None:
            self.bytes_pane.draw(layout.table_win, self.bytes_state)
            layout.table_win.noutrefresh()
        if layout.panel_win is not None:
            if self.cache.error:
                self.detail.draw(layout.panel_win, "error detail", BYTES_HINT,
                                 build_error_detail(self.cache.error))
            else:
                self.detail.draw(layout.panel_win, "chunk detail", BYTES_HINT, "",
                                 value_rows=self.bytes_state.detail_rows())
            layout.panel_win.noutrefresh()
        return self.bytes_state.row_offset, len(self.bytes_state.visible_rows())

    def _draw_layout(self):
        layout = self.layout
        if layout.table_win is not None:
            self.layout_pane.draw(layout.table_win, self.layout_state)
            layout.table_win.noutrefresh()
        return self.layout_state.selected, len(self.layout_state.row_groups)

    def redraw(self):
        self._relayout()
        layout = self.layout

        if self.active_tab == "bytes":
            first, shown = self._draw_bytes()
        elif self.active_tab == "layout":
            first, shown = self._draw_layout()
        else:
            first, shown = self._draw_table()

        w = layout.W
        if layout.header_win is not None:
            layout.header_win.erase()
            text = render_header(self._header_context(shown, first), w)
            attr = self.colors.attr("error") if self.cache.error else self.colors.attr("header")
            self._put(layout.header_win, 0, text, attr)
            layout.header_win.noutrefresh()

        if layout.footer_win is not None:
            layout.footer_win.erase()
            notice_line, hints_line = render_footer(
                {
                    "notice": self.state.current_notice(),
                    "active_tab": self.active_tab,
                    "error": self.cache.error,
                    "has_layout": self.state.tabs.has_layout,
                },
                w,
            )
            fh, _ = layout.footer_win.getmaxyx()
            if fh >= 2:
                self._put(layout.footer_win, 0, notice_line, self.colors.attr("badge") if notice_line.strip() else 0)
                self._put(layout.footer_win, 1, hints_line, self.colors.attr("muted"))
            else:
                self._put(layout.footer_win, 0, hints_line, self.colors.attr("muted"))
            layout.footer_win.noutrefresh()

        curses.doupdate()

    @staticmethod
    def _put(win, y, text, attr=0):
        _, w = win.getmaxyx()
        try:
            win.addnstr(y, 0, text, w, attr)
        except curses.error:
            pass

    # ---------------- input ----------------

    def handle_key(self, name: str):
        if self.state.tabs.handle_key(name):
            self.controller.set_tab(self.state.tabs.active)
            return

        if self.active_tab == "table":
            result = self.controller.handle_key(name)
        elif self.active_tab == "bytes":
            result = self.bytes_state.handle_key(name, self.cache.error)
        else:
            result = self.layout_state.handle_key(name)

        if result == "quit":
            self.exit_requested = True
        elif result == "copy-error":
            self._copy_error()

    def handle_mouse(self):
        try:
            _, mx, my, _, bstate = curses.getmouse()
        except curses.error:
            return
        geometry = self.layout.geometry
        table = geometry.table

        if WHEEL_UP and bstate & WHEEL_UP:
            direction = "left" if bstate & curses.BUTTON_SHIFT else "up"
        elif WHEEL_DOWN and bstate & WHEEL_DOWN:
            direction = "right" if bstate & curses.BUTTON_SHIFT else "down"
        else:
            direction = None

        if direction is not None:
            if self.active_tab == "table":
                self.controller.wheel(direction)
            elif self.active_tab == "bytes":
                self.bytes_state.wheel(direction)
            else:
                self.layout_state.wheel(direction)
            return

        if not bstate & CLICK:
            return

        panel = geometry.panel
        if panel is not None and panel.x <= mx < panel.x + panel.w and my == panel.y + panel.h - 2:
            if self.active_tab == "table":
                self.controller.handle_key("x")
            else:
                self.bytes_state.panel_open = False
            return

        if not (table.x <= mx < table.x + table.w and table.y <= my < table.y + table.h):
            return
        local_x = mx - table.x
        local_y = my - table.y
        if self.active_tab == "table":
            self.controller.click(local_y - TABLE_HEADER_LINES, local_x, self.visible_count)
        elif self.active_tab == "bytes":
            self.bytes_state.click(local_y - self.bytes_pane.chart_top, local_x, table.w)
        elif local_y == 0:
            if local_x < table.w // 2:
                self.layout_state.move(-1)
            else:
                self.layout_state.move(1)

    # ---------------- main loop ----------------

    def run(self):
        self.stdscr.clear()
        self.stdscr.refresh()
        self._apply_events(self.cache.poll())
        self.redraw()

        while not self.exit_requested:
            ch = self.stdscr.getch()
            self._apply_events(self.cache.poll())

            if ch == -1:
                self.redraw()
                continue

            name = key_name(ch)
            if name == "mouse":
                self.handle_mouse()
            elif name == "resize":
                curses.update_lines_cols()
                self.stdscr.clear()
            elif name is not None:
                self.handle_key(name)

            if self.exit_requested:
                break
            self.redraw()

        self.cache.close()
