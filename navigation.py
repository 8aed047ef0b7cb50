from dataclasses import dataclass, replace

from grid_layout import (
    GridLines,
    clamp_scroll,
    find_column_index,
    find_scroll_stop,
    max_scroll,
)

SCROLL_STEP = 3

QUIT_KEYS = {"q", "ctrl-c"}


@dataclass(frozen=True)
class Selection:
    row: int  # index into the visible page
    col: int  # data column index


@dataclass(frozen=True)
class Viewport:
    row_offset: int = 0
    column_scroll: int = 0
    page_size: int = 1
    viewport_width: int = 0
    selection: Selection | None = None
    panel_open: bool = False
    active_tab: str = "table"


# ---------- pure transitions ----------
def _clamp_row(value: int, max_offset: int | None) -> int:
    value = max(0, value)
    if max_offset is not None:
        value = min(value, max_offset)
    return value


def move_rows(state: Viewport, delta: int, max_offset: int | None) -> Viewport:
    return replace(state, row_offset=_clamp_row(state.row_offset + delta, max_offset))


def page(state: Viewport, direction: int, max_offset: int | None) -> Viewport:
    return move_rows(state, direction * max(1, state.page_size), max_offset)


def home(state: Viewport) -> Viewport:
    return replace(state, row_offset=0)


def end(state: Viewport, max_offset: int | None) -> Viewport:
    # total unknown: nowhere to jump to yet
    if max_offset is None:
        return state
    return replace(state, row_offset=max_offset)


def jump_column(state: Viewport, lines: GridLines, direction: int) -> Viewport:
    limit = max_scroll(lines, state.viewport_width)
    target = find_scroll_stop(state.column_scroll, lines.scroll_stops, direction)
    return replace(state, column_scroll=clamp_scroll(target, limit))


def scroll_columns(state: Viewport, lines: GridLines, delta: int) -> Viewport:
    limit = max_scroll(lines, state.viewport_width)
    return replace(state, column_scroll=clamp_scroll(state.column_scroll + delta, limit))


def click_cell(state: Viewport, lines: GridLines, row: int, x: int, visible_count: int) -> Viewport:
    """Select the cell under a click at page row ``row``, character ``x``."""
    if row < 0 or row >= visible_count:
        return state
    col = find_column_index(x + state.column_scroll, lines.column_ranges)
    if col < 0:
        return state
    return replace(state, selection=Selection(row, col), panel_open=True)


def toggle_panel(state: Viewport) -> Viewport:
    return replace(state, panel_open=not state.panel_open)


def open_panel(state: Viewport) -> Viewport:
    return replace(state, panel_open=True)


def close_panel(state: Viewport) -> Viewport:
    return replace(state, panel_open=False)


def show_error(state: Viewport, error: str | None) -> Viewport:
    if not error:
        return state
    return open_panel(state)


def select_tab(state: Viewport, tab: str) -> Viewport:
    return replace(state, active_tab=tab)


def resize(state: Viewport, page_size: int, viewport_width: int, max_offset: int | None) -> Viewport:
    page_size = max(1, page_size)
    state = replace(state, page_size=page_size, viewport_width=max(0, viewport_width))
    return replace(state, row_offset=_clamp_row(state.row_offset, max_offset))


def reconcile(state: Viewport, lines: GridLines, row_count: int, column_count: int,
              max_offset: int | None) -> Viewport:
    """Fit scroll, offset and selection to freshly materialized data."""
    column_scroll = min(state.column_scroll, max_scroll(lines, state.viewport_width))
    row_offset = _clamp_row(state.row_offset, max_offset)
    if row_count <= 0 or column_count <= 0:
        selection = None
    elif state.selection is None:
        selection = Selection(0, 0)
    else:
        selection = Selection(
            min(state.selection.row, row_count - 1),
            min(state.selection.col, column_count - 1),
        )
    return replace(state, column_scroll=column_scroll, row_offset=row_offset, selection=selection)


# ---------- controller ----------
class ViewportController:
    """Holds the current ``Viewport`` and feeds the row cache.

    Every handler replaces ``self.state`` wholesale and, when rows moved,
    asks the cache for the new offset.
    """

    def __init__(self, cache, state: Viewport | None = None):
        self.cache = cache
        self.state = state or Viewport()
        self.lines: GridLines | None = None

    @property
    def max_offset(self) -> int | None:
        return self.cache.max_offset(self.state.page_size)

    def _set(self, new_state: Viewport) -> Viewport:
        moved = new_state.row_offset != self.state.row_offset
        self.state = new_state
        if moved:
            self.request_rows()
        return new_state

    def request_rows(self):
        return self.cache.ensure(self.state.row_offset, self.state.page_size)

    def resize(self, page_size: int, viewport_width: int):
        old = self.state
        self.state = resize(old, page_size, viewport_width, self.max_offset)
        if (self.state.page_size, self.state.row_offset) != (old.page_size, old.row_offset):
            self.request_rows()

    def update_lines(self, lines: GridLines, row_count: int):
        self.lines = lines
        column_count = len(self.cache.columns)
        self.state = reconcile(self.state, lines, row_count, column_count, self.max_offset)

    def handle_key(self, name: str) -> str | None:
        """Apply a table key. Returns ``"quit"``, ``"copy-error"``, ``"handled"`` or None."""
        state = self.state
        max_offset = self.max_offset

        if name in QUIT_KEYS:
            return "quit"
        if name == "esc":
            if state.panel_open:
                self._set(close_panel(state))
                return "handled"
            return "quit"

        if name in ("j", "down"):
            self._set(move_rows(state, 1, max_offset))
        elif name in ("k", "up"):
            self._set(move_rows(state, -1, max_offset))
        elif name in ("space", "pgdn"):
            self._set(page(state, 1, max_offset))
        elif name == "pgup":
            self._set(page(state, -1, max_offset))
        elif name in ("g", "home"):
            self._set(home(state))
        elif name in ("G", "end"):
            self._set(end(state, max_offset))
        elif name in ("h", "left"):
            if self.lines is not None:
                self._set(jump_column(state, self.lines, -1))
        elif name in ("l", "right"):
            if self.lines is not None:
                self._set(jump_column(state, self.lines, 1))
        elif name in ("s", "enter"):
            self._set(toggle_panel(state))
        elif name == "x":
            self._set(close_panel(state))
        elif name == "e":
            self._set(show_error(state, self.cache.error))
        elif name == "y":
            return "copy-error" if self.cache.error else None
        else:
            return None
        return "handled"

    def wheel(self, direction: str, delta: int = 1):
        step = max(1, delta) * SCROLL_STEP
        if direction == "up":
            self._set(move_rows(self.state, -step, self.max_offset))
        elif direction == "down":
            self._set(move_rows(self.state, step, self.max_offset))
        elif self.lines is not None and direction == "left":
            self._set(scroll_columns(self.state, self.lines, -step))
        elif self.lines is not None and direction == "right":
            self._set(scroll_columns(self.state, self.lines, step))

    def click(self, row: int, x: int, visible_count: int):
        if self.lines is None:
            return
        self._set(click_cell(self.state, self.lines, row, x, visible_count))

    def set_tab(self, tab: str):
        self.state = select_tab(self.state, tab)

    def on_error(self):
        self.state = show_error(self.state, self.cache.error)
