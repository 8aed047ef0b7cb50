import curses

COLUMN_COLORS = (
    curses.COLOR_GREEN,
    curses.COLOR_MAGENTA,
    curses.COLOR_CYAN,
    curses.COLOR_YELLOW,
    curses.COLOR_BLUE,
    curses.COLOR_RED,
)


class Palette:
    PAIR_HEADER = 1
    PAIR_MUTED = 2
    PAIR_ACCENT = 3
    PAIR_BADGE = 4
    PAIR_ERROR = 5
    PAIR_COLUMN_BASE = 10

    def __init__(self):
        self.enabled = False
        try:
            curses.start_color()
            curses.use_default_colors()
            curses.init_pair(self.PAIR_HEADER, curses.COLOR_BLACK, curses.COLOR_WHITE)
            curses.init_pair(self.PAIR_MUTED, curses.COLOR_BLUE, -1)
            curses.init_pair(self.PAIR_ACCENT, curses.COLOR_MAGENTA, -1)
            curses.init_pair(self.PAIR_BADGE, curses.COLOR_BLACK, curses.COLOR_GREEN)
            curses.init_pair(self.PAIR_ERROR, curses.COLOR_RED, -1)
            for idx, color in enumerate(COLUMN_COLORS):
                curses.init_pair(self.PAIR_COLUMN_BASE + idx, color, -1)
            self.enabled = True
        except curses.error:
            pass

    def _pair(self, number):
        return curses.color_pair(number) if self.enabled else 0

    def attr(self, name: str) -> int:
        if name == "header":
            return self._pair(self.PAIR_HEADER)
        if name == "muted":
            return self._pair(self.PAIR_MUTED)
        if name == "accent":
            return self._pair(self.PAIR_ACCENT) | curses.A_BOLD
        if name == "badge":
            return self._pair(self.PAIR_BADGE)
        if name == "error":
            return self._pair(self.PAIR_ERROR) | curses.A_BOLD
        if name == "selected":
            return curses.A_REVERSE
        return 0

    def column(self, column_index: int, reverse: bool = False) -> int:
        attr = self._pair(self.PAIR_COLUMN_BASE + column_index % len(COLUMN_COLORS))
        return attr | curses.A_REVERSE if reverse else attr
