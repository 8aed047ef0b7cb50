import curses
import threading
import time

SPINNER = "|/-\\"


class LoadState:
    def __init__(self):
        self.loaded = False
        self.aborted = False
        self.result = None
        self.error: Exception | None = None


class LoadingScreen:
    """Runs ``loader_fn`` on a daemon thread while drawing a spinner.

    Opening a remote dataset downloads it first, which can take a while;
    ``q``/ctrl-c/ctrl-x abort and leave ``state.aborted`` set.
    """

    ABORT_KEYS = (3, 24, ord("q"))

    def __init__(self, stdscr, loader_fn, load_state: LoadState, label: str = ""):
        self.stdscr = stdscr
        self.loader_fn = loader_fn
        self.state = load_state
        self.label = label
        self.started = time.time()

    def start_loader(self):
        t = threading.Thread(target=self._load, name="pqview-open", daemon=True)
        t.start()

    def _load(self):
        if self.state.aborted:
            return
        try:
            result = self.loader_fn()
        except Exception as exc:  # surfaced after curses exits
            self.state.error = exc
            self.state.aborted = True
            return
        if not self.state.aborted:
            self.state.result = result
            self.state.loaded = True

    def run(self):
        try:
            curses.curs_set(0)
        except curses.error:
            pass
        self.stdscr.nodelay(True)
        self.start_loader()
        while not self.state.aborted and not self.state.loaded:
            self.draw()
            ch = self.stdscr.getch()
            if ch in self.ABORT_KEYS:
                self.state.aborted = True
                break
            time.sleep(0.05)
        self.stdscr.nodelay(False)

    def draw(self):
        h, w = self.stdscr.getmaxyx()
        self.stdscr.erase()
        frame = SPINNER[int((time.time() - self.started) * 10) % len(SPINNER)]
        text = f"{frame} opening {self.label}"[: max(0, w - 1)]
        y = max(0, h // 2)
        x = max(0, (w - len(text)) // 2)
        try:
            self.stdscr.addstr(y, x, text)
        except curses.error:
            pass
        self.stdscr.refresh()
