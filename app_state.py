import os
import time

TABS = ("table", "layout", "bytes")
NOTICE_SECONDS = 2.0


class TabStateMachine:
    def __init__(self, has_layout: bool = False):
        self.has_layout = bool(has_layout)
        self.active = "table"

    @property
    def available_tabs(self) -> tuple:
        return TABS if self.has_layout else ("table",)

    def set_has_layout(self, flag: bool):
        self.has_layout = bool(flag)
        if self.active not in self.available_tabs:
            self.active = "table"

    def select(self, tab: str) -> bool:
        if tab not in self.available_tabs:
            return False
        self.active = tab
        return True

    def select_index(self, number: int) -> bool:
        """Select by 1-based key number; unavailable tabs are ignored."""
        if number < 1 or number > len(TABS):
            return False
        return self.select(TABS[number - 1])

    def cycle(self, direction: int) -> str:
        tabs = self.available_tabs
        idx = tabs.index(self.active) if self.active in tabs else 0
        self.active = tabs[(idx + direction) % len(tabs)]
        return self.active

    def handle_key(self, name: str) -> bool:
        if name in ("1", "2", "3"):
            return self.select_index(int(name))
        if name in ("tab", "]"):
            self.cycle(1)
            return True
        if name in ("shift-tab", "["):
            self.cycle(-1)
            return True
        return False


def is_optimized(metadata) -> bool:
    if metadata is None:
        return False
    raw = (metadata.key_value_metadata or {}).get("content_defined_chunking")
    if raw is None:
        return False
    return str(raw).strip().lower() not in ("false", "0")


class AppState:
    def __init__(self, title, source, cache, tabs: TabStateMachine | None = None):
        self.title = title
        self.source = source
        self.cache = cache
        self.tabs = tabs or TabStateMachine()

        self.status_msg = ""
        self.status_until = 0.0

    @property
    def display_name(self) -> str:
        if "://" in self.title:
            return self.title
        return os.path.basename(self.title) or self.title

    @property
    def metadata(self):
        return self.cache.metadata

    @property
    def layout(self):
        metadata = self.cache.metadata
        if metadata is None or not metadata.has_layout:
            return None
        return metadata.layout

    @property
    def created_by(self) -> str | None:
        metadata = self.cache.metadata
        return metadata.created_by if metadata is not None else None

    @property
    def optimized(self) -> bool:
        return is_optimized(self.cache.metadata)

    def sync_tabs(self):
        self.tabs.set_has_layout(self.layout is not None)

    def set_notice(self, msg: str, seconds: float = NOTICE_SECONDS):
        self.status_msg = msg
        self.status_until = time.time() + seconds

    def current_notice(self, now: float | None = None) -> str | None:
        now = time.time() if now is None else now
        if self.status_msg and now < self.status_until:
            return self.status_msg
        return None
