from dataclasses import dataclass

import config_paths


@dataclass(frozen=True)
class WindowPlan:
    start: int
    limit: int

    @property
    def end(self) -> int:
        return self.start + self.limit


def window_size(page_size: int, min_rows: int = config_paths.WINDOW_MIN_ROWS_DEFAULT,
                page_multiple: int = config_paths.WINDOW_PAGE_MULTIPLE_DEFAULT) -> int:
    return max(min_rows, max(1, page_size) * page_multiple)


def plan_window(
    target_offset: int,
    page_size: int,
    total: int | None = None,
    min_rows: int = config_paths.WINDOW_MIN_ROWS_DEFAULT,
    page_multiple: int = config_paths.WINDOW_PAGE_MULTIPLE_DEFAULT,
) -> WindowPlan:
    """Rows to fetch so ``target_offset`` lands one page into the window."""
    size = window_size(page_size, min_rows, page_multiple)
    start = max(0, target_offset - max(0, page_size))
    if total is None:
        return WindowPlan(start, size)

    total = max(0, total)
    if start + size > total:
        start = max(0, total - size)
    return WindowPlan(start, max(0, min(size, total - start)))


def max_offset(total: int | None, page_size: int) -> int | None:
    if total is None:
        return None
    return max(0, total - max(0, page_size))


def clamp_offset(value: int, total: int | None, page_size: int) -> int:
    value = max(0, value)
    upper = max_offset(total, page_size)
    if upper is not None:
        value = min(value, upper)
    return value
