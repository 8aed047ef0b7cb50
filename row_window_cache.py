import queue
import threading
from dataclasses import dataclass
from typing import Callable

import pandas as pd

import config_paths
from cell_format import build_column_info, format_frame
from logging_setup import get_logger
from pagination import WindowPlan, clamp_offset, max_offset, plan_window

logger = get_logger("row_window_cache")


@dataclass(frozen=True)
class RowWindow:
    start: int
    rows: tuple
    columns: tuple

    @property
    def end(self) -> int:
        return self.start + len(self.rows)


@dataclass(frozen=True)
class CacheEvent:
    kind: str  # "rows", "metadata" or "error"
    generation: int
    message: str | None = None


class FetchJob:
    """One unit of work for the fetch worker.

    Runs ``work`` and hands ``(job, result, error)`` to ``results``; the
    cache decides on the event-loop thread whether the result still counts.
    """

    def __init__(self, kind: str, generation: int, work: Callable, results: queue.Queue,
                 superseded: Callable[[], bool], plan: WindowPlan | None = None):
        self.kind = kind
        self.generation = generation
        self.plan = plan
        self._work = work
        self._results = results
        self._superseded = superseded

    @property
    def superseded(self) -> bool:
        return self._superseded()

    def __call__(self):
        try:
            result = self._work()
        except Exception as exc:  # reported to the UI as an error event
            self._results.put((self, None, exc))
            return
        self._results.put((self, result, None))


class FetchWorker:
    def __init__(self, name: str = "pqview-fetch"):
        self._jobs: queue.Queue = queue.Queue()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._started = False
        self._stopped = False

    def submit(self, job: FetchJob):
        if self._stopped:
            return
        if not self._started:
            self._thread.start()
            self._started = True
        self._jobs.put(job)

    def _run(self):
        while True:
            job = self._jobs.get()
            if job is None:
                break
            if job.superseded:
                logger.debug("skipping superseded %s fetch gen=%s", job.kind, job.generation)
                continue
            job()

    def stop(self, timeout: float = 1.0):
        if self._stopped:
            return
        self._stopped = True
        if self._started:
            self._jobs.put(None)
            self._thread.join(timeout)


class RowWindowCache:
    """Single materialized window of rows over a data source.

    ``ensure`` answers synchronously from the cached window or issues a
    fetch tagged with a new generation. Results come back through ``poll``
    and only the latest generation may touch the window.
    """

    def __init__(
        self,
        source,
        columns=(),
        max_rows: int | None = None,
        dispatch: Callable[[FetchJob], None] | None = None,
        min_rows: int = config_paths.WINDOW_MIN_ROWS_DEFAULT,
        page_multiple: int = config_paths.WINDOW_PAGE_MULTIPLE_DEFAULT,
    ):
        self.source = source
        self.requested_columns = tuple(columns or ())
        self.max_rows = max_rows
        self.min_rows = min_rows
        self.page_multiple = page_multiple

        self._worker = None
        if dispatch is None:
            self._worker = FetchWorker()
            dispatch = self._worker.submit
        self._dispatch = dispatch
        self._results: queue.Queue = queue.Queue()

        self.window: RowWindow | None = None
        self.columns: tuple = ()
        self.metadata = None
        self.metadata_loaded = False
        self.error: str | None = None

        self.generation = 0
        self._metadata_generation = 0
        self._pending_plan: WindowPlan | None = None
        self._metadata_pending = False
        self._estimated_total: int | None = None
        self._frame: pd.DataFrame | None = None
        self._shown_offset = 0
        self._closed = False

    # ---------- totals ----------
    @property
    def effective_total(self) -> int | None:
        total = None
        if self.metadata is not None and self.metadata.row_count is not None:
            total = self.metadata.row_count
        elif self._estimated_total is not None:
            total = self._estimated_total
        if self.max_rows is not None:
            total = self.max_rows if total is None else min(total, self.max_rows)
        return total

    def max_offset(self, page_size: int) -> int | None:
        return max_offset(self.effective_total, page_size)

    @property
    def loading(self) -> bool:
        return self._pending_plan is not None or self._metadata_pending

    # ---------- requests ----------
    def is_satisfied(self, offset: int, page_size: int) -> bool:
        window = self.window
        if window is None:
            return False
        required_end = offset + page_size
        total = self.effective_total
        if total is not None:
            required_end = min(required_end, total)
        return window.start <= offset and required_end <= window.end

    def ensure(self, offset: int, page_size: int) -> RowWindow | None:
        if self._closed:
            return None
        if self.is_satisfied(offset, page_size):
            if self._pending_plan is not None:
                # a fetch for an abandoned offset must not replace this window
                logger.debug("dropping pending fetch gen=%s", self.generation)
                self.generation += 1
                self._pending_plan = None
            return self.window

        plan = plan_window(
            offset,
            page_size,
            self.effective_total,
            min_rows=self.min_rows,
            page_multiple=self.page_multiple,
        )
        if self._pending_plan == plan:
            return None

        self.generation += 1
        generation = self.generation
        self._pending_plan = plan
        logger.debug("fetch gen=%s start=%s limit=%s", generation, plan.start, plan.limit)

        job = FetchJob(
            "rows",
            generation,
            lambda: self.source.fetch_rows(self.requested_columns, plan.start, plan.limit),
            self._results,
            superseded=lambda: generation != self.generation,
            plan=plan,
        )
        self._dispatch(job)
        return None

    def request_metadata(self):
        if self._closed:
            return
        self._metadata_generation += 1
        generation = self._metadata_generation
        self._metadata_pending = True
        job = FetchJob(
            "metadata",
            generation,
            self.source.fetch_metadata,
            self._results,
            superseded=lambda: generation != self._metadata_generation,
        )
        self._dispatch(job)

    # ---------- results ----------
    def poll(self) -> list[CacheEvent]:
        events = []
        while True:
            try:
                job, result, error = self._results.get_nowait()
            except queue.Empty:
                break
            if job.kind == "metadata":
                event = self._apply_metadata(job, result, error)
            else:
                event = self._apply_rows(job, result, error)
            if event is not None:
                events.append(event)
        return events

    def _apply_metadata(self, job: FetchJob, result, error) -> CacheEvent | None:
        if job.generation != self._metadata_generation:
            return None
        self._metadata_pending = False
        self.metadata_loaded = True
        if error is not None:
            logger.warning("metadata unavailable: %s", error)
            self.metadata = None
        else:
            self.metadata = result
        self.columns = tuple(build_column_info(self.metadata, self._frame, self.requested_columns))
        if self.window is not None:
            self.window = RowWindow(self.window.start, self.window.rows, self.columns)
        return CacheEvent("metadata", job.generation)

    def _apply_rows(self, job: FetchJob, frame, error) -> CacheEvent | None:
        if job.generation != self.generation:
            logger.debug("discarding stale fetch gen=%s (latest %s)", job.generation, self.generation)
            return None
        self._pending_plan = None

        if error is not None:
            message = str(error) or type(error).__name__
            logger.error("fetch failed at row %s: %s", job.plan.start, message)
            self.window = None
            self._frame = None
            self.error = message
            return CacheEvent("error", job.generation, message)

        plan = job.plan
        count = len(frame)
        if count < plan.limit:
            detected = plan.start + count
            if self._estimated_total is None or detected < self._estimated_total:
                logger.info("end of data detected at %s rows", detected)
                self._estimated_total = detected

        self._frame = frame
        self.columns = tuple(build_column_info(self.metadata, frame, self.requested_columns))
        self.window = RowWindow(plan.start, format_frame(frame, list(self.columns)), self.columns)
        self.error = None
        return CacheEvent("rows", job.generation)

    # ---------- reads ----------
    def visible_rows(self, offset: int, page_size: int) -> tuple[int, tuple]:
        """``(first absolute row, rows)`` to draw for a viewport.

        While a fetch is in flight the previous rows stay on screen.
        """
        window = self.window
        if window is None:
            return offset, ()
        if self.is_satisfied(offset, page_size):
            self._shown_offset = offset
        else:
            upper = max(window.start, window.end - page_size)
            self._shown_offset = min(max(self._shown_offset, window.start), upper)
        first = self._shown_offset
        lo = first - window.start
        return first, window.rows[lo : lo + page_size]

    def clamp(self, offset: int, page_size: int) -> int:
        return clamp_offset(offset, self.effective_total, page_size)

    def close(self):
        if self._closed:
            return
        self._closed = True
        self.generation += 1
        if self._worker is not None:
            self._worker.stop()
        self.source.close()
