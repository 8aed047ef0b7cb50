import random
import time
import unittest

import pandas as pd

from data_source import DatasetMetadata, FrameSource, SchemaColumn
from navigation import ViewportController
from row_window_cache import RowWindowCache


def _frame(rows):
    return pd.DataFrame({"id": list(range(rows)), "name": [f"n{i}" for i in range(rows)]})


class _MetadataSource(FrameSource):
    """Frame source whose footer claims a row count of its own."""

    def __init__(self, frame, row_count):
        super().__init__(frame)
        self._row_count = row_count

    def fetch_metadata(self):
        return DatasetMetadata(
            columns=(SchemaColumn("id", "int64"), SchemaColumn("name", "string")),
            row_count=self._row_count,
        )


class DeferredDispatch:
    def __init__(self):
        self.jobs = []
        self.issued = 0

    def __call__(self, job):
        self.jobs.append(job)
        self.issued += 1

    def run_all(self):
        jobs, self.jobs = self.jobs, []
        for job in jobs:
            job()


def _inline(job):
    job()


class EnsureTests(unittest.TestCase):
    def test_inline_fetch_fills_window(self):
        cache = RowWindowCache(FrameSource(_frame(200), report_row_count=False), dispatch=_inline)
        self.assertIsNone(cache.ensure(0, 10))
        events = cache.poll()
        self.assertEqual([e.kind for e in events], ["rows"])
        self.assertEqual((cache.window.start, cache.window.end), (0, 50))
        self.assertEqual(cache.window.rows[3]["name"], "n3")
        self.assertEqual([c.name for c in cache.columns], ["id", "name"])
        self.assertFalse(cache.loading)
        # answered from the window now
        self.assertIs(cache.ensure(10, 10), cache.window)

    def test_identical_pending_plan_is_not_reissued(self):
        dispatch = DeferredDispatch()
        cache = RowWindowCache(FrameSource(_frame(200)), dispatch=dispatch)
        cache.ensure(40, 20)
        cache.ensure(40, 20)
        self.assertEqual(dispatch.issued, 1)
        self.assertTrue(cache.loading)

    def test_page_down_refetches_once(self):
        dispatch = DeferredDispatch()
        cache = RowWindowCache(FrameSource(_frame(200), report_row_count=False), dispatch=dispatch)
        cache.ensure(0, 10)
        dispatch.run_all()
        cache.poll()
        self.assertEqual((cache.window.start, cache.window.end), (0, 50))

        controller = ViewportController(cache)
        controller.resize(20, 80)
        for _ in range(3):
            controller.handle_key("pgdn")
            dispatch.run_all()
            cache.poll()

        self.assertEqual(controller.state.row_offset, 60)
        self.assertEqual(dispatch.issued, 2)
        self.assertEqual((cache.window.start, cache.window.end), (20, 80))
        first, rows = cache.visible_rows(60, 20)
        self.assertEqual(first, 60)
        self.assertEqual(rows[0]["id"], "60")

    def test_out_of_order_results_keep_latest_request(self):
        dispatch = DeferredDispatch()
        cache = RowWindowCache(FrameSource(_frame(1000)), dispatch=dispatch)
        cache.ensure(100, 10)
        cache.ensure(500, 10)
        older, newer = dispatch.jobs
        dispatch.jobs = []
        newer()
        older()
        events = cache.poll()
        self.assertEqual(len(events), 1)
        self.assertEqual(cache.window.start, 490)
        self.assertTrue(cache.is_satisfied(500, 10))
        self.assertFalse(cache.loading)

    def test_superseded_job_reports_itself(self):
        dispatch = DeferredDispatch()
        cache = RowWindowCache(FrameSource(_frame(1000)), dispatch=dispatch)
        cache.ensure(100, 10)
        cache.ensure(500, 10)
        self.assertTrue(dispatch.jobs[0].superseded)
        self.assertFalse(dispatch.jobs[1].superseded)


class TotalTests(unittest.TestCase):
    def test_short_read_sets_estimate(self):
        cache = RowWindowCache(FrameSource(_frame(120), report_row_count=False), dispatch=_inline)
        self.assertIsNone(cache.effective_total)
        self.assertIsNone(cache.max_offset(10))
        cache.ensure(100, 10)
        cache.poll()
        self.assertEqual(cache.effective_total, 120)
        self.assertEqual(cache.max_offset(10), 110)

        # a full window later on does not loosen the estimate
        cache.ensure(0, 10)
        cache.poll()
        self.assertEqual(cache.window.start, 0)
        self.assertEqual(cache.effective_total, 120)

    def test_metadata_row_count_wins(self):
        cache = RowWindowCache(_MetadataSource(_frame(120), row_count=500), dispatch=_inline)
        cache.ensure(100, 10)
        cache.poll()
        self.assertEqual(cache.effective_total, 120)
        cache.request_metadata()
        events = cache.poll()
        self.assertEqual([e.kind for e in events], ["metadata"])
        self.assertEqual(cache.effective_total, 500)
        self.assertEqual([c.type for c in cache.window.columns], ["int64", "string"])

    def test_max_rows_caps_total(self):
        cache = RowWindowCache(FrameSource(_frame(1000)), max_rows=30, dispatch=_inline)
        self.assertEqual(cache.effective_total, 30)
        cache.request_metadata()
        cache.ensure(0, 10)
        cache.poll()
        self.assertEqual(cache.effective_total, 30)
        self.assertEqual(len(cache.window.rows), 30)
        self.assertEqual(cache.clamp(100, 10), 20)

    def test_short_dataset_is_satisfied(self):
        dispatch = DeferredDispatch()
        cache = RowWindowCache(FrameSource(_frame(5), report_row_count=False), dispatch=dispatch)
        cache.ensure(0, 10)
        dispatch.run_all()
        cache.poll()
        self.assertEqual(cache.effective_total, 5)
        self.assertTrue(cache.is_satisfied(0, 10))
        self.assertIs(cache.ensure(0, 10), cache.window)
        self.assertEqual(dispatch.issued, 1)


class ErrorTests(unittest.TestCase):
    def test_error_clears_window(self):
        source = FrameSource(_frame(200))
        cache = RowWindowCache(source, dispatch=_inline)
        cache.ensure(0, 10)
        cache.poll()
        self.assertIsNotNone(cache.window)

        source.close()
        cache.ensure(150, 10)
        events = cache.poll()
        self.assertEqual([e.kind for e in events], ["error"])
        self.assertEqual(events[0].message, "source is closed")
        self.assertIsNone(cache.window)
        self.assertEqual(cache.error, "source is closed")
        self.assertFalse(cache.loading)
        self.assertEqual(cache.visible_rows(150, 10), (150, ()))

    def test_unknown_columns_surface_as_error(self):
        cache = RowWindowCache(FrameSource(_frame(10)), columns=("nope",), dispatch=_inline)
        cache.ensure(0, 10)
        cache.poll()
        self.assertEqual(cache.error, "unknown columns: nope")

    def test_metadata_failure_falls_back_to_frame_columns(self):
        class Broken(FrameSource):
            def fetch_metadata(self):
                raise OSError("footer unreadable")

        cache = RowWindowCache(Broken(_frame(10)), dispatch=_inline)
        cache.ensure(0, 5)
        cache.request_metadata()
        events = cache.poll()
        self.assertEqual([e.kind for e in events], ["rows", "metadata"])
        self.assertIsNone(cache.metadata)
        self.assertTrue(cache.metadata_loaded)
        self.assertEqual([c.type for c in cache.columns], ["integer", "string"])


class ViewportCoverageTests(unittest.TestCase):
    KEYS = ("j", "k", "down", "up", "pgdn", "pgup", "home", "end")

    def _cache_with_total(self, rows, dispatch):
        cache = RowWindowCache(FrameSource(_frame(rows)), dispatch=dispatch)
        cache.request_metadata()
        dispatch.run_all()
        cache.poll()
        return cache

    def test_returning_to_window_drops_pending_fetch(self):
        dispatch = DeferredDispatch()
        cache = self._cache_with_total(1000, dispatch)
        controller = ViewportController(cache)
        controller.resize(20, 80)
        dispatch.run_all()
        cache.poll()
        self.assertEqual((cache.window.start, cache.window.end), (0, 60))

        controller.handle_key("end")
        self.assertTrue(cache.loading)
        controller.handle_key("home")
        self.assertFalse(cache.loading)

        dispatch.run_all()
        self.assertEqual(cache.poll(), [])
        self.assertEqual(controller.state.row_offset, 0)
        self.assertEqual((cache.window.start, cache.window.end), (0, 60))
        self.assertTrue(cache.is_satisfied(0, 20))
        first, rows = cache.visible_rows(0, 20)
        self.assertEqual(first, 0)
        self.assertEqual(rows[0]["id"], "0")

    def test_window_covers_viewport_once_fetches_settle(self):
        for seed in range(25):
            with self.subTest(seed=seed):
                rng = random.Random(seed)
                dispatch = DeferredDispatch()
                cache = self._cache_with_total(rng.choice([30, 333, 1000]), dispatch)
                controller = ViewportController(cache)
                controller.resize(rng.randint(1, 25), 80)

                for _ in range(200):
                    roll = rng.random()
                    if roll < 0.6:
                        controller.handle_key(rng.choice(self.KEYS))
                    elif roll < 0.65:
                        controller.resize(rng.randint(1, 25), 80)
                    else:
                        # finish a random subset of jobs in random order
                        pending = list(dispatch.jobs)
                        rng.shuffle(pending)
                        cut = rng.randint(0, len(pending))
                        dispatch.jobs = pending[cut:]
                        for job in pending[:cut]:
                            job()
                        cache.poll()

                    state = controller.state
                    if not cache.loading:
                        self.assertTrue(cache.is_satisfied(state.row_offset, state.page_size))

                dispatch.run_all()
                cache.poll()
                state = controller.state
                self.assertFalse(cache.loading)
                self.assertTrue(cache.is_satisfied(state.row_offset, state.page_size))


class VisibleRowsTests(unittest.TestCase):
    def test_previous_rows_stay_while_loading(self):
        dispatch = DeferredDispatch()
        cache = RowWindowCache(FrameSource(_frame(200)), dispatch=dispatch)
        cache.ensure(0, 20)
        dispatch.run_all()
        cache.poll()
        self.assertEqual(cache.visible_rows(20, 20)[0], 20)

        cache.ensure(100, 20)
        first, rows = cache.visible_rows(100, 20)
        self.assertEqual(first, 20)
        self.assertEqual(len(rows), 20)

        dispatch.run_all()
        cache.poll()
        first, rows = cache.visible_rows(100, 20)
        self.assertEqual(first, 100)
        self.assertEqual(rows[0]["id"], "100")


class WorkerTests(unittest.TestCase):
    def test_background_worker_delivers_rows(self):
        source = FrameSource(_frame(100))
        cache = RowWindowCache(source)
        try:
            cache.ensure(0, 10)
            events = []
            deadline = time.time() + 5
            while not events and time.time() < deadline:
                events = cache.poll()
                time.sleep(0.01)
            self.assertEqual([e.kind for e in events], ["rows"])
            self.assertEqual(cache.window.end, 50)
        finally:
            cache.close()
        self.assertTrue(source.closed)
        self.assertIsNone(cache.ensure(0, 10))


if __name__ == "__main__":
    unittest.main()
