import unittest

from bytes_pane import BytesPane, BytesPaneState
from data_source import ByteRange, ColumnChunkLayout, RowGroupLayout, StorageLayout
from navigation import Selection


def _chunk(name, size, start, dictionary=None, compression="ZSTD"):
    return ColumnChunkLayout(
        name=name,
        path=(name,),
        byte_size=size,
        total_range=ByteRange(start, size),
        data_range=ByteRange(start + (dictionary or 0), size - (dictionary or 0)),
        dictionary_range=ByteRange(start, dictionary) if dictionary else None,
        compression=compression,
    )


def _layout():
    # rg0: a=30 b=10, rg1: a=20 only
    rg0 = RowGroupLayout(index=0, byte_size=40, chunks=(_chunk("a", 30, 4, dictionary=6), _chunk("b", 10, 34)), row_count=5)
    rg1 = RowGroupLayout(index=1, byte_size=20, chunks=(_chunk("a", 20, 44, compression=None),), row_count=5)
    return StorageLayout(magic=ByteRange(0, 4), row_groups=(rg0, rg1))


class DummyColors:
    def attr(self, name):
        return 0

    def column(self, idx, reverse=False):
        return 0


class DummyWin:
    def __init__(self, h=10, w=52):
        self._h = h
        self._w = w
        self.calls = []

    def getmaxyx(self):
        return self._h, self._w

    def erase(self):
        self.calls.clear()

    def addstr(self, y, x, text, attr=0):
        self.calls.append((y, x, text))


class BytesPaneStateTests(unittest.TestCase):
    def test_empty_without_layout(self):
        state = BytesPaneState()
        self.assertEqual(state.rows, ())
        self.assertIsNone(state.selection)
        self.assertEqual(state.summary_text(), "byte grid unavailable")
        self.assertEqual(state.detail_rows(), [("select a bar segment to inspect exact byte ranges", None)])

    def test_label_and_summary(self):
        state = BytesPaneState(_layout(), page_size=5)
        self.assertEqual(state.columns, ("a", "b"))
        self.assertEqual(state.label_width, 12)
        self.assertEqual(state.row_label(state.rows[0]), "rg 0  40 B  ")
        self.assertEqual(state.summary_text(), "rowgroups 1-2 of 2 | columns 2")
        self.assertEqual(
            state.summary_line(),
            "total 60 B | 2 row groups | 2 columns | largest: a (83.3%)",
        )

    def test_click_selects_segment_and_opens_panel(self):
        state = BytesPaneState(_layout(), page_size=5)
        # chart 40 wide: "a" covers x 12..41, "b" covers 42..51
        self.assertTrue(state.click(0, 45, 52))
        self.assertEqual(state.selection, Selection(0, 1))
        self.assertTrue(state.panel_open)

        self.assertTrue(state.click(1, 12, 52))
        self.assertEqual(state.selection, Selection(1, 0))
        # the second row group is half as wide
        self.assertFalse(state.click(1, 35, 52))
        self.assertFalse(state.click(0, 5, 52))
        self.assertFalse(state.click(4, 20, 52))

    def test_chart_never_wider_than_pane(self):
        state = BytesPaneState(_layout(), page_size=5)
        self.assertEqual(state.chart_width(10), 0)
        self.assertEqual(state.row_segments(state.rows[0], 0), ([], 0))
        self.assertFalse(state.click(0, 12, 10))
        # two cells left: one per column
        self.assertEqual(state.chart_width(14), 2)
        self.assertTrue(state.click(0, 13, 14))
        self.assertEqual(state.selection, Selection(0, 1))
        self.assertFalse(state.click(0, 20, 14))

        win = DummyWin(h=10, w=14)
        BytesPane(DummyColors()).draw(win, state)
        for _, x, text in win.calls:
            self.assertLessEqual(x + len(text), 14)

    def test_click_ignored_in_totals_mode(self):
        state = BytesPaneState(_layout(), page_size=5)
        state.handle_key("t")
        self.assertEqual(state.mode, "totals")
        self.assertFalse(state.click(0, 45, 52))

    def test_move_col_opens_panel(self):
        state = BytesPaneState(_layout(), page_size=5)
        self.assertEqual(state.handle_key("l"), "handled")
        self.assertEqual(state.selection, Selection(0, 1))
        self.assertTrue(state.panel_open)
        state.handle_key("l")
        self.assertEqual(state.selection.col, 1)

    def test_rows_follow_selection(self):
        state = BytesPaneState(_layout(), page_size=1)
        state.handle_key("j")
        self.assertEqual(state.selection.row, 1)
        self.assertEqual(state.row_offset, 1)
        state.handle_key("g")
        self.assertEqual((state.selection.row, state.row_offset), (0, 0))
        state.handle_key("G")
        self.assertEqual((state.selection.row, state.row_offset), (1, 1))
        state.wheel("up")
        self.assertEqual(state.selection.row, 0)

    def test_keys_for_panel_and_errors(self):
        state = BytesPaneState(_layout(), page_size=5)
        self.assertEqual(state.handle_key("s"), "handled")
        self.assertTrue(state.panel_open)
        self.assertEqual(state.handle_key("esc"), "handled")
        self.assertFalse(state.panel_open)
        self.assertEqual(state.handle_key("esc"), "quit")
        self.assertIsNone(state.handle_key("y"))
        self.assertEqual(state.handle_key("y", error="boom"), "copy-error")
        state.handle_key("e", error="boom")
        self.assertTrue(state.panel_open)
        self.assertIsNone(state.handle_key("z"))

    def test_detail_rows_for_chunk(self):
        state = BytesPaneState(_layout(), page_size=5)
        rows = state.detail_rows()
        self.assertEqual(rows[0], ("a", None))
        self.assertEqual(rows[1], ("row group 0", None))
        values = dict(row for row in rows if row[1] is not None)
        self.assertEqual(values["size"], "30 B")
        self.assertEqual(values["% of row group"], "75.0%")
        self.assertEqual(values["% of file"], "50.0%")
        self.assertEqual(values["codec"], "ZSTD")
        self.assertEqual(values["dictionary"], "6 B (20.0%)")
        self.assertEqual(values["data"], "24 B (80.0%)")
        self.assertEqual(values["byte range"], "4 -> 34")

    def test_detail_rows_for_missing_chunk(self):
        state = BytesPaneState(_layout(), page_size=5)
        state.selection = Selection(1, 1)
        self.assertEqual(state.detail_rows()[-1], ("no chunk present", None))

    def test_totals_lines_sorted_largest_first(self):
        state = BytesPaneState(_layout(), page_size=5)
        lines = state.totals_lines(60)
        self.assertEqual([idx for idx, _, _ in lines], [0, 1])
        self.assertIn("50 B", lines[0][1])
        self.assertEqual(lines[0][2], 16)


class BytesPaneDrawTests(unittest.TestCase):
    def test_draw_records_chart_top(self):
        pane = BytesPane(DummyColors())
        state = BytesPaneState(_layout(), page_size=5)
        win = DummyWin()
        pane.draw(win, state)
        self.assertEqual(pane.chart_top, 2)
        labels = [text for y, x, text in win.calls if x == 0 and y >= 2]
        self.assertEqual(labels, ["rg 0  40 B  ", "rg 1  20 B  "])
        bars = [(y, x, len(text)) for y, x, text in win.calls if y >= 2 and x >= 12]
        self.assertEqual(bars, [(2, 12, 30), (2, 42, 10), (3, 12, 20)])


if __name__ == "__main__":
    unittest.main()
