from data_source import ByteRange
from status_bar import info_row, range_text, render_footer, render_header, tab_chips


def _ctx(**overrides):
    ctx = {
        "title": "/data/trips.parquet",
        "offset": 0,
        "rows": 20,
        "columns": 5,
        "total": 1200,
        "loading": False,
        "error": None,
        "created_by": None,
        "optimized": False,
        "active_tab": "table",
        "available_tabs": ("table",),
    }
    ctx.update(overrides)
    return ctx


def test_header_summarizes_rows_and_columns():
    line = render_header(_ctx(offset=40), 80)
    assert len(line) == 80
    assert line.startswith(" pqview | trips.parquet | rows 41-60 of 1,200 | cols 5")


def test_header_without_total_or_rows():
    line = render_header(_ctx(total=None, rows=0), 60)
    assert "rows 0-0 |" in line
    assert " of " not in line


def test_header_right_side_badges():
    line = render_header(
        _ctx(loading=True, optimized=True, available_tabs=("table", "layout", "bytes")), 120
    )
    assert line.rstrip().endswith("[1 table]  2 layout   3 bytes   * loading  OPTIMIZED")
    assert len(line) == 120


def test_header_shows_error_instead_of_summary():
    line = render_header(_ctx(error="unknown columns: x"), 50)
    assert line.strip() == "pqview | error: unknown columns: x"


def test_header_uses_pane_summary():
    line = render_header(_ctx(summary="row groups 3 | 1.2 MB", created_by="parquet-cpp"), 80)
    assert "row groups 3 | 1.2 MB | parquet-cpp" in line


def test_tab_chips():
    assert tab_chips("table", ("table",)) == ""
    assert tab_chips("bytes", ("table", "layout", "bytes")) == " 1 table   2 layout  [3 bytes]"


def test_footer_notice_and_hints():
    notice, hints = render_footer({"notice": "copied error to clipboard", "active_tab": "table"}, 40)
    assert notice == " copied error to clipboard".ljust(40)
    assert hints.startswith(" q exit | arrows/jk scroll")
    assert len(hints) == 40

    notice, hints = render_footer({"active_tab": "bytes", "error": "x", "has_layout": True}, 400)
    assert notice.strip() == ""
    assert "y copy error" in hints
    assert "1 table 2 layout 3 bytes" in hints


def test_info_row():
    assert info_row("bytes", "1,024", 12) == "bytes  1,024"
    assert info_row("compression", "ZSTD", 10) == "compressio"


def test_range_text():
    assert range_text(ByteRange(4, 1000)) == "start 4  bytes 1,000  end 1,004"
