from screen_layout import Rect, compute_geometry, sidebar_width


def test_geometry_without_panel():
    geometry = compute_geometry(24, 80, panel_open=False)
    assert geometry.header == Rect(0, 0, 1, 80)
    assert geometry.table == Rect(1, 0, 21, 80)
    assert geometry.panel is None
    assert geometry.footer == Rect(22, 0, 2, 80)
    assert geometry.page_size == 18


def test_geometry_with_panel():
    geometry = compute_geometry(24, 100, panel_open=True)
    assert geometry.panel == Rect(1, 65, 21, 35)
    assert geometry.table.w == 64


def test_sidebar_width_has_a_minimum():
    assert sidebar_width(40) == 24
    assert sidebar_width(200) == 70
    assert sidebar_width(10) == 10


def test_tiny_terminal_keeps_one_row():
    geometry = compute_geometry(2, 10, panel_open=True)
    assert geometry.page_size == 1
    assert geometry.table.h == 1
    assert geometry.table.w == 0
