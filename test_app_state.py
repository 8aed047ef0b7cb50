import pytest

from app_state import AppState, TabStateMachine, is_optimized
from data_source import ByteRange, DatasetMetadata, RowGroupLayout, StorageLayout


class _Cache:
    def __init__(self, metadata=None):
        self.metadata = metadata


def _layout():
    return StorageLayout(
        magic=ByteRange(0, 4),
        row_groups=(RowGroupLayout(index=0, byte_size=10, chunks=()),),
    )


def test_table_only_without_layout():
    tabs = TabStateMachine()
    assert tabs.available_tabs == ("table",)
    assert tabs.handle_key("2") is False
    assert tabs.active == "table"
    assert tabs.handle_key("tab") is True
    assert tabs.active == "table"


def test_number_keys_select_tabs():
    tabs = TabStateMachine(has_layout=True)
    assert tabs.handle_key("3") is True
    assert tabs.active == "bytes"
    assert tabs.handle_key("2") is True
    assert tabs.active == "layout"
    assert tabs.handle_key("1") is True
    assert tabs.active == "table"
    assert tabs.handle_key("x") is False


@pytest.mark.parametrize(
    "keys, expected",
    [
        (["tab"], "layout"),
        (["]", "]"], "bytes"),
        (["tab", "tab", "tab"], "table"),
        (["shift-tab"], "bytes"),
        (["["], "bytes"),
        (["[", "["], "layout"),
    ],
)
def test_cycling_wraps(keys, expected):
    tabs = TabStateMachine(has_layout=True)
    for key in keys:
        tabs.handle_key(key)
    assert tabs.active == expected


def test_losing_layout_returns_to_table():
    tabs = TabStateMachine(has_layout=True)
    tabs.select("bytes")
    tabs.set_has_layout(False)
    assert tabs.active == "table"


def test_optimized_flag():
    assert is_optimized(None) is False
    assert is_optimized(DatasetMetadata()) is False
    assert is_optimized(DatasetMetadata(key_value_metadata={"content_defined_chunking": "true"})) is True
    assert is_optimized(DatasetMetadata(key_value_metadata={"content_defined_chunking": "{}"})) is True
    assert is_optimized(DatasetMetadata(key_value_metadata={"content_defined_chunking": "False"})) is False
    assert is_optimized(DatasetMetadata(key_value_metadata={"content_defined_chunking": "0"})) is False


def test_sync_tabs_follows_metadata_layout():
    cache = _Cache()
    state = AppState("data/trips.parquet", None, cache)
    state.sync_tabs()
    assert state.tabs.available_tabs == ("table",)
    assert state.layout is None

    cache.metadata = DatasetMetadata(created_by="parquet-cpp-arrow", layout=_layout())
    state.sync_tabs()
    assert state.tabs.available_tabs == ("table", "layout", "bytes")
    assert state.created_by == "parquet-cpp-arrow"
    assert state.display_name == "trips.parquet"


def test_url_titles_are_kept_whole():
    state = AppState("hf://datasets/u/r/a.parquet", None, _Cache())
    assert state.display_name == "hf://datasets/u/r/a.parquet"


def test_notice_expires():
    state = AppState("x.parquet", None, _Cache())
    assert state.current_notice() is None
    state.set_notice("copied error to clipboard", seconds=2.0)
    now = state.status_until - 2.0
    assert state.current_notice(now + 1.0) == "copied error to clipboard"
    assert state.current_notice(now + 2.5) is None
