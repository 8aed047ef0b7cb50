import sys
import os
import curses

import config_paths
import logging_setup
from data_source import DataSourceError, ReadOptions, open_source, shutdown_backend

# Make ESC snappy
os.environ.setdefault("ESCDELAY", "25")
from orchestrator import Orchestrator
from app_state import AppState
from row_window_cache import RowWindowCache

try:
    from _version import __version__
except Exception:
    __version__ = "0.0.0"


USAGE = (
    "pqview - terminal viewer for Parquet datasets\n\n"
    "Usage:\n"
    "  pqview <file|url> [--columns a,b] [--limit N]\n"
    "  pqview -v\n"
    "  pqview -h\n\n"
    "Sources:\n"
    "  local .parquet/.csv files, http(s):// URLs,\n"
    "  hf://datasets/<user>/<repo>[@branch]/<path>\n"
)


class UsageError(Exception):
    pass


def parse_args(args: list[str]) -> dict:
    """``{"path", "columns", "limit"}`` from argv; raises UsageError."""
    path = None
    columns: list[str] = []
    limit = None
    idx = 0
    while idx < len(args):
        arg = args[idx]
        value = None
        if arg.startswith("--columns=") or arg.startswith("--limit="):
            arg, value = arg.split("=", 1)
        if arg in ("--columns", "--limit"):
            if value is None:
                idx += 1
                if idx >= len(args):
                    raise UsageError(f"{arg} needs a value")
                value = args[idx]
            if arg == "--columns":
                columns = [name.strip() for name in value.split(",") if name.strip()]
                if not columns:
                    raise UsageError("--columns needs at least one column name")
            else:
                try:
                    limit = int(value)
                except ValueError:
                    raise UsageError(f"--limit must be an integer, got {value!r}") from None
                if limit <= 0:
                    raise UsageError("--limit must be positive")
        elif arg.startswith("-") and arg != "-":
            raise UsageError(f"unknown option {arg}")
        elif path is None:
            path = arg
        else:
            raise UsageError(f"unexpected argument {arg}")
        idx += 1

    if path is None:
        raise UsageError("missing dataset path")
    return {"path": path, "columns": columns, "limit": limit}


def main():
    args = sys.argv[1:]

    if "-v" in args or "-V" in args or "--version" in args:
        print(__version__)
        return

    if "-h" in args or "--help" in args:
        print(USAGE)
        return

    try:
        opts = parse_args(args)
    except UsageError as exc:
        print(f"pqview: {exc}\n", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        sys.exit(1)

    config = config_paths.load_config()
    logging_setup.configure(config["LOG_LEVEL"])
    logger = logging_setup.get_logger("main")

    read_options = ReadOptions(
        columns=tuple(opts["columns"]),
        max_rows=opts["limit"],
        batch_size=config["BATCH_SIZE"],
    )

    from loading_screen import LoadingScreen, LoadState

    load_state = LoadState()

    def curses_main(stdscr):
        loader = LoadingScreen(stdscr, lambda: open_source(opts["path"], read_options), load_state, opts["path"])
        loader.run()
        if load_state.aborted:
            return
        source = load_state.result
        cache = RowWindowCache(
            source,
            columns=read_options.columns,
            max_rows=read_options.max_rows,
            min_rows=config["WINDOW_MIN_ROWS"],
            page_multiple=config["WINDOW_PAGE_MULTIPLE"],
        )
        state = AppState(opts["path"], source, cache)
        Orchestrator(stdscr, state, config).run()

    try:
        curses.wrapper(curses_main)
    finally:
        shutdown_backend()

    if load_state.error is not None:
        logger.error("open failed: %s", load_state.error)
        if isinstance(load_state.error, DataSourceError):
            print(f"pqview: {load_state.error}", file=sys.stderr)
        else:
            print(f"pqview: cannot open {opts['path']}: {load_state.error}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
