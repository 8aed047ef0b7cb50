import json
import os

HOME = os.path.expanduser("~")
XDG_CONFIG_HOME = os.environ.get("XDG_CONFIG_HOME")
CONFIG_HOME = XDG_CONFIG_HOME if XDG_CONFIG_HOME else os.path.join(HOME, ".config")
CONFIG_DIR = os.path.join(CONFIG_HOME, "pqview")
CONFIG_JSON = os.path.join(CONFIG_DIR, "config.json")

XDG_DATA_HOME = os.environ.get("XDG_DATA_HOME")
DATA_HOME = XDG_DATA_HOME if XDG_DATA_HOME else os.path.join(HOME, ".local", "share")
LOG_DIR = os.path.join(DATA_HOME, "pqview", "logs")

# default settings
CLIPBOARD_INTERFACE_COMMAND_DEFAULT = None
WINDOW_MIN_ROWS_DEFAULT = 50
WINDOW_PAGE_MULTIPLE_DEFAULT = 3
BATCH_SIZE_DEFAULT = 1024
LOG_LEVEL_DEFAULT = "WARNING"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def ensure_config_dirs():
    os.makedirs(CONFIG_DIR, exist_ok=True)
    os.makedirs(LOG_DIR, exist_ok=True)


def _positive_int(value):
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value if value > 0 else None


def load_config():
    cfg = {
        "CLIPBOARD_INTERFACE_COMMAND": CLIPBOARD_INTERFACE_COMMAND_DEFAULT,
        "WINDOW_MIN_ROWS": WINDOW_MIN_ROWS_DEFAULT,
        "WINDOW_PAGE_MULTIPLE": WINDOW_PAGE_MULTIPLE_DEFAULT,
        "BATCH_SIZE": BATCH_SIZE_DEFAULT,
        "LOG_LEVEL": LOG_LEVEL_DEFAULT,
    }

    if os.path.exists(CONFIG_JSON):
        try:
            with open(CONFIG_JSON, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            data = None

        if isinstance(data, dict):
            clip_cmd = data.get("clipboard_interface_command")
            if isinstance(clip_cmd, list) and clip_cmd and all(
                isinstance(item, str) for item in clip_cmd
            ):
                cfg["CLIPBOARD_INTERFACE_COMMAND"] = clip_cmd

            window = data.get("window")
            if isinstance(window, dict):
                min_rows = _positive_int(window.get("min_rows"))
                if min_rows is not None:
                    cfg["WINDOW_MIN_ROWS"] = min_rows
                multiple = _positive_int(window.get("page_multiple"))
                if multiple is not None:
                    cfg["WINDOW_PAGE_MULTIPLE"] = multiple

            batch_size = _positive_int(data.get("batch_size"))
            if batch_size is not None:
                cfg["BATCH_SIZE"] = batch_size

            level = data.get("log_level")
            if isinstance(level, str) and level.strip().upper() in _LOG_LEVELS:
                cfg["LOG_LEVEL"] = level.strip().upper()

    env_level = os.environ.get("PQVIEW_LOG_LEVEL")
    if env_level and env_level.strip().upper() in _LOG_LEVELS:
        cfg["LOG_LEVEL"] = env_level.strip().upper()

    return cfg
