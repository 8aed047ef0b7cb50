import subprocess
import sys

from logging_setup import get_logger

logger = get_logger("clipboard")


def clipboard_candidates(command=None, platform: str | None = None) -> list[list[str]]:
    if command:
        return [list(command)]
    platform = platform or sys.platform
    if platform == "darwin":
        return [["pbcopy"]]
    if platform.startswith("win"):
        return [["clip"]]
    return [["wl-copy"], ["xclip", "-selection", "clipboard"]]


def copy_to_clipboard(text: str, command=None, platform: str | None = None) -> bool:
    """Pipe ``text`` into the first clipboard tool that accepts it."""
    for argv in clipboard_candidates(command, platform):
        try:
            subprocess.run(argv, input=text, text=True, check=True, capture_output=True)
        except (OSError, subprocess.CalledProcessError) as exc:
            logger.info("clipboard command %s failed: %s", argv[0], exc)
            continue
        return True
    logger.warning("no clipboard command available")
    return False
