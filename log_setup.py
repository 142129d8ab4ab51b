"""Centralized logging setup for the simulation runner and tests.

Call `ensure_logging()` before importing modules that may configure logging themselves
(matplotlib in particular). `configure_run_logging()` adds the per-run log file.
"""
import datetime
import logging
import os
import sys

DEFAULT_DATEFMT = "%H:%M:%S"
# Fixed-width level column so message bodies align.
# Example: "17:22:40 [INFO   ] network.py:65 Scenario created."
RUN_FORMAT = "%(asctime)s [%(levelname)-7s] %(filename)s:%(lineno)d %(message)s"

NOISY_LOGGERS = ("matplotlib", "matplotlib.font_manager", "PIL")


def ensure_logging(level: int = logging.INFO, *, force: bool = False) -> None:
    """Ensure the root logger has a stdout StreamHandler.

    - No handlers yet, or `force`: configure via basicConfig.
    - Otherwise only the root level is changed.

    Safe to call multiple times.
    """
    root = logging.getLogger()
    if force or not root.handlers:
        logging.basicConfig(level=level, format=RUN_FORMAT, datefmt=DEFAULT_DATEFMT, stream=sys.stdout, force=force)
    else:
        root.setLevel(level)


def _sanitize_filename(name: str) -> str:
    return "".join(c if c.isalnum() or c in "._-" else "_" for c in str(name))


def configure_run_logging(run_tag: str, *, log_dir: str = os.path.join("results", "logs"),
                          console_level: int = logging.INFO, file_level: int = logging.DEBUG,
                          force: bool = False) -> str:
    """Configure logging for one run.

    - Console StreamHandler at `console_level` (INFO by default).
    - Per-run file handler at `file_level`, named `<run_tag>_<timestamp>.log` under `log_dir`.
    - Returns the absolute path of the log file.

    With `force` the existing root handlers are replaced.
    """
    ensure_logging(level=console_level, force=force)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    os.makedirs(log_dir, exist_ok=True)
    safe_tag = _sanitize_filename((run_tag or "run").lower())
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    logfile = os.path.join(log_dir, f"{safe_tag}_{timestamp}.log")

    root = logging.getLogger()
    if not force:
        for h in root.handlers:
            if isinstance(h, logging.FileHandler) and os.path.basename(h.baseFilename).startswith(safe_tag + "_"):
                return os.path.abspath(h.baseFilename)

    formatter = logging.Formatter(RUN_FORMAT, datefmt=DEFAULT_DATEFMT)
    for h in root.handlers:
        if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler):
            h.setLevel(console_level)
            h.setFormatter(formatter)

    fh = logging.FileHandler(logfile, mode='a', encoding='utf-8')
    fh.setLevel(file_level)
    fh.setFormatter(formatter)
    root.addHandler(fh)

    # root level is the lower of console/file so the file captures debug
    root.setLevel(min(console_level, file_level))
    return os.path.abspath(logfile)
