import logging
import sys

from tasknest.config import settings


def setup_logging(level: str | None = None, error_log_file: str | None = None) -> None:
    """
    Configure root logging once at startup:
    - console handler at LOG_LEVEL
    - file handler that keeps ERROR and above (unhandled request errors land here)

    Pre-existing root handlers are removed so a second call does not duplicate output.
    """
    level = level or settings.LOG_LEVEL
    error_log_file = error_log_file or settings.ERROR_LOG_FILE

    root = logging.getLogger()
    root.setLevel(level.upper())

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s [%(process)d] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setFormatter(fmt)
    root.addHandler(ch)

    fh = logging.FileHandler(error_log_file, encoding="utf-8")
    fh.setLevel(logging.ERROR)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    # SQL echo and scheduler internals are noisy at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
