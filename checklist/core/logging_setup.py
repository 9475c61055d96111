# checklist/core/logging_setup.py

import logging
import sys
from pathlib import Path
from typing import Optional


class _ThirdPartyNoiseFilter(logging.Filter):
    """
    Keep our own logs, but only let third-party libraries
    (httpx, hpack, postgrest...) through at WARNING and above.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith("checklist") or record.name in ("main", "root"):
            return True
        if record.name.startswith("uvicorn"):
            return record.levelno >= logging.INFO
        return record.levelno >= logging.WARNING


def setup_logging(level: str = "INFO", log_dir: Optional[str] = None) -> None:
    """
    Configure root logging once, at startup.
    A file handler is added only when log_dir is given.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(getattr(logging, level.upper(), logging.INFO))
    console.setFormatter(fmt)
    console.addFilter(_ThirdPartyNoiseFilter())
    root.addHandler(console)

    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(path / "checklist.log"), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        root.addHandler(fh)

    logging.captureWarnings(True)
