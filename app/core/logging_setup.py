from __future__ import annotations

import logging
import sys
from pathlib import Path

_OWN_HANDLER_ATTR = "_taskbot"
_NOISY_PREFIXES = ("botocore", "boto3", "urllib3", "s3transfer", "httpx", "httpcore", "openai")


class _ConsoleNoiseFilter(logging.Filter):
    """core.* always passes; SDK chatter from WARNING, the rest from ERROR."""

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name.startswith("core.") or name == "__main__":
            return True

        floor = logging.WARNING if name.startswith(_NOISY_PREFIXES) else logging.ERROR
        return record.levelno >= floor


def setup_logging(
    *,
    log_dir: str | Path = ".local/taskbot",
    console_level: int | str = logging.INFO,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Console (filtered) plus taskbot.log in `log_dir`. Safe to call on every
    Streamlit rerun: handlers from a previous call are replaced.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "taskbot.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    for h in [h for h in root.handlers if getattr(h, _OWN_HANDLER_ATTR, False)]:
        root.removeHandler(h)
        h.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    setattr(ch, _OWN_HANDLER_ATTR, True)
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    setattr(fh, _OWN_HANDLER_ATTR, True)
    root.addHandler(fh)

    logging.captureWarnings(True)
