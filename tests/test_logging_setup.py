# tests/test_logging_setup.py

from __future__ import annotations

import logging

from core.logging_setup import _ConsoleNoiseFilter, setup_logging


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


def test_noise_filter_levels() -> None:
    f = _ConsoleNoiseFilter()
    assert f.filter(_record("core.dispatcher", logging.DEBUG))
    assert not f.filter(_record("botocore.credentials", logging.INFO))
    assert f.filter(_record("httpx", logging.WARNING))
    assert not f.filter(_record("streamlit.runtime", logging.WARNING))
    assert f.filter(_record("streamlit.runtime", logging.ERROR))


def test_setup_logging_is_idempotent(tmp_path) -> None:
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        setup_logging(log_dir=tmp_path)
        setup_logging(log_dir=tmp_path)

        ours = [h for h in root.handlers if getattr(h, "_taskbot", False)]
        assert len(ours) == 2

        logging.getLogger("core.test").info("hello file")
        for h in ours:
            h.flush()
        assert "hello file" in (tmp_path / "taskbot.log").read_text(encoding="utf-8")
    finally:
        for h in list(root.handlers):
            if h not in before:
                root.removeHandler(h)
                h.close()
        root.setLevel(level)
        logging.captureWarnings(False)
