"""Logging setup shared by the CLI and the API."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""
    root = logging.getLogger()
    root.setLevel(level)
    if not any(getattr(h, "_cefr_grader", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._cefr_grader = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    # The SDK logs every HTTP request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
