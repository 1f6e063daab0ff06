"""Root logger setup shared by the CLI and the web form."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_INITIALIZED: bool = False


def init_logging(level: str = "INFO", console: Console | None = None) -> None:
    """Attach a RichHandler to the root logger once per process."""
    global _INITIALIZED
    if _INITIALIZED:
        return

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if not root_logger.handlers:
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setLevel(log_level)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        root_logger.addHandler(handler)

    # SDK transport chatter drowns out the batch progress at INFO
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(max(log_level, logging.WARNING))

    _INITIALIZED = True
