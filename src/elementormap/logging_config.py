# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""structlog + stdlib bridge. CLI: ConsoleRenderer, --json-logs: JSONRenderer.

Leaf module, no elementormap imports. Safe to call early in startup.
"""

from __future__ import annotations

import logging
import sys

import structlog

# cssutils reports every unknown property (backdrop-filter, gap, ...) at WARNING
# through its own "CSSUTILS" logger. Generated pages trip this constantly.
_NOISY_LOGGERS = ("CSSUTILS", "asyncio")


def configure(*, json_output: bool = False, level: str = "INFO", quiet_third_party: bool = True) -> None:
    """Configure structlog with stdlib bridge.

    Args:
        json_output: True for JSON lines (machine consumers), False for human-readable output.
        level: Root logger level (default INFO).
        quiet_third_party: Raise noisy third-party loggers to ERROR.
    """
    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if quiet_third_party:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.ERROR)
