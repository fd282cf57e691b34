from __future__ import annotations

"""
Structured logging setup for the token ledger.

This module configures **structlog** + the stdlib ``logging`` package so that:
- Ledger events are emitted as structured key/value records, either as JSON
  or through the pretty console renderer.
- Context variables bound with `bind_context` are merged into each event.
- bytes values (account ids) are rendered as 0x-hex.
- Level & format come from `token_ledger.config` unless passed explicitly.

Quick start
-----------
    from token_ledger.logging import setup_logging, get_logger

    setup_logging()            # call once on process start
    log = get_logger(__name__)
    log.info("token_deployed", supply=100)
"""

import logging
import sys
from typing import Any, Dict, Optional, Union

import structlog
from structlog.contextvars import merge_contextvars

from .config import load_config


def _hexify_bytes(_: Any, __: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Processor that renders bytes values as 0x-hex strings."""
    for k, v in list(event_dict.items()):
        if isinstance(v, (bytes, bytearray)):
            event_dict[k] = "0x" + bytes(v).hex()
    return event_dict


def _shared_processors() -> list:
    return [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        merge_contextvars,
        _hexify_bytes,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def setup_logging(
    *,
    level: Optional[Union[str, int]] = None,
    log_format: Optional[str] = None,
) -> None:
    """
    Configure structlog + stdlib logging. Safe to call more than once; the
    last call wins.

    Parameters
    ----------
    level: str|int
        Log level (e.g., "INFO"). Defaults to the configured level.
    log_format: str
        "json" or "console". Defaults to the configured format.
    """
    cfg = load_config()
    level = level or cfg.log_level
    log_format = (log_format or cfg.log_format).lower()

    if log_format == "json":
        renderer: Any = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=_shared_processors(),
        )
    )

    root = logging.getLogger("token_ledger")
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
    root.setLevel(level)
    root.propagate = False


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Return a structlog logger routed through the stdlib logger `name`.

    The processor chain is attached per logger rather than through
    `structlog.configure`, so importing the library never changes the host
    application's global structlog setup. Until `setup_logging` installs a
    handler, records below WARNING are dropped by stdlib defaults.
    """
    return structlog.wrap_logger(
        logging.getLogger(name or "token_ledger"),
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
    )


def bind_context(**kv: Any) -> None:
    """Bind key/value pairs (e.g. caller, command) into the contextvars store."""
    structlog.contextvars.bind_contextvars(**kv)


def clear_context(*keys: str) -> None:
    """Clear specific keys from contextvars, or all of them if none given."""
    if keys:
        structlog.contextvars.unbind_contextvars(*keys)
    else:
        structlog.contextvars.clear_contextvars()


__all__ = ["setup_logging", "get_logger", "bind_context", "clear_context"]
