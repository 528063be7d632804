"""Structured logging setup for cch-core."""
from __future__ import annotations

import logging
import sys
from typing import Any, Dict, List

import structlog

_DEFAULT_LEVEL = "info"
_LEVELS: Dict[str, int] = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def configure_logging(level: str | None = None, *, json_lines: bool = True) -> None:
    """Route structlog events through stdlib logging to stderr.

    With ``json_lines`` each event is one JSON object carrying ``ts``, ``level``,
    ``msg`` and ``component`` plus any context bound by the caller. Otherwise a
    plain console rendering is used. Stdout is left to command output.
    """

    numeric_level = _LEVELS.get((level or _DEFAULT_LEVEL).lower(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        handlers=[logging.StreamHandler(sys.stderr)],
        format="%(message)s",
        force=True,
    )

    renderer: Any
    if json_lines:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[*_shared_processors(json_lines), renderer],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=False,
    )


def _shared_processors(json_lines: bool) -> List[Any]:
    processors: List[Any] = [
        structlog.processors.TimeStamper(fmt="iso", key="ts"),
        structlog.stdlib.add_log_level,
        _component_processor,
    ]
    if json_lines:
        processors.append(_rename_event_to_msg)
    processors.extend([structlog.processors.StackInfoRenderer(), structlog.processors.format_exc_info])
    return processors


def _component_processor(
    logger: structlog.BoundLoggerBase, _name: str, event_dict: dict[str, object]
) -> dict[str, object]:
    """Ensure every log record carries a ``component`` field."""

    if event_dict.get("component") is None:
        event_dict["component"] = getattr(logger, "name", None) or "cch_core"
    return event_dict


def _rename_event_to_msg(
    _logger: structlog.BoundLoggerBase, _name: str, event_dict: dict[str, object]
) -> dict[str, object]:
    if "msg" not in event_dict:
        event_dict["msg"] = event_dict.pop("event", "")
    return event_dict


__all__ = ["configure_logging"]
