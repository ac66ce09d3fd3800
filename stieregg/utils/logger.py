"""Structured logging configuration using structlog.

Every event carries the service name. Code handling one apartment binds
its slug with `log_context`, so feed, cache and parser events logged
underneath it can be traced back to the apartment.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Literal
from urllib.parse import urlsplit

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

SERVICE_NAME = "stieregg"


def _add_service_name(service_name: str) -> Processor:
    def processor(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def setup_logging(
    level: str = "INFO",
    format_type: Literal["json", "console"] = "console",
    service_name: str = SERVICE_NAME,
) -> None:
    """
    Configure structured logging for the service.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format_type: 'json' for deployments, 'console' for local runs
        service_name: Value of the `service` key on every event
    """
    log_level = getattr(logging, level.upper())
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        _add_service_name(service_name),
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if format_type == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
        shared_processors.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.rich_traceback,
        )

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # uvicorn and httpx log through the standard library
    logging.basicConfig(format="%(message)s", level=log_level, stream=sys.stdout)
    logging.getLogger("httpx").setLevel(max(log_level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger, usually named after the module."""
    return structlog.get_logger(name)


@contextmanager
def log_context(**values) -> Iterator[None]:
    """
    Bind values to every event logged inside the block.

    Usage:
        with log_context(slug="eiger-view"):
            await cache.get_booked_ranges(urls)
    """
    with structlog.contextvars.bound_contextvars(**values):
        yield


def mask_sensitive(value: str, visible_chars: int = 4) -> str:
    """Mask all but the last `visible_chars` characters ("****word")."""
    if len(value) <= visible_chars:
        return "*" * len(value)
    return "*" * (len(value) - visible_chars) + value[-visible_chars:]


def mask_url(url: str) -> str:
    """
    Mask the path and query of a calendar URL.

    Booking platforms embed export tokens in feed URLs, so only the host
    is logged in clear text.
    """
    parts = urlsplit(url)
    if not parts.netloc:
        return mask_sensitive(url)
    tail = parts.path + (f"?{parts.query}" if parts.query else "")
    return f"{parts.scheme}://{parts.netloc}/{mask_sensitive(tail.lstrip('/'))}"
