"""
Shared logging configuration for the Venue service.

Log lines are structlog events rendered as JSON (or as console output for
local runs), tagged with the service name and, inside a request, the request
ID and caller ID.
"""

import sys
import uuid
import logging
from contextvars import ContextVar
from typing import Any, Dict, Optional

import structlog

# Correlation for the request being served
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
caller_id_var: ContextVar[Optional[str]] = ContextVar("caller_id", default=None)


def configure_logging(service_name: str, log_level: str = "info", json_logs: bool = True) -> None:
    """Configure structured logging for the service."""

    def add_service_name(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            add_service_name,
            add_correlation_context,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )


def add_correlation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Attach the current request and caller IDs, when set."""
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id

    caller_id = caller_id_var.get()
    if caller_id:
        event_dict["caller_id"] = caller_id

    return event_dict


def set_request_id(request_id: Optional[str] = None) -> str:
    """Bind the request ID, generating one when the client sent none."""
    request_id = request_id or str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def set_caller_context(caller_id: Optional[str] = None):
    if caller_id:
        caller_id_var.set(caller_id)


def clear_context():
    request_id_var.set(None)
    caller_id_var.set(None)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
