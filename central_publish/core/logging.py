"""Structured logging via structlog.

publish_from_settings() calls configure_structlog() before a run. Library
modules keep using `logging.getLogger(__name__)`; the stdlib bridge routes
those lines to stdout alongside structlog output.

Renderer selection:
  debug=True  — `ConsoleRenderer` with colours for local runs.
  debug=False — `JSONRenderer` for CI logs.

ContextVar injection:
  Once an upload returns, the orchestrator binds the deployment id so
  every structlog line for that run carries it.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar, Token

import structlog

_deployment_id_var: ContextVar[str] = ContextVar("deployment_id", default="")


def get_deployment_id() -> str:
    """Return the current deployment ID, or empty string if not set."""
    return _deployment_id_var.get()


def bind_deployment_id(deployment_id: str) -> Token:
    """Attach a deployment ID to the current context. Returns a reset token."""
    return _deployment_id_var.set(deployment_id)


def reset_deployment_id(token: Token) -> None:
    _deployment_id_var.reset(token)


def _inject_context_vars(
    logger: logging.Logger,
    method: str,
    event_dict: dict,
) -> dict:
    """Structlog processor: inject deployment_id from its ContextVar."""
    deployment_id = get_deployment_id()
    if deployment_id:
        event_dict["deployment_id"] = deployment_id
    return event_dict


def configure_structlog(debug: bool = False) -> None:
    """Set up structlog and the stdlib bridge for one publish run.

    Safe to call again with a different `debug` flag; loggers are not
    cached, so the new level and renderer apply to module-level loggers
    created earlier.
    """
    level = logging.DEBUG if debug else logging.INFO
    renderer = (
        structlog.dev.ConsoleRenderer()
        if debug
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _inject_context_vars,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
        level=level,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(level if debug else logging.WARNING)
