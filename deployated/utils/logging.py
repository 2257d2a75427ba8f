"""Structured logging for the CLI.

Log records go to stderr; stdout belongs to the status lines the CLI prints.
Configured credentials are redacted from every event before rendering.
"""

import logging
import sys
from typing import Any, Callable, Iterable

import structlog

from deployated.config import Settings, get_settings

Processor = Callable[[Any, str, dict[str, Any]], dict[str, Any]]


def mask_secret(text: str, *secrets: str | None) -> str:
    """Replace every non-empty secret in text with ***."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, "***")
    return text


def _secrets_of(settings: Settings) -> tuple[str, ...]:
    values = (
        settings.github_token,
        settings.anthropic_api_key,
        settings.vercel_token,
        settings.render_api_key,
        settings.docker_password,
    )
    return tuple(value for value in values if value)


def redact_secrets(secrets: Iterable[str]) -> Processor:
    """Build a processor that masks secrets in string event values."""
    known = tuple(secrets)

    def processor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        if not known:
            return event_dict
        return {
            key: mask_secret(value, *known) if isinstance(value, str) else value
            for key, value in event_dict.items()
        }

    return processor


def configure_logging(settings: Settings | None = None) -> None:
    """Route structlog through stdlib logging on stderr."""
    settings = settings or get_settings()

    logging.basicConfig(
        format="%(message)s",
        level=settings.log_level,
        stream=sys.stderr,
        force=True,
    )

    renderer: Processor
    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            redact_secrets(_secrets_of(settings)),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
