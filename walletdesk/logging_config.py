"""
Logging for the custody gateway.

structlog renders every record, including those from stdlib loggers
(``logging.getLogger(__name__)``), so provider and route logs carry the
request id bound by ``RequestLoggingMiddleware``. Request stamps and API key
material never reach the output: ``redact_custody_secrets`` masks them
before rendering.

``log_format`` picks the renderer: ``json`` for log shippers, ``console``
for a terminal, ``auto`` (default) uses the console renderer only at DEBUG.
"""

import logging
import sys
from typing import Any, MutableMapping, Optional

import structlog

from .config import settings

REDACTED = "***"

# Event keys whose values are credentials or request signatures
SECRET_KEYS = frozenset({
    "api_private_key",
    "apiPrivateKey",
    "turnkey_api_private_key",
    "stamp",
    "x_stamp",
    "X-Stamp",
    "stampHeaderValue",
})

# Loggers that would otherwise repeat every custody call at INFO
QUIET_LOGGERS = ("uvicorn.access", "httpcore", "httpx")


def redact_custody_secrets(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    for key in SECRET_KEYS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = REDACTED
    headers = event_dict.get("headers")
    if isinstance(headers, dict):
        event_dict["headers"] = {
            name: REDACTED if name in SECRET_KEYS or name.lower() == "x-stamp" else value
            for name, value in headers.items()
        }
    return event_dict


def _renderer(level: int, log_format: str) -> structlog.types.Processor:
    use_console = log_format == "console" or (log_format == "auto" and level == logging.DEBUG)
    if use_console:
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Configure structlog and route stdlib logging through it.

    Args:
        log_level: Override log level (default: settings.log_level)
        log_format: ``json``, ``console`` or ``auto`` (default: settings.log_format)
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    renderer = _renderer(level, (log_format or settings.log_format).lower())

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_custody_secrets,
    ]
    if isinstance(renderer, structlog.processors.JSONRenderer):
        pre_chain.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
