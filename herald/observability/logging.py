"""Structured logging configuration using structlog.

JSON output for production and console output for development. Log events
pass through a redactor so credential material and end-user phone numbers
never reach the log sink.
"""

import re
import sys
from collections.abc import MutableMapping
from typing import Any, cast

import structlog
from structlog.types import EventDict, WrappedLogger

# Keys whose values are never logged
SENSITIVE_KEYS: frozenset[str] = frozenset({
    "creds",
    "credentials",
    "private",
    "private_key",
    "noise_key",
    "signed_identity_key",
    "signed_pre_key",
    "adv_secret_key",
    "key_data",
    "password",
    "secret",
    "token",
    "api_key",
    "authorization",
    "mongo_url",
    "connection_uri",
})

# Messaging addresses look like 5215512345678@s.whatsapp.net
JID_PATTERN = re.compile(r"\b(\d{5,})(?=(:\d+)?@)")
PHONE_PATTERN = re.compile(r"\+?\d[\d\s\-\(\)]{9,}\d")
URI_CREDENTIALS_PATTERN = re.compile(r"(mongodb(?:\+srv)?://)[^@/\s]+@")

LEVELS = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
    "CRITICAL": 50,
}


def _mask_digits(match: re.Match[str]) -> str:
    digits = match.group(1)
    return f"{'*' * (len(digits) - 4)}{digits[-4:]}"


class PIIRedactor:
    """Processor that redacts secrets and end-user identifiers.

    Known sensitive keys are replaced wholesale; string values are
    scanned for phone numbers, messaging addresses and database URIs
    with embedded credentials. Raw bytes are replaced by their length.
    """

    def __call__(
        self,
        _logger: WrappedLogger,
        _method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        return cast(EventDict, self._redact_dict(event_dict))

    def _redact_dict(self, data: MutableMapping[str, Any]) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key, value in data.items():
            if key.lower() in SENSITIVE_KEYS:
                result[key] = "[REDACTED]"
            else:
                result[key] = self._redact_value(value)
        return result

    def _redact_value(self, value: Any) -> Any:
        if isinstance(value, dict):
            return self._redact_dict(value)
        if isinstance(value, str):
            return self._redact_string(value)
        if isinstance(value, (list, tuple)):
            return [self._redact_value(item) for item in value]
        if isinstance(value, (bytes, bytearray, memoryview)):
            return f"<{len(value)} bytes>"
        return value

    def _redact_string(self, value: str) -> str:
        value = URI_CREDENTIALS_PATTERN.sub(r"\1[REDACTED]@", value)
        value = JID_PATTERN.sub(_mask_digits, value)
        return PHONE_PATTERN.sub("[PHONE]", value)


def setup_logging(
    level: str = "INFO",
    format: str = "json",
    redact_pii: bool = True,
) -> None:
    """Configure structured logging.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Output format - "json" for production, "console" for development
        redact_pii: Whether to redact secrets and phone numbers from logs
    """
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]

    if redact_pii:
        processors.append(PIIRedactor())

    if format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            LEVELS.get(level.upper(), 20)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance bound to the given name.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        A bound structlog logger
    """
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
