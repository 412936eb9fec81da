import logging
import os
import re
from logging.config import dictConfig
from typing import Dict

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# key=value or "key": "value" pairs whose value must never reach a log line
_SECRET_PAIR = re.compile(
    r"""(?P<key>["']?(?:password|secret|teacher_?code|api_?key|token)["']?\s*[:=]\s*)(?P<quote>["']?)[^\s,"'}]+""",
    re.IGNORECASE,
)


class SecretMaskingFilter(logging.Filter):
    """Masks credential values that slip into formatted log messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = _SECRET_PAIR.sub(r"\g<key>\g<quote>***", message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def parse_level_overrides(raw: str) -> Dict[str, str]:
    """Parse ``LEARNIO_LOG_LEVELS`` (``logger=LEVEL`` pairs, comma separated)."""
    overrides: Dict[str, str] = {}
    for chunk in raw.split(","):
        name, sep, level = chunk.partition("=")
        if not sep or not name.strip() or not level.strip():
            continue
        overrides[name.strip()] = level.strip().upper()
    return overrides


def configure_logging() -> None:
    """Configure client logging from LEARNIO_* environment flags."""
    level = os.getenv("LEARNIO_LOG_LEVEL", "INFO").upper()

    # httpx logs every request URL at INFO; keep it quiet unless asked
    loggers: Dict[str, Dict[str, str]] = {
        "httpx": {"level": "WARNING"},
        "learnio.telemetry": {"level": level},
    }
    if os.getenv("LEARNIO_DEBUG_HTTP", "0") == "1":
        loggers["httpx"] = {"level": "DEBUG"}
        loggers["httpcore"] = {"level": "DEBUG"}
    for name, override in parse_level_overrides(os.getenv("LEARNIO_LOG_LEVELS", "")).items():
        loggers[name] = {"level": override}

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "mask_secrets": {"()": SecretMaskingFilter},
            },
            "formatters": {
                "default": {
                    "format": DEFAULT_LOG_FORMAT,
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "filters": ["mask_secrets"],
                },
            },
            "root": {
                "handlers": ["default"],
                "level": level,
            },
            "loggers": loggers,
        }
    )
