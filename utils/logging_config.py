"""
Centralized Logging Configuration

Provides logging with:
- Configurable log levels
- Automatic log rotation
- Secret masking to prevent credential leaks
"""

import logging
import logging.handlers
import re
from pathlib import Path
from typing import Pattern

import config


class SecretMaskingFilter(logging.Filter):
    """
    Logging filter that masks sensitive data in log records.

    Masks:
    - Gateway key secrets and API keys
    - Bearer tokens and passwords
    - Payment signatures (hex HMAC digests)
    - Card-like numbers
    - Email addresses
    """

    PATTERNS: list[tuple[Pattern, str]] = [
        # API keys and gateway secrets
        (re.compile(r'(key[_-]?secret["\']?\s*[:=]\s*["\']?)([A-Za-z0-9_\-]{8,})(["\']?)', re.IGNORECASE), r'\1[REDACTED_KEY_SECRET]\3'),
        (re.compile(r'(api[_-]?key["\']?\s*[:=]\s*["\']?)([A-Za-z0-9_\-]{20,})(["\']?)', re.IGNORECASE), r'\1[REDACTED_API_KEY]\3'),

        # Tokens
        (re.compile(r'(Bearer\s+)([A-Za-z0-9_\-\.]+)', re.IGNORECASE), r'\1[REDACTED_BEARER_TOKEN]'),

        # Passwords
        (re.compile(r'(password["\']?\s*[:=]\s*["\']?)([^\s"\']+)(["\']?)', re.IGNORECASE), r'\1[REDACTED_PASSWORD]\3'),

        # Signatures (HMAC-SHA256 hex digests)
        (re.compile(r'\b([a-fA-F0-9]{64})\b'), '[REDACTED_SIGNATURE]'),

        # Card numbers (13-19 digits, optionally grouped)
        (re.compile(r'\b(?:\d[ -]?){12,18}\d\b'), '[REDACTED_CARD]'),

        # Email addresses (PII)
        (re.compile(r'\b([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})\b'), '[REDACTED_EMAIL]'),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        # Mask secrets in the message
        if record.msg:
            for pattern, replacement in self.PATTERNS:
                record.msg = pattern.sub(replacement, str(record.msg))

        # Mask secrets in arguments
        if record.args:
            masked_args = []
            for arg in record.args:
                if isinstance(arg, str):
                    for pattern, replacement in self.PATTERNS:
                        arg = pattern.sub(replacement, arg)
                masked_args.append(arg)
            record.args = tuple(masked_args)

        return True


def _build_handlers(log_file: Path, log_level: int, mask_secrets: bool) -> list[logging.Handler]:
    formatter = logging.Formatter(
        fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    handlers: list[logging.Handler] = [
        logging.handlers.TimedRotatingFileHandler(
            filename=log_file,
            when="midnight",
            backupCount=config.LOG_RETENTION_DAYS,
            encoding="utf-8"
        ),
        logging.StreamHandler(),
    ]
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(log_level)
        if mask_secrets:
            handler.addFilter(SecretMaskingFilter())
    return handlers


def setup_logging():
    """
    Initialize logging for the API process.

    Call once at startup (run.py), before the app is created. Records go to
    the console and to <config.LOG_DIR>/storefront.log, rotated at midnight
    and kept for config.LOG_RETENTION_DAYS days. Uvicorn's own loggers are
    routed through the same handlers so access lines are masked too.
    """
    log_dir = Path(config.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)
    for handler in _build_handlers(log_dir / "storefront.log", log_level, config.LOG_MASK_SECRETS):
        root_logger.addHandler(handler)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    logging.info(f"📝 Logging initialized: level={config.LOG_LEVEL}, "
                 f"retention={config.LOG_RETENTION_DAYS}d, masking={'on' if config.LOG_MASK_SECRETS else 'off'}")
