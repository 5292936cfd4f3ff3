from __future__ import annotations

import logging
import os
import re
from logging.config import dictConfig
from typing import Iterable

from .config import Settings, get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _mask_credential(value: str, visible: int = 4) -> str:
    if len(value) <= visible:
        return "*" * len(value)
    return value[:visible] + "*" * (len(value) - visible)


class SecretMaskFilter(logging.Filter):
    """Masks AWS credentials in formatted log messages.

    Access key ids keep their four-character type prefix (``AKIA`` for
    long-term keys, ``ASIA`` for session keys) so a masked line still shows
    which kind of key boto was using. Secret keys and session tokens keep
    the same four characters and nothing else.
    """

    def __init__(self, secrets: Iterable[str]) -> None:
        super().__init__()
        credentials = {value.strip() for value in secrets if value and value.strip()}
        self._masks = {credential: _mask_credential(credential) for credential in credentials}
        # Longest first so a credential containing another is masked whole.
        ordered = sorted(credentials, key=len, reverse=True)
        self._pattern = re.compile("|".join(map(re.escape, ordered))) if ordered else None

    def filter(self, record: logging.LogRecord) -> bool:
        if self._pattern is None:
            return True
        message = record.getMessage()
        masked = self._pattern.sub(lambda match: self._masks[match.group(0)], message)
        if masked != message:
            record.msg = masked
            record.args = ()
        return True


def configure_logging(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"format": LOG_FORMAT}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                }
            },
            "root": {"level": settings.log_level.upper(), "handlers": ["console"]},
        }
    )

    # boto emits a line per request at INFO.
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    credentials = [
        *settings.secrets,
        os.getenv("AWS_SESSION_TOKEN", ""),
    ]
    mask_filter = SecretMaskFilter(credentials)
    for handler in logging.getLogger().handlers:
        handler.addFilter(mask_filter)
