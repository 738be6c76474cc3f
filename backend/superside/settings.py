from __future__ import annotations

import os
from dataclasses import dataclass


PACKAGE_DIR = os.path.dirname(__file__)


def _env(key: str, default: str) -> str:
    v = os.getenv(key)
    return v if v is not None and v != "" else default


def _env_first(keys: tuple[str, ...], default: str) -> str:
    for key in keys:
        v = os.getenv(key)
        if v is not None and v != "":
            return v
    return default


def _env_int(key: str | tuple[str, ...], default: int) -> int:
    keys = (key,) if isinstance(key, str) else key
    for k in keys:
        v = os.getenv(k)
        if v is None or v == "":
            continue
        try:
            return int(v)
        except ValueError:
            continue
    return default


@dataclass(frozen=True)
class Settings:
    # Server
    host: str = _env_first(("SUPERSIDE_HOST", "APP_HOST"), "0.0.0.0")
    port: int = _env_int(("SUPERSIDE_PORT", "APP_PORT"), 7778)

    # Relay sizing
    history_size: int = _env_int("SUPERSIDE_HISTORY_SIZE", 20)
    inbound_queue_size: int = _env_int("SUPERSIDE_INBOUND_QUEUE_SIZE", 25)
    mailbox_size: int = _env_int("SUPERSIDE_MAILBOX_SIZE", 100)

    # Web UI
    static_dir: str = _env("SUPERSIDE_STATIC_DIR", os.path.join(PACKAGE_DIR, "static"))

    log_level: str = _env("SUPERSIDE_LOG_LEVEL", "INFO")


settings = Settings()
