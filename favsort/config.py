"""
favsort/config.py

Run configuration. Every tunable of a run lives on one immutable
:class:`Settings` value that is handed to the orchestrator at construction.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

ENV_PREFIX = "FAVSORT_"


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings for one reorganization run.
    """

    api_base_url: str = "https://api.bilibili.com"
    request_timeout_seconds: float = 15.0

    page_size: int = 20
    max_page: int = 1000

    max_folder_size: int = 1000
    default_target_folder_size: int = 1000
    max_folder_name_length: int = 20
    base_name_max_length: int = 10
    default_folder_base_name: str = "UP聚合"
    folder_intro: str = "按UP主视频数量自动聚合"
    folder_privacy: int = 0

    move_delay_seconds: float = 0.35
    max_retry: int = 3
    retry_base_delay_seconds: float = 0.5

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a copy with every non-None override applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **values) if values else self


def _env(name: str) -> Optional[str]:
    value = os.getenv(ENV_PREFIX + name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _get_int_env(name: str, default: int, minimum: int) -> int:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return max(minimum, int(raw))
    except ValueError:
        return default


def _get_float_env(name: str, default: float, minimum: float) -> float:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return max(minimum, float(raw))
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    raw = _env(name)
    return raw if raw is not None else default


def load_settings(**overrides: Any) -> Settings:
    """
    Build settings from ``FAVSORT_*`` environment variables.

    Invalid values fall back to the defaults. Keyword overrides (typically
    parsed CLI flags) win over the environment when they are not None.
    """

    d = Settings()
    settings = Settings(
        api_base_url=_get_str_env("API_BASE_URL", d.api_base_url).rstrip("/"),
        request_timeout_seconds=_get_float_env("REQUEST_TIMEOUT_SECONDS", d.request_timeout_seconds, 1.0),
        page_size=_get_int_env("PAGE_SIZE", d.page_size, 1),
        max_page=_get_int_env("MAX_PAGE", d.max_page, 1),
        max_folder_size=_get_int_env("MAX_FOLDER_SIZE", d.max_folder_size, 1),
        default_target_folder_size=_get_int_env("TARGET_FOLDER_SIZE", d.default_target_folder_size, 1),
        max_folder_name_length=_get_int_env("MAX_FOLDER_NAME_LENGTH", d.max_folder_name_length, 2),
        base_name_max_length=_get_int_env("BASE_NAME_MAX_LENGTH", d.base_name_max_length, 1),
        default_folder_base_name=_get_str_env("DEFAULT_BASE_NAME", d.default_folder_base_name),
        folder_intro=_get_str_env("FOLDER_INTRO", d.folder_intro),
        folder_privacy=_get_int_env("FOLDER_PRIVACY", d.folder_privacy, 0),
        move_delay_seconds=_get_float_env("MOVE_DELAY_SECONDS", d.move_delay_seconds, 0.0),
        max_retry=_get_int_env("MAX_RETRY", d.max_retry, 1),
        retry_base_delay_seconds=_get_float_env("RETRY_BASE_DELAY_SECONDS", d.retry_base_delay_seconds, 0.0),
    )
    return settings.with_overrides(**overrides)


def load_credentials() -> Dict[str, Optional[str]]:
    """Credential values from the environment; each may be None."""
    return {
        "sessdata": _env("SESSDATA"),
        "csrf": _env("CSRF"),
        "cookie": _env("COOKIE"),
        "mid": _env("MID"),
    }
