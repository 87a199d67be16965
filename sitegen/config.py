"""Runtime settings read from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, TypeVar

LOGGER = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "sitegen"

DEFAULT_API_URL = "https://generativelanguage.googleapis.com"
DEFAULT_TEXT_MODEL = "gemini-2.5-flash"
DEFAULT_IMAGE_MODEL = "imagen-4.0-generate-001"
DEFAULT_STATE_FILE = CONFIG_DIR / "state.json"
DEFAULT_SAVE_DELAY = 1.0
# Same size class as a browser's local storage area.
DEFAULT_STATE_QUOTA = 5_000_000
DEFAULT_TIMEOUT = 120.0

T = TypeVar("T")


@dataclass
class GeneratorSettings:
    """Settings for model access, persistence and history."""

    api_key: Optional[str] = None
    api_url: str = DEFAULT_API_URL
    text_model: str = DEFAULT_TEXT_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    state_file: Path = DEFAULT_STATE_FILE
    save_delay: float = DEFAULT_SAVE_DELAY
    state_quota: int = DEFAULT_STATE_QUOTA
    history_limit: Optional[int] = None
    timeout: float = DEFAULT_TIMEOUT


def _convert(
    name: str, raw: Optional[str], convert: Callable[[str], T], default: T
) -> T:
    if raw is None or not raw.strip():
        return default
    try:
        return convert(raw.strip())
    except ValueError:
        LOGGER.warning("Invalid value for %s: %r; falling back to %s.", name, raw, default)
        return default


def _positive_int(raw: str) -> int:
    value = int(raw)
    if value < 1:
        raise ValueError(raw)
    return value


def _non_negative_float(raw: str) -> float:
    value = float(raw)
    if value < 0:
        raise ValueError(raw)
    return value


def load_settings(**overrides) -> GeneratorSettings:
    """Build settings from environment variables at call time.

    Keyword arguments that are not None override the environment.
    """
    env = os.environ
    settings = GeneratorSettings(
        api_key=env.get("GEMINI_API_KEY") or env.get("API_KEY") or None,
        api_url=(env.get("SITEGEN_API_URL") or DEFAULT_API_URL).rstrip("/"),
        text_model=env.get("SITEGEN_TEXT_MODEL") or DEFAULT_TEXT_MODEL,
        image_model=env.get("SITEGEN_IMAGE_MODEL") or DEFAULT_IMAGE_MODEL,
        state_file=Path(
            env.get("SITEGEN_STATE_FILE") or str(DEFAULT_STATE_FILE)
        ).expanduser(),
        save_delay=_convert(
            "SITEGEN_SAVE_DELAY",
            env.get("SITEGEN_SAVE_DELAY"),
            _non_negative_float,
            DEFAULT_SAVE_DELAY,
        ),
        state_quota=_convert(
            "SITEGEN_STATE_QUOTA",
            env.get("SITEGEN_STATE_QUOTA"),
            _positive_int,
            DEFAULT_STATE_QUOTA,
        ),
        history_limit=_convert(
            "SITEGEN_HISTORY_LIMIT",
            env.get("SITEGEN_HISTORY_LIMIT"),
            _positive_int,
            None,
        ),
        timeout=_convert(
            "SITEGEN_TIMEOUT",
            env.get("SITEGEN_TIMEOUT"),
            _non_negative_float,
            DEFAULT_TIMEOUT,
        ),
    )
    for key, value in overrides.items():
        if value is None:
            continue
        if not hasattr(settings, key):
            raise TypeError(f"Unknown setting: {key}")
        setattr(settings, key, value)
    return settings
