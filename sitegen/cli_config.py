"""Locate and load the ``.env`` file used by the CLI entry points."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Iterator, Optional

LOGGER = logging.getLogger(__name__)

ENV_FILE_VAR = "SITEGEN_ENV_FILE"
EXAMPLE_FILE = Path(__file__).parent.parent / ".env.example"


def _candidates(cwd: Path, config_env_file: Path) -> Iterator[Path]:
    explicit = os.environ.get(ENV_FILE_VAR)
    if explicit:
        yield Path(explicit).expanduser()
    yield cwd / ".env"
    yield config_env_file


def load_config(
    *,
    config_dir: Path,
    config_env_file: Path,
    cwd: Path,
    load_env: Callable[[Path], bool],
    copy_file: Callable[[Path, Path], str],
    example_file: Optional[Path] = None,
) -> Optional[Path]:
    """Load the first ``.env`` found and return its path.

    Search order: ``$SITEGEN_ENV_FILE``, ``<cwd>/.env``, ``config_env_file``.
    When none exists, ``.env.example`` is copied to ``config_env_file`` as a
    starting point. Returns None when nothing could be loaded.
    """
    for candidate in _candidates(cwd, config_env_file):
        if candidate.is_file():
            load_env(candidate)
            LOGGER.debug("Loaded configuration from %s", candidate)
            return candidate

    example = example_file or EXAMPLE_FILE
    if not example.is_file():
        return None

    try:
        config_dir.mkdir(parents=True, exist_ok=True)
        copy_file(example, config_env_file)
    except OSError as exc:
        LOGGER.warning("Could not create %s: %s", config_env_file, exc)
        return None

    logging.info(
        "Created config file at %s from .env.example. "
        "Please edit it with your GEMINI_API_KEY.",
        config_env_file,
    )
    load_env(config_env_file)
    return config_env_file
