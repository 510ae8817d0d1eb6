"""
Environment helpers for provider credentials.

API keys are read from the process environment. For local development a
``.env`` file is merged in first; values already set in the environment win.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence

logger = logging.getLogger(__name__)

USER_ENV_FILE = Path.home() / ".config" / "chatturn" / ".env"


def parse_env_text(text: str) -> Dict[str, str]:
    """Parse ``KEY=value`` lines, accepting ``export`` prefixes and quoted values."""
    values: Dict[str, str] = {}
    for line in text.splitlines():
        entry = line.strip()
        if not entry or entry.startswith("#") or "=" not in entry:
            continue
        key, raw = entry.split("=", 1)
        key = key.strip()
        if key.startswith("export "):
            key = key[len("export ") :].strip()
        if key:
            values[key] = raw.strip().strip("'\"")
    return values


def load_env_if_present(candidate_paths: Iterable[Path]) -> Optional[Path]:
    """
    Merge the first readable env file into ``os.environ``.

    Returns:
        The file that was loaded, or None if no candidate could be read.
    """
    for env_path in candidate_paths:
        if not env_path.is_file():
            continue
        try:
            values = parse_env_text(env_path.read_text(encoding="utf-8"))
        except OSError:
            logger.debug("Could not read env file %s", env_path, exc_info=True)
            continue
        for key, value in values.items():
            os.environ.setdefault(key, value)
        logger.debug("Loaded %d variables from %s", len(values), env_path)
        return env_path
    return None


def load_default_env() -> Optional[Path]:
    """Load ``./.env``, falling back to ``~/.config/chatturn/.env``."""
    return load_env_if_present([Path.cwd() / ".env", USER_ENV_FILE])


def find_api_key(env_vars: Sequence[str]) -> Optional[str]:
    """Return the first non-empty value among ``env_vars`` after loading defaults."""
    load_default_env()
    for name in env_vars:
        value = os.getenv(name)
        if value:
            return value
    return None


__all__ = [
    "USER_ENV_FILE",
    "find_api_key",
    "load_default_env",
    "load_env_if_present",
    "parse_env_text",
]
