"""
Environment assembly for install scripts.
"""

import logging
from typing import Dict, Iterable, List

logger = logging.getLogger(__name__)

HOME_PLACEHOLDER = "$HOME"


def normalize_envs(envs: Iterable[str], home: str) -> List[str]:
    """
    Keep well-formed tool env assignments and expand the home placeholder.

    An assignment is kept only when splitting on ``=`` yields exactly two
    parts, so ``"=2"`` survives with an empty key while ``"B"`` and
    ``"C=3=3"`` are dropped.
    """
    normalized: List[str] = []
    for value in envs:
        if not value:
            continue
        if len(value.split("=")) != 2:
            logger.debug(f"Dropping env assignment {value!r}")
            continue
        normalized.append(value.replace(HOME_PLACEHOLDER, home))
    return normalized


def build_environment(base_envs: Iterable[str],
                      secret_envs: Iterable[str],
                      tool_envs: Iterable[str],
                      home: str) -> List[str]:
    """Base, secret and normalized tool envs, in that order, duplicates kept."""
    return [*base_envs, *secret_envs, *normalize_envs(tool_envs, home)]


def to_process_env(assignments: Iterable[str]) -> Dict[str, str]:
    """Mapping for the subprocess; later duplicates win."""
    env: Dict[str, str] = {}
    for assignment in assignments:
        key, sep, value = assignment.partition("=")
        if not sep:
            continue
        env[key] = value
    return env


def environ_to_assignments(environ: Dict[str, str]) -> List[str]:
    return [f"{key}={value}" for key, value in environ.items()]
