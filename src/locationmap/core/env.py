"""
Project root and `.env` handling.

The CLI, uvicorn and pytest start from different working directories, so relative
settings paths (the cache dir) resolve against one project root, and local
overrides such as the geocoder User-Agent can live in `<root>/.env`.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

ROOT_MARKERS = (".env", ".git", "pyproject.toml")


def find_project_root(start: Path) -> Path | None:
    """Nearest directory at or above `start` holding one of `ROOT_MARKERS`."""
    start = start.resolve()
    for candidate in (start, *start.parents):
        if any((candidate / marker).exists() for marker in ROOT_MARKERS):
            return candidate
    return None


@lru_cache
def get_project_root() -> Path:
    """`LOCATIONMAP_PROJECT_ROOT`, else the marked directory above cwd, else cwd."""
    override = os.getenv("LOCATIONMAP_PROJECT_ROOT")
    if override:
        return Path(override).expanduser().resolve()
    cwd = Path.cwd().resolve()
    return find_project_root(cwd) or cwd


@lru_cache
def load_dotenv_if_present() -> Path | None:
    """Load `<root>/.env` once. Variables already in the environment win."""
    env_path = get_project_root() / ".env"
    if not env_path.is_file():
        return None
    load_dotenv(dotenv_path=env_path, override=False)
    return env_path


def resolve_project_path(path: str | Path) -> Path:
    p = Path(path).expanduser()
    if p.is_absolute():
        return p
    return (get_project_root() / p).resolve()
