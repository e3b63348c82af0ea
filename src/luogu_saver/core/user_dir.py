"""Centralised resolution of the user and cache directories."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
import os
from pathlib import Path
from threading import RLock


__all__ = [
    "SaverUserDir",
    "configure_user_dir",
    "get_user_dir",
    "user_dir_context",
]

_USER_DIR: SaverUserDir | None = None
_LOCK: RLock = RLock()


def _resolve_root(root: str | Path | None) -> tuple[Path, bool]:
    if root is not None:
        return Path(root).expanduser(), True
    env_root = os.environ.get("LUOGU_SAVER_HOME")
    if env_root:
        return Path(env_root).expanduser(), True
    return Path.home() / ".luogu-saver", False


def _resolve_cache_root(
    cache_root: str | Path | None,
    *,
    user_root: Path,
    root_was_explicit: bool,
) -> Path:
    if cache_root is not None:
        return Path(cache_root).expanduser()
    env_cache = os.environ.get("LUOGU_SAVER_CACHE_DIR")
    if env_cache:
        return Path(env_cache).expanduser()
    xdg_cache = os.environ.get("XDG_CACHE_HOME")
    if xdg_cache:
        return Path(xdg_cache).expanduser() / "luogu-saver"
    if root_was_explicit:
        return user_root / "cache"
    return Path.home() / ".cache" / "luogu-saver"


@dataclass(slots=True)
class SaverUserDir:
    """Resolved user and cache roots plus helpers to manage them."""

    root: Path
    cache_root: Path

    def cache_dir(self, *parts: str | Path, create: bool = True) -> Path:
        """Return a directory under the cache root, creating it when requested."""
        target = self.cache_root.joinpath(*parts)
        if create:
            target.mkdir(parents=True, exist_ok=True)
        return target


def configure_user_dir(
    *,
    root: str | Path | None = None,
    cache_root: str | Path | None = None,
) -> SaverUserDir:
    """Replace the global user dir with a freshly resolved instance."""
    global _USER_DIR
    user_root, root_was_explicit = _resolve_root(root)
    resolved_cache_root = _resolve_cache_root(
        cache_root, user_root=user_root, root_was_explicit=root_was_explicit
    )
    with _LOCK:
        _USER_DIR = SaverUserDir(root=user_root, cache_root=resolved_cache_root)
        return _USER_DIR


def get_user_dir() -> SaverUserDir:
    """Return the lazily created user dir."""
    with _LOCK:
        if _USER_DIR is None:
            return configure_user_dir()
        return _USER_DIR


@contextmanager
def user_dir_context(
    *,
    root: str | Path | None = None,
    cache_root: str | Path | None = None,
) -> Iterator[SaverUserDir]:
    """Temporarily override the global user dir."""
    global _USER_DIR
    with _LOCK:
        previous = _USER_DIR
    current = configure_user_dir(root=root, cache_root=cache_root)
    try:
        yield current
    finally:
        with _LOCK:
            _USER_DIR = previous
