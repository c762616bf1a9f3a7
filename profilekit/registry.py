#!/usr/bin/env python3
"""
Profile Registry
================
Maps names (e.g. "male_first_name_us_2016") to Profiles.

Profiles are loaded on demand from a byte store and cached in memory, one
resident Profile per name. Replacing an entry happens under a lock and swaps
the whole Profile at once; readers either see the old Profile or the new one.
Cached Profiles are frozen, so reads need no lock.

Stores:
- DirectoryStore: one ``<name>.pkpf`` file per profile in a directory
- MemoryStore:    in-process dictionary (tests, ephemeral pipelines)

Usage:
    registry = ProfileRegistry(DirectoryStore("data/profiles"))
    registry.save("first_names", profile)
    names = registry.generate("first_names", count=10, rng_seed=1)
"""

import logging
import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Optional, Union

from . import codec
from .errors import ProfileNotFoundError
from .generator import generate
from .profile import Profile
from .settings import get_setting, resolve_path

logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r'^[A-Za-z0-9_.-]+$')


def validate_profile_name(name: str) -> str:
    """Ensure a profile name is safe to use as a file stem."""
    if not isinstance(name, str) or not NAME_PATTERN.match(name) or name in ('.', '..'):
        raise ValueError(
            f"Invalid profile name {name!r}: use letters, digits, '_', '-' or '.'"
        )
    return name


# =============================================================================
# Stores
# =============================================================================

class MemoryStore:
    """Byte store backed by a dictionary."""

    def __init__(self):
        self._data: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def read_bytes(self, name: str) -> bytes:
        with self._lock:
            if name not in self._data:
                raise ProfileNotFoundError(name)
            return self._data[name]

    def write_bytes(self, name: str, data: bytes):
        with self._lock:
            self._data[name] = bytes(data)

    def delete(self, name: str):
        with self._lock:
            self._data.pop(name, None)

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._data)


class DirectoryStore:
    """Byte store backed by a directory of profile files."""

    def __init__(self, directory: Union[str, Path] = None, extension: str = None):
        """
        Args:
            directory: Storage directory (default: registry.directory in app.yaml);
                relative paths resolve against the working directory
            extension: File extension (default: registry.extension in app.yaml)
        """
        cfg = get_setting("registry", {}) or {}
        if directory is None:
            directory = cfg.get("directory")
        if extension is None:
            extension = cfg.get("extension")
        if directory is None or extension is None:
            raise ValueError("registry.directory and registry.extension must be set in app.yaml")
        self.directory = resolve_path(directory, base=Path.cwd())
        self.extension = extension
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        return self.directory / f"{validate_profile_name(name)}{self.extension}"

    def read_bytes(self, name: str) -> bytes:
        path = self.path_for(name)
        if not path.exists():
            raise ProfileNotFoundError(name)
        return path.read_bytes()

    def write_bytes(self, name: str, data: bytes):
        path = self.path_for(name)
        # Write to a temp file and rename so readers never see a partial file
        fd, tmp = tempfile.mkstemp(dir=str(self.directory), prefix=f".{name}.", suffix='.tmp')
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def delete(self, name: str):
        path = self.path_for(name)
        if path.exists():
            path.unlink()

    def names(self) -> list[str]:
        return sorted(p.name[:-len(self.extension)] for p in self.directory.glob(f"*{self.extension}")
                      if not p.name.startswith('.'))


# =============================================================================
# Registry
# =============================================================================

class ProfileRegistry:
    """Named profiles with load-on-demand and an in-memory cache."""

    def __init__(self, store=None):
        self.store = store if store is not None else DirectoryStore()
        self._cache: dict[str, Profile] = {}
        self._lock = threading.Lock()

    def __contains__(self, name: str) -> bool:
        return name in self._cache or name in self.store.names()

    def get(self, name: str) -> Profile:
        """
        Get a profile, loading it from the store on first use.

        Raises:
            ProfileNotFoundError: If the name is unknown
            CorruptProfileError: If the stored bytes are invalid
        """
        validate_profile_name(name)
        profile = self._cache.get(name)
        if profile is not None:
            return profile
        with self._lock:
            profile = self._cache.get(name)
            if profile is None:
                profile = codec.decode(self.store.read_bytes(name))
                self._cache[name] = profile
                logger.debug(f"Loaded profile '{name}' from store")
        return profile

    def reload(self, name: str) -> Profile:
        """Re-read a profile from the store and replace the cached entry."""
        validate_profile_name(name)
        profile = codec.decode(self.store.read_bytes(name))
        with self._lock:
            self._cache[name] = profile
        logger.info(f"Reloaded profile '{name}'")
        return profile

    def register(self, name: str, profile: Profile) -> Profile:
        """Cache a profile under a name without persisting it."""
        validate_profile_name(name)
        with self._lock:
            self._cache[name] = profile
        return profile

    def save(self, name: str, profile: Profile) -> Profile:
        """Persist a profile and make it the cached entry for its name."""
        validate_profile_name(name)
        data = codec.encode(profile)
        with self._lock:
            self.store.write_bytes(name, data)
            self._cache[name] = profile
        logger.info(f"Saved profile '{name}' ({len(data)} bytes)")
        return profile

    def evict(self, name: str) -> Optional[Profile]:
        """Drop a cached entry (the stored copy is kept)."""
        with self._lock:
            return self._cache.pop(name, None)

    def delete(self, name: str):
        """Remove a profile from both cache and store."""
        with self._lock:
            self._cache.pop(name, None)
            self.store.delete(name)

    def cached(self) -> list[str]:
        return sorted(self._cache)

    def names(self) -> list[str]:
        """All known names, stored or cached."""
        return sorted(set(self.store.names()) | set(self._cache))

    def generate(self, name: str, count: int, rng_seed: int = None, **options) -> list[str]:
        """Generate values from a named profile."""
        return generate(self.get(name), count, rng_seed, **options)


__all__ = [
    'MemoryStore',
    'DirectoryStore',
    'ProfileRegistry',
    'validate_profile_name',
]
