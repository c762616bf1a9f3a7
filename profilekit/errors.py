#!/usr/bin/env python3
"""
Error Types
===========
Exceptions and warnings raised by the profile engine.

Per-sample problems during analysis are recovered (the sample is skipped);
corpus-, decode- and generation-level problems are fatal and surface to the
caller as one of the typed failures below.
"""


class ProfileKitError(Exception):
    """Base class for all ProfileKit errors."""


class InvalidSampleError(ProfileKitError):
    """A single sample is empty or cannot be encoded."""

    def __init__(self, sample, reason: str):
        self.sample = sample
        self.reason = reason
        super().__init__(f"Invalid sample {sample!r}: {reason}")


class EmptyCorpusError(ProfileKitError):
    """The corpus produced zero usable samples."""

    def __init__(self, skipped: int = 0):
        self.skipped = skipped
        if skipped:
            message = f"Corpus has no usable samples ({skipped} skipped)"
        else:
            message = "Corpus is empty"
        super().__init__(message)


class CorruptProfileError(ProfileKitError):
    """Serialized profile bytes are malformed, truncated or inconsistent."""


class MalformedProfileError(ProfileKitError):
    """A Profile object is missing the tables needed for generation."""


class ProfileNotFoundError(ProfileKitError, KeyError):
    """No profile is registered or stored under the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No profile named '{name}'")

    def __str__(self):
        return self.args[0]


class UnseenContextWarning(UserWarning):
    """The generator reached a context with no transition row and fell back
    to global unit frequencies."""


__all__ = [
    'ProfileKitError',
    'InvalidSampleError',
    'EmptyCorpusError',
    'CorruptProfileError',
    'MalformedProfileError',
    'ProfileNotFoundError',
    'UnseenContextWarning',
]
