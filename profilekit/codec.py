#!/usr/bin/env python3
"""
Profile Codec
=============
Converts Profiles to and from a durable, versioned byte format.

Format:
-------
    PKPF <format_version> <sha256 of body>\\n
    <UTF-8 JSON body>

The JSON body holds the metadata and every table. Contexts are stored as JSON
arrays (a context is a tuple of units) and floats are written with their
shortest round-tripping representation, so ``decode(encode(p)) == p``.

Compatibility:
- ``format_version`` is the version of the writer.
- ``min_reader_version`` in the body is the oldest reader able to use it.
  Writers that only add fields keep ``min_reader_version`` unchanged; readers
  ignore fields they do not know.

Any structural problem (wrong magic, checksum mismatch from truncation,
malformed JSON, missing tables, empty rows or rows that do not sum to 1.0,
duplicate entries, keys outside the alphabet) raises
CorruptProfileError. A partially populated Profile is never returned.
"""

import hashlib
import json
import logging
import math
from pathlib import Path
from typing import BinaryIO, Union

from .errors import CorruptProfileError
from .profile import Profile
from .settings import get_setting
from .tokenizer import MARKERS, SEGMENTERS

logger = logging.getLogger(__name__)

MAGIC = b'PKPF'
FORMAT_VERSION = 1
MIN_READER_VERSION = 1


# =============================================================================
# Encoding
# =============================================================================

def profile_to_dict(profile: Profile) -> dict:
    """JSON-ready dictionary for a profile."""
    return {
        'format_version': FORMAT_VERSION,
        'min_reader_version': MIN_READER_VERSION,
        'order': profile.order,
        'segmentation': dict(profile.segmentation),
        'smoothing': profile.smoothing,
        'sample_count': profile.sample_count,
        'skipped_count': profile.skipped_count,
        'created_at': profile.created_at,
        'metadata': dict(profile.metadata),
        'alphabet': list(profile.alphabet),
        'length_distribution': [[length, p] for length, p in profile.length_distribution.items()],
        'position_table': [dict(row) for row in profile.position_table],
        'transitions': [
            {'context': list(context), 'next': dict(row)}
            for context, row in profile.transitions.items()
        ],
        'unit_frequencies': dict(profile.unit_frequencies),
        'pattern_distribution': dict(profile.pattern_distribution),
    }


def encode(profile: Profile) -> bytes:
    """Serialize a profile to bytes."""
    body = json.dumps(profile_to_dict(profile), ensure_ascii=True,
                      separators=(',', ':'), allow_nan=False).encode('utf-8')
    digest = hashlib.sha256(body).hexdigest()
    header = MAGIC + f" {FORMAT_VERSION} {digest}\n".encode('ascii')
    return header + body


# =============================================================================
# Decoding
# =============================================================================

def _require(data: dict, key: str, kind):
    if key not in data:
        raise CorruptProfileError(f"Missing field '{key}'")
    value = data[key]
    if kind is float:
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
    elif kind is int:
        ok = isinstance(value, int) and not isinstance(value, bool)
    else:
        ok = isinstance(value, kind)
    if not ok:
        raise CorruptProfileError(f"Field '{key}' has wrong type {type(value).__name__}")
    return value


def _probabilities(row, label: str) -> dict:
    if not isinstance(row, dict):
        raise CorruptProfileError(f"{label} is not a mapping")
    for key, value in row.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise CorruptProfileError(f"{label}[{key!r}] is not a number")
        if not math.isfinite(value) or value < 0 or value > 1:
            raise CorruptProfileError(f"{label}[{key!r}] = {value!r} outside [0, 1]")
    return row


def _split_header(data: bytes) -> tuple:
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise CorruptProfileError(f"Expected bytes, got {type(data).__name__}")
    data = bytes(data)
    if not data.startswith(MAGIC + b' '):
        raise CorruptProfileError("Not a profile: bad magic")
    newline = data.find(b'\n')
    if newline < 0:
        raise CorruptProfileError("Truncated profile header")
    parts = data[:newline].split(b' ')
    if len(parts) != 3:
        raise CorruptProfileError("Malformed profile header")
    try:
        version = int(parts[1])
    except ValueError:
        raise CorruptProfileError(f"Unreadable format version {parts[1]!r}") from None
    return version, parts[2].decode('ascii', 'replace'), data[newline + 1:]


def profile_from_dict(data: dict, tolerance: float = None) -> Profile:
    """
    Validate a decoded dictionary and build a Profile from it.

    Raises:
        CorruptProfileError: On any missing, mistyped or inconsistent field
    """
    if tolerance is None:
        tolerance = get_setting("codec.sum_tolerance", 1e-6)
    if not isinstance(data, dict):
        raise CorruptProfileError("Profile body is not an object")

    min_reader = _require(data, 'min_reader_version', int)
    if min_reader > FORMAT_VERSION:
        raise CorruptProfileError(
            f"Profile requires reader version {min_reader}; this reader supports {FORMAT_VERSION}"
        )

    order = _require(data, 'order', int)
    if order < 1:
        raise CorruptProfileError(f"Invalid order {order}")

    segmentation = _require(data, 'segmentation', dict)
    if segmentation.get('mode') not in SEGMENTERS:
        raise CorruptProfileError(f"Unknown segmentation {segmentation.get('mode')!r}")

    alphabet = _require(data, 'alphabet', list)
    if not all(isinstance(u, str) and u and u not in MARKERS for u in alphabet):
        raise CorruptProfileError("Alphabet contains invalid units")

    lengths = {}
    for entry in _require(data, 'length_distribution', list):
        if (not isinstance(entry, list) or len(entry) != 2
                or isinstance(entry[0], bool) or not isinstance(entry[0], int) or entry[0] < 1):
            raise CorruptProfileError(f"Malformed length entry {entry!r}")
        if entry[0] in lengths:
            raise CorruptProfileError(f"Duplicate length {entry[0]}")
        lengths[entry[0]] = entry[1]
    _probabilities(lengths, 'length_distribution')

    positions = tuple(
        _probabilities(row, f"position[{i}]")
        for i, row in enumerate(_require(data, 'position_table', list))
    )
    if lengths and max(lengths) > len(positions):
        raise CorruptProfileError(
            f"Length {max(lengths)} exceeds the {len(positions)} position rows"
        )

    transitions = {}
    for entry in _require(data, 'transitions', list):
        if not isinstance(entry, dict):
            raise CorruptProfileError("Malformed transition entry")
        context = entry.get('context')
        if (not isinstance(context, list) or len(context) != order
                or not all(isinstance(u, str) for u in context)):
            raise CorruptProfileError(f"Malformed transition context {context!r}")
        if tuple(context) in transitions:
            raise CorruptProfileError(f"Duplicate transition context {context!r}")
        transitions[tuple(context)] = _probabilities(entry.get('next'), f"transition{context}")

    try:
        profile = Profile(
            order=order,
            alphabet=tuple(alphabet),
            length_distribution=lengths,
            position_table=positions,
            transitions=transitions,
            unit_frequencies=_probabilities(_require(data, 'unit_frequencies', dict), 'unit_frequencies'),
            pattern_distribution=_probabilities(data.get('pattern_distribution', {}), 'pattern_distribution'),
            sample_count=_require(data, 'sample_count', int),
            skipped_count=_require(data, 'skipped_count', int),
            smoothing=float(_require(data, 'smoothing', float)),
            segmentation=segmentation,
            created_at=data.get('created_at'),
            metadata=_require(data, 'metadata', dict),
        )
    except (TypeError, ValueError) as e:
        raise CorruptProfileError(f"Inconsistent profile data: {e}") from e

    if not profile.length_distribution or not profile.transitions or not profile.unit_frequencies:
        raise CorruptProfileError("Profile is missing required tables")

    problems = profile.row_sum_violations(tolerance)
    if problems:
        raise CorruptProfileError(f"Probability totals out of tolerance: {problems[0]}"
                                  + (f" (+{len(problems) - 1} more)" if len(problems) > 1 else ""))

    problems = profile.symbol_violations()
    if problems:
        raise CorruptProfileError(f"Tables reference symbols outside the alphabet: {problems[0]}")
    return profile


def decode(data: bytes) -> Profile:
    """
    Deserialize a profile.

    Raises:
        CorruptProfileError: If the bytes are not a valid, complete profile
    """
    version, digest, body = _split_header(data)
    if hashlib.sha256(body).hexdigest() != digest:
        raise CorruptProfileError("Checksum mismatch: profile is truncated or modified")
    try:
        payload = json.loads(body.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CorruptProfileError(f"Unreadable profile body: {e}") from e

    if isinstance(payload, dict) and payload.get('format_version') != version:
        raise CorruptProfileError("Header and body disagree on format version")
    if version > FORMAT_VERSION:
        logger.debug(f"Reading format version {version} with reader version {FORMAT_VERSION}")
    return profile_from_dict(payload)


# =============================================================================
# Streams and files
# =============================================================================

def write_profile(profile: Profile, fp: BinaryIO) -> int:
    """Write an encoded profile to a binary stream. Returns bytes written."""
    data = encode(profile)
    fp.write(data)
    return len(data)


def read_profile(fp: BinaryIO) -> Profile:
    """Read and decode a profile from a binary stream."""
    return decode(fp.read())


def save_profile(profile: Profile, path: Union[str, Path]) -> Path:
    """Save a profile to a file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(encode(profile))
    return path


def load_profile(path: Union[str, Path]) -> Profile:
    """Load a profile from a file."""
    return decode(Path(path).read_bytes())


__all__ = [
    'MAGIC',
    'FORMAT_VERSION',
    'MIN_READER_VERSION',
    'encode',
    'decode',
    'profile_to_dict',
    'profile_from_dict',
    'write_profile',
    'read_profile',
    'save_profile',
    'load_profile',
]
