#!/usr/bin/env python3
"""
Tokenizer / Segmenter
=====================
Splits a raw sample into the ordered Units counted by the analyzer.

Segmentation modes:
- char:  one unit per character (lossless)
- gram:  non-overlapping chunks of ``gram_size`` characters; the final chunk
         may be shorter. Concatenating the chunks restores the sample, so this
         mode is lossless as well.
- token: whitespace-separated tokens joined back with a single space. Lossy:
         leading/trailing whitespace is dropped and runs of whitespace
         collapse to one space.

Every segmentation is framed by explicit markers when padded for a Markov
context: ``START * order + units + END``.
"""

from dataclasses import dataclass
from typing import Optional

from .errors import InvalidSampleError


# Control characters (STX / ETX) used as sequence markers. They cannot occur
# inside a valid sample, so they never collide with a real unit.
START = '\x02'
END = '\x03'
MARKERS = frozenset((START, END))


@dataclass(frozen=True)
class Segmentation:
    """Ordered units of one sample."""
    sample: str
    units: tuple

    def __len__(self) -> int:
        return len(self.units)

    def padded(self, order: int) -> tuple:
        """Units framed with ``order`` start markers and one end marker."""
        return (START,) * order + self.units + (END,)


def _check_sample(sample) -> str:
    if not isinstance(sample, str):
        raise InvalidSampleError(sample, f"expected str, got {type(sample).__name__}")
    if not sample.strip():
        raise InvalidSampleError(sample, "empty sample")
    if START in sample or END in sample:
        raise InvalidSampleError(sample, "contains reserved marker character")
    try:
        sample.encode('utf-8')
    except UnicodeEncodeError as e:
        raise InvalidSampleError(sample, f"not UTF-8 encodable ({e.reason})") from e
    return sample


class Segmenter:
    """Base segmenter. Subclasses implement ``split`` and ``join``."""

    mode = 'base'

    def segment(self, sample) -> Segmentation:
        """
        Segment a sample into units.

        Raises:
            InvalidSampleError: If the sample is empty or not encodable
        """
        sample = _check_sample(sample)
        units = tuple(self.split(sample))
        if not units:
            raise InvalidSampleError(sample, "no units after segmentation")
        return Segmentation(sample=sample, units=units)

    def split(self, sample: str) -> list[str]:
        raise NotImplementedError

    def join(self, units) -> str:
        return ''.join(units)

    def describe(self) -> dict:
        """Serializable description, stored in a profile."""
        return {'mode': self.mode}


class CharSegmenter(Segmenter):
    """One unit per character."""

    mode = 'char'

    def split(self, sample: str) -> list[str]:
        return list(sample)


class GramSegmenter(Segmenter):
    """Fixed-size, non-overlapping character chunks."""

    mode = 'gram'

    def __init__(self, size: int = 2):
        if not isinstance(size, int) or size < 1:
            raise ValueError(f"gram size must be a positive integer, got {size!r}")
        self.size = size

    def split(self, sample: str) -> list[str]:
        return [sample[i:i + self.size] for i in range(0, len(sample), self.size)]

    def describe(self) -> dict:
        return {'mode': self.mode, 'gram_size': self.size}


class TokenSegmenter(Segmenter):
    """Whitespace tokens."""

    mode = 'token'

    def split(self, sample: str) -> list[str]:
        return sample.split()

    def join(self, units) -> str:
        return ' '.join(units)


SEGMENTERS = {
    'char': CharSegmenter,
    'gram': GramSegmenter,
    'token': TokenSegmenter,
}


def get_segmenter(mode: str = 'char', gram_size: Optional[int] = None) -> Segmenter:
    """
    Resolve a segmenter by mode name.

    Args:
        mode: One of 'char', 'gram', 'token'
        gram_size: Chunk size for 'gram' mode (default: 2)

    Raises:
        ValueError: If the mode is unknown
    """
    if mode not in SEGMENTERS:
        available = ', '.join(sorted(SEGMENTERS))
        raise ValueError(f"Unknown segmentation '{mode}'. Available: {available}")
    if mode == 'gram':
        return GramSegmenter(gram_size if gram_size is not None else 2)
    return SEGMENTERS[mode]()


def segmenter_from_dict(data: dict) -> Segmenter:
    """Rebuild a segmenter from ``Segmenter.describe()`` output."""
    return get_segmenter(data.get('mode', 'char'), data.get('gram_size'))


def segment(sample, segmenter: Segmenter = None) -> Segmentation:
    """Segment a sample (character-level by default)."""
    return (segmenter or CharSegmenter()).segment(sample)


__all__ = [
    'START',
    'END',
    'MARKERS',
    'Segmentation',
    'Segmenter',
    'CharSegmenter',
    'GramSegmenter',
    'TokenSegmenter',
    'get_segmenter',
    'segmenter_from_dict',
    'segment',
]
