#!/usr/bin/env python3
"""
Symbolic Patterns
=================
Reduces a sample to its shape, one placeholder symbol per character:

    C  consonant, upper case      c  consonant, lower case
    V  vowel, upper case          v  vowel, lower case
    #  digit                      S  whitespace
    p  punctuation (.,;:!?^)      ~  anything else

Examples:
    "HELlo0?^@"       -> "CVCcv#pp~"
    "O'Brian, Henny"  -> "V~CcvvcpSCvccc"

Accented letters are classified by their base letter ("É" is a vowel).
The analyzer records the pattern distribution of a corpus; ranked patterns
describe the shapes a profile has learned.
"""

import unicodedata
from functools import lru_cache


VOWELS = frozenset('aeiou')
PUNCTUATION = frozenset('.,;:!?^')

PLACEHOLDERS = {
    'ConsonantUpper': 'C',
    'ConsonantLower': 'c',
    'VowelUpper': 'V',
    'VowelLower': 'v',
    'Numeric': '#',
    'WhiteSpace': 'S',
    'Punctuation': 'p',
    'Gap': '~',
}


@lru_cache(maxsize=4096)
def classify_char(ch: str) -> str:
    """Placeholder symbol for a single character."""
    if ch.isspace():
        return PLACEHOLDERS['WhiteSpace']
    if ch.isdigit():
        return PLACEHOLDERS['Numeric']
    if ch in PUNCTUATION:
        return PLACEHOLDERS['Punctuation']
    if ch.isalpha():
        base = unicodedata.normalize('NFD', ch)[0].lower()
        if base in VOWELS:
            return PLACEHOLDERS['VowelUpper'] if ch.isupper() else PLACEHOLDERS['VowelLower']
        return PLACEHOLDERS['ConsonantUpper'] if ch.isupper() else PLACEHOLDERS['ConsonantLower']
    return PLACEHOLDERS['Gap']


def pattern_of(sample: str) -> str:
    """Symbolic pattern of a sample."""
    return ''.join(classify_char(ch) for ch in sample)


def rank(distribution: dict) -> list[tuple]:
    """
    Cumulative ranking of a probability distribution.

    Entries are ordered by decreasing probability (ties keep key order) and
    paired with the running total, so the last entry is ~1.0.

    Returns:
        List of (key, cumulative_probability) tuples
    """
    ordered = sorted(distribution.items(), key=lambda kv: -kv[1])
    ranks = []
    running = 0.0
    for key, prob in ordered:
        running += prob
        ranks.append((key, running))
    return ranks


__all__ = [
    'VOWELS',
    'PUNCTUATION',
    'PLACEHOLDERS',
    'classify_char',
    'pattern_of',
    'rank',
]
