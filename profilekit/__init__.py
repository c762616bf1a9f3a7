#!/usr/bin/env python3
"""
ProfileKit - Synthetic Test Data from Learned Profiles
======================================================

Learns a compact statistical profile from a small sample corpus (e.g. census
first names), persists it, and later samples new values with the same
statistical shape, without needing the original data.

Quick Start
-----------
    from profilekit import build, encode, decode, generate

    profile = build(["ann", "amy", "ana"], order=1)
    data = encode(profile)                  # portable bytes
    names = generate(decode(data), 10, rng_seed=42)

Modules
-------
    profilekit.tokenizer - Sample segmentation (char, gram, token)
    profilekit.analyzer  - Corpus -> Profile
    profilekit.profile   - Frozen Profile type
    profilekit.codec     - Versioned profile byte format
    profilekit.generator - Profile -> values
    profilekit.registry  - Named profiles with caching
    profilekit.fidelity  - Output vs. profile distance metrics

CLI Usage
---------
    python -m profilekit build names.txt -o names.pkpf --order 2
    python -m profilekit generate names.pkpf -n 20 --seed 42
    python -m profilekit inspect names.pkpf
"""

__version__ = "0.1.0"
__author__ = "ProfileKit"

# =============================================================================
# Submodule Imports
# =============================================================================

from . import tokenizer
from . import analyzer
from . import codec
from . import generator
from . import registry
from . import settings

# =============================================================================
# Core Imports
# =============================================================================

from .errors import (
    ProfileKitError,
    InvalidSampleError,
    EmptyCorpusError,
    CorruptProfileError,
    MalformedProfileError,
    ProfileNotFoundError,
    UnseenContextWarning,
)
from .tokenizer import (
    START,
    END,
    Segmentation,
    Segmenter,
    CharSegmenter,
    GramSegmenter,
    TokenSegmenter,
    get_segmenter,
    segment,
)
from .patterns import pattern_of
from .profile import Profile
from .analyzer import Analyzer, ProfileBuilder, build
from .codec import (
    FORMAT_VERSION,
    encode,
    decode,
    write_profile,
    read_profile,
    save_profile,
    load_profile,
)
from .generator import GenerationRequest, Generator, generate, stream, run_request
from .registry import ProfileRegistry, DirectoryStore, MemoryStore
from .fidelity import FidelityReport, fidelity_report, total_variation
from .parallel import ParallelConfig, build_many, generate_parallel
from .corpus import read_lines, read_csv_column, read_as_columns

__all__ = [
    '__version__',
    # Errors
    'ProfileKitError',
    'InvalidSampleError',
    'EmptyCorpusError',
    'CorruptProfileError',
    'MalformedProfileError',
    'ProfileNotFoundError',
    'UnseenContextWarning',
    # Tokenizer
    'START',
    'END',
    'Segmentation',
    'Segmenter',
    'CharSegmenter',
    'GramSegmenter',
    'TokenSegmenter',
    'get_segmenter',
    'segment',
    'pattern_of',
    # Model
    'Profile',
    'Analyzer',
    'ProfileBuilder',
    'build',
    # Codec
    'FORMAT_VERSION',
    'encode',
    'decode',
    'write_profile',
    'read_profile',
    'save_profile',
    'load_profile',
    # Generation
    'GenerationRequest',
    'Generator',
    'generate',
    'stream',
    'run_request',
    # Registry
    'ProfileRegistry',
    'DirectoryStore',
    'MemoryStore',
    # Fidelity & parallel
    'FidelityReport',
    'fidelity_report',
    'total_variation',
    'ParallelConfig',
    'build_many',
    'generate_parallel',
    # Corpus
    'read_lines',
    'read_csv_column',
    'read_as_columns',
]
