#!/usr/bin/env python3
"""
ProfileKit CLI
==============
Command-line interface for building profiles and generating test data.

Usage:
    profilekit build names.txt -o names.pkpf --order 2
    profilekit build people.csv --column firstname --name first_names
    profilekit generate names.pkpf -n 20 --seed 42
    profilekit inspect first_names
    profilekit fidelity names.pkpf -n 10000
    profilekit list
"""

import argparse
import json
import logging
import sys
import warnings
from pathlib import Path

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from profilekit import __version__

# =============================================================================
# Constants
# =============================================================================

SEGMENTATIONS = ['char', 'gram', 'token']

# =============================================================================
# Utilities
# =============================================================================

class Output:
    """Handles CLI output with quiet mode support."""

    def __init__(self, quiet: bool = False):
        self.quiet = quiet
        self.console = Console(highlight=False)
        self.err_console = Console(stderr=True, highlight=False)

    def print(self, *args, **kwargs):
        if not self.quiet:
            print(*args, **kwargs)

    def value(self, text: str):
        """Data output; printed even in quiet mode."""
        print(text)

    def error(self, msg: str):
        self.err_console.print(f"Error: {msg}", markup=False)

    def success(self, msg: str):
        if not self.quiet:
            print(f"OK: {msg}")

    def table(self, headers: list, rows: list, title: str = None):
        """Print a formatted table."""
        if self.quiet:
            return
        table = Table(title=title, box=box.SIMPLE_HEAD)
        for header in headers:
            table.add_column(str(header))
        for row in rows:
            table.add_row(*(str(c) for c in row))
        self.console.print(table)


def setup_logging(verbose: bool = False):
    """Route log records through rich on stderr."""
    from profilekit.settings import get_setting

    level = logging.DEBUG if verbose else getattr(
        logging, str(get_setting("logging.level", "WARNING")).upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format=get_setting("logging.format", "%(message)s"),
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    logging.captureWarnings(True)


def resolve_profile(ref: str, directory: str = None):
    """Load a profile from a file path or, failing that, a registry name."""
    from profilekit import DirectoryStore, ProfileRegistry, load_profile

    path = Path(ref)
    if path.is_file():
        return load_profile(path)
    return ProfileRegistry(DirectoryStore(directory)).get(ref)


def read_corpus(args):
    from profilekit import read_csv_column, read_lines

    if args.column is not None:
        column = int(args.column) if args.column.isdigit() else args.column
        return read_csv_column(args.source, column)
    return read_lines(args.source)


# =============================================================================
# Commands
# =============================================================================

def cmd_build(args, out: Output):
    """Build a profile from a corpus file."""
    from profilekit import Analyzer, DirectoryStore, ProfileRegistry, get_segmenter, save_profile

    if not Path(args.source).is_file():
        out.error(f"Corpus file not found: {args.source}")
        return 1
    if not args.output and not args.name:
        out.error("Specify --output FILE or --name NAME")
        return 1

    segmenter = None
    if args.segmentation:
        segmenter = get_segmenter(args.segmentation, args.gram_size)
    analyzer = Analyzer(order=args.order, smoothing=args.smoothing, segmenter=segmenter)

    out.print(f"Analyzing {args.source} (order={analyzer.order}, "
              f"segmentation={analyzer.segmenter.mode})...")
    profile = analyzer.build(read_corpus(args), name=args.name,
                             metadata={'source': Path(args.source).name})

    if args.output:
        save_profile(profile, args.output)
        out.success(f"Profile written to {args.output}")
    if args.name:
        ProfileRegistry(DirectoryStore(args.dir)).save(args.name, profile)
        out.success(f"Profile saved as '{args.name}'")

    out.print(f"Samples: {profile.sample_count}  Skipped: {profile.skipped_count}  "
              f"Alphabet: {len(profile.alphabet)}  Contexts: {len(profile.transitions)}")
    return 0


def cmd_generate(args, out: Output):
    """Generate values from a profile."""
    from profilekit import Generator, ParallelConfig, generate_parallel

    if args.count < 1:
        out.error("--count must be positive")
        return 1

    profile = resolve_profile(args.profile, args.dir)
    options = {
        'temperature': args.temperature,
        'min_length': args.min_length,
        'max_length': args.max_length,
        'stop_at_end': args.stop_at_end,
    }
    if args.workers:
        values = generate_parallel(profile, args.count, args.seed,
                                   ParallelConfig(workers=args.workers), **options)
    else:
        values = Generator(profile, **options).generate(args.count, args.seed)

    if args.output:
        Path(args.output).write_text('\n'.join(values) + '\n', encoding='utf-8')
        out.success(f"Wrote {len(values)} values to {args.output}")
    else:
        for value in values:
            out.value(value)
    return 0


def cmd_inspect(args, out: Output):
    """Show a profile summary."""
    profile = resolve_profile(args.profile, args.dir)
    summary = profile.summary(top=args.top)

    if args.json:
        out.value(json.dumps(summary, indent=2, ensure_ascii=False))
        return 0

    rows = [[key, value] for key, value in summary.items()
            if key not in ('top_lengths', 'top_patterns')]
    out.table(['Field', 'Value'], rows, title='Profile')
    out.table(['Length', 'Probability'], summary['top_lengths'], title='Top lengths')
    if summary['top_patterns']:
        out.table(['Pattern', 'Probability'], summary['top_patterns'], title='Top patterns')
    return 0


def cmd_fidelity(args, out: Output):
    """Generate a sample and measure it against the profile."""
    from profilekit import fidelity_report, generate

    profile = resolve_profile(args.profile, args.dir)
    with warnings.catch_warnings():
        warnings.simplefilter('ignore')
        values = generate(profile, args.count, args.seed)
    report = fidelity_report(profile, values)

    if args.json:
        out.value(json.dumps(report.to_dict(), indent=2))
    else:
        rows = [[k, f"{v:.4f}" if isinstance(v, float) else v] for k, v in report.to_dict().items()]
        out.table(['Metric', 'Value'], rows, title='Fidelity')
    return 0 if report.passes(args.max_tvd) else 2


def cmd_list(args, out: Output):
    """List stored profiles."""
    from profilekit import DirectoryStore, ProfileRegistry

    registry = ProfileRegistry(DirectoryStore(args.dir))
    names = registry.names()
    if not names:
        out.print("No profiles stored.")
        return 0
    rows = []
    for i, name in enumerate(names, 1):
        profile = registry.get(name)
        rows.append([i, name, profile.order, profile.sample_count, len(profile.alphabet)])
    out.table(['#', 'Name', 'Order', 'Samples', 'Alphabet'], rows)
    return 0


# =============================================================================
# Main
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='profilekit',
        description='ProfileKit - Synthetic test data from learned profiles',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s build names.txt -o names.pkpf --order 2
  %(prog)s build people.csv --column firstname --name first_names
  %(prog)s generate names.pkpf -n 20 --seed 42
  %(prog)s inspect first_names
  %(prog)s fidelity names.pkpf -n 10000
"""
    )

    parser.add_argument('--version', '-V', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--quiet', '-q', action='store_true', help='Suppress non-essential output')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # --- build ---
    p = subparsers.add_parser('build', aliases=['b'], help='Build a profile from a corpus')
    p.add_argument('source', help='Corpus file (one sample per line, or CSV with --column)')
    p.add_argument('--output', '-o', help='Profile file to write')
    p.add_argument('--name', help='Save to the profile directory under this name')
    p.add_argument('--dir', help='Profile directory (default: registry.directory)')
    p.add_argument('--column', '-c', help='CSV column name or index')
    p.add_argument('--order', type=int, help='Markov order (default: analyzer.order)')
    p.add_argument('--smoothing', type=float, help='Additive smoothing (default: analyzer.smoothing)')
    p.add_argument('--segmentation', '-s', choices=SEGMENTATIONS, help='Unit segmentation')
    p.add_argument('--gram-size', type=int, help='Chunk size for gram segmentation')

    # --- generate ---
    p = subparsers.add_parser('generate', aliases=['gen', 'g'], help='Generate values')
    p.add_argument('profile', help='Profile file or stored profile name')
    p.add_argument('-n', '--count', type=int, default=10, help='Number of values (default: 10)')
    p.add_argument('--seed', type=int, help='Random seed for reproducible output')
    p.add_argument('--dir', help='Profile directory for named profiles')
    p.add_argument('--temperature', '-t', type=float, default=1.0,
                   help='Creativity (0.5=conservative, 1.0=faithful, 1.5=creative)')
    p.add_argument('--min-length', type=int, help='Minimum length in units')
    p.add_argument('--max-length', type=int, help='Maximum length in units')
    p.add_argument('--stop-at-end', action='store_true',
                   help='Let end markers finish values early')
    p.add_argument('--workers', type=int, help='Generate in parallel batches')
    p.add_argument('--output', '-o', help='Write values to a file instead of stdout')

    # --- inspect ---
    p = subparsers.add_parser('inspect', aliases=['i'], help='Show profile summary')
    p.add_argument('profile', help='Profile file or stored profile name')
    p.add_argument('--dir', help='Profile directory for named profiles')
    p.add_argument('--top', type=int, default=5, help='Top entries per table (default: 5)')
    p.add_argument('--json', '-j', action='store_true', help='Output as JSON')

    # --- fidelity ---
    p = subparsers.add_parser('fidelity', help='Measure generated output against the profile')
    p.add_argument('profile', help='Profile file or stored profile name')
    p.add_argument('--dir', help='Profile directory for named profiles')
    p.add_argument('-n', '--count', type=int, default=10000, help='Sample size (default: 10000)')
    p.add_argument('--seed', type=int, default=0, help='Random seed (default: 0)')
    p.add_argument('--max-tvd', type=float, help='Length TVD threshold (default: fidelity.max_length_tvd)')
    p.add_argument('--json', '-j', action='store_true', help='Output as JSON')

    # --- list ---
    p = subparsers.add_parser('list', aliases=['ls'], help='List stored profiles')
    p.add_argument('--dir', help='Profile directory')

    return parser


def main(argv: list = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(args.verbose)

    # Handle aliases
    cmd_map = {
        'b': 'build',
        'gen': 'generate', 'g': 'generate',
        'i': 'inspect',
        'ls': 'list',
    }
    command = cmd_map.get(args.command, args.command)

    out = Output(quiet=args.quiet)

    commands = {
        'build': cmd_build,
        'generate': cmd_generate,
        'inspect': cmd_inspect,
        'fidelity': cmd_fidelity,
        'list': cmd_list,
    }

    from profilekit import ProfileKitError

    handler = commands[command]
    try:
        return handler(args, out)
    except KeyboardInterrupt:
        out.print("\nCancelled.")
        return 130
    except (ProfileKitError, ValueError, OSError) as e:
        out.error(str(e))
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
