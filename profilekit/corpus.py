#!/usr/bin/env python3
"""
Corpus Readers
==============
Thin loaders that turn sample files into iterables of strings for the
analyzer. The analyzer itself only needs an iterable of strings.

- read_lines:      one sample per line of a text file
- read_as_columns: split CSV rows into per-column lists
- read_csv_column: one column of a CSV file, by header name or index
"""

import csv
import io
from pathlib import Path
from typing import Iterator, TextIO, Union

from .settings import get_setting


def _encoding(encoding: str = None) -> str:
    return encoding or get_setting("corpus.encoding", "utf-8")


def _delimiter(delimiter: str = None) -> str:
    return delimiter or get_setting("corpus.csv_delimiter", ",")


def read_lines(path: Union[str, Path], encoding: str = None,
               skip_blank: bool = None) -> Iterator[str]:
    """
    Yield one sample per line (trailing newline removed).

    Blank lines are skipped unless ``skip_blank`` is False, in which case they
    reach the analyzer and are counted as skipped samples there.
    """
    if skip_blank is None:
        skip_blank = get_setting("corpus.skip_blank_lines", True)
    with open(path, 'r', encoding=_encoding(encoding), newline='') as f:
        for line in f:
            line = line.rstrip('\r\n')
            if skip_blank and not line.strip():
                continue
            yield line


def read_as_columns(source: Union[TextIO, str],
                    has_headers: bool = True,
                    delimiter: str = None) -> tuple:
    """
    Split CSV rows into columns.

    Rows longer than the header grow the column list; short rows leave the
    missing columns untouched.

    Args:
        source: Open text stream or CSV text
        has_headers: Treat the first row as headers
        delimiter: Field delimiter (default: corpus.csv_delimiter)

    Returns:
        (headers, columns) where columns is a list of value lists
    """
    if isinstance(source, str):
        source = io.StringIO(source)
    reader = csv.reader(source, delimiter=_delimiter(delimiter), quotechar='"', doublequote=True)

    headers = next(reader, []) if has_headers else []
    columns = [[] for _ in headers]
    for record in reader:
        if len(record) > len(columns):
            columns.extend([] for _ in range(len(record) - len(columns)))
        for index, value in enumerate(record):
            columns[index].append(value)
    return list(headers), columns


def read_csv_column(path: Union[str, Path], column: Union[str, int] = 0,
                    encoding: str = None, delimiter: str = None,
                    has_headers: bool = True) -> list[str]:
    """
    Read a single CSV column.

    Args:
        path: CSV file
        column: Header name or zero-based index
        encoding: File encoding (default: corpus.encoding)
        delimiter: Field delimiter (default: corpus.csv_delimiter)
        has_headers: Whether the first row holds headers

    Raises:
        ValueError: If the column does not exist
    """
    with open(path, 'r', encoding=_encoding(encoding), newline='') as f:
        headers, columns = read_as_columns(f, has_headers=has_headers, delimiter=delimiter)

    if isinstance(column, str):
        if column not in headers:
            raise ValueError(f"Column '{column}' not found. Available: {', '.join(headers)}")
        index = headers.index(column)
    else:
        index = column
    if index < 0 or index >= len(columns):
        raise ValueError(f"Column index {index} out of range ({len(columns)} columns)")
    return columns[index]


__all__ = [
    'read_lines',
    'read_as_columns',
    'read_csv_column',
]
