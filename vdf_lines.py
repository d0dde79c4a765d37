# vdf_lines.py
"""
Flat line scanner for Steam's text key/value files (appmanifest_*.acf,
libraryfolders.vdf, loginusers.vdf).

Only lines shaped like  "key"  "value"  are picked up. Braces, section
headers, comments and blank lines are ignored, so nesting is flattened away.
Which keys matter is left to the caller.
"""
import re
from collections import OrderedDict
from typing import Iterable, Iterator, Optional, Tuple

KEY_VALUE_RE = re.compile(r'"(?P<key>\w+)"\s+"(?P<value>.+)"')

ManifestRecord = OrderedDict


def parse_line(line: str) -> Optional[Tuple[str, str]]:
    """Returns (key, value) for a "key" "value" line, else None."""
    if not isinstance(line, str):
        return None
    match = KEY_VALUE_RE.search(line)
    if not match:
        return None
    return match.group('key'), match.group('value')


def iter_pairs(lines: Iterable[str]) -> Iterator[Tuple[str, str]]:
    """Every pair in file order, keys as written. Repeats are kept."""
    for line in lines:
        pair = parse_line(line)
        if pair:
            yield pair


def parse_lines(lines: Iterable[str]) -> ManifestRecord:
    """Lowercase-keyed record; a repeated key keeps its last value."""
    record = ManifestRecord()
    for key, value in iter_pairs(lines):
        key = key.lower()
        # Re-insert so the order reflects the winning occurrence
        record.pop(key, None)
        record[key] = value
    return record


def read_lines(path: str) -> list:
    # Strict decoding: a corrupt file raises and the caller skips it
    with open(path, 'r', encoding='utf-8') as f:
        return f.read().splitlines()


def load_manifest(path: str) -> ManifestRecord:
    return parse_lines(read_lines(path))


def unescape_path(value: str) -> str:
    return value.replace('\\\\', '\\')
