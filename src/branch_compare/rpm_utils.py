"""
RPM Utilities

Provides utilities for composing, parsing and comparing RPM EVR
(epoch:version-release) strings as reported by the package database.
"""

from __future__ import annotations

import re
from typing import Callable, Tuple

from .errors import VersionCompareError

EVRComparator = Callable[[str, str], int]

_EPOCH_RE = re.compile(r"^\d+$")


def _normalize_epoch(epoch: int | str) -> int:
    """Normalize epoch to integer, treating '(none)' and '' as 0."""
    if isinstance(epoch, int):
        return epoch
    epoch = epoch.strip()
    if epoch in ("(none)", "", "None"):
        return 0
    if not _EPOCH_RE.match(epoch):
        raise VersionCompareError(f"invalid epoch: {epoch!r}")
    return int(epoch)


def _split_version_string(version: str) -> list[str]:
    """
    Split a version string into comparable segments.

    Segments are either numeric or alphabetic. Separators are ignored.

    Examples:
        "1.2.3" -> ["1", "2", "3"]
        "1.2a3" -> ["1", "2", "a", "3"]
        "alt1_4" -> ["alt", "1", "4"]
    """
    segments = []
    current = ""
    current_is_digit = None

    for char in version:
        if char.isdigit():
            if current_is_digit is False and current:
                segments.append(current)
                current = ""
            current += char
            current_is_digit = True
        elif char.isalpha():
            if current_is_digit is True and current:
                segments.append(current)
                current = ""
            current += char
            current_is_digit = False
        else:
            # Separator character
            if current:
                segments.append(current)
                current = ""
            current_is_digit = None

    if current:
        segments.append(current)

    return segments


def _compare_version_strings(v1: str, v2: str) -> int:
    """
    Compare two version strings using RPM's comparison algorithm.

    Returns:
        -1 if v1 < v2
         0 if v1 == v2
         1 if v1 > v2
    """
    segments1 = _split_version_string(v1)
    segments2 = _split_version_string(v2)

    for s1, s2 in zip(segments1, segments2):
        # Both numeric
        if s1.isdigit() and s2.isdigit():
            n1, n2 = int(s1), int(s2)
            if n1 < n2:
                return -1
            if n1 > n2:
                return 1
        # Both alphabetic
        elif s1.isalpha() and s2.isalpha():
            if s1 < s2:
                return -1
            if s1 > s2:
                return 1
        # Mixed: numeric > alphabetic
        elif s1.isdigit():
            return 1
        else:
            return -1

    # All compared segments are equal, longer version is greater
    if len(segments1) < len(segments2):
        return -1
    if len(segments1) > len(segments2):
        return 1

    return 0


def format_evr(epoch: int | str, version: str, release: str) -> str:
    """
    Format epoch-version-release string.

    The epoch is always included, so "0:5.1.8-alt1" rather than
    "5.1.8-alt1".

    Args:
        epoch: Package epoch
        version: Package version
        release: Package release

    Returns:
        Formatted EVR string
    """
    return f"{_normalize_epoch(epoch)}:{version}-{release}"


def parse_evr(evr: str) -> Tuple[int, str, str]:
    """
    Parse an EVR string into (epoch, version, release).

    Supported formats:
        epoch:version-release
        version-release (epoch defaults to 0)
        version (epoch defaults to 0, empty release)

    The release is taken after the last "-", since versions may not
    contain one but some upstream version strings still do.

    Raises:
        VersionCompareError: If the epoch is not numeric or the
            version is empty
    """
    if not isinstance(evr, str):
        raise VersionCompareError(f"EVR must be a string, got {type(evr).__name__}")

    epoch_part, sep, rest = evr.partition(":")
    if not sep:
        epoch_part, rest = "0", evr
    epoch = _normalize_epoch(epoch_part)

    version, sep, release = rest.rpartition("-")
    if not sep:
        version, release = rest, ""

    if not version:
        raise VersionCompareError(f"empty version in EVR: {evr!r}")

    return epoch, version, release


def compare_evr(evr1: str, evr2: str) -> int:
    """
    Compare two EVR strings.

    Returns:
        -1 if evr1 < evr2
         0 if evr1 == evr2
         1 if evr1 > evr2

    Raises:
        VersionCompareError: If either string is malformed
    """
    e1, v1, r1 = parse_evr(evr1)
    e2, v2, r2 = parse_evr(evr2)

    # Compare epochs
    if e1 < e2:
        return -1
    if e1 > e2:
        return 1

    # Compare versions
    version_cmp = _compare_version_strings(v1, v2)
    if version_cmp != 0:
        return version_cmp

    # Compare releases
    return _compare_version_strings(r1, r2)


def is_newer(evr: str, other: str) -> bool:
    """Check if ``evr`` is strictly newer than ``other``."""
    return compare_evr(evr, other) > 0
