"""Version parsing and comparison utilities.

Used to decide whether a package-index prerequisite must be upgraded.
Versions are dotted sequences of integers of any length, optionally prefixed
with ``v`` and optionally followed by a prerelease tag:

- 2.8.5.201
- v1.2
- 3.0.0-rc1
"""

from __future__ import annotations

import re
from itertools import zip_longest
from typing import NamedTuple


class VersionComponents(NamedTuple):
    """Parsed version components."""

    release: tuple[int, ...]
    prerelease: str | None = None


VERSION_PATTERN = re.compile(
    r"^v?(\d+(?:\.\d+)*)"
    r"(?:[-.]?(alpha|beta|rc|dev|pre|post)\.?(\d+)?)?$",
    re.IGNORECASE,
)

_PRERELEASE_ORDER = {
    "alpha": 10,
    "beta": 20,
    "dev": 30,
    "pre": 40,
    "rc": 50,
    "post": 90,
}


def parse_version(version: str) -> VersionComponents:
    """Parse a version string into components.

    Args:
        version: Version string to parse.

    Returns:
        VersionComponents with the numeric release tuple and prerelease tag.

    Raises:
        ValueError: If the version string cannot be parsed.

    Examples:
        >>> parse_version("2.8.5.201")
        VersionComponents(release=(2, 8, 5, 201), prerelease=None)
        >>> parse_version("v1.2-rc1")
        VersionComponents(release=(1, 2), prerelease='rc1')
    """
    match = VERSION_PATTERN.match(version.strip())
    if not match:
        raise ValueError(f"Cannot parse version string: {version}")

    release = tuple(int(part) for part in match.group(1).split("."))

    prerelease = None
    if match.group(2):
        prerelease = match.group(2).lower()
        if match.group(3):
            prerelease += match.group(3)

    return VersionComponents(release=release, prerelease=prerelease)


def _prerelease_order(prerelease: str | None) -> tuple[int, int]:
    """Get ordering value for a prerelease tag.

    alpha < beta < dev < pre < rc < (release) < post
    """
    if prerelease is None:
        return (80, 0)

    tag = prerelease.rstrip("0123456789")
    number = prerelease[len(tag) :]
    return (_PRERELEASE_ORDER.get(tag, 60), int(number) if number else 0)


def compare_versions(version1: str, version2: str) -> int:
    """Compare two version strings.

    Missing trailing components count as zero, so ``1.2`` equals ``1.2.0``.

    Returns:
        -1 if version1 < version2, 0 if equal, 1 if version1 > version2.

    Raises:
        ValueError: If either version cannot be parsed.

    Examples:
        >>> compare_versions("2.8.5.201", "2.8.5.3")
        1
        >>> compare_versions("1.2", "1.2.0")
        0
        >>> compare_versions("1.0-beta", "1.0")
        -1
    """
    v1 = parse_version(version1)
    v2 = parse_version(version2)

    for a, b in zip_longest(v1.release, v2.release, fillvalue=0):
        if a != b:
            return -1 if a < b else 1

    pre1 = _prerelease_order(v1.prerelease)
    pre2 = _prerelease_order(v2.prerelease)
    if pre1 != pre2:
        return -1 if pre1 < pre2 else 1

    return 0


def needs_update(installed: str | None, minimum: str) -> bool:
    """Check whether an installed version must be upgraded to reach a minimum.

    A missing or unparsable installed version always needs an update.

    Examples:
        >>> needs_update("2.8.5.1", "2.8.5.201")
        True
        >>> needs_update("2.8.5.208", "2.8.5.201")
        False
        >>> needs_update(None, "2.8.5.201")
        True
    """
    if installed is None:
        return True

    try:
        return compare_versions(installed, minimum) < 0
    except ValueError:
        return True

