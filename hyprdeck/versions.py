"""Version string parsing and comparison for Debian package versions."""

import re
from typing import Tuple

from packaging import version as pkg_version

_EPOCH = re.compile(r"^\d+:")


def extract_version_number(version_str: str) -> str:
    """Extract the upstream numeric version from a package version string.

    Debian epochs ("1:") and revisions ("-2", "+deb13u1") are dropped:

        >>> extract_version_number("1:0.45.2-1+b1")
        '0.45.2'
    """
    if not version_str:
        return ""

    stripped = _EPOCH.sub("", version_str.strip())
    patterns = [
        r"v?(\d+\.\d+\.\d+(?:\.\d+)?)",
        r"v?(\d+\.\d+)",
        r"v?(\d+)",
    ]
    for pattern in patterns:
        match = re.search(pattern, stripped)
        if match:
            return match.group(1)
    return ""


def compare_versions(version1: str, version2: str) -> int:
    """Compare two version strings. Returns -1, 0, or 1.

    Uses PEP 440 ordering where both sides parse, otherwise compares the
    extracted numeric tuples, and finally falls back to string order.
    """
    try:
        v1 = pkg_version.parse(extract_version_number(version1))
        v2 = pkg_version.parse(extract_version_number(version2))
    except pkg_version.InvalidVersion:
        pass
    else:
        return (v1 > v2) - (v1 < v2)

    def version_tuple(v: str) -> Tuple[int, ...]:
        return tuple(map(int, extract_version_number(v).split(".")))

    try:
        t1, t2 = version_tuple(version1), version_tuple(version2)
        return (t1 > t2) - (t1 < t2)
    except ValueError:
        return (version1 > version2) - (version1 < version2)
