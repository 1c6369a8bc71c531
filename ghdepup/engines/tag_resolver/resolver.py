"""Version resolution: tags to semantic versions, best match under a constraint.

Everything here is pure: no I/O, and inputs are never mutated.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

import structlog
from semantic_version import NpmSpec, Version

log = structlog.get_logger("ghdepup.engine")

# A comparator without an operator, e.g. "1.2" or "0.14.3-rc.1".
_BARE_COMPARATOR_RE = re.compile(r"^\d+(\.\d+){0,2}(-[0-9A-Za-z.-]+)?(\+[0-9A-Za-z.-]+)?$")


def parse_version(text: str | None) -> Version | None:
    """Strictly parse a ``MAJOR.MINOR.PATCH[-pre][+build]`` string, or ``None``."""
    if not text:
        return None
    try:
        return Version(text)
    except ValueError:
        return None


def _normalize_comparator(comparator: str) -> str:
    comparator = "".join(comparator.split())
    if _BARE_COMPARATOR_RE.match(comparator):
        return "^" + comparator
    return comparator


def parse_requirement(text: str | None) -> NpmSpec | None:
    """Parse a Cargo-style comparator list such as ``">=0.14, <1"``.

    Comparators are comma-separated; a bare version means caret, so ``1.2``
    is ``^1.2``.  A prerelease only matches when some comparator names the
    same ``major.minor.patch`` with a prerelease of its own.

    An empty expression means "no constraint".  An unparseable one is logged
    and treated the same way.
    """
    if not text or not text.strip():
        return None
    comparators = [_normalize_comparator(part) for part in text.split(",")]
    if not all(comparators):
        log.warning("resolver.invalid_requirement", requirement=text)
        return None
    try:
        return NpmSpec(" ".join(comparators))
    except ValueError:
        log.warning("resolver.invalid_requirement", requirement=text)
        return None


def extract_versions(tags: Iterable[str], prefix: str) -> list[Version]:
    """Return the versions encoded by the *tags* that start with *prefix*.

    Tags that don't carry the prefix, or whose remainder is not a valid
    semantic version, are dropped.  Order follows *tags*; duplicates stay.
    """
    versions: list[Version] = []
    for tag in tags:
        if not tag.startswith(prefix):
            continue
        version = parse_version(tag[len(prefix):])
        if version is not None:
            versions.append(version)
    return versions


def select_best(
    versions: Sequence[Version],
    constraint: NpmSpec | None = None,
) -> Version | None:
    """Highest-precedence version satisfying *constraint*, or ``None``.

    The result does not depend on the order of *versions*.
    """
    candidates = [v for v in versions if constraint is None or constraint.match(v)]
    if not candidates:
        return None
    # Canonical order first: versions that differ only in build metadata share
    # precedence, and max() keeps the first of equal elements.
    return max(sorted(candidates, key=str))
