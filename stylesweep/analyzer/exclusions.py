"""Glob-based exclusion of known-noise class names."""
from fnmatch import fnmatchcase
from typing import Iterable, List, Set


def is_excluded(name: str, patterns: Iterable[str]) -> bool:
    """Check a class name against glob patterns ('*' and '?' wildcards).

    Matching is case-sensitive, like CSS class selectors.
    """
    return any(fnmatchcase(name, pattern) for pattern in patterns)


class ExclusionFilter:
    """Predicate that reports, and remembers, excluded class names.

    Excluded names never reach usage scanning, reporting or deletion.
    """

    def __init__(self, patterns: Iterable[str]):
        self.patterns: List[str] = [p for p in patterns if p]
        self.excluded: Set[str] = set()

    def __call__(self, name: str) -> bool:
        if is_excluded(name, self.patterns):
            self.excluded.add(name)
            return True
        return False
