"""
Ordered extraction rule tables.

Each field is described by a list of rules. A rule is a pure callable that
takes the line and returns the extracted value or None. The first rule
that yields a non-empty value wins; later rules are never consulted.
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

Rule = Callable[[str], Optional[str]]


def collapse_whitespace(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()


@dataclass(frozen=True)
class RegexRule:
    """Search ``pattern`` and return one capture group, post-processed."""

    name: str
    pattern: str
    flags: int = 0
    group: int = 1
    transform: Optional[Callable[[str], str]] = str.strip

    def __post_init__(self):
        object.__setattr__(self, "_regex", re.compile(self.pattern, self.flags))

    def __call__(self, line: str) -> Optional[str]:
        match = self._regex.search(line)
        if not match:
            return None
        value = match.group(self.group)
        if value is None:
            return None
        if self.transform:
            value = self.transform(value)
        return value or None


@dataclass(frozen=True)
class KeywordRule:
    """Return ``label`` when any keyword occurs in the line (case-insensitive)."""

    label: str
    keywords: Sequence[str]

    def __call__(self, line: str) -> Optional[str]:
        lowered = line.lower()
        if any(keyword in lowered for keyword in self.keywords):
            return self.label
        return None


def first_match(rules: Sequence[Rule], line: str, default: str = "") -> str:
    """Evaluate ``rules`` in order and return the first non-empty result."""
    for rule in rules:
        value = rule(line)
        if value:
            return value
    return default
