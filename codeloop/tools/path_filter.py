"""
Ignore rules for project traversal.

A rule is a regular expression searched (not anchored) in the POSIX form of
an absolute path. A path is ignored when any rule matches.
"""

import re
from dataclasses import dataclass, field
from pathlib import PurePath

from ..errors import ConfigError

# Version-control and editor metadata, dependency/build output, lockfiles,
# binary images. Directory rules are bounded by "/" so that "layout.ts" does
# not match "out".
DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    r"/\.git(/|$)",
    r"/\.svn(/|$)",
    r"/\.hg(/|$)",
    r"/\.idea(/|$)",
    r"/\.vscode(/|$)",
    r"/\.DS_Store$",
    r"/node_modules(/|$)",
    r"/dist(/|$)",
    r"/build(/|$)",
    r"/out(/|$)",
    r"/coverage(/|$)",
    r"/__pycache__(/|$)",
    r"/\.venv(/|$)",
    r"/package-lock\.json$",
    r"/yarn\.lock$",
    r"/pnpm-lock\.yaml$",
    r"/poetry\.lock$",
    r"\.png$",
    r"\.jpe?g$",
    r"\.gif$",
    r"\.ico$",
    r"\.bmp$",
    r"\.webp$",
)


@dataclass(frozen=True)
class IgnoreRuleSet:
    """Ordered, de-duplicated set of compiled ignore patterns."""

    patterns: tuple[str, ...] = ()
    _compiled: tuple[re.Pattern, ...] = field(
        default=(), init=False, repr=False, compare=False
    )

    def __post_init__(self):
        unique = tuple(dict.fromkeys(self.patterns))
        compiled = []
        for pattern in unique:
            try:
                compiled.append(re.compile(pattern))
            except re.error as exc:
                raise ConfigError(f"Invalid ignore pattern {pattern!r}: {exc}") from exc
        object.__setattr__(self, "patterns", unique)
        object.__setattr__(self, "_compiled", tuple(compiled))

    @classmethod
    def build(cls, extra=(), *, include_defaults: bool = True) -> "IgnoreRuleSet":
        """Defaults (unless disabled) followed by caller-supplied patterns."""
        base = DEFAULT_IGNORE_PATTERNS if include_defaults else ()
        return cls(tuple(base) + tuple(extra or ()))

    def matches(self, path) -> bool:
        text = path if isinstance(path, str) else PurePath(path).as_posix()
        return any(rule.search(text) for rule in self._compiled)

    def __len__(self):
        return len(self.patterns)

    def __iter__(self):
        return iter(self.patterns)


def is_ignored(path, rules: IgnoreRuleSet) -> bool:
    """Return True if any rule in ``rules`` matches anywhere in ``path``."""
    return rules.matches(path)
