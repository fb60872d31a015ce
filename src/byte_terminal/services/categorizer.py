"""Keyword-based command categorization."""

from __future__ import annotations

import re
from enum import Enum


class Category(str, Enum):
    """Semantic bucket for a command. Values double as log directory names."""

    BUILD = "build"
    TEST = "test"
    LINT = "lint"
    GIT = "git"
    OTHER = "other"

    @property
    def label(self) -> str:
        return self.value.capitalize()


# Checked in order, first match wins.
KEYWORD_RULES: list[tuple[Category, tuple[str, ...]]] = [
    (Category.TEST, ("test", "spec", "coverage", "bench")),
    (Category.BUILD, ("build", "compile", "bundle", "dev", "run", "start", "watch", "serve")),
    (Category.LINT, ("lint", "fmt", "format", "clippy", "check", "prettier", "eslint")),
]

_CD_PREFIX = re.compile(r"""^\s*cd\s+(?:"[^"]*"|'[^']*'|[^\s;&|]+)\s*&&\s*""")

_WORD = re.compile(r"[a-z]+")


def strip_cd_prefix(command: str) -> str:
    """Remove one leading ``cd <dir> &&`` from a command."""
    return _CD_PREFIX.sub("", command, count=1)


def categorize(command: str) -> Category:
    """Classify a raw command string.

    Keywords match whole words only, so ``git checkout`` is not a lint and
    ``npm install react@latest`` is not a test. Only the first ``cd`` prefix
    is stripped, and keyword sets are checked before the git rule, so
    ``cd x && git pull && npm run build`` is a build.
    """
    text = strip_cd_prefix(command.lower()).strip()
    words = set(_WORD.findall(text))

    for category, keywords in KEYWORD_RULES:
        if any(keyword in words for keyword in keywords):
            return category

    if text.startswith("git "):
        return Category.GIT

    return Category.OTHER
