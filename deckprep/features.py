"""Detect optional renderer features used anywhere in a deck."""

from __future__ import annotations

import logging
import re
from dataclasses import fields

from .models import FeatureFlags

logger = logging.getLogger(__name__)

# Inline math ($...$) on a single line; also covers display math ($$...$$).
_KATEX_RE = re.compile(r"\$.*?\$")

# Code block attribute: ```ts {monaco}
_MONACO_RE = re.compile(r"\{monaco.*\}")

# Embedded tweet component
_TWEET_RE = re.compile(r"<Tweet\b")

# Mermaid diagrams: ```mermaid at the start of a line
_MERMAID_RE = re.compile(r"^```mermaid", re.MULTILINE)

# A monaco code block, capturing language, options and body.
_MONACO_BLOCK_RE = re.compile(
    r"^```(\w+?)\s*\{monaco([\w:,-]*)\}\s*([\s\S]+?)^```", re.MULTILINE
)

_IMPORT_FROM_RE = re.compile(r"\s+from\s+([\"'])([/\w@-]+)\1")


def detect_features(text: str) -> FeatureFlags:
    """Scan raw markdown for markers of optional features."""
    flags = FeatureFlags(
        katex=bool(_KATEX_RE.search(text)),
        monaco=bool(_MONACO_RE.search(text)),
        tweet=bool(_TWEET_RE.search(text)),
        mermaid=bool(_MERMAID_RE.search(text)),
    )
    logger.debug("Detected features: %s", flags)
    return flags


def merge_feature_flags(a: FeatureFlags, b: FeatureFlags) -> FeatureFlags:
    """Combine two sets of flags; a feature is on if either side has it."""
    return FeatureFlags(
        **{f.name: getattr(a, f.name) or getattr(b, f.name) for f in fields(FeatureFlags)}
    )


def scan_monaco_modules(text: str) -> list[str]:
    """List the modules imported by TypeScript ``{monaco}`` code blocks.

    These are the packages whose type definitions the editor needs.  Order is
    first occurrence, without duplicates.
    """
    modules: list[str] = []
    for match in _MONACO_BLOCK_RE.finditer(text):
        lang = match.group(1).strip()
        if lang not in ("ts", "typescript"):
            continue
        for imported in _IMPORT_FROM_RE.finditer(match.group(3)):
            name = imported.group(2)
            if name and name not in modules:
                modules.append(name)
    return modules
