"""Shared data models and parsing constants."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass
class SlideInfo:
    raw: str | None = None
    content: str = ""
    note: str | None = None
    frontmatter: dict[str, Any] = field(default_factory=dict)
    title: str | None = None
    level: int | None = None


@dataclass
class SourcedSlide(SlideInfo):
    """A slide that was loaded from another file."""

    filepath: str = ""


@dataclass
class SlideRecord(SlideInfo):
    """A slide as produced by the preparser.

    ``start`` and ``end`` are the half-open line range of the slide in the
    original document.  ``inline`` overrides the slide when re-stringifying and
    ``source`` records where an externally referenced slide came from.
    """

    index: int = 0
    start: int = 0
    end: int = 0
    inline: SlideInfo | None = None
    source: SourcedSlide | None = None


@dataclass
class FeatureFlags:
    katex: bool = False
    monaco: bool = False
    tweet: bool = False
    mermaid: bool = False


@dataclass
class ThemeMeta:
    """Theme metadata passed through to configuration resolution."""

    defaults: dict[str, Any] = field(default_factory=dict)
    color_schema: str | None = None
    highlighter: str | None = None


@dataclass
class DeckDocument:
    slides: list[SlideRecord]
    raw: str
    config: Any
    features: FeatureFlags
    headmatter: dict[str, Any]
    filepath: str | None = None
    theme_meta: ThemeMeta | None = None


class Mode(Enum):
    """Built-in preparser modes.

    The ``FRONTMATTER_OR_CONTENT``, ``SLICE`` and ``SLICED`` pseudo-modes never
    consume a line; they only sequence boundary handling so that extensions get
    a chance to intercept each step.
    """

    CONTENT = "content"
    FRONTMATTER = "frontmatter"
    CODEBLOCK = "codeblock"
    FRONTMATTER_OR_CONTENT = ":frontmatter-or-content"
    SLICE = ":slice"
    SLICED = ":sliced"


@dataclass(frozen=True)
class ExtensionMode:
    """A mode owned by an extension, identified by an opaque tag."""

    tag: str


ParserMode = Mode | ExtensionMode


# Matches HTML comments, including multi-line ones.
COMMENT_RE = re.compile(r"<!--(.*?)-->", re.DOTALL)

# A bare "---" line, optionally followed by something that isn't a dash.
FRONTMATTER_OPEN_RE = re.compile(r"^---([^-].*)?$")

# Slide separators are three or more dashes at the start of a line.
SLIDE_SEPARATOR_RE = re.compile(r"^---+")

BLANK_LINE_RE = re.compile(r"^\s*$")

CODE_FENCE = "```"
