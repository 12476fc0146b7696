"""Turn parsed slides back into markdown."""

from __future__ import annotations

import logging
import re

from .frontmatter import encode
from .models import DeckDocument, SlideInfo

logger = logging.getLogger(__name__)

# Whole blank lines only: indentation on the first real line is kept.
_LEADING_BLANK_LINES_RE = re.compile(r"\A(?:[^\S\n]*\n)+")


def prettify_slide(slide: SlideInfo) -> SlideInfo:
    """Rebuild ``slide.raw`` in canonical form from its parsed fields."""
    slide.content = f"\n{slide.content.strip()}\n"
    block = encode(slide.frontmatter or {})
    slide.raw = f"---\n{block}\n---\n{slide.content}" if block else slide.content
    if slide.note:
        slide.raw += f"\n<!--\n{slide.note.strip()}\n-->\n"
    else:
        slide.raw += "\n"
    return slide


def stringify_slide(slide: SlideInfo, idx: int = 0) -> str:
    """Render one slide; slides after the first get a ``---`` separator."""
    if slide.raw is None:
        prettify_slide(slide)
    raw = slide.raw
    if raw.startswith("---") or idx == 0:
        return raw
    if not raw.startswith("\n"):
        raw = f"\n{raw}"
    return f"---\n{raw}"


def stringify(deck: DeckDocument) -> str:
    """Render a whole deck.

    Slides loaded from another file are left out unless they carry an
    ``inline`` override, which is rendered in their place.
    """
    kept = [s for s in deck.slides if s.source is None or s.inline is not None]
    parts: list[str] = []
    started = False
    for idx, slide in enumerate(kept):
        # Blank slides are trimmed away below, so the first slide with text
        # must not get a separator.
        text = stringify_slide(slide.inline or slide, idx if started else 0)
        started = started or bool(text.strip())
        parts.append(text)
    logger.debug("Stringified %d of %d slide(s)", len(kept), len(deck.slides))
    body = _LEADING_BLANK_LINES_RE.sub("", "\n".join(parts).rstrip())
    return f"{body}\n"


def prettify(deck: DeckDocument) -> DeckDocument:
    for slide in deck.slides:
        prettify_slide(slide)
    return deck


def filter_disabled(deck: DeckDocument) -> DeckDocument:
    """Drop slides whose frontmatter sets ``disabled``."""
    deck.slides = [s for s in deck.slides if not (s.frontmatter or {}).get("disabled")]
    return deck
