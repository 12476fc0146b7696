"""Single-slide analysis: frontmatter, speaker notes, title and level."""

from __future__ import annotations

import logging
import re

from .frontmatter import split_frontmatter
from .models import COMMENT_RE, SlideInfo

logger = logging.getLogger(__name__)

_HEADING_RE = re.compile(r"^(#+) (.*)$", re.MULTILINE)


def parse_slide(raw: str) -> SlideInfo:
    """Parse the raw text of one slide.

    A leading ``---`` block is decoded as frontmatter.  If the body ends with an
    HTML comment, that comment becomes the speaker note; earlier comments stay
    in the content.  The title comes from the ``title`` (or ``name``)
    frontmatter key, otherwise from the first markdown heading.
    """
    frontmatter, body = split_frontmatter(raw)
    content = body.strip()
    note: str | None = None

    comments = list(COMMENT_RE.finditer(content))
    if comments:
        last = comments[-1]
        if last.end() >= len(content):
            note = last.group(1).strip()
            content = content[: last.start()].strip()

    title = None
    level = None
    if frontmatter.get("title") or frontmatter.get("name"):
        title = frontmatter.get("title") or frontmatter.get("name")
        level = frontmatter.get("level") or 1
    else:
        match = _HEADING_RE.search(content)
        if match:
            title = match.group(2).strip()
            level = len(match.group(1))

    logger.debug(
        "Parsed slide: title=%r, level=%s, notes=%d chars",
        title, level, len(note) if note else 0,
    )
    return SlideInfo(
        raw=raw,
        content=content,
        note=note,
        frontmatter=frontmatter,
        title=title,
        level=level,
    )
