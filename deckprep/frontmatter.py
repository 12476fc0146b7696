"""Frontmatter codec: YAML blocks delimited by ``---`` lines."""

from __future__ import annotations

import logging
import re
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# A leading "---" line (anything may follow the dashes), then the YAML body up
# to the next "---".  Only the first block of the text is considered.
_FRONTMATTER_RE = re.compile(r"^---[^\n]*\r?\n([\s\S]*?)---")


def load_headmatter(text: str) -> Any:
    """Decode a headmatter block as-is.

    Unlike :func:`decode` there is no leniency here: YAML errors propagate and
    non-mapping results are returned unchanged.
    """
    return yaml.safe_load(text)


def decode(text: str) -> dict[str, Any]:
    """Decode a YAML block into a mapping.

    Anything that does not decode to a mapping (scalars, sequences, an empty
    block) yields an empty dict.
    """
    data = yaml.safe_load(text)
    if not isinstance(data, dict):
        if data is not None:
            logger.debug("Ignoring non-mapping frontmatter of type %s", type(data).__name__)
        return {}
    return data


def split_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Split *text* into its decoded frontmatter and the remaining body."""
    match = _FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    return decode(match.group(1)), text[match.end():]


def encode(data: dict[str, Any]) -> str:
    """Encode a mapping as a trimmed YAML block, or ``""`` if it is empty."""
    if not data:
        return ""
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True).strip()
