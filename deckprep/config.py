"""Default deck configuration resolver.

The preparser treats configuration resolution as a black box; this is the
resolver used when the caller does not supply one.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from .models import ThemeMeta

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict[str, Any] = {
    "title": "Slidev",
    "theme": "default",
    "highlighter": "prism",
    "colorSchema": "auto",
    "aspectRatio": 16 / 9,
    "canvasWidth": 980,
    "routerMode": "history",
    "download": False,
    "info": False,
    "drawings": {},
    "fonts": {},
}


def resolve_config(headmatter: dict[str, Any], theme_meta: ThemeMeta | None = None) -> dict[str, Any]:
    """Layer built-in defaults, theme defaults and the deck headmatter."""
    config = copy.deepcopy(DEFAULT_CONFIG)
    if theme_meta is not None:
        config.update(copy.deepcopy(theme_meta.defaults))
        if theme_meta.highlighter in ("prism", "shiki"):
            config["highlighter"] = theme_meta.highlighter
    config.update(copy.deepcopy({k: v for k, v in headmatter.items() if v is not None}))
    logger.debug("Resolved config keys: %s", sorted(config))
    return config
