"""deckprep — Split a markdown slide deck into slides and re-emit it."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

import yaml

from .models import DeckDocument
from .preparser import PreparserError, parse_file
from .serializer import filter_disabled, prettify, stringify

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def _configure_logging(log_file: str | None, verbose: bool) -> None:
    """Attach handlers to the package logger according to the CLI flags."""
    root = logging.getLogger("deckprep")
    root.setLevel(logging.DEBUG)
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        root.addHandler(file_handler)
    if verbose:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setLevel(logging.DEBUG)
        stream_handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        root.addHandler(stream_handler)


def _deck_to_json(deck: DeckDocument) -> dict[str, Any]:
    return {
        "filepath": deck.filepath,
        "headmatter": deck.headmatter,
        "features": asdict(deck.features),
        "config": deck.config,
        "slides": [
            {
                "index": s.index,
                "start": s.start,
                "end": s.end,
                "title": s.title,
                "level": s.level,
                "frontmatter": s.frontmatter,
                "note": s.note,
                "content": s.content,
            }
            for s in deck.slides
        ],
    }


def _render(deck: DeckDocument, fmt: str) -> str:
    if fmt == "json":
        return json.dumps(_deck_to_json(deck), indent=2, ensure_ascii=False, default=str) + "\n"
    if fmt == "features":
        return "".join(f"{name}: {str(value).lower()}\n" for name, value in asdict(deck.features).items())
    return stringify(deck)


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="deckprep",
        description="Split a markdown slide deck into slides, or re-emit it in canonical form.",
    )
    parser.add_argument("input", help="Path to the markdown deck")
    parser.add_argument("--format", choices=["json", "markdown", "features"], default="json",
                        help="Output format: json, markdown, or features (default: json)")
    parser.add_argument("--prettify", action="store_true",
                        help="Rebuild every slide in canonical form before emitting markdown")
    parser.add_argument("--filter-disabled", action="store_true",
                        help="Drop slides whose frontmatter sets 'disabled'")
    parser.add_argument("--output", "-o", help="Write the result here instead of stdout")
    parser.add_argument("--log-file", help="Write a debug log to this file")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log parser progress to stderr")

    args = parser.parse_args()

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: {input_path} not found.", file=sys.stderr)
        sys.exit(1)

    _configure_logging(args.log_file, args.verbose)
    logger.info("CLI arguments: %s", vars(args))

    try:
        deck = parse_file(input_path)
    except (PreparserError, yaml.YAMLError, UnicodeDecodeError) as exc:
        logger.exception("Parse failed")
        print(f"Error: could not parse {input_path}: {exc}", file=sys.stderr)
        sys.exit(1)

    if args.filter_disabled:
        before = len(deck.slides)
        filter_disabled(deck)
        logger.info("Filtered %d disabled slide(s)", before - len(deck.slides))
    if args.prettify:
        prettify(deck)

    output = _render(deck, args.format)
    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"Wrote {len(deck.slides)} slide(s) to {args.output}")
    else:
        sys.stdout.write(output)


if __name__ == "__main__":
    main()
