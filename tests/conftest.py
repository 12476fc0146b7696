"""Shared fixtures for deckprep tests."""

from __future__ import annotations

import textwrap

import pytest

from deckprep.models import Mode
from deckprep.preparser import ParserState, PreparserExtension


# ---------------------------------------------------------------------------
# Decks (strings) used across multiple test modules
# ---------------------------------------------------------------------------

BASIC_DECK = textwrap.dedent("""\
    ---
    theme: seriph
    title: My Talk
    ---

    # Welcome

    <!--
    Opening remarks.
    -->

    ---
    layout: center
    ---

    # Second

    Some text

    ---

    ## Third

    ```ts
    const a = 1
    ---
    ```

    <!-- not a note --> trailing text
    """)

FEATURE_DECK = textwrap.dedent("""\
    # Math

    Euler: $e^{i\\pi} + 1 = 0$

    ---

    ```mermaid
    graph TD
      A --> B
    ```

    ---

    <Tweet id="20" />
    """)

HEADMATTER_DECK = textwrap.dedent("""\
    ---
    addons:
      - tagger
    ---

    # One
    @tag

    ---

    # Two
    """)


# Lines that exercise every mode switch: separators of each kind, fences,
# comments, headings, YAML and plain text.
DECK_LINE_POOL = ["---", "----", "--- x", "", "```", "<!-- c -->", "# A", "k: v", "text"]


def random_deck(rng, max_lines=12):
    """Build a deck from random lines of DECK_LINE_POOL."""
    count = rng.randint(0, max_lines)
    text = "\n".join(rng.choice(DECK_LINE_POOL) for _ in range(count))
    return text + "\n" if rng.random() < 0.5 else text


def assert_partition(deck):
    """Slide ranges must cover every line of the document, in order, without gaps."""
    lines = deck.raw.split("\n")
    assert deck.slides, "a document always yields at least one slide"
    assert deck.slides[0].start == 0
    assert deck.slides[-1].end == len(lines)
    for prev, nxt in zip(deck.slides, deck.slides[1:]):
        assert prev.end == nxt.start
    for slide in deck.slides:
        assert slide.start < slide.end


class TagExtension(PreparserExtension):
    """Turns an ``@tag`` line into a frontmatter key and an intro line."""

    def handle(self, state: ParserState) -> bool:
        if state.mode is Mode.CONTENT and state.lines[state.i].strip() == "@tag":
            state.frontmatter_append.append("tagged: true")
            state.content_prepend.append("Intro")
            state.step()
            return True
        return False


@pytest.fixture
def tmp_deck(tmp_path):
    """Write BASIC_DECK to a temp file and return its path."""
    p = tmp_path / "deck.md"
    p.write_text(BASIC_DECK, encoding="utf-8")
    return p
