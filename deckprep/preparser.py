"""Slide deck preparser: splits a markdown document into slides.

The document is scanned line by line by a small state machine.  Extensions
get the first look at every step and may rewrite the line stream, queue lines
for injection into the next slide, or switch modes.  Extensions declared in
the deck's headmatter are resolved once the headmatter block is closed and are
used for the rest of the document.
"""

from __future__ import annotations

import inspect
import json
import logging
import re
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from .config import resolve_config
from .features import detect_features
from .frontmatter import load_headmatter
from .models import (
    BLANK_LINE_RE,
    CODE_FENCE,
    FRONTMATTER_OPEN_RE,
    SLIDE_SEPARATOR_RE,
    DeckDocument,
    Mode,
    ParserMode,
    SlideInfo,
    SlideRecord,
    ThemeMeta,
)
from .slide_parser import parse_slide

logger = logging.getLogger(__name__)


class PreparserError(RuntimeError):
    """The document could not be split into slides."""


class EmptyModeStackError(PreparserError):
    pass


class UnterminatedCodeBlockError(PreparserError):
    pass


class UnhandledModeError(PreparserError):
    pass


class PreparserExtension:
    """Base class for preparser extensions.

    ``handle`` is offered the parser state before the default dispatch of each
    step.  Returning ``True`` claims the step: the extension is then
    responsible for moving the state forward (usually through
    :meth:`ParserState.step` and :meth:`ParserState.slice`).
    """

    disabled: bool = False

    def handle(self, state: ParserState) -> bool:
        return False


ExtensionList = list[PreparserExtension]
HeadmatterCallback = Callable[
    [Any, ExtensionList, str | None],
    ExtensionList | Awaitable[ExtensionList],
]
ConfigResolver = Callable[[dict[str, Any], ThemeMeta | None], Any]


def _mode_name(mode: ParserMode) -> str:
    if isinstance(mode, Mode):
        return mode.value
    return mode.tag


@dataclass
class ParserState:
    """Mutable context of a single parse."""

    lines: list[str]
    slides: list[SlideRecord] = field(default_factory=list)
    i: int = 0
    start: int = 0
    # End of the previous slice; recorded as the range start of the next slide
    # so that ranges cover separator lines too.
    boundary: int = 0
    mode: ParserMode = Mode.CONTENT
    mode_stack: list[ParserMode] = field(default_factory=list)
    frontmatter_prepend: list[str] = field(default_factory=list)
    frontmatter_append: list[str] = field(default_factory=list)
    content_prepend: list[str] = field(default_factory=list)
    content_append: list[str] = field(default_factory=list)
    ext: dict[str, Any] = field(default_factory=dict)

    def step(
        self,
        by: int = 1,
        mode: ParserMode | None = None,
        push: bool = False,
        pop: bool = False,
    ) -> None:
        """Advance the cursor by *by* lines and update the mode."""
        self.i += by
        if push:
            self.mode_stack.append(self.mode)
        if pop:
            if not self.mode_stack:
                raise EmptyModeStackError(
                    f"Preparser cannot pop empty mode stack, state is {json.dumps(self.snapshot())}"
                )
            self.mode = self.mode_stack.pop()
        if mode is not None:
            self.mode = mode

    def has_pending_injections(self) -> bool:
        return bool(
            self.frontmatter_prepend
            or self.frontmatter_append
            or self.content_prepend
            or self.content_append
        )

    def slice(self, end: int) -> None:
        """Emit the slide made of lines ``[start, end)`` plus pending injections."""
        if self.start != end:
            raw = self.lines[self.start:end]
            content_start = 0
            if self.frontmatter_prepend or self.frontmatter_append:
                if not FRONTMATTER_OPEN_RE.match(raw[0]):
                    raw[0:0] = ["---", "---"]
                close = 1
                while close < len(raw) and raw[close].rstrip() != "---":
                    close += 1
                if close == len(raw):
                    raise PreparserError(
                        f"Cannot inject frontmatter: block opened at line {self.start} is never closed"
                    )
                raw[close:close] = self.frontmatter_append
                raw[1:1] = self.frontmatter_prepend
                content_start = (
                    close + 1 + len(self.frontmatter_prepend) + len(self.frontmatter_append)
                )
            raw[content_start:content_start] = self.content_prepend
            raw.extend(self.content_append)

            self.emit_slide(raw, end)

            self.frontmatter_prepend = []
            self.frontmatter_append = []
            self.content_prepend = []
            self.content_append = []
            self.boundary = end
        elif self.has_pending_injections():
            # Consecutive boundaries produce no slide, so there is nothing to
            # inject into.
            logger.warning(
                "Dropping injected lines pending at empty slide boundary (line %d)", end
            )
            self.frontmatter_prepend = []
            self.frontmatter_append = []
            self.content_prepend = []
            self.content_append = []
        self.start = end

    def emit_slide(self, raw: list[str], end: int) -> None:
        info = parse_slide("\n".join(raw))
        slide = SlideRecord(
            **{f.name: getattr(info, f.name) for f in fields(SlideInfo)},
            index=len(self.slides),
            start=self.boundary,
            end=end,
        )
        self.slides.append(slide)
        logger.debug(
            "Slide %d: lines [%d, %d), title=%r", slide.index, slide.start, end, slide.title
        )

    def snapshot(self) -> dict[str, Any]:
        """Summarize the state for diagnostics (slides reduced to their ranges)."""
        return {
            "i": self.i,
            "start": self.start,
            "mode": _mode_name(self.mode),
            "modeStack": [_mode_name(m) for m in self.mode_stack],
            "lineCount": len(self.lines),
            "slides": [[s.start, s.end] for s in self.slides],
            "frontmatterPrepend": self.frontmatter_prepend,
            "frontmatterAppend": self.frontmatter_append,
            "contentPrepend": self.content_prepend,
            "contentAppend": self.content_append,
        }


class Preparser:
    """Drives one parse of one document."""

    def __init__(self, markdown: str) -> None:
        self.state = ParserState(lines=re.split(r"\r?\n", markdown))

    def run(self, extensions: Sequence[PreparserExtension], stop_at_headmatter: bool = False) -> bool:
        """Scan until the end of the document.

        With *stop_at_headmatter*, stop on the line closing the deck's first
        frontmatter block (before consuming it) and return ``True``; the caller
        then resolves extensions from :meth:`headmatter_text` and calls
        :meth:`resume_after_headmatter`.
        """
        state = self.state
        while state.i < len(state.lines):
            if self._offer(extensions):
                continue

            line = state.lines[state.i].rstrip()
            mode = state.mode

            if mode is Mode.FRONTMATTER_OR_CONTENT:
                # A separator on the last line opens nothing: it has no block
                # to delimit.
                following = state.lines[state.i + 1] if state.i + 1 < len(state.lines) else ""
                has_frontmatter = bool(FRONTMATTER_OPEN_RE.match(line)) and not BLANK_LINE_RE.match(
                    following
                )
                if not has_frontmatter:
                    state.start += 1
                state.step(mode=Mode.FRONTMATTER if has_frontmatter else Mode.CONTENT)

            elif mode is Mode.FRONTMATTER:
                if line == "---":
                    if stop_at_headmatter and not state.slides:
                        return True
                    state.step(mode=Mode.CONTENT)
                else:
                    state.step()

            elif mode is Mode.CONTENT:
                if line.startswith(CODE_FENCE):
                    state.step(mode=Mode.CODEBLOCK, push=True)
                elif SLIDE_SEPARATOR_RE.match(line):
                    state.step(by=0, mode=Mode.SLICE)
                else:
                    state.step()

            elif mode is Mode.CODEBLOCK:
                if line.startswith(CODE_FENCE):
                    state.step(pop=True)
                else:
                    state.step()

            elif mode is Mode.SLICE:
                state.slice(state.i)
                state.step(by=0, mode=Mode.SLICED)

            elif mode is Mode.SLICED:
                state.step(by=0, mode=Mode.FRONTMATTER_OR_CONTENT)

            else:
                raise UnhandledModeError(
                    f"No extension handled mode {_mode_name(mode)!r} at line {state.i}"
                )
        return False

    def _offer(self, extensions: Sequence[PreparserExtension]) -> bool:
        for extension in extensions:
            if extension.disabled:
                continue
            if extension.handle(self.state):
                return True
        return False

    def headmatter_text(self) -> str:
        """Raw text of the frontmatter block currently being closed."""
        return "\n".join(self.state.lines[self.state.start:self.state.i])

    def resume_after_headmatter(self) -> None:
        self.state.step(mode=Mode.CONTENT)

    def finish(self) -> list[SlideRecord]:
        """Flush the trailing slide and return all slides."""
        state = self.state
        if state.mode is Mode.CODEBLOCK:
            opened = _last_fence_line(state.lines, state.start)
            raise UnterminatedCodeBlockError(
                f"Code block opened at line {opened + 1} is never closed"
            )
        if state.start <= len(state.lines) - 1:
            state.slice(len(state.lines))
        elif not state.slides:
            # Only separators: keep one empty slide so the lines stay covered.
            state.emit_slide([], len(state.lines))
        elif state.slides[-1].end < len(state.lines):
            state.slides[-1].end = len(state.lines)
        return state.slides


def _last_fence_line(lines: list[str], start: int) -> int:
    for n in range(len(lines) - 1, start - 1, -1):
        if lines[n].startswith(CODE_FENCE):
            return n
    return start


def _build_document(
    markdown: str,
    slides: list[SlideRecord],
    filepath: str | None,
    theme_meta: ThemeMeta | None,
    config_resolver: ConfigResolver,
) -> DeckDocument:
    headmatter: dict[str, Any] = dict(slides[0].frontmatter) if slides else {}
    if not headmatter.get("title") and slides and slides[0].title:
        headmatter["title"] = slides[0].title

    logger.info("Parsed %s: %d slide(s)", filepath or "<string>", len(slides))
    return DeckDocument(
        slides=slides,
        raw=markdown,
        config=config_resolver(headmatter, theme_meta),
        features=detect_features(markdown),
        headmatter=headmatter,
        filepath=filepath,
        theme_meta=theme_meta,
    )


def _resume(preparser: Preparser, resolved: Any) -> None:
    extensions = list(resolved or [])
    logger.debug("Headmatter resolved %d extension(s)", len(extensions))
    preparser.resume_after_headmatter()
    preparser.run(extensions)


async def parse(
    markdown: str,
    filepath: str | None = None,
    theme_meta: ThemeMeta | None = None,
    extensions: Sequence[PreparserExtension] | None = None,
    on_headmatter: HeadmatterCallback | None = None,
    config_resolver: ConfigResolver = resolve_config,
) -> DeckDocument:
    """Parse *markdown* into a :class:`DeckDocument`.

    *on_headmatter* receives the decoded headmatter, the current extensions
    and *filepath*, and returns (or resolves to) the extensions to use for the
    remainder of the document.  It is called at most once.
    """
    preparser = Preparser(markdown)
    current = list(extensions or [])
    if preparser.run(current, stop_at_headmatter=on_headmatter is not None):
        headmatter = load_headmatter(preparser.headmatter_text())
        resolved = on_headmatter(headmatter, current, filepath)
        if inspect.isawaitable(resolved):
            resolved = await resolved
        _resume(preparser, resolved)
    slides = preparser.finish()
    return _build_document(markdown, slides, filepath, theme_meta, config_resolver)


def parse_sync(
    markdown: str,
    filepath: str | None = None,
    theme_meta: ThemeMeta | None = None,
    extensions: Sequence[PreparserExtension] | None = None,
    on_headmatter: HeadmatterCallback | None = None,
    config_resolver: ConfigResolver = resolve_config,
) -> DeckDocument:
    """Synchronous :func:`parse`; *on_headmatter* must return a plain list."""
    preparser = Preparser(markdown)
    current = list(extensions or [])
    if preparser.run(current, stop_at_headmatter=on_headmatter is not None):
        headmatter = load_headmatter(preparser.headmatter_text())
        resolved = on_headmatter(headmatter, current, filepath)
        if inspect.isawaitable(resolved):
            if inspect.iscoroutine(resolved):
                resolved.close()
            raise TypeError("on_headmatter returned an awaitable; use parse() instead of parse_sync()")
        _resume(preparser, resolved)
    slides = preparser.finish()
    return _build_document(markdown, slides, filepath, theme_meta, config_resolver)


def parse_file(path: str | Path, **kwargs: Any) -> DeckDocument:
    """Read a markdown file and parse it with :func:`parse_sync`."""
    with open(path, encoding="utf-8") as f:
        raw = f.read()
    return parse_sync(raw, filepath=str(path), **kwargs)
