"""Map command results and history entries to render trees."""

from __future__ import annotations

import json
import logging
import string
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from modules.rendering.render_tree import (
    BAR,
    BULLET,
    BULLETS,
    EMPHASIS,
    HEADING,
    IMAGE,
    PREFORMATTED,
    ROW,
    SECTION,
    STRONG,
    SWATCH,
    TEXT,
    WORD,
    WORD_LIST,
    RenderNode,
    node,
)
from modules.services.history_service import HistoryEntry
from modules.services.redaction import IMAGE_DATA_REMOVED

logger = logging.getLogger(__name__)

Renderer = Callable[[Dict[str, Any]], RenderNode]

NO_RESULTS = "No results found"
NOTHING_INTERESTING = "Nothing interesting found"
IMAGE_UNAVAILABLE = "Image data not available in history"
LETTER_BAR_WIDTH = 200
SHIFT_HIGHLIGHT_SCORE = 0.5
MAX_COLOURS_SHOWN = 25

_RENDERERS: Dict[str, Renderer] = {}


def renders(*commands: str) -> Callable[[Renderer], Renderer]:
    """Register a renderer for one or more commands."""

    def decorator(func: Renderer) -> Renderer:
        for command in commands:
            _RENDERERS[command] = func
        return func

    return decorator


def registered_commands() -> List[str]:
    return sorted(_RENDERERS)


def render_result(command: str, result: Any) -> RenderNode:
    """Pure mapping from a command result to its view."""
    renderer = _RENDERERS.get(command)
    if renderer is None or not isinstance(result, dict):
        return render_generic(result)
    try:
        return renderer(result)
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        logger.warning("Unexpected '%s' result shape, showing raw JSON: %s", command, exc)
        return render_generic(result)


def render_generic(result: Any) -> RenderNode:
    return node(PREFORMATTED, json.dumps(result, indent=2, ensure_ascii=False))


# Building blocks --------------------------------------------------------------
def _items(value: Any) -> List[Any]:
    """Backend lists may arrive as null."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def is_secondary(word: str) -> bool:
    """Matches from the backup dictionary are wrapped as ``_word_``."""
    return len(word) >= 2 and word.startswith("_") and word.endswith("_")


def render_word_list(words: Optional[Sequence[Any]]) -> RenderNode:
    items = _items(words)
    if not items:
        return node(TEXT, NO_RESULTS)
    children = []
    for raw in items:
        word = str(raw)
        if is_secondary(word):
            children.append(node(WORD, word[1:-1], classes=("secondary",)))
        else:
            children.append(node(WORD, word))
    return node(WORD_LIST, "", *children)


def render_image(data: Optional[str], alt: str) -> RenderNode:
    if not data or data == IMAGE_DATA_REMOVED:
        return node(SECTION, "", node(EMPHASIS, IMAGE_UNAVAILABLE), classes=("image-result",))
    return node(
        SECTION,
        "",
        node(IMAGE, data=data, alt=alt, mime="image/png"),
        classes=("image-result",),
    )


def _scored_terms(matches: Iterable[Any]) -> RenderNode:
    children = []
    for match in matches:
        if isinstance(match, dict):
            children.append(node(WORD, f"{match.get('term', '')} ({match.get('score', '')})"))
        else:
            children.append(node(WORD, str(match)))
    return node(WORD_LIST, "", *children)


# Per-command renderers --------------------------------------------------------
@renders("anagram", "match", "morse", "multianagram", "multimatch", "offbyone", "t9")
def render_words(result: Dict[str, Any]) -> RenderNode:
    return render_word_list(result.get("result"))


@renders("analysis")
def render_analysis(result: Dict[str, Any]) -> RenderNode:
    findings = _items(result.get("result"))
    if not findings:
        return node(TEXT, NOTHING_INTERESTING)
    return node(BULLETS, "", *(node(BULLET, str(item)) for item in findings))


@renders("chunk")
def render_chunks(result: Dict[str, Any]) -> RenderNode:
    return node(WORD_LIST, "", *(node(WORD, str(chunk)) for chunk in _items(result.get("result"))))


@renders("letters")
def render_letter_distribution(result: Dict[str, Any]) -> RenderNode:
    distribution = result.get("distribution") or {}
    counts = {letter: int(distribution.get(letter, 0) or 0) for letter in string.ascii_uppercase}
    peak = max(counts.values())
    rows = []
    for letter, count in counts.items():
        width = count / peak * LETTER_BAR_WIDTH if peak > 0 else 0
        rows.append(
            node(
                ROW,
                "",
                node(TEXT, f"{letter}:", classes=("letter",)),
                node(BAR, width=width),
                node(TEXT, str(count), classes=("count",)),
                classes=("letter-bar",),
            )
        )
    return node(SECTION, "", *rows)


@renders("shift")
def render_shifts(result: Dict[str, Any]) -> RenderNode:
    rows = []
    for shift in _items(result.get("shifts")):
        if not isinstance(shift, dict):
            continue
        score = float(shift.get("score") or 0)
        classes = ("shift-item", "highlight") if score > SHIFT_HIGHLIGHT_SCORE else ("shift-item",)
        rows.append(
            node(
                ROW,
                "",
                node(STRONG, f"{shift.get('shift')}:"),
                node(TEXT, f" {shift.get('text', '')} "),
                node(TEXT, f"({score:.5f})", classes=("score",)),
                classes=classes,
            )
        )
    return node(SECTION, "", *rows)


@renders("transpose", "firstletters", "reverse")
def render_preformatted(result: Dict[str, Any]) -> RenderNode:
    value = result.get("result")
    return node(PREFORMATTED, "" if value is None else str(value))


@renders("checkwords")
def render_checked_words(result: Dict[str, Any]) -> RenderNode:
    lines = []
    for line in _items(result.get("result")):
        words = []
        for item in _items(line):
            if not isinstance(item, dict):
                continue
            checkers = _items(item.get("checkers"))
            if not item.get("valid"):
                classes: tuple[str, ...] = ("invalid",)
            elif 0 in checkers:
                classes = ("valid",)
            else:
                # Only the backup dictionary knows this word.
                classes = ("valid", "secondary")
            words.append(node(WORD, str(item.get("word", "")), classes=classes))
        lines.append(node(WORD_LIST, "", *words))
    if not lines:
        return node(TEXT, NO_RESULTS)
    return node(SECTION, "", *lines)


@renders("wordsearch")
def render_word_search(result: Dict[str, Any]) -> RenderNode:
    return node(
        SECTION,
        "",
        node(HEADING, "Normal:"),
        render_word_list(result.get("normal")),
        node(HEADING, "Up/Down:"),
        render_word_list(result.get("updown")),
    )


@renders("colours", "colors")
def render_colours(result: Dict[str, Any]) -> RenderNode:
    summary = f"Total colours: {result.get('totalColours', 0)}"
    if result.get("truncated"):
        summary += f" (showing first {MAX_COLOURS_SHOWN})"

    rows = []
    for colour in _items(result.get("colours")):
        if not isinstance(colour, dict):
            continue
        info = f"{colour.get('hex')} | RGB({colour.get('r')}, {colour.get('g')}, {colour.get('b')})"
        alpha = colour.get("a", 255)
        if isinstance(alpha, (int, float)) and alpha < 255:
            info += f" | A({alpha})"
        info += f" | {colour.get('count')} pixels"
        rows.append(
            node(
                ROW,
                "",
                node(SWATCH, colour=str(colour.get("hex", ""))),
                node(TEXT, info, classes=("color-info",)),
                classes=("color-item",),
            )
        )
    return node(SECTION, "", node(TEXT, summary), node(SECTION, "", *rows))


@renders("hidden")
def render_hidden(result: Dict[str, Any]) -> RenderNode:
    return render_image(result.get("image"), "Hidden pixels result")


@renders("rgb")
def render_rgb(result: Dict[str, Any]) -> RenderNode:
    channels = []
    for field_name, title in (("red", "Red"), ("green", "Green"), ("blue", "Blue")):
        channels.append(
            node(
                SECTION,
                "",
                node(HEADING, f"{title} Channel"),
                render_image(result.get(field_name), f"{title} channel"),
            )
        )
    return node(SECTION, "", *channels, classes=("image-grid",))


@renders("fstanagram", "fstregex", "fstmorse")
def render_fst_matches(result: Dict[str, Any]) -> RenderNode:
    matches = _items(result.get("matches"))
    if not matches:
        return node(TEXT, NO_RESULTS)
    return _scored_terms(matches)


@renders("wordlink")
def render_word_link(result: Dict[str, Any]) -> RenderNode:
    words = [str(word) for word in _items(result.get("words"))] + ["", ""]
    return node(
        SECTION,
        "",
        node(TEXT, f"Linking words for '{words[0]}' <> '{words[1]}':"),
        _scored_terms(_items(result.get("links"))),
    )


# Entry and history views ------------------------------------------------------
def format_time(value: str) -> str:
    """Show an ISO timestamp in local time; unparseable values pass through."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.strftime("%Y-%m-%d %H:%M:%S")


def _header(command: str, when: str) -> RenderNode:
    return node(
        ROW,
        "",
        node(STRONG, command, classes=("history-command",)),
        node(TEXT, when, classes=("history-time",)),
        classes=("history-header",),
    )


def render_entry(entry: HistoryEntry) -> RenderNode:
    label = entry.input if entry.type == "text" else f"Image: {entry.input}"
    body: List[RenderNode] = []
    if entry.error:
        body.append(node(TEXT, f"Error: {entry.error}", classes=("error",)))
    elif entry.result is not None:
        body.append(render_result(entry.command, entry.result))
    return node(
        SECTION,
        "",
        _header(entry.command, format_time(entry.time)),
        node(TEXT, label, classes=("history-input",)),
        node(SECTION, "", *body, classes=("history-result",)),
        classes=("history-item",),
    )


def render_loading(entry: HistoryEntry) -> RenderNode:
    return node(
        SECTION,
        "",
        _header(entry.command, "Processing..."),
        node(TEXT, "Executing command...", classes=("loading",)),
        classes=("history-item", "loading"),
    )


def render_history(entries: Iterable[HistoryEntry], loading: Optional[HistoryEntry] = None) -> RenderNode:
    """Whole history panel: placeholder first, then entries newest first."""
    children: List[RenderNode] = []
    if loading is not None:
        children.append(render_loading(loading))
    children.extend(render_entry(entry) for entry in entries)
    return node(SECTION, "", *children, classes=("history",))
