"""Render trees to HTML for the Gradio history panel."""

from __future__ import annotations

from html import escape
from typing import Dict, List

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
)

_TAGS: Dict[str, str] = {
    SECTION: "div",
    ROW: "div",
    TEXT: "span",
    STRONG: "strong",
    EMPHASIS: "em",
    HEADING: "h4",
    PREFORMATTED: "pre",
    WORD_LIST: "div",
    WORD: "span",
    BULLETS: "ul",
    BULLET: "li",
    BAR: "div",
    SWATCH: "div",
}

# Classes every node of a kind gets, before its own classes.
_BASE_CLASSES: Dict[str, tuple[str, ...]] = {
    WORD_LIST: ("result-list",),
    WORD: ("result-item",),
    BAR: ("bar",),
    SWATCH: ("color-swatch",),
}

STYLESHEET = """
.history-item { border: 1px solid #ddd; border-radius: 6px; padding: 10px; margin-bottom: 10px; }
.history-header { display: flex; justify-content: space-between; margin-bottom: 6px; }
.history-command { color: #2c3e50; text-transform: uppercase; }
.history-time { color: #7f8c8d; font-size: 0.85em; }
.history-input { display: block; font-family: monospace; white-space: pre-wrap; margin-bottom: 6px; }
.result-list { display: flex; flex-wrap: wrap; gap: 4px; }
.result-item { background: #ecf0f1; border-radius: 3px; padding: 2px 6px; }
.result-item.secondary { opacity: 0.6; font-style: italic; }
.result-item.invalid { background: #fadbd8; }
.error { color: #c0392b; }
.loading { color: #7f8c8d; font-style: italic; }
.letter-bar { display: flex; align-items: center; gap: 6px; }
.letter-bar .letter { width: 1.5em; }
.bar { background: #3498db; height: 12px; }
.shift-item.highlight { background: #fef9e7; }
.score { color: #7f8c8d; }
.color-item { display: flex; align-items: center; gap: 8px; }
.color-swatch { width: 24px; height: 24px; border: 1px solid #ccc; }
.image-grid { display: grid; grid-template-columns: repeat(3, 1fr); gap: 8px; }
.image-result img { max-width: 100%; }
"""


def _class_attr(node: RenderNode) -> str:
    classes = _BASE_CLASSES.get(node.kind, ()) + tuple(node.classes)
    if not classes:
        return ""
    return f' class="{escape(" ".join(classes))}"'


def _style_attr(node: RenderNode) -> str:
    if node.kind == BAR:
        width = float(node.attrs.get("width", 0) or 0)
        return f' style="width: {width:g}px;"'
    if node.kind == SWATCH:
        return f' style="background-color: {escape(str(node.attrs.get("colour", "")))};"'
    return ""


def to_html(node: RenderNode) -> str:
    """Serialize a render tree; all text and attribute values are escaped here."""
    if node.kind == IMAGE:
        mime = escape(str(node.attrs.get("mime", "image/png")))
        data = escape(str(node.attrs.get("data", "")))
        alt = escape(str(node.attrs.get("alt", "")))
        return f'<img{_class_attr(node)} src="data:{mime};base64,{data}" alt="{alt}">'

    tag = _TAGS[node.kind]
    parts: List[str] = [f"<{tag}{_class_attr(node)}{_style_attr(node)}>"]
    if node.text:
        parts.append(escape(node.text))
    parts.extend(to_html(child) for child in node.children)
    parts.append(f"</{tag}>")
    return "".join(parts)


def history_html(root: RenderNode) -> str:
    """Wrap the history tree with the panel stylesheet."""
    return f"<style>{STYLESHEET}</style>{to_html(root)}"
