"""Plain-text rendering for terminal output."""

from __future__ import annotations

from typing import List

from modules.rendering.render_tree import (
    BAR,
    BULLET,
    BULLETS,
    HEADING,
    IMAGE,
    PREFORMATTED,
    ROW,
    SWATCH,
    WORD,
    WORD_LIST,
    RenderNode,
)

BAR_SCALE = 10  # pixels per character


def _inline(node: RenderNode) -> str:
    if node.kind == BAR:
        return "#" * int(round(float(node.attrs.get("width", 0) or 0) / BAR_SCALE))
    if node.kind == SWATCH:
        return "[]"
    if node.kind == IMAGE:
        return f"<image: {node.attrs.get('alt', '')}>"
    if node.kind == WORD and node.has_class("secondary"):
        return f"({node.text})"
    return node.text + "".join(_inline(child) for child in node.children)


def _lines(node: RenderNode, depth: int = 0) -> List[str]:
    indent = "  " * depth
    if node.kind == WORD_LIST:
        return [indent + ", ".join(_inline(child) for child in node.children)]
    if node.kind == BULLETS:
        return [f"{indent}- {_inline(child)}" for child in node.children if child.kind == BULLET]
    if node.kind == PREFORMATTED:
        return [indent + line for line in node.text.splitlines()] or [indent]
    if node.kind == ROW:
        return [indent + " ".join(filter(None, (_inline(child) for child in node.children)))]
    if node.kind == HEADING:
        return [indent + node.text]
    if not node.children:
        text = _inline(node)
        return [indent + text] if text else []

    lines: List[str] = []
    if node.text:
        lines.append(indent + node.text)
    for child in node.children:
        lines.extend(_lines(child, depth + 1 if node.has_class("history-result") else depth))
    return lines


def to_text(node: RenderNode) -> str:
    """Flatten a render tree into readable lines; secondary words are parenthesized."""
    return "\n".join(_lines(node))
