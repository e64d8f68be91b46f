"""Toolkit-independent render tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Tuple

# Node kinds understood by the output backends.
SECTION = "section"
ROW = "row"
TEXT = "text"
STRONG = "strong"
EMPHASIS = "emphasis"
HEADING = "heading"
PREFORMATTED = "pre"
WORD_LIST = "word_list"
WORD = "word"
BULLETS = "bullets"
BULLET = "bullet"
BAR = "bar"
SWATCH = "swatch"
IMAGE = "image"

KINDS = frozenset(
    {
        SECTION,
        ROW,
        TEXT,
        STRONG,
        EMPHASIS,
        HEADING,
        PREFORMATTED,
        WORD_LIST,
        WORD,
        BULLETS,
        BULLET,
        BAR,
        SWATCH,
        IMAGE,
    }
)


@dataclass(slots=True)
class RenderNode:
    """One element of a rendered view.

    ``text`` holds raw, unescaped content; escaping is the job of whichever
    backend turns the tree into markup.
    """

    kind: str
    text: str = ""
    children: List["RenderNode"] = field(default_factory=list)
    classes: Tuple[str, ...] = ()
    attrs: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.kind not in KINDS:
            raise ValueError(f"Unknown render node kind: {self.kind!r}")

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def walk(self) -> Iterator["RenderNode"]:
        """Yield this node and all descendants depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, kind: str) -> List["RenderNode"]:
        return [node for node in self.walk() if node.kind == kind]

    def plain_text(self) -> str:
        """Concatenate the text of the subtree."""
        return "".join(node.text for node in self.walk())


def node(kind: str, text: str = "", *children: RenderNode, classes: Tuple[str, ...] = (), **attrs: Any) -> RenderNode:
    return RenderNode(kind=kind, text=text, children=list(children), classes=classes, attrs=dict(attrs))
