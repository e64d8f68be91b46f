"""Registry of backend commands exposed by the client."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List, Literal, Optional

InputType = Literal["text", "image"]

GROUP_WORDS = "words"
GROUP_TEXT = "text"
GROUP_IMAGE = "image"
GROUP_FST = "fst"
GROUP_ALIASES = "aliases"

FST_MISSING_MESSAGE = "FST model not loaded"


@dataclass(slots=True)
class CommandSpec:
    """Describe one backend command and how its input is collected."""

    name: str
    label: str
    input_type: InputType = "text"
    special: Optional[str] = None
    group: str = GROUP_WORDS
    description: str = ""


class CommandCatalog:
    """In-memory registry of command specs, kept in insertion order."""

    def __init__(self) -> None:
        self._commands: Dict[str, CommandSpec] = {}

    def add(self, spec: CommandSpec) -> None:
        """Register a command."""
        self._commands[spec.name] = spec

    def get(self, name: str) -> CommandSpec:
        """Retrieve a command by name."""
        try:
            return self._commands[name]
        except KeyError as exc:
            raise KeyError(f"Unknown command '{name}'") from exc

    def __contains__(self, name: object) -> bool:
        return name in self._commands

    def list_commands(self, group: Optional[str] = None) -> List[CommandSpec]:
        """Return all commands, optionally restricted to one group."""
        return [spec for spec in self._commands.values() if group is None or spec.group == group]

    def groups(self) -> List[str]:
        """Return group names in first-seen order."""
        seen: List[str] = []
        for spec in self._commands.values():
            if spec.group not in seen:
                seen.append(spec.group)
        return seen

    def describe(self, group: Optional[str] = None) -> List[str]:
        """Return ``label: description`` lines for commands that carry one."""
        return [
            f"{spec.label}: {spec.description}"
            for spec in self.list_commands(group)
            if spec.description
        ]


_DEFAULT_COMMANDS = (
    CommandSpec("anagram", "Anagram", description="Words using exactly these letters (? is a wildcard)"),
    CommandSpec("multianagram", "Multi-anagram", description="Phrases using exactly these letters"),
    CommandSpec("match", "Match", description="Words matching a pattern (? is a wildcard)"),
    CommandSpec("multimatch", "Multi-match", description="Phrases matching a pattern"),
    CommandSpec("offbyone", "Off by one", description="Words one letter away"),
    CommandSpec("morse", "Morse", description="Words from undelimited morse"),
    CommandSpec("t9", "T9", description="Words from keypad digits"),
    CommandSpec("checkwords", "Check words", description="Validate every word, line by line"),
    CommandSpec("analysis", "Analysis", group=GROUP_TEXT, description="Look for hidden structure"),
    CommandSpec(
        "chunk",
        "Chunk",
        special="chunk",
        group=GROUP_TEXT,
        description="Split text into chunks of the given sizes",
    ),
    CommandSpec("letters", "Letters", group=GROUP_TEXT, description="Letter distribution"),
    CommandSpec("shift", "Caesar shifts", group=GROUP_TEXT, description="All 26 shifts, scored"),
    CommandSpec("transpose", "Transpose", group=GROUP_TEXT, description="Swap rows and columns"),
    CommandSpec("wordsearch", "Word search", group=GROUP_TEXT, description="Find words in a grid"),
    CommandSpec("firstletters", "First letters", group=GROUP_TEXT, description="First letter of each word"),
    CommandSpec("reverse", "Reverse", group=GROUP_TEXT, description="Reverse the text"),
    CommandSpec("colours", "Colours", input_type="image", group=GROUP_IMAGE, description="Colour counts"),
    CommandSpec("hidden", "Hidden pixels", input_type="image", group=GROUP_IMAGE, description="Reveal near-identical pixels"),
    CommandSpec("rgb", "RGB split", input_type="image", group=GROUP_IMAGE, description="Split into channels"),
    CommandSpec("fstanagram", "FST anagram", group=GROUP_FST, description="Anagrams from the FST model"),
    CommandSpec("fstregex", "FST regex", group=GROUP_FST, description="Regex search over the FST model"),
    CommandSpec("fstmorse", "FST morse", group=GROUP_FST, description="Morse search over the FST model"),
    CommandSpec("wordlink", "Word link", group=GROUP_FST, description="Words linking two words"),
)


def default_catalog() -> CommandCatalog:
    """Return a catalog holding every command the backend understands."""
    catalog = CommandCatalog()
    for spec in _DEFAULT_COMMANDS:
        catalog.add(replace(spec))
    # American spelling accepted by the backend; not shown as a separate button.
    catalog.add(CommandSpec("colors", "Colors", input_type="image", group=GROUP_ALIASES))
    return catalog
