"""Command catalog tests."""

from __future__ import annotations

import pytest

from modules.commands.catalog import GROUP_ALIASES, GROUP_IMAGE, CommandCatalog, CommandSpec, default_catalog


def test_describe_lists_labels_with_descriptions():
    catalog = CommandCatalog()
    catalog.add(CommandSpec("anagram", "Anagram", description="Words using these letters"))
    catalog.add(CommandSpec("colors", "Colors", group=GROUP_ALIASES))

    assert catalog.describe() == ["Anagram: Words using these letters"]
    assert catalog.describe(GROUP_ALIASES) == []


def test_default_image_commands_are_described():
    lines = default_catalog().describe(GROUP_IMAGE)
    assert lines
    assert all(": " in line for line in lines)


def test_unknown_command_raises_key_error():
    with pytest.raises(KeyError):
        default_catalog().get("nope")
