"""CommandDispatcher tests."""

from __future__ import annotations

from typing import Any, Optional

import pytest
import requests

from modules.commands.catalog import default_catalog
from modules.commands.client import CommandResponse
from modules.commands.dispatcher import (
    CHUNK_SIZES_REQUIRED_MESSAGE,
    IMAGE_REQUIRED_MESSAGE,
    TEXT_REQUIRED_MESSAGE,
    CommandDispatcher,
    InputValidationError,
)
from modules.services.history_service import HistoryStore
from modules.services.storage_service import MemorySlotStorage

FIXED_TIME = "2026-03-04T05:06:07+00:00"


class DummyClient:
    """Stub backend client recording every request."""

    def __init__(self, response: Optional[CommandResponse] = None, error: Optional[Exception] = None) -> None:
        self.response = response or CommandResponse(success=True, result={"result": []})
        self.error = error
        self.text_calls: list[tuple[str, str]] = []
        self.image_calls: list[tuple[str, str, bytes]] = []

    def run_command(self, command: str, text: str) -> CommandResponse:
        self.text_calls.append((command, text))
        if self.error is not None:
            raise self.error
        return self.response

    def run_image_command(self, command: str, filename: str, stream: Any) -> CommandResponse:
        self.image_calls.append((command, filename, stream.read()))
        if self.error is not None:
            raise self.error
        return self.response


def build_dispatcher(client: DummyClient, history: Optional[HistoryStore] = None) -> CommandDispatcher:
    store = history if history is not None else HistoryStore()
    return CommandDispatcher(client, store, clock=lambda: FIXED_TIME)


TEXT_COMMANDS = [
    spec.name
    for spec in default_catalog().list_commands()
    if spec.input_type == "text" and spec.special is None
]


@pytest.mark.parametrize("command", TEXT_COMMANDS)
@pytest.mark.parametrize("text", ["", "   ", "\n\t ", None])
def test_empty_text_blocks_dispatch(command, text):
    client = DummyClient()
    dispatcher = build_dispatcher(client)

    with pytest.raises(InputValidationError, match=TEXT_REQUIRED_MESSAGE):
        dispatcher.execute(command, "text", text=text)

    assert client.text_calls == []
    assert len(dispatcher.history) == 0
    assert dispatcher.history.loading is None


@pytest.mark.parametrize("text", ["hello world", "", "   "])
@pytest.mark.parametrize("sizes", ["", "   "])
def test_chunk_requires_sizes(text, sizes):
    client = DummyClient()
    dispatcher = build_dispatcher(client)

    with pytest.raises(InputValidationError):
        dispatcher.execute("chunk", "text", text=text, special="chunk", chunk_sizes=sizes)

    assert client.text_calls == []


def test_chunk_message_when_only_sizes_missing():
    dispatcher = build_dispatcher(DummyClient())
    with pytest.raises(InputValidationError) as excinfo:
        dispatcher.execute("chunk", "text", text="abcdef", special="chunk", chunk_sizes="")
    assert str(excinfo.value) == CHUNK_SIZES_REQUIRED_MESSAGE


def test_chunk_prepends_sizes():
    client = DummyClient()
    dispatcher = build_dispatcher(client)

    entry = dispatcher.execute("chunk", "text", text="  abcdefghi ", special="chunk", chunk_sizes=" 2 3 4 ")

    assert client.text_calls == [("chunk", "2 3 4 abcdefghi")]
    assert entry.input == "2 3 4 abcdefghi"


def test_text_command_trims_input_and_records_result():
    client = DummyClient(CommandResponse(success=True, result={"input": "tca", "result": ["cat", "_act_"]}))
    dispatcher = build_dispatcher(client)

    entry = dispatcher.execute("anagram", "text", text="  tca  ")

    assert client.text_calls == [("anagram", "tca")]
    assert entry.command == "anagram"
    assert entry.input == "tca"
    assert entry.time == FIXED_TIME
    assert entry.type == "text"
    assert entry.result == {"input": "tca", "result": ["cat", "_act_"]}
    assert entry.error is None
    assert dispatcher.history.entries == [entry]


def test_backend_error_is_stored_without_result():
    client = DummyClient(CommandResponse(success=False, error="x"))
    dispatcher = build_dispatcher(client)

    entry = dispatcher.execute("anagram", "text", text="abc")

    assert entry.error == "x"
    assert entry.result is None


def test_transport_error_is_captured():
    client = DummyClient(error=requests.ConnectionError("connection refused"))
    dispatcher = build_dispatcher(client)

    entry = dispatcher.execute("anagram", "text", text="abc")

    assert entry.error == "connection refused"
    assert entry.result is None
    assert len(client.text_calls) == 1  # no retries
    assert dispatcher.history.loading is None


def test_parse_error_is_captured():
    client = DummyClient(error=ValueError("Expecting value: line 1 column 1 (char 0)"))
    dispatcher = build_dispatcher(client)

    entry = dispatcher.execute("shift", "text", text="abc")

    assert entry.error.startswith("Expecting value")


def test_image_command_requires_file():
    client = DummyClient()
    dispatcher = build_dispatcher(client)

    with pytest.raises(InputValidationError, match=IMAGE_REQUIRED_MESSAGE):
        dispatcher.execute("rgb", "image", text="ignored", image=None)
    with pytest.raises(InputValidationError):
        dispatcher.execute("rgb", "image", image="")

    assert client.image_calls == []


def test_image_command_uploads_file(tmp_path):
    image_path = tmp_path / "puzzle.png"
    image_path.write_bytes(b"\x89PNG-data")
    client = DummyClient(CommandResponse(success=True, result={"image": "AAAA"}))
    dispatcher = build_dispatcher(client)

    entry = dispatcher.execute("hidden", "image", text="", image=str(image_path))

    assert client.image_calls == [("hidden", "puzzle.png", b"\x89PNG-data")]
    assert entry.type == "image"
    assert entry.input == "puzzle.png"
    assert entry.result == {"image": "AAAA"}


def test_missing_image_file_is_captured(tmp_path):
    client = DummyClient()
    dispatcher = build_dispatcher(client)

    entry = dispatcher.execute("colours", "image", image=tmp_path / "gone.png")

    assert entry.error
    assert client.image_calls == []


def test_prepare_then_complete_drives_loading_slot():
    client = DummyClient()
    history = HistoryStore(MemorySlotStorage())
    dispatcher = build_dispatcher(client, history)

    pending = dispatcher.prepare("match", "text", text="c?t")
    assert history.loading is None
    assert client.text_calls == []

    dispatcher.show_loading(pending)
    assert history.loading is pending.entry

    entry = dispatcher.complete(pending)
    assert history.loading is None
    assert history.entries[0] is entry
