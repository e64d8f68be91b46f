"""Command-line runner tests."""

from __future__ import annotations

import json
from typing import Any

import pytest

from modules.commands.client import CommandResponse
from scripts import run_command


class DummyClient:
    """Stand-in for KowalskiClient that never touches the network."""

    response = CommandResponse(success=True, result={"input": "tca", "result": ["cat", "_act_"]})
    calls: list[tuple[str, str]] = []

    def __init__(self, config: Any) -> None:
        self.config = config
        self.closed = False

    def run_command(self, command: str, text: str) -> CommandResponse:
        DummyClient.calls.append((command, text))
        return DummyClient.response

    def run_image_command(self, command: str, filename: str, stream: Any) -> CommandResponse:
        DummyClient.calls.append((command, filename))
        return DummyClient.response

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def cli(tmp_path, monkeypatch):
    """准备隔离的存储目录并替换后端客户端。"""
    monkeypatch.setenv("KOWALSKI_STORAGE_DIR", str(tmp_path / "store"))
    monkeypatch.setenv("KOWALSKI_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setattr(run_command, "KowalskiClient", DummyClient)
    monkeypatch.setattr(run_command, "setup_logging", lambda config: None)
    monkeypatch.setattr(DummyClient, "calls", [])
    monkeypatch.setattr(DummyClient, "response", DummyClient.response)
    env_file = str(tmp_path / "missing.env")

    def invoke(*argv: str) -> int:
        return run_command.run(run_command.parse_args(["--env", env_file, *argv]))

    return invoke


def test_text_command_prints_result_and_records_history(cli, tmp_path, capsys):
    assert cli("anagram", "tca") == 0

    out = capsys.readouterr().out
    assert "anagram" in out
    assert "cat, (act)" in out
    assert DummyClient.calls == [("anagram", "tca")]

    stored = json.loads((tmp_path / "store" / "kowalskiHistory.json").read_text(encoding="utf-8"))
    assert stored[0]["command"] == "anagram"
    assert stored[0]["input"] == "tca"


def test_input_words_are_joined(cli):
    cli("match", "c.t", "d.g")
    assert DummyClient.calls == [("match", "c.t d.g")]


def test_chunk_without_sizes_is_rejected(cli, capsys):
    assert cli("chunk", "abcdef") == 1
    assert "chunk sizes" in capsys.readouterr().err
    assert DummyClient.calls == []


def test_backend_error_sets_exit_code(cli, monkeypatch, capsys):
    monkeypatch.setattr(DummyClient, "response", CommandResponse(success=False, error="invalid word: 123"))

    assert cli("anagram", "123") == 1
    assert "Error: invalid word: 123" in capsys.readouterr().out


def test_no_history_skips_storage(cli, tmp_path):
    assert cli("reverse", "abc", "--no-history") == 0
    assert not (tmp_path / "store").exists()


@pytest.mark.parametrize("payload", ["AAAA", "not base64!!"])
def test_unreadable_image_payload_exits_with_error(cli, tmp_path, monkeypatch, capsys, payload):
    """后端返回的图片无法解码时，CLI 应报错退出而不是抛出异常。"""
    monkeypatch.setattr(DummyClient, "response", CommandResponse(success=True, result={"image": payload}))
    puzzle = tmp_path / "puzzle.png"
    puzzle.write_bytes(b"png")

    code = cli("hidden", "--image", str(puzzle), "--save-images", str(tmp_path / "out"))

    assert code == 1
    assert "error: could not save images" in capsys.readouterr().err
    assert DummyClient.calls == [("hidden", "puzzle.png")]


def test_help_lists_command_descriptions(capsys):
    with pytest.raises(SystemExit):
        run_command.parse_args(["--help"])

    out = capsys.readouterr().out
    assert "Words using exactly these letters" in out
    assert "reverse" in out
