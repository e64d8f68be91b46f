"""KowalskiClient tests against a stubbed requests session."""

from __future__ import annotations

import io
import json
import os
from typing import Any, Optional

import pytest
import requests

from config.settings import AppConfig
from modules.commands.client import CommandResponse, CommandResponseError, KowalskiClient


class DummyResponse:
    """Stub of requests.Response exposing only json()."""

    def __init__(self, payload: Any = None, text: Optional[str] = None) -> None:
        self.payload = payload
        self.text = text

    def json(self) -> Any:
        if self.text is not None:
            return json.loads(self.text)
        return self.payload


class DummySession:
    """Capture POST calls and replay canned responses."""

    def __init__(self, response: Any = None, error: Optional[Exception] = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def post(self, url: str, **kwargs: Any) -> DummyResponse:
        self.calls.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self.response

    def close(self) -> None:
        self.closed = True


def build_client(session: DummySession, **config_kwargs: Any) -> KowalskiClient:
    config = AppConfig(backend_url="http://kowalski.test/", **config_kwargs)
    return KowalskiClient(config, session=session)


def test_run_command_posts_json_body():
    session = DummySession(DummyResponse({"success": True, "result": {"input": "abc", "result": ["cab"]}}))
    client = build_client(session)

    response = client.run_command("anagram", "abc")

    assert response == CommandResponse(success=True, result={"input": "abc", "result": ["cab"]})
    call = session.calls[0]
    assert call["url"] == "http://kowalski.test/api/command"
    assert call["json"] == {"command": "anagram", "input": "abc"}
    assert call["timeout"] is None


def test_run_command_passes_configured_timeout():
    session = DummySession(DummyResponse({"success": True}))
    client = build_client(session, request_timeout=2.5)

    client.run_command("letters", "hello")

    assert session.calls[0]["timeout"] == 2.5


def test_run_image_command_posts_multipart():
    session = DummySession(DummyResponse({"success": True, "result": {"image": "AAAA"}}))
    client = build_client(session)
    stream = io.BytesIO(b"\x89PNG")

    response = client.run_image_command("hidden", "puzzle.png", stream)

    assert response.success is True
    call = session.calls[0]
    assert call["url"] == "http://kowalski.test/api/image"
    assert call["data"] == {"command": "hidden"}
    assert call["files"] == {"image": ("puzzle.png", stream)}


def test_backend_error_is_returned_not_raised():
    session = DummySession(DummyResponse({"success": False, "error": "invalid word: 123"}))
    client = build_client(session)

    response = client.run_command("anagram", "123")

    assert response.success is False
    assert response.error == "invalid word: 123"
    assert response.result is None


def test_non_json_body_raises_value_error():
    session = DummySession(DummyResponse(text="Method not allowed"))
    client = build_client(session)

    with pytest.raises(ValueError):
        client.run_command("anagram", "abc")


def test_non_object_body_raises_response_error():
    session = DummySession(DummyResponse(["unexpected"]))
    client = build_client(session)

    with pytest.raises(CommandResponseError):
        client.run_command("anagram", "abc")


def test_probe_fst_available_on_success():
    session = DummySession(DummyResponse({"success": True, "result": {"matches": []}}))
    client = build_client(session)

    assert client.probe_fst() is True
    assert session.calls[0]["json"] == {"command": "fstanagram", "input": "test"}


def test_probe_fst_available_on_unrelated_error():
    session = DummySession(DummyResponse({"success": False, "error": "invalid character"}))
    assert build_client(session).probe_fst() is True


def test_probe_fst_unavailable_when_model_missing():
    session = DummySession(DummyResponse({"success": False, "error": "FST model not loaded"}))
    assert build_client(session).probe_fst() is False


def test_probe_fst_unavailable_without_error_text():
    session = DummySession(DummyResponse({"success": False}))
    assert build_client(session).probe_fst() is False


def test_probe_fst_unavailable_on_transport_error():
    session = DummySession(error=requests.ConnectionError("connection refused"))
    assert build_client(session).probe_fst() is False


def test_close_closes_session():
    session = DummySession()
    build_client(session).close()
    assert session.closed is True


@pytest.mark.integration
def test_real_backend_round_trip():
    """Hit a running backend when KOWALSKI_URL points at one."""
    url = os.getenv("KOWALSKI_URL")
    if not url:
        pytest.skip("KOWALSKI_URL 未设置，跳过真实后端测试。")

    client = KowalskiClient(AppConfig(backend_url=url, request_timeout=30))
    try:
        response = client.run_command("letters", "hello")
    except requests.RequestException as exc:
        pytest.skip(f"后端不可达：{exc}")
    finally:
        client.close()

    assert response.success is True
    assert response.result["distribution"]["L"] == 2
