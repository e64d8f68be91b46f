"""HTTP client for the kowalski command API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, BinaryIO, Dict, Optional

import requests

from config.settings import AppConfig
from modules.commands.catalog import FST_MISSING_MESSAGE

logger = logging.getLogger(__name__)

COMMAND_ENDPOINT = "/api/command"
IMAGE_ENDPOINT = "/api/image"


class CommandResponseError(ValueError):
    """The backend answered with something other than a JSON object."""


@dataclass(slots=True)
class CommandResponse:
    """Parsed ``{success, result, error}`` envelope."""

    success: bool
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "CommandResponse":
        if not isinstance(payload, dict):
            raise CommandResponseError(
                f"Unexpected response payload: {type(payload).__name__}"
            )
        error = payload.get("error")
        return cls(
            success=bool(payload.get("success")),
            result=payload.get("result"),
            error=None if error is None else str(error),
        )


class KowalskiClient:
    """Thin wrapper around a requests session bound to one backend."""

    def __init__(self, config: AppConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.base_url = config.backend_url.rstrip("/")
        self.session = session or requests.Session()

    def run_command(self, command: str, text: str) -> CommandResponse:
        """POST a text command; transport and decode errors propagate."""
        response = self.session.post(
            f"{self.base_url}{COMMAND_ENDPOINT}",
            json={"command": command, "input": text},
            timeout=self.config.request_timeout,
        )
        return self._parse(response)

    def run_image_command(self, command: str, filename: str, stream: BinaryIO) -> CommandResponse:
        """POST an image command as multipart form data."""
        response = self.session.post(
            f"{self.base_url}{IMAGE_ENDPOINT}",
            data={"command": command},
            files={"image": (filename, stream)},
            timeout=self.config.request_timeout,
        )
        return self._parse(response)

    def probe_fst(self) -> bool:
        """Return True when the backend has an FST model loaded."""
        try:
            response = self.run_command("fstanagram", "test")
        except (requests.RequestException, ValueError) as exc:
            logger.info("FST not available: %s", exc)
            return False
        if response.success:
            return True
        return bool(response.error) and FST_MISSING_MESSAGE not in (response.error or "")

    def close(self) -> None:
        self.session.close()

    def _parse(self, response: requests.Response) -> CommandResponse:
        # The envelope decides success; HTTP status is not inspected.
        return CommandResponse.from_payload(response.json())
