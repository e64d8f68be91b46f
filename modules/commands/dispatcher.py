"""Validate user input, call the backend and record the outcome."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

import requests

from modules.commands.client import CommandResponse, KowalskiClient
from modules.services.history_service import HistoryEntry, HistoryStore, utc_timestamp

logger = logging.getLogger(__name__)

ImageSource = Union[str, os.PathLike]

TEXT_REQUIRED_MESSAGE = "Please enter some text first"
IMAGE_REQUIRED_MESSAGE = "Please select an image file"
CHUNK_SIZES_REQUIRED_MESSAGE = 'Please enter chunk sizes (e.g., "3" or "2 3 4")'


class InputValidationError(ValueError):
    """User input is incomplete; nothing was sent to the backend."""


@dataclass(slots=True)
class PendingCommand:
    """A validated command waiting to be sent."""

    entry: HistoryEntry
    image_path: Optional[Path] = None


class CommandDispatcher:
    """Run commands against the backend and keep the history in sync."""

    def __init__(
        self,
        client: KowalskiClient,
        history: HistoryStore,
        clock: Callable[[], str] = utc_timestamp,
    ) -> None:
        self.client = client
        self.history = history
        self.clock = clock

    def prepare(
        self,
        command: str,
        input_type: str = "text",
        text: Optional[str] = "",
        special: Optional[str] = None,
        chunk_sizes: Optional[str] = "",
        image: Optional[ImageSource] = None,
    ) -> PendingCommand:
        """Validate input and build the pending history entry."""
        trimmed = (text or "").strip()

        if input_type == "text" and not trimmed:
            raise InputValidationError(TEXT_REQUIRED_MESSAGE)

        if input_type == "image":
            if image is None or str(image) == "":
                raise InputValidationError(IMAGE_REQUIRED_MESSAGE)
            image_path = Path(image)
            return PendingCommand(
                entry=HistoryEntry(
                    command=command,
                    input=image_path.name,
                    time=self.clock(),
                    type="image",
                ),
                image_path=image_path,
            )

        final_input = trimmed
        if special == "chunk":
            sizes = (chunk_sizes or "").strip()
            if not sizes:
                raise InputValidationError(CHUNK_SIZES_REQUIRED_MESSAGE)
            final_input = f"{sizes} {trimmed}"

        return PendingCommand(
            entry=HistoryEntry(command=command, input=final_input, time=self.clock(), type="text")
        )

    def show_loading(self, pending: PendingCommand) -> None:
        self.history.begin_loading(pending.entry)

    def complete(self, pending: PendingCommand) -> HistoryEntry:
        """Send the request once, then swap the placeholder for the final entry."""
        entry = pending.entry
        try:
            response = self._send(pending)
        except (requests.RequestException, ValueError, OSError) as exc:
            logger.warning("Command '%s' failed: %s", entry.command, exc)
            entry.error = str(exc)
        else:
            if response.success:
                entry.result = response.result
            else:
                entry.error = response.error
                logger.info("Backend rejected '%s': %s", entry.command, response.error)

        self.history.end_loading()
        self.history.append(entry)
        return entry

    def execute(
        self,
        command: str,
        input_type: str = "text",
        text: Optional[str] = "",
        special: Optional[str] = None,
        chunk_sizes: Optional[str] = "",
        image: Optional[ImageSource] = None,
    ) -> HistoryEntry:
        """Validate, show the placeholder and run the command to completion."""
        pending = self.prepare(command, input_type, text, special, chunk_sizes, image)
        self.show_loading(pending)
        return self.complete(pending)

    def _send(self, pending: PendingCommand) -> CommandResponse:
        entry = pending.entry
        if pending.image_path is None:
            return self.client.run_command(entry.command, entry.input)
        with pending.image_path.open("rb") as stream:
            return self.client.run_image_command(entry.command, entry.input, stream)
