"""Callback implementations for the Gradio interface."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, Optional

from config.settings import AppConfig
from modules.commands.catalog import CommandCatalog, CommandSpec, default_catalog
from modules.commands.client import KowalskiClient
from modules.commands.dispatcher import CommandDispatcher, InputValidationError
from modules.rendering.html import history_html
from modules.rendering.renderers import render_history
from modules.services.history_service import HistoryStore

logger = logging.getLogger(__name__)

AlertFn = Callable[[str], None]


def _log_alert(message: str) -> None:
    logger.warning("Input rejected: %s", message)


def build_callbacks(
    config: AppConfig,
    client: Optional[KowalskiClient] = None,
    history: Optional[HistoryStore] = None,
    dispatcher: Optional[CommandDispatcher] = None,
    catalog: Optional[CommandCatalog] = None,
    alert: Optional[AlertFn] = None,
) -> dict[str, Any]:
    """Return a dictionary of Gradio callback functions.

    ``alert`` receives validation messages; the app passes a function that
    raises ``gr.Error`` so the browser shows a blocking dialog.
    """

    if dispatcher is not None:
        store = history if history is not None else dispatcher.history
        backend = client or dispatcher.client
        runner = dispatcher
    else:
        store = history if history is not None else HistoryStore(
            key=config.history_key, limit=config.history_limit
        )
        backend = client or KowalskiClient(config)
        runner = CommandDispatcher(backend, store)
    commands = catalog or default_catalog()
    notify = alert or _log_alert

    def _render() -> str:
        return history_html(render_history(store.entries, store.loading))

    def on_load() -> tuple[str, bool]:
        """Initial history render plus whether to reveal the FST commands."""
        fst_available = backend.probe_fst()
        logger.info("FST commands %s", "enabled" if fst_available else "hidden")
        return _render(), fst_available

    def on_refresh() -> str:
        return _render()

    def make_command_handler(spec: CommandSpec) -> Callable[[str, str, Any], Iterator[str]]:
        def on_command(text: str, chunk_sizes: str, image: Any) -> Iterator[str]:
            try:
                pending = runner.prepare(
                    spec.name,
                    spec.input_type,
                    text=text,
                    special=spec.special,
                    chunk_sizes=chunk_sizes,
                    image=image,
                )
            except InputValidationError as exc:
                notify(str(exc))
                yield _render()
                return

            runner.show_loading(pending)
            yield _render()
            runner.complete(pending)
            yield _render()

        on_command.__name__ = f"on_{spec.name}"
        return on_command

    command_handlers: Dict[str, Callable[[str, str, Any], Iterator[str]]] = {
        spec.name: make_command_handler(spec) for spec in commands.list_commands()
    }

    def on_request_clear() -> bool:
        """Show the confirmation controls."""
        return True

    def on_clear_history(confirmed: bool) -> tuple[str, bool]:
        """Apply the user's answer and hide the confirmation controls."""
        store.clear(confirmed)
        return _render(), False

    return {
        "on_load": on_load,
        "on_refresh": on_refresh,
        "on_request_clear": on_request_clear,
        "on_clear_history": on_clear_history,
        "command_handlers": command_handlers,
    }
