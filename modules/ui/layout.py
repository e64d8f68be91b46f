"""Gradio layout composition for the kowalski command panel."""

from __future__ import annotations

from typing import Any, Optional

try:
    import gradio as gr
except ImportError:  # pragma: no cover
    gr = None  # type: ignore

from config.settings import AppConfig
from modules.commands.catalog import (
    GROUP_FST,
    GROUP_IMAGE,
    GROUP_TEXT,
    GROUP_WORDS,
    CommandCatalog,
    default_catalog,
)
from modules.commands.client import KowalskiClient
from modules.commands.dispatcher import CommandDispatcher
from modules.services.history_service import HistoryStore
from modules.services.storage_service import FileSlotStorage
from modules.ui.callbacks import build_callbacks

_GROUP_TITLES = {
    GROUP_WORDS: "Words",
    GROUP_TEXT: "Text",
    GROUP_IMAGE: "Images",
    GROUP_FST: "FST",
}


def build_history(config: AppConfig) -> HistoryStore:
    """Create the file-backed history store and load what was persisted."""
    storage = FileSlotStorage(config.storage_dir, quota_bytes=config.storage_quota_bytes)
    history = HistoryStore(storage, key=config.history_key, limit=config.history_limit)
    history.load_from_persistent()
    return history


def _raise_alert(message: str) -> None:
    raise gr.Error(message)


def build_app(
    config: AppConfig,
    history: Optional[HistoryStore] = None,
    client: Optional[KowalskiClient] = None,
    catalog: Optional[CommandCatalog] = None,
) -> Any:
    """Compose and return the Gradio application."""
    if gr is None:
        raise RuntimeError("Gradio is not installed; install the project dependencies first.")

    store = history if history is not None else build_history(config)
    backend = client or KowalskiClient(config)
    commands = catalog or default_catalog()

    callbacks_map = build_callbacks(
        config,
        client=backend,
        history=store,
        dispatcher=CommandDispatcher(backend, store),
        catalog=commands,
        alert=_raise_alert,
    )
    handlers = callbacks_map["command_handlers"]

    def _on_load() -> tuple[str, Any]:
        html, fst_available = callbacks_map["on_load"]()
        return html, gr.update(visible=fst_available)

    def _on_request_clear() -> Any:
        return gr.update(visible=callbacks_map["on_request_clear"]())

    def _answer_clear(confirmed: bool):
        def _handler() -> tuple[str, Any]:
            html, show_confirm = callbacks_map["on_clear_history"](confirmed)
            return html, gr.update(visible=show_confirm)

        return _handler

    buttons: list[tuple[str, Any]] = []
    with gr.Blocks(title="Kowalski") as demo:
        gr.Markdown("## Kowalski")

        with gr.Row():
            with gr.Column(scale=1):
                text_input = gr.Textbox(
                    label="Input",
                    lines=6,
                    placeholder="Letters, a pattern, morse, digits or a grid",
                )
                chunk_sizes = gr.Textbox(
                    label="Chunk sizes",
                    placeholder='e.g. "3" or "2 3 4"',
                )
                image_file = gr.File(
                    label="Image",
                    file_types=["image"],
                    type="filepath",
                )

                fst_group = None
                for group in (GROUP_WORDS, GROUP_TEXT, GROUP_IMAGE, GROUP_FST):
                    specs = commands.list_commands(group)
                    if not specs:
                        continue
                    # FST buttons stay hidden until the backend reports a loaded model.
                    with gr.Group(visible=group != GROUP_FST) as container:
                        gr.Markdown(f"**{_GROUP_TITLES[group]}**")
                        with gr.Row():
                            for spec in specs:
                                button = gr.Button(spec.label, size="sm")
                                buttons.append((spec.name, button))
                        help_lines = commands.describe(group)
                        if help_lines:
                            with gr.Accordion("What do these do?", open=False):
                                gr.Markdown("\n".join(f"- {line}" for line in help_lines))
                    if group == GROUP_FST:
                        fst_group = container

            with gr.Column(scale=2):
                with gr.Row():
                    gr.Markdown("### History")
                    clear_btn = gr.Button("Clear history", size="sm", variant="stop")
                with gr.Row(visible=False) as confirm_row:
                    gr.Markdown("Are you sure you want to clear the history?")
                    confirm_btn = gr.Button("Clear", variant="stop", size="sm")
                    cancel_btn = gr.Button("Cancel", size="sm")
                history_panel = gr.HTML()

        inputs = [text_input, chunk_sizes, image_file]
        for name, button in buttons:
            button.click(fn=handlers[name], inputs=inputs, outputs=history_panel)

        clear_btn.click(fn=_on_request_clear, outputs=confirm_row)
        confirm_btn.click(fn=_answer_clear(True), outputs=[history_panel, confirm_row])
        cancel_btn.click(fn=_answer_clear(False), outputs=[history_panel, confirm_row])

        if fst_group is not None:
            demo.load(fn=_on_load, outputs=[history_panel, fst_group])
        else:
            demo.load(fn=callbacks_map["on_refresh"], outputs=history_panel)

    return demo
