"""Settings control panel for the TUI."""

from __future__ import annotations

from dataclasses import replace

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.widget import Widget
from textual.widgets import (
    Button,
    Checkbox,
    Input,
    Label,
    Select,
    Static,
)

from dither_web.core.processor import Settings

LEVEL_CHOICES = (2, 3, 4, 8)
BAYER_CHOICES = (2, 4, 8, 16)
PARALLEL_WORKERS = 5


class ControlPanel(Widget):
    """Settings panel with controls for dithering parameters."""

    DEFAULT_CSS = """
    ControlPanel {
        width: 30;
        height: 1fr;
        background: $panel;
        padding: 1;
        border-left: solid $accent;
    }

    ControlPanel Label {
        margin-top: 1;
        color: $text-muted;
    }

    ControlPanel Select {
        width: 100%;
        margin-bottom: 0;
    }

    ControlPanel Checkbox {
        margin-top: 1;
    }

    ControlPanel #panel-title {
        text-style: bold;
        color: $text;
        margin-bottom: 1;
    }

    ControlPanel .num-row {
        height: 3;
        margin-top: 1;
    }

    ControlPanel .num-row Label {
        width: 12;
        margin-top: 0;
        padding-top: 1;
    }

    ControlPanel .num-row Button {
        min-width: 3;
        margin: 0;
    }

    ControlPanel .num-row Input {
        width: 1fr;
        margin: 0;
    }
    """

    class SettingsChanged(Message):
        """Posted when any setting changes."""
        def __init__(self, settings: Settings) -> None:
            super().__init__()
            self.settings = settings

    def __init__(self, settings: Settings | None = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self._settings = settings or Settings()

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static("Settings", id="panel-title")

            with Horizontal(classes="num-row"):
                yield Label("Threshold")
                yield Button("-", id="threshold-dec")
                yield Input(
                    value=str(self._settings.threshold),
                    id="threshold-input",
                    type="integer",
                )
                yield Button("+", id="threshold-inc")

            yield Label("Levels")
            yield Select(
                [(str(n), n) for n in LEVEL_CHOICES],
                value=self._settings.levels,
                id="levels-select",
            )

            yield Label("Bayer matrix")
            yield Select(
                [(f"{n}x{n}", n) for n in BAYER_CHOICES],
                value=self._settings.bayer_size,
                id="bayer-select",
            )

            yield Label("Seed (blank = random)")
            yield Input(
                value="" if self._settings.seed is None else str(self._settings.seed),
                id="seed-input",
                type="integer",
            )

            yield Checkbox(
                "Parallel", value=self._settings.workers > 1, id="parallel-check"
            )

    @property
    def settings(self) -> Settings:
        return self._settings

    def _update_settings(self, **overrides) -> None:
        """Create new settings with overrides and emit change."""
        self._settings = replace(self._settings, **overrides)
        self.post_message(self.SettingsChanged(self._settings))

    def on_select_changed(self, event: Select.Changed) -> None:
        if not isinstance(event.value, int):
            return
        if event.select.id == "levels-select":
            self._update_settings(levels=int(event.value))
        elif event.select.id == "bayer-select":
            self._update_settings(bayer_size=int(event.value))

    def on_checkbox_changed(self, event: Checkbox.Changed) -> None:
        if event.checkbox.id == "parallel-check":
            self._update_settings(workers=PARALLEL_WORKERS if event.value else 1)

    def _adjust_threshold(self, delta: int) -> None:
        new_val = max(1, min(255, self._settings.threshold + delta))
        self.query_one("#threshold-input", Input).value = str(new_val)
        self._update_settings(threshold=new_val)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        btn = event.button.id
        if btn == "threshold-dec":
            self._adjust_threshold(-8)
        elif btn == "threshold-inc":
            self._adjust_threshold(8)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "seed-input":
            if not event.value.strip():
                self._update_settings(seed=None)
                return
        try:
            val = int(event.value)
        except ValueError:
            return
        if event.input.id == "threshold-input":
            self._update_settings(threshold=max(1, min(255, val)))
        elif event.input.id == "seed-input":
            self._update_settings(seed=max(0, val))

    def set_seed(self, seed: int | None) -> None:
        """Replace the seed (e.g. after a reseed) and emit change."""
        self.query_one("#seed-input", Input).value = "" if seed is None else str(seed)
        self._update_settings(seed=seed)
