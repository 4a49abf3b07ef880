"""Preview panels for the TUI: one per image variant."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.widget import Widget
from textual.widgets import Static

from dither_web.core.braille import raster_to_ramp, render_lines
from dither_web.core.raster import Raster
from dither_web.core.writer import format_elapsed

EMPTY_MESSAGE = "No file loaded. Press 'o' to open a file."


class DitherPanel(Widget):
    """Titled panel showing one raster and how long it took to produce.

    Black/white dithers are drawn as braille dots. The greyscale original
    and grey-level dithers use a character ramp, one cell per pixel.
    """

    DEFAULT_CSS = """
    DitherPanel {
        width: 1fr;
        height: 1fr;
        border: round $accent;
        background: $surface;
        overflow: hidden;
    }

    DitherPanel .panel-title {
        text-style: bold;
        height: 1;
    }

    DitherPanel .panel-time {
        color: $text-muted;
        height: 1;
    }

    DitherPanel .panel-content {
        width: auto;
        height: auto;
    }
    """

    def __init__(self, title: str, greyscale: bool = False, **kwargs) -> None:
        super().__init__(**kwargs)
        self._panel_title = title
        self._panel_greyscale = greyscale

    def compose(self) -> ComposeResult:
        yield Static(self._panel_title, classes="panel-title")
        yield Static("", classes="panel-time")
        yield Static(EMPTY_MESSAGE, classes="panel-content")

    def content_cells(self) -> tuple[int, int]:
        """Character cells available for the image (minus border and captions)."""
        w = self.size.width or 30
        h = self.size.height or 12
        return max(1, w - 2), max(1, h - 4)

    def show_raster(
        self, raster: Raster, elapsed_ms: float | None = None, levels: int = 2
    ) -> None:
        """Display a raster with an optional timing caption.

        ``levels`` is the number of output levels the raster was dithered to.
        """
        if self._panel_greyscale:
            lines = raster_to_ramp(raster)
        else:
            lines = render_lines(raster, levels)
        caption = format_elapsed(elapsed_ms) if elapsed_ms is not None else ""
        self.query_one(".panel-time", Static).update(caption)
        self.query_one(".panel-content", Static).update(Text("\n".join(lines)))
