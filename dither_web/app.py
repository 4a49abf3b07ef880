"""Main Textual application for the dither_web TUI."""

from __future__ import annotations

import random
from pathlib import Path

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Grid, Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import (
    Button,
    Footer,
    Header,
    Input,
    Label,
    Static,
)
from textual.worker import get_current_worker

from dither_web.core.braille import CELL_HEIGHT, CELL_WIDTH, braille_cells
from dither_web.core.dither import DitherMethod
from dither_web.core.processor import (
    ProcessedImage,
    Settings,
    process_raster,
    resize_for_preview,
)
from dither_web.core.raster import Raster
from dither_web.core.reader import ImageInfo, LoadedImage, load_image
from dither_web.core.writer import ORIGINAL_TITLE, save_contact_sheet, save_variants
from dither_web.tui.controls import ControlPanel
from dither_web.tui.preview import DitherPanel
from dither_web.utils.cache import ResultCache
from dither_web.utils.terminal import fit_to_cells


class SaveScreen(ModalScreen[str | None]):
    """Modal screen for choosing an output directory."""

    BINDINGS = [Binding("escape", "cancel", "Cancel", priority=True)]

    def action_cancel(self) -> None:
        self.dismiss(None)

    DEFAULT_CSS = """
    SaveScreen {
        align: center middle;
    }

    SaveScreen #save-dialog {
        width: 60;
        height: 12;
        background: $surface;
        border: thick $accent;
        padding: 1 2;
    }

    SaveScreen #save-title {
        text-style: bold;
        margin-bottom: 1;
    }

    SaveScreen .button-row {
        margin-top: 1;
        align: center middle;
        height: 3;
    }

    SaveScreen Button {
        margin: 0 1;
    }
    """

    def __init__(self, default_path: str = "", **kwargs) -> None:
        super().__init__(**kwargs)
        self._default_path = default_path

    def compose(self) -> ComposeResult:
        with Vertical(id="save-dialog"):
            yield Static("Save Variants", id="save-title")
            yield Label("Output directory:")
            yield Input(value=self._default_path, id="save-path")
            with Horizontal(classes="button-row"):
                yield Button("Save", variant="primary", id="btn-save")
                yield Button("Cancel", variant="default", id="btn-cancel")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-save":
            self.dismiss(self.query_one("#save-path", Input).value or None)
        elif event.button.id == "btn-cancel":
            self.dismiss(None)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.dismiss(event.value or None)


class OpenFileScreen(ModalScreen[str | None]):
    """Simple modal for entering a file path or URL."""

    BINDINGS = [Binding("escape", "cancel", "Cancel", priority=True)]

    def action_cancel(self) -> None:
        self.dismiss(None)

    DEFAULT_CSS = """
    OpenFileScreen {
        align: center middle;
    }

    OpenFileScreen #open-dialog {
        width: 60;
        height: 10;
        background: $surface;
        border: thick $accent;
        padding: 1 2;
    }

    OpenFileScreen #open-title {
        text-style: bold;
        margin-bottom: 1;
    }

    OpenFileScreen .button-row {
        margin-top: 1;
        align: center middle;
        height: 3;
    }

    OpenFileScreen Button {
        margin: 0 1;
    }
    """

    def compose(self) -> ComposeResult:
        with Vertical(id="open-dialog"):
            yield Static("Open Image", id="open-title")
            yield Input(placeholder="Path or URL of an image...", id="file-input")
            with Horizontal(classes="button-row"):
                yield Button("Open", variant="primary", id="btn-open")
                yield Button("Cancel", variant="default", id="btn-cancel")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-open":
            inp = self.query_one("#file-input", Input)
            self.dismiss(inp.value if inp.value else None)
        elif event.button.id == "btn-cancel":
            self.dismiss(None)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.dismiss(event.value if event.value else None)


class DitherWebApp(App):
    """Main TUI application: the original and five dithers side by side."""

    TITLE = "dither_web"
    CSS = """
    #main-area {
        height: 1fr;
        width: 1fr;
    }

    #panel-grid {
        grid-size: 3 2;
        width: 1fr;
        height: 1fr;
    }

    #status-bar {
        height: 1;
        background: $panel;
        padding: 0 1;
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", priority=True),
        Binding("o", "open_file", "Open", priority=True),
        Binding("s", "save", "Save", priority=True),
        Binding("r", "reseed", "Reseed", priority=True),
        Binding("tab", "toggle_panel", "Toggle Panel"),
    ]

    def __init__(self, input_path: str | None = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self._input_path = input_path
        self._loaded: LoadedImage | None = None
        self._load_count = 0
        self._cache: ResultCache[tuple[ProcessedImage, Raster]] = ResultCache(max_size=16)
        self._settings = Settings()
        self._panel_visible = True

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-area"):
            with Grid(id="panel-grid"):
                yield DitherPanel(ORIGINAL_TITLE, greyscale=True, id="panel-original")
                for method in DitherMethod:
                    yield DitherPanel(method.title, id=f"panel-{method.value}")
            yield ControlPanel(self._settings, id="control-panel")
        yield Static("Ready", id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        if self._input_path:
            self._load_file(self._input_path)

    def _load_file(self, path: str) -> None:
        """Load an image file or URL."""
        try:
            self._loaded = load_image(path)
        except (ValueError, OSError) as e:
            self._update_status(f"Error: {e}")
            return

        info = self._loaded.info
        self._load_count += 1
        self.title = f"dither_web - {info.name}"
        self._cache.clear()
        self._update_status(f"Loaded {info.name} ({info.width}x{info.height})")
        self._render_previews()

    def _update_status(self, text: str) -> None:
        self.query_one("#status-bar", Static).update(text)

    def _preview_dots(self, info: ImageInfo) -> tuple[int, int]:
        """Dot grid for the dithered previews, fitted to one panel."""
        panel = self.query_one("#panel-original", DitherPanel)
        cols, rows = panel.content_cells()
        max_w, max_h = braille_cells(cols, rows)
        return fit_to_cells(info.width, info.height, max_width=max_w, max_height=max_h)

    def _render_previews(self) -> None:
        if self._loaded is None:
            return
        dot_w, dot_h = self._preview_dots(self._loaded.info)
        self._dither_previews(self._loaded, self._settings, dot_w, dot_h)

    @work(thread=True, exclusive=True, group="preview")
    def _dither_previews(
        self, loaded: LoadedImage, settings: Settings, dot_w: int, dot_h: int
    ) -> None:
        """Dither preview-sized copies in a background thread."""
        worker = get_current_worker()
        image_key = f"{self._load_count}:{dot_w}x{dot_h}"

        cached = self._cache.get(image_key, settings.hash())
        if cached is None or settings.seed is None:
            cells = (max(1, dot_w // CELL_WIDTH), max(1, dot_h // CELL_HEIGHT))
            original = resize_for_preview(loaded.raster, *cells)
            # grey levels are drawn one ramp character per pixel
            if settings.levels > 2:
                source = original.copy()
            else:
                source = resize_for_preview(loaded.raster, dot_w, dot_h)
            try:
                processed = process_raster(source, settings)
            except ValueError as e:
                if not worker.is_cancelled:
                    self.call_from_thread(self._update_status, f"Error: {e}")
                return
            cached = (processed, original)
            self._cache.put(image_key, settings.hash(), cached)

        if not worker.is_cancelled:
            self.call_from_thread(self._display, *cached, settings.levels)

    def _display(
        self, processed: ProcessedImage, original: Raster, levels: int = 2
    ) -> None:
        """Show a pipeline result (called on main thread)."""
        self.query_one("#panel-original", DitherPanel).show_raster(original)
        for result in processed.results:
            panel = self.query_one(f"#panel-{result.method.value}", DitherPanel)
            panel.show_raster(result.raster, result.elapsed_ms, levels)
        self._update_status(
            f"{processed.width}x{processed.height} preview, "
            f"all time: {processed.elapsed_ms:.1f}ms"
        )

    # --- Actions ---

    def action_open_file(self) -> None:
        self.push_screen(OpenFileScreen(), self._on_file_selected)

    def _on_file_selected(self, path: str | None) -> None:
        if path:
            self._load_file(path)

    def action_save(self) -> None:
        if self._loaded is None:
            self._update_status("No file loaded")
            return
        info = self._loaded.info
        default_dir = info.path.parent / f"{info.path.stem}_dithered" if info.path else Path.cwd()
        self.push_screen(SaveScreen(str(default_dir)), self._on_save_result)

    def _on_save_result(self, path: str | None) -> None:
        if path is None:
            return
        self._do_save(path)

    @work(thread=True, exclusive=True, group="save")
    def _do_save(self, output_dir: str) -> None:
        """Dither at full resolution and write every variant."""
        if self._loaded is None:
            return

        worker = get_current_worker()
        loaded = self._loaded
        out = Path(output_dir)
        stem = loaded.info.path.stem if loaded.info.path else "image"

        self.call_from_thread(self._update_status, "Saving...")
        try:
            processed = process_raster(loaded.raster, self._settings)
            if worker.is_cancelled:
                return
            written = save_variants(processed, out, stem)
            save_contact_sheet(processed, out / f"{stem}_sheet.png")
        except (ValueError, OSError) as e:
            if not worker.is_cancelled:
                self.call_from_thread(self._update_status, f"Save error: {e}")
            return

        if not worker.is_cancelled:
            self.call_from_thread(
                self._update_status, f"Saved {len(written)} images to {out}"
            )

    def action_reseed(self) -> None:
        panel = self.query_one("#control-panel", ControlPanel)
        panel.set_seed(random.randrange(2**31))

    def action_toggle_panel(self) -> None:
        panel = self.query_one("#control-panel", ControlPanel)
        self._panel_visible = not self._panel_visible
        panel.display = self._panel_visible

    # --- Message handlers ---

    def on_control_panel_settings_changed(
        self, event: ControlPanel.SettingsChanged
    ) -> None:
        self._settings = event.settings
        if self._loaded is not None:
            self._render_previews()

    def on_resize(self) -> None:
        if self._loaded is not None:
            self._render_previews()


def run_app(input_path: str | None = None) -> None:
    """Launch the TUI application."""
    app = DitherWebApp(input_path=input_path)
    app.run()
