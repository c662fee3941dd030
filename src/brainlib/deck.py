"""Library Deck - a TUI for watching the live index and trying queries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.message import Message
from textual.widgets import (
    Button,
    DataTable,
    Footer,
    Header,
    Input,
    Label,
    Log,
    Rule,
    Static,
)

from brainlib.config import Settings
from brainlib.index import LiveIndex
from brainlib.models import SearchResult

SNIPPET_LENGTH = 80


@dataclass
class DeckStats:
    """Index statistics shown in the side panel."""

    files: int = 0
    chunks: int = 0
    searches: int = 0
    status: str = "idle"
    last_change: str = ""


class StatsPanel(Static):
    """Index statistics display."""

    def compose(self) -> ComposeResult:
        yield Static(id="stats-content")

    def on_mount(self) -> None:
        self.update_display(DeckStats())

    def update_display(self, stats: DeckStats) -> None:
        content = self.query_one("#stats-content", Static)
        status_color = {
            "idle": "dim",
            "loading": "yellow",
            "watching": "green",
            "error": "red",
        }.get(stats.status, "white")
        last_change = stats.last_change or "[dim]--[/]"

        content.update(f"""[b]STATUS[/b]  [{status_color}]{stats.status.upper()}[/]

[b]INDEX[/b]
  Files     [cyan]{stats.files:,}[/]
  Chunks    [magenta]{stats.chunks:,}[/]
  Searches  [yellow]{stats.searches:,}[/]

[b]LAST CHANGE[/b]
  {last_change}""")


class ResultsTable(DataTable):
    """Ranked results of the latest query."""

    def on_mount(self) -> None:
        self.add_columns("#", "Score", "Source", "Passage")
        self.cursor_type = "row"

    def show(self, results: list[SearchResult]) -> None:
        self.clear()
        for rank, result in enumerate(results, 1):
            snippet = result.content.replace("\n", " ")
            if len(snippet) > SNIPPET_LENGTH:
                snippet = snippet[: SNIPPET_LENGTH - 3] + "..."
            self.add_row(str(rank), f"[yellow]{result.score}[/]", result.source, snippet)


class FileTable(DataTable):
    """Indexed files and their chunk counts."""

    def on_mount(self) -> None:
        self.add_columns("File", "Chunks")
        self.cursor_type = "row"

    def show(self, sources: dict[str, int]) -> None:
        self.clear()
        for source, count in sources.items():
            display_name = source if len(source) <= 30 else source[:27] + "..."
            self.add_row(display_name, f"[magenta]{count}[/]")


class LibraryDeck(App):
    """The brainlib Library Deck - live index console."""

    # Messages for thread-safe communication
    class IndexUpdated(Message):
        def __init__(self, source: str, chunks: int) -> None:
            self.source = source
            self.chunks = chunks
            super().__init__()

    class LogMessage(Message):
        def __init__(self, message: str) -> None:
            self.message = message
            super().__init__()

    class StatusChanged(Message):
        def __init__(self, status: str) -> None:
            self.status = status
            super().__init__()

    CSS = """
    #main-container {
        layout: horizontal;
        height: 100%;
    }

    #left-panel {
        width: 35;
        background: $surface-darken-1;
        border-right: solid $primary-darken-2;
        padding: 1;
    }

    #center-panel {
        width: 1fr;
        padding: 1;
    }

    #right-panel {
        width: 40;
        background: $surface-darken-1;
        border-left: solid $primary-darken-2;
        padding: 1;
    }

    StatsPanel {
        height: auto;
        padding: 1;
        background: $surface-darken-2;
        border: round $primary;
        margin-bottom: 1;
    }

    #query-input {
        margin-bottom: 1;
    }

    #action-buttons {
        layout: horizontal;
        height: 3;
    }

    #action-buttons Button {
        margin-right: 1;
    }

    ResultsTable {
        height: 1fr;
        border: round $primary-darken-1;
    }

    FileTable {
        height: 100%;
        border: round $primary-darken-1;
    }

    #log-panel {
        height: 12;
        border: round $primary-darken-2;
        background: $surface-darken-2;
    }

    .section-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    BINDINGS = [
        Binding("ctrl+r", "rescan", "Rescan", show=True),
        Binding("ctrl+l", "clear", "Clear", show=True),
        Binding("ctrl+q", "quit", "Quit", show=True),
    ]

    TITLE = "brainlib Library Deck"
    SUB_TITLE = "Live Index Console"

    def __init__(self, index: LiveIndex) -> None:
        super().__init__()
        self.index = index
        self.stats = DeckStats()
        index.on_update = self._on_index_update

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Container(id="main-container"):
            # Left panel - Stats & query
            with Vertical(id="left-panel"):
                yield Label("LIBRARY", classes="section-title")
                yield StatsPanel()
                yield Rule()
                yield Label("Query")
                yield Input(placeholder="Keywords to search for...", id="query-input")
                with Horizontal(id="action-buttons"):
                    yield Button("SEARCH", id="search-btn", variant="success")
                    yield Button("Clear", id="clear-btn", variant="warning")

            # Center panel - Results & log
            with Vertical(id="center-panel"):
                yield Label("RESULTS", classes="section-title")
                yield ResultsTable(id="results")
                yield Rule()
                yield Label("SYSTEM LOG", classes="section-title")
                yield Log(id="log-panel", highlight=True, auto_scroll=True)

            # Right panel - Indexed files
            with Vertical(id="right-panel"):
                yield Label("INDEXED FILES", classes="section-title")
                yield FileTable(id="files")

        yield Footer()

    def on_mount(self) -> None:
        """Start indexing as soon as the UI is up."""
        self._log(f"Documents folder: {self.index.documents_dir}")
        self.run_initialize()

    def _log(self, message: str) -> None:
        """Add a message to the system log."""
        timestamp = datetime.now().strftime("%H:%M:%S")
        self.query_one("#log-panel", Log).write_line(f"[{timestamp}] {message}")

    def _refresh_index_view(self) -> None:
        sources = self.index.sources()
        self.stats.files = len(sources)
        self.stats.chunks = sum(sources.values())
        self.query_one(StatsPanel).update_display(self.stats)
        self.query_one("#files", FileTable).show(sources)

    def _on_index_update(self, source: str, chunks: int) -> None:
        # Called from reconcile worker threads
        self.post_message(self.IndexUpdated(source, chunks))

    # Message handlers for thread-safe updates
    def on_library_deck_index_updated(self, event: IndexUpdated) -> None:
        """Handle a committed change from the index."""
        if event.chunks:
            self.stats.last_change = f"{event.source} ({event.chunks} chunks)"
        else:
            self.stats.last_change = f"{event.source} (removed)"
        self._refresh_index_view()

    def on_library_deck_log_message(self, event: LogMessage) -> None:
        """Handle log message from worker thread."""
        self._log(event.message)

    def on_library_deck_status_changed(self, event: StatusChanged) -> None:
        """Handle status change from worker thread."""
        self.stats.status = event.status
        self._refresh_index_view()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Search when Enter is pressed in the query box."""
        self.run_search()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button presses."""
        if event.button.id == "search-btn":
            self.run_search()
        elif event.button.id == "clear-btn":
            self.action_clear()

    def action_clear(self) -> None:
        """Clear the query, results and log."""
        self.query_one("#query-input", Input).value = ""
        self.query_one("#results", ResultsTable).clear()
        self.query_one("#log-panel", Log).clear()

    def action_rescan(self) -> None:
        """Re-read every file in the documents folder."""
        self.run_rescan()

    def run_search(self) -> list[SearchResult]:
        """Run the query in the input box and show the ranked results."""
        query = self.query_one("#query-input", Input).value.strip()
        if not query:
            self._log("[red]ERROR: Enter a query first[/]")
            return []

        results = self.index.search(query)
        self.stats.searches += 1
        self.query_one(StatsPanel).update_display(self.stats)
        self.query_one("#results", ResultsTable).show(results)
        if results:
            self._log(f"{query!r}: {len(results)} results")
        else:
            self._log(f"{query!r}: no matching information found")
        return results

    @work(exclusive=True, thread=True)
    def run_initialize(self) -> None:
        """Scan and start watching in a background thread."""
        self.post_message(self.StatusChanged("loading"))
        try:
            self.index.initialize()
        except OSError as e:
            self.post_message(self.StatusChanged("error"))
            self.post_message(self.LogMessage(f"[red]ERROR: Cannot index folder: {e}[/]"))
            return

        status = "watching" if self.index.change_source is not None else "idle"
        self.post_message(self.StatusChanged(status))
        self.post_message(
            self.LogMessage(f"[cyan]Indexed {len(self.index)} chunks[/]")
        )

    @work(exclusive=True, thread=True)
    def run_rescan(self) -> None:
        """Reconcile every file currently in the folder."""
        self.post_message(self.LogMessage("Rescanning..."))
        on_disk = {path for path in self.index.documents_dir.iterdir() if path.is_file()}
        # Files that vanished while unwatched are purged by reconciling them too
        on_disk.update(self.index.documents_dir / source for source in self.index.sources())
        for path in sorted(on_disk):
            self.index.reconcile(path)
        self.post_message(self.LogMessage(f"[cyan]Rescan complete: {len(self.index)} chunks[/]"))


def main(settings: Settings) -> None:
    """Run the Library Deck TUI."""
    from brainlib.watchers import WatchdogChangeSource

    index = LiveIndex(
        settings.documents_dir,
        top_k=settings.top_k,
        change_source=WatchdogChangeSource(),
        workers=settings.workers,
    )
    with index:
        LibraryDeck(index).run()
