"""In-memory keyword index kept in sync with a documents folder."""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Optional

import numpy as np

from brainlib.chunkers import ParagraphChunker
from brainlib.errors import ExtractionError
from brainlib.extractors import get_extractor
from brainlib.models import ChangeEvent, Chunk, SearchResult
from brainlib.protocols import ChangeSource, ChunkingStrategy, TextExtractor

logger = logging.getLogger(__name__)

ExtractorLookup = Callable[[Path], Optional[TextExtractor]]
UpdateListener = Callable[[str, int], None]

MIN_TOKEN_LENGTH = 3


def tokenize(query: str) -> list[str]:
    """Lower-case query terms longer than two characters, without repeats."""
    terms = [t for t in query.lower().split() if len(t) >= MIN_TOKEN_LENGTH]
    return list(dict.fromkeys(terms))


def containment_score(terms: list[str], lowered_content: str) -> int:
    """Count how many distinct terms occur anywhere in the content."""
    return sum(1 for term in terms if term in lowered_content)


class LiveIndex:
    """Chunks of every supported file in a directory, searchable by keyword.

    Design: the chunk collection is an immutable tuple that is swapped in a
    single assignment under a lock, so a search always scores a consistent
    snapshot and never sees a file half-replaced. Extraction happens outside
    the lock; only the swap is exclusive.

    Each file has a ticket counter. An ingest takes a ticket before
    extracting and only commits if no newer ticket has been committed or
    removed for the same file in the meantime, so delayed work cannot
    resurrect deleted or superseded content. An ingest whose extraction
    fails never commits, so it cannot invalidate older work that read the
    file successfully.
    """

    def __init__(
        self,
        documents_dir: Path | str,
        top_k: int = 3,
        chunker: Optional[ChunkingStrategy] = None,
        extractor_lookup: ExtractorLookup = get_extractor,
        change_source: Optional[ChangeSource] = None,
        workers: int = 4,
        on_update: Optional[UpdateListener] = None,
    ):
        """Create an empty index.

        Args:
            documents_dir: Folder holding the documents to index
            top_k: Maximum number of results per search
            chunker: Chunking strategy (defaults to ParagraphChunker)
            extractor_lookup: Returns the extractor for a path, or None if unsupported
            change_source: Where change notifications come from; None disables watching
            workers: Threads used to reconcile changed files
            on_update: Called with (source, chunk_count) after each commit or removal
        """
        if top_k < 1:
            raise ValueError("top_k must be >= 1")

        self.documents_dir = Path(documents_dir)
        self.top_k = top_k
        self.chunker = chunker or ParagraphChunker()
        self.extractor_lookup = extractor_lookup
        self.change_source = change_source
        self.on_update = on_update

        self._lock = threading.Lock()
        self._chunks: tuple[Chunk, ...] = ()
        # Lower-cased copies of chunk contents, kept index-aligned with _chunks
        self._lowered: tuple[str, ...] = ()
        # Last ticket handed out, and last ticket that committed or removed
        self._tickets: dict[str, int] = {}
        self._committed: dict[str, int] = {}
        self._executor = ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="brainlib-reconcile"
        )
        self._closed = False

    def __enter__(self) -> "LiveIndex":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._chunks)

    # Lifecycle

    def initialize(self) -> None:
        """Scan the documents folder and start watching it for changes."""
        logger.info(f"Initializing keyword index for {self.documents_dir}")
        self.documents_dir.mkdir(parents=True, exist_ok=True)

        # Watch before scanning so nothing changed mid-scan is missed
        if self.change_source is not None:
            self.change_source.start(self.documents_dir, self.handle_event)

        file_count = 0
        for path in sorted(self.documents_dir.iterdir()):
            if not path.is_file() or self.extractor_lookup(path) is None:
                continue
            if self.ingest(path):
                file_count += 1

        logger.info(f"Indexed {len(self)} chunks from {file_count} files")

    def close(self) -> None:
        """Stop watching and wait for pending reconciliations."""
        if self._closed:
            return
        self._closed = True
        if self.change_source is not None:
            self.change_source.stop()
        self._executor.shutdown(wait=True)

    # Mutation

    def ingest(self, file_path: Path | str) -> bool:
        """Re-extract one file and replace its chunks.

        Args:
            file_path: Path to the file

        Returns:
            True if the file's chunks were replaced, False if the file is
            unsupported, failed to extract, or was superseded meanwhile
        """
        path = Path(file_path)
        extractor = self.extractor_lookup(path)
        if extractor is None:
            return False

        source = path.name
        ticket = self._next_ticket(source)

        try:
            text = extractor.extract(path)
        except (ExtractionError, OSError) as e:
            # Prior chunks stay in place
            logger.error(f"Failed to extract {source}: {e}")
            return False

        chunks = self.chunker.chunk(text, source)
        committed = self._commit(source, ticket, chunks)
        if committed:
            logger.info(f"Indexed {source} ({len(chunks)} chunks)")
            self._notify(source, len(chunks))
        else:
            logger.debug(f"Discarded stale extraction of {source}")
        return committed

    def remove(self, file_name: Path | str) -> int:
        """Drop every chunk belonging to a file.

        Args:
            file_name: Base name (or any path ending in it) of the file

        Returns:
            Number of chunks removed (0 if the file was not indexed)
        """
        source = Path(file_name).name
        with self._lock:
            # Claiming a ticket invalidates ingests still extracting
            ticket = self._tickets.get(source, 0) + 1
            self._tickets[source] = ticket
            self._committed[source] = ticket
            kept = self._entries_without(source)
            removed = len(self._chunks) - len(kept)
            if removed:
                self._store(kept)

        if removed:
            logger.info(f"Removed {source} ({removed} chunks)")
            self._notify(source, 0)
        return removed

    def reconcile(self, file_path: Path | str) -> None:
        """Bring one file's chunks in line with what is on disk right now."""
        path = Path(file_path)
        if self.extractor_lookup(path) is None:
            return
        if path.is_file():
            self.ingest(path)
        else:
            self.remove(path.name)

    def handle_event(self, event: ChangeEvent) -> Optional[Future]:
        """Schedule reconciliation for a filesystem notification.

        The event kind is only a hint: the worker re-reads the file's
        current state, so duplicated or reordered events are harmless.

        Returns:
            The scheduled future, or None if the event was ignored
        """
        if self._closed or self.extractor_lookup(event.path) is None:
            return None

        logger.debug(f"{event.kind.value}: {event.source}")
        try:
            future = self._executor.submit(self.reconcile, event.path)
        except RuntimeError:
            # Executor shut down between the closed check and submit
            return None
        future.add_done_callback(self._log_failure)
        return future

    # Queries

    def search(self, query: str) -> list[SearchResult]:
        """Rank chunks by how many distinct query terms they contain.

        Args:
            query: Free-text query

        Returns:
            Up to top_k results, best first; equal scores keep index order
        """
        terms = tokenize(query)
        if not terms:
            return []

        with self._lock:
            chunks, lowered = self._chunks, self._lowered
        if not chunks:
            return []

        scores = np.fromiter(
            (containment_score(terms, text) for text in lowered),
            dtype=np.int64,
            count=len(lowered),
        )
        order = np.argsort(-scores, kind="stable")

        results = []
        for position in order[: self.top_k]:
            score = int(scores[position])
            if score == 0:
                break
            chunk = chunks[position]
            results.append(SearchResult(content=chunk.content, source=chunk.source, score=score))
        return results

    def chunks(self) -> tuple[Chunk, ...]:
        """Return a snapshot of every indexed chunk in index order."""
        with self._lock:
            return self._chunks

    def sources(self) -> dict[str, int]:
        """Return chunk counts per indexed file, in index order."""
        counts: dict[str, int] = {}
        for chunk in self.chunks():
            counts[chunk.source] = counts.get(chunk.source, 0) + 1
        return counts

    # Internals

    def _next_ticket(self, source: str) -> int:
        with self._lock:
            ticket = self._tickets.get(source, 0) + 1
            self._tickets[source] = ticket
            return ticket

    def _commit(self, source: str, ticket: int, chunks: list[Chunk]) -> bool:
        with self._lock:
            if ticket <= self._committed.get(source, 0):
                return False
            self._committed[source] = ticket
            kept = self._entries_without(source)
            kept.extend((chunk, chunk.content.lower()) for chunk in chunks)
            self._store(kept)
            return True

    def _entries_without(self, source: str) -> list[tuple[Chunk, str]]:
        # Caller holds the lock
        return [
            (chunk, lowered)
            for chunk, lowered in zip(self._chunks, self._lowered)
            if chunk.source != source
        ]

    def _store(self, entries: list[tuple[Chunk, str]]) -> None:
        # Caller holds the lock
        self._chunks = tuple(chunk for chunk, _ in entries)
        self._lowered = tuple(lowered for _, lowered in entries)

    def _notify(self, source: str, count: int) -> None:
        if self.on_update is None:
            return
        try:
            self.on_update(source, count)
        except Exception:
            logger.exception(f"Update listener failed for {source}")

    @staticmethod
    def _log_failure(future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error("Reconciliation failed", exc_info=error)
