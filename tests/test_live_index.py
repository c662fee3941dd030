import threading
from concurrent.futures import wait
from pathlib import Path

import pytest

from brainlib.errors import ExtractionError
from brainlib.extractors import PlainTextExtractor
from brainlib.models import ChangeKind


class BlockingExtractor(PlainTextExtractor):
    """Plain text extractor whose first call waits until released."""

    def __init__(self):
        self.entered = threading.Event()
        self.release = threading.Event()
        self.calls = 0
        self._lock = threading.Lock()

    def extract(self, path: Path) -> str:
        with self._lock:
            self.calls += 1
            first = self.calls == 1
        text = super().extract(path)
        if first:
            self.entered.set()
            assert self.release.wait(timeout=5)
        return text


class FlakyExtractor(PlainTextExtractor):
    """Plain text extractor that can be switched into failing."""

    def __init__(self, error: Exception | None = None):
        self.error = error

    def extract(self, path: Path) -> str:
        if self.error is not None:
            raise self.error
        return super().extract(path)


def only(extractor):
    return lambda path: extractor if Path(path).suffix == ".txt" else None


def contents(index, source=None):
    return [c.content for c in index.chunks() if source is None or c.source == source]


# Initialization


def test_initialize_indexes_supported_files(docs_dir, write_doc, make_index):
    write_doc("a.txt", "First text paragraph.\n\nSecond text paragraph.")
    write_doc("b.md", "---\ntitle: B\n---\nMarkdown body paragraph.")
    write_doc("photo.jpg", "not really an image but long enough")
    (docs_dir / "folder.md").mkdir()

    index = make_index()
    index.initialize()

    assert index.sources() == {"a.txt": 2, "b.md": 1}
    assert len(index) == 3


def test_initialize_creates_missing_directory(tmp_path, make_index):
    missing = tmp_path / "nested" / "documents"

    index = make_index(documents_dir=missing)
    index.initialize()

    assert missing.is_dir()
    assert len(index) == 0


def test_initialize_skips_unreadable_file(write_doc, make_index, caplog):
    write_doc("broken.pdf", "definitely not a pdf")
    write_doc("good.txt", "This one is perfectly readable.")

    index = make_index()
    index.initialize()

    assert index.sources() == {"good.txt": 1}
    assert "Failed to extract broken.pdf" in caplog.text


def test_initialize_starts_change_source_on_directory(docs_dir, make_index, change_source):
    index = make_index(change_source=change_source)
    index.initialize()

    assert change_source.directory == docs_dir
    assert change_source.callback == index.handle_event


def test_close_stops_change_source(make_index, change_source):
    index = make_index(change_source=change_source)
    index.initialize()

    index.close()
    index.close()

    assert change_source.stopped


def test_top_k_must_be_positive(make_index):
    with pytest.raises(ValueError):
        make_index(top_k=0)


# Ingest and remove


def test_reingesting_unchanged_file_is_idempotent(write_doc, make_index):
    path = write_doc("a.txt", "Paragraph number one.\n\nParagraph number two.")
    index = make_index()

    assert index.ingest(path)
    first = index.chunks()
    assert index.ingest(path)

    assert index.chunks() == first
    assert index.sources() == {"a.txt": 2}


def test_changed_file_replaces_rather_than_merges(write_doc, make_index):
    path = write_doc("f.txt", "Old paragraph alpha.\n\nOld paragraph beta.")
    index = make_index()
    index.ingest(path)

    write_doc("f.txt", "Brand new paragraph gamma.")
    index.ingest(path)

    assert contents(index, "f.txt") == ["Brand new paragraph gamma."]


def test_updated_file_moves_to_end_of_index(write_doc, make_index):
    a = write_doc("a.txt", "Shared keyword in a.")
    b = write_doc("b.txt", "Shared keyword in b.")
    index = make_index()
    index.ingest(a)
    index.ingest(b)

    write_doc("a.txt", "Shared keyword in a, edited.")
    index.ingest(a)

    assert [c.source for c in index.chunks()] == ["b.txt", "a.txt"]


def test_file_emptied_to_nothing_has_no_chunks(write_doc, make_index):
    path = write_doc("a.txt", "Some paragraph with content.")
    index = make_index()
    index.ingest(path)

    write_doc("a.txt", "")
    assert index.ingest(path)

    assert contents(index) == []


def test_remove_purges_all_chunks_of_file(write_doc, make_index):
    a = write_doc("a.txt", "Keyword paragraph one.\n\nKeyword paragraph two.")
    b = write_doc("b.txt", "Keyword paragraph other.")
    index = make_index()
    index.ingest(a)
    index.ingest(b)

    removed = index.remove("a.txt")

    assert removed == 2
    assert index.sources() == {"b.txt": 1}
    assert all(r.source != "a.txt" for r in index.search("keyword paragraph"))


def test_remove_accepts_full_path(write_doc, make_index):
    path = write_doc("a.txt", "Keyword paragraph one.")
    index = make_index()
    index.ingest(path)

    assert index.remove(path) == 1


def test_remove_untracked_file_is_noop(make_index):
    index = make_index()

    assert index.remove("never-seen.txt") == 0


def test_unsupported_extension_is_ignored(docs_dir, make_index):
    photo = docs_dir / "photo.jpg"
    photo.write_bytes(b"\xff\xd8\xff binary jpeg data")
    index = make_index()

    assert index.ingest(photo) is False
    assert index.remove("photo.jpg") == 0
    index.reconcile(photo)

    assert len(index) == 0


def test_failed_reextraction_keeps_prior_chunks(write_doc, make_index, caplog):
    path = write_doc("a.txt", "Good content that was indexed.")
    extractor = FlakyExtractor()
    index = make_index(extractor_lookup=only(extractor))
    index.ingest(path)

    extractor.error = ExtractionError("disk hiccup", path)
    write_doc("a.txt", "Newer content that fails to extract.")

    assert index.ingest(path) is False
    assert contents(index) == ["Good content that was indexed."]
    assert "Failed to extract a.txt: disk hiccup" in caplog.text


def test_update_listener_receives_counts(write_doc, make_index):
    updates = []
    path = write_doc("a.txt", "Paragraph number one.\n\nParagraph number two.")
    index = make_index(on_update=lambda source, count: updates.append((source, count)))

    index.ingest(path)
    index.remove("a.txt")

    assert updates == [("a.txt", 2), ("a.txt", 0)]


def test_failing_update_listener_does_not_break_ingest(write_doc, make_index):
    def explode(source, count):
        raise RuntimeError("listener bug")

    path = write_doc("a.txt", "Paragraph number one.")
    index = make_index(on_update=explode)

    assert index.ingest(path)
    assert len(index) == 1


# Stale work


def test_remove_during_extraction_discards_stale_result(write_doc, make_index):
    path = write_doc("a.txt", "Content that is being deleted.")
    extractor = BlockingExtractor()
    index = make_index(extractor_lookup=only(extractor))
    outcome = {}

    worker = threading.Thread(target=lambda: outcome.update(ok=index.ingest(path)))
    worker.start()
    assert extractor.entered.wait(timeout=5)

    path.unlink()
    index.remove("a.txt")
    extractor.release.set()
    worker.join(timeout=5)

    assert outcome["ok"] is False
    assert len(index) == 0


def test_newer_ingest_wins_over_slower_older_one(write_doc, make_index):
    path = write_doc("a.txt", "Old version of the text.")
    extractor = BlockingExtractor()
    index = make_index(extractor_lookup=only(extractor))
    outcome = {}

    worker = threading.Thread(target=lambda: outcome.update(ok=index.ingest(path)))
    worker.start()
    assert extractor.entered.wait(timeout=5)

    write_doc("a.txt", "New version of the text.")
    assert index.ingest(path)
    extractor.release.set()
    worker.join(timeout=5)

    assert outcome["ok"] is False
    assert contents(index) == ["New version of the text."]


class FailingAfterFirstExtractor(BlockingExtractor):
    """Blocks on the first call and fails every later one."""

    def extract(self, path: Path) -> str:
        if self.entered.is_set():
            raise ExtractionError("file locked by another program", path)
        return super().extract(path)


def test_failed_newer_ingest_does_not_discard_older_good_read(write_doc, make_index):
    path = write_doc("a.txt", "Version one paragraph.")
    index = make_index()
    index.ingest(path)

    write_doc("a.txt", "Version two paragraph.")
    extractor = FailingAfterFirstExtractor()
    index.extractor_lookup = only(extractor)
    outcome = {}

    worker = threading.Thread(target=lambda: outcome.update(ok=index.ingest(path)))
    worker.start()
    assert extractor.entered.wait(timeout=5)

    assert index.ingest(path) is False
    extractor.release.set()
    worker.join(timeout=5)

    assert outcome["ok"] is True
    assert contents(index) == ["Version two paragraph."]


# Change events


def test_added_event_indexes_new_file(docs_dir, write_doc, make_index, change_source):
    index = make_index(change_source=change_source)
    index.initialize()

    path = write_doc("new.txt", "Freshly added paragraph.")
    change_source.emit(ChangeKind.ADDED, path).result(timeout=5)

    assert contents(index, "new.txt") == ["Freshly added paragraph."]


def test_changed_event_replaces_chunks(write_doc, make_index, change_source):
    path = write_doc("a.txt", "Original paragraph text.")
    index = make_index(change_source=change_source)
    index.initialize()

    write_doc("a.txt", "Edited paragraph text.")
    change_source.emit(ChangeKind.CHANGED, path).result(timeout=5)

    assert contents(index) == ["Edited paragraph text."]


def test_removed_event_purges_file(write_doc, make_index, change_source):
    path = write_doc("a.txt", "Paragraph about to vanish.")
    index = make_index(change_source=change_source)
    index.initialize()

    path.unlink()
    change_source.emit(ChangeKind.REMOVED, path).result(timeout=5)

    assert len(index) == 0


def test_late_change_event_does_not_resurrect_deleted_file(write_doc, make_index, change_source):
    path = write_doc("a.txt", "Paragraph about to vanish.")
    index = make_index(change_source=change_source)
    index.initialize()

    path.unlink()
    change_source.emit(ChangeKind.REMOVED, path).result(timeout=5)
    change_source.emit(ChangeKind.CHANGED, path).result(timeout=5)

    assert len(index) == 0


def test_late_remove_event_keeps_recreated_file(write_doc, make_index, change_source):
    path = write_doc("a.txt", "Paragraph that comes back.")
    index = make_index(change_source=change_source)
    index.initialize()

    # The file was deleted and re-created before the removal was delivered
    change_source.emit(ChangeKind.REMOVED, path).result(timeout=5)

    assert contents(index) == ["Paragraph that comes back."]


def test_duplicate_events_do_not_duplicate_chunks(write_doc, make_index, change_source):
    index = make_index(change_source=change_source)
    index.initialize()

    path = write_doc("a.txt", "Paragraph delivered twice.")
    futures = [change_source.emit(ChangeKind.ADDED, path) for _ in range(5)]
    wait(futures, timeout=5)

    assert contents(index) == ["Paragraph delivered twice."]


def test_events_for_unsupported_files_are_ignored(docs_dir, make_index, change_source):
    index = make_index(change_source=change_source)
    index.initialize()

    assert change_source.emit(ChangeKind.ADDED, docs_dir / "photo.jpg") is None


def test_events_after_close_are_ignored(write_doc, make_index, change_source):
    index = make_index(change_source=change_source)
    index.initialize()
    index.close()

    path = write_doc("a.txt", "Paragraph written after close.")

    assert change_source.emit(ChangeKind.ADDED, path) is None
    assert len(index) == 0


def test_worker_failure_is_logged_not_raised(write_doc, make_index, change_source, caplog):
    path = write_doc("a.txt", "Paragraph that triggers a bug.")
    extractor = FlakyExtractor(error=RuntimeError("extractor bug"))
    index = make_index(change_source=change_source, extractor_lookup=only(extractor))
    change_source.start(path.parent, index.handle_event)

    future = change_source.emit(ChangeKind.ADDED, path)
    wait([future], timeout=5)
    index.close()

    assert isinstance(future.exception(), RuntimeError)
    assert "Reconciliation failed" in caplog.text


def test_slow_file_does_not_block_other_files(write_doc, make_index, change_source):
    slow = write_doc("slow.txt", "Paragraph that extracts slowly.")
    fast = write_doc("fast.txt", "Paragraph that extracts quickly.")
    extractor = BlockingExtractor()
    index = make_index(change_source=change_source, extractor_lookup=only(extractor), workers=2)
    change_source.start(slow.parent, index.handle_event)

    slow_future = change_source.emit(ChangeKind.ADDED, slow)
    assert extractor.entered.wait(timeout=5)
    change_source.emit(ChangeKind.ADDED, fast).result(timeout=5)

    assert [r.source for r in index.search("paragraph")] == ["fast.txt"]

    extractor.release.set()
    slow_future.result(timeout=5)
    assert set(index.sources()) == {"fast.txt", "slow.txt"}


# Concurrency


def test_search_never_sees_half_replaced_file(write_doc, make_index):
    versions = {
        marker: "\n\n".join(f"Alpha {marker} paragraph {i}." for i in range(4))
        for marker in ("first", "second")
    }
    path = write_doc("doc.txt", versions["first"])
    index = make_index(top_k=10)
    index.ingest(path)
    stop = threading.Event()

    def writer():
        flip = 0
        while not stop.is_set():
            marker = ("first", "second")[flip % 2]
            path.write_text(versions[marker], encoding="utf-8")
            index.ingest(path)
            flip += 1

    thread = threading.Thread(target=writer)
    thread.start()
    try:
        for _ in range(300):
            results = index.search("alpha")
            markers = {r.content.split()[1] for r in results}
            assert len(results) == 4
            assert len(markers) == 1
    finally:
        stop.set()
        thread.join(timeout=5)
