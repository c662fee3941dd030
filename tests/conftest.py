"""Shared fixtures: temporary document folders, a fake change source, index factory."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterator, Optional

import pytest

from brainlib.index import LiveIndex
from brainlib.models import ChangeEvent, ChangeKind
from brainlib.protocols import ChangeCallback


class FakeChangeSource:
    """Change source driven by the test instead of the filesystem."""

    def __init__(self) -> None:
        self.directory: Optional[Path] = None
        self.callback: Optional[ChangeCallback] = None
        self.stopped = False

    def start(self, directory: Path, callback: ChangeCallback) -> None:
        self.directory = directory
        self.callback = callback

    def stop(self) -> None:
        self.stopped = True

    def emit(self, kind: ChangeKind, path: Path):
        assert self.callback is not None, "change source was never started"
        return self.callback(ChangeEvent(kind=kind, path=path))


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    path = tmp_path / "documents"
    path.mkdir()
    return path


@pytest.fixture
def write_doc(docs_dir: Path) -> Callable[[str, str], Path]:
    def _write(name: str, text: str) -> Path:
        path = docs_dir / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def change_source() -> FakeChangeSource:
    return FakeChangeSource()


@pytest.fixture
def make_index(docs_dir: Path) -> Iterator[Callable[..., LiveIndex]]:
    created: list[LiveIndex] = []

    def _make(**kwargs) -> LiveIndex:
        kwargs.setdefault("top_k", 3)
        index = LiveIndex(kwargs.pop("documents_dir", docs_dir), **kwargs)
        created.append(index)
        return index

    yield _make

    for index in created:
        index.close()
