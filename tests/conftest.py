"""Shared fixtures: an in-memory terminal and editor contexts built on it."""

from __future__ import annotations

import pytest

from quill import logger
from quill.__main__ import RESERVED_ROWS, EditorContext
from quill.buffer import Buffer
from quill.config import Settings


class FakeTerminal:
    """In-memory stand-in for RawTerminal.

    Every ``write`` is recorded separately so tests can check that a frame
    went out in one piece. ``read_byte`` pops queued input and returns ``b""``
    (a read timeout) once the queue is empty.
    """

    def __init__(self, rows: int = 24, columns: int = 80, keys: bytes = b"") -> None:
        self.rows = rows
        self.columns = columns
        self.writes: list[bytes] = []
        self.pending = bytearray(keys)
        self.timeouts = 0
        self.raw = False
        self.restored = False

    def __enter__(self):
        self.raw = True
        return self

    def __exit__(self, type, value, traceback):
        self.raw = False
        self.restored = True

    def feed(self, data: bytes) -> None:
        self.pending.extend(data)

    def read_byte(self) -> bytes:
        if not self.pending:
            self.timeouts += 1
            if self.timeouts > 1000:
                raise RuntimeError("FakeTerminal starved: no quit key queued")
            return b""
        return bytes([self.pending.pop(0)])

    def write(self, data: bytes) -> None:
        self.writes.append(bytes(data))

    def clear_screen(self) -> None:
        self.write(b"\x1b[2J\x1b[H")

    def get_window_size(self):
        return self.rows, self.columns

    @property
    def output(self) -> bytes:
        return b"".join(self.writes)


@pytest.fixture(autouse=True)
def _log_to_tmp(tmp_path, monkeypatch):
    """Keep test runs from writing quill.log into the working directory."""
    monkeypatch.setattr(logger, "LOG_FILE_PATH", str(tmp_path / "quill.log"))


def make_context(lines=None, screen_rows: int = 5, screen_cols: int = 10,
                 filename: str | None = None, settings: Settings | None = None) -> EditorContext:
    """Build an EditorContext whose text area is screen_rows x screen_cols."""
    settings = settings or Settings()
    buf = Buffer.from_lines(lines or [], filename, settings.tab_stop)
    term = FakeTerminal(screen_rows + RESERVED_ROWS, screen_cols)
    return EditorContext(term, buf, settings, screen_rows + RESERVED_ROWS, screen_cols)


@pytest.fixture
def fake_terminal() -> FakeTerminal:
    return FakeTerminal()
