"""
Raw-mode terminal handling for Quill.

RawTerminal switches the controlling terminal into raw (non-canonical, unechoed)
input mode for the lifetime of a ``with`` block and always puts the saved
attributes back on the way out, whether the block ends normally or by an
exception.
"""
import os
import re
import termios

from quill import logger

QUERY_CURSOR_POSITION = b"\x1b[6n"
CURSOR_FAR_BOTTOM_RIGHT = b"\x1b[999C\x1b[999B"
CLEAR_SCREEN = b"\x1b[2J"
CURSOR_HOME = b"\x1b[H"

_CURSOR_POSITION_RE = re.compile(rb"\x1b\[(?P<row>\d+);(?P<column>\d+)R")

# termios attribute list indexes
IFLAG, OFLAG, CFLAG, LFLAG, ISPEED, OSPEED, CC = range(7)


class TerminalError(Exception):
    """A terminal capability (attribute get/set, read, size query) failed."""
    def __init__(self, operation: str, reason):
        super().__init__(f"{operation}: {reason}")
        self.operation = operation
        self.reason = reason


def read_timeout_to_vtime(seconds: float) -> int:
    """Convert a read timeout in seconds to termios VTIME deciseconds (1..255)."""
    return min(255, max(1, int(round(seconds * 10))))


def make_raw(attrs: list, vtime: int) -> list:
    """Return a copy of termios attrs with raw-mode flags applied."""
    raw = list(attrs)
    raw[CC] = list(attrs[CC])
    raw[IFLAG] &= ~(termios.BRKINT | termios.ICRNL | termios.INPCK | termios.ISTRIP | termios.IXON)
    raw[OFLAG] &= ~termios.OPOST
    raw[CFLAG] |= termios.CS8
    raw[LFLAG] &= ~(termios.ECHO | termios.ICANON | termios.ISIG | termios.IEXTEN)
    # Non-blocking-ish reads: return after vtime deciseconds even with no input
    raw[CC][termios.VMIN] = 0
    raw[CC][termios.VTIME] = vtime
    return raw


class RawTerminal:
    """
    Scoped raw-mode session on a pair of file descriptors.

    in_fd must be a tty; out_fd receives everything written. Attributes are
    snapshotted on __enter__ and restored on __exit__.
    """
    def __init__(self, in_fd: int, out_fd: int, read_timeout: float = 0.1):
        self.in_fd = in_fd
        self.out_fd = out_fd
        self.vtime = read_timeout_to_vtime(read_timeout)
        self.original_attrs = None

    def __enter__(self):
        self.enable_raw_mode()
        return self

    def __exit__(self, type, value, traceback):
        self.disable_raw_mode()

    def enable_raw_mode(self) -> None:
        try:
            self.original_attrs = termios.tcgetattr(self.in_fd)
        except termios.error as e:
            raise TerminalError("tcgetattr", e) from e
        try:
            termios.tcsetattr(self.in_fd, termios.TCSAFLUSH, make_raw(self.original_attrs, self.vtime))
        except termios.error as e:
            self.original_attrs = None
            raise TerminalError("tcsetattr", e) from e
        logger.log(f"raw mode enabled (VTIME={self.vtime})")

    def disable_raw_mode(self) -> None:
        if self.original_attrs is None:
            return
        attrs, self.original_attrs = self.original_attrs, None
        try:
            termios.tcsetattr(self.in_fd, termios.TCSAFLUSH, attrs)
        except termios.error as e:
            raise TerminalError("tcsetattr", e) from e
        logger.log("raw mode disabled, terminal restored")

    def write(self, data: bytes) -> None:
        """Write all of data to the output fd."""
        view = memoryview(data)
        while view:
            try:
                n = os.write(self.out_fd, view)
            except InterruptedError:
                continue
            except OSError as e:
                raise TerminalError("write", e) from e
            view = view[n:]

    def read_byte(self) -> bytes:
        """
        Read a single byte. Returns b"" when the read timeout expires with no
        input. Interrupted reads are retried.
        """
        while True:
            try:
                return os.read(self.in_fd, 1)
            except (InterruptedError, BlockingIOError):
                continue
            except OSError as e:
                raise TerminalError("read", e) from e

    def clear_screen(self) -> None:
        self.write(CLEAR_SCREEN + CURSOR_HOME)

    def get_cursor_position(self):
        """Ask the terminal where the cursor is; returns (row, column)."""
        self.write(QUERY_CURSOR_POSITION)
        resp = b""
        while len(resp) < 32:
            c = self.read_byte()
            if not c:
                break
            resp += c
            if c == b"R":
                break
        m = _CURSOR_POSITION_RE.search(resp)
        if not m:
            raise TerminalError("get_cursor_position", f"unexpected reply {resp!r}")
        return int(m.group("row")), int(m.group("column"))

    def get_window_size(self):
        """
        Return (rows, columns) of the terminal. Falls back to pushing the cursor
        to the bottom-right corner and asking for its position.
        """
        try:
            size = os.get_terminal_size(self.out_fd)
        except OSError:
            size = None
        if size is not None and size.columns > 0:
            return size.lines, size.columns
        self.write(CURSOR_FAR_BOTTOM_RIGHT)
        return self.get_cursor_position()
