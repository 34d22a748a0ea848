"""
Buffer module for Quill text viewer.

Defines the Row and Buffer classes that hold the text being viewed. Each Row keeps
its raw characters and a render form in which tabs are expanded to spaces. The
column conversion between the two lives here too, so both always agree on where a
tab stop falls.
"""
from quill.config import TAB_STOP

# Files are decoded with surrogateescape so undecodable bytes reach the terminal unchanged
ENCODING = "utf-8"
ENCODING_ERRORS = "surrogateescape"


def tab_advance(render_col: int, tab_stop: int = TAB_STOP) -> int:
    """Number of spaces a tab inserts at render_col (always at least 1)."""
    return tab_stop - (render_col % tab_stop)


def expand_tabs(raw: str, tab_stop: int = TAB_STOP) -> str:
    """Return the render form of raw: every tab padded out to the next tab stop."""
    if "\t" not in raw:
        return raw
    out = []
    col = 0
    for ch in raw:
        if ch == "\t":
            n = tab_advance(col, tab_stop)
            out.append(" " * n)
            col += n
        else:
            out.append(ch)
            col += 1
    return "".join(out)


def logical_to_render(row, logical_col: int, tab_stop: int = TAB_STOP) -> int:
    """
    Convert a column in row.raw to the matching column in row.render.
    Walks the first logical_col characters with the same tab rule as expand_tabs.
    """
    render_col = 0
    for ch in row.raw[:logical_col]:
        if ch == "\t":
            render_col += tab_advance(render_col, tab_stop)
        else:
            render_col += 1
    return render_col


def strip_line_ending(line: str) -> str:
    """Drop any trailing newline / carriage return characters."""
    return line.rstrip("\r\n")


class Row:
    """A single line of text and its tab-expanded render form."""
    __slots__ = ("_raw", "_render", "tab_stop")

    def __init__(self, raw: str = "", tab_stop: int = TAB_STOP):
        self.tab_stop = tab_stop
        self._raw = ""
        self._render = ""
        self.raw = raw

    @property
    def raw(self) -> str:
        return self._raw

    @raw.setter
    def raw(self, value: str) -> None:
        # render is always regenerated alongside raw
        self._raw = strip_line_ending(value)
        self._render = expand_tabs(self._raw, self.tab_stop)

    @property
    def render(self) -> str:
        return self._render

    def __len__(self) -> int:
        return len(self._raw)

    def __repr__(self) -> str:
        return f"Row({self._raw!r})"


class Buffer:
    """Ordered, append-only collection of rows loaded from a file (or empty)."""
    def __init__(self, filename: str = None, tab_stop: int = TAB_STOP):
        self.filename = filename  # Path to file or None for an empty buffer
        self.tab_stop = tab_stop
        self.rows = []

    @classmethod
    def from_lines(cls, lines, filename: str = None, tab_stop: int = TAB_STOP) -> "Buffer":
        """Build a buffer with one row per line (line endings are stripped)."""
        buf = cls(filename, tab_stop)
        for line in lines:
            buf.append_row(line)
        return buf

    @classmethod
    def open(cls, filename: str, tab_stop: int = TAB_STOP) -> "Buffer":
        """
        Load a file into a new buffer. Lines may end in \\n or \\r\\n.
        Raises OSError if the file cannot be read.
        """
        with open(filename, 'rb') as f:
            data = f.read()
        text = data.decode(ENCODING, ENCODING_ERRORS)
        lines = text.split("\n")
        # A final terminator does not start another row
        if lines and lines[-1] == "":
            lines.pop()
        return cls.from_lines(lines, filename, tab_stop)

    @property
    def num_rows(self) -> int:
        return len(self.rows)

    def append_row(self, text: str) -> Row:
        """Append a new row to the end of the buffer and return it."""
        row = Row(text, self.tab_stop)
        self.rows.append(row)
        return row

    def row_at(self, index: int) -> Row:
        """Return the row at index, or None for the virtual row past the end."""
        if 0 <= index < len(self.rows):
            return self.rows[index]
        return None

    def render_of(self, index: int) -> str:
        """Return the render form of a row. Raises IndexError when out of range."""
        if not 0 <= index < len(self.rows):
            raise IndexError(f"row {index} out of range (buffer has {len(self.rows)} rows)")
        return self.rows[index].render

    def row_len(self, index: int) -> int:
        """Raw length of a row; 0 for the virtual row past the end."""
        row = self.row_at(index)
        return len(row) if row is not None else 0

    def render_col(self, index: int, logical_col: int) -> int:
        """Render column of logical_col on row index (0 past the end of the buffer)."""
        row = self.row_at(index)
        if row is None:
            return 0
        return logical_to_render(row, logical_col, self.tab_stop)
