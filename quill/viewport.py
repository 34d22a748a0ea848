"""
Viewport module for Quill text viewer.

Tracks the cursor and the scroll offsets of the visible window into a Buffer.
scroll() is run once per frame and pulls the offsets along just far enough that
the cursor stays on screen.
"""
from dataclasses import dataclass

from quill.buffer import Buffer
from quill.ui.screen import display_width

UP = "up"
DOWN = "down"
LEFT = "left"
RIGHT = "right"
DIRECTIONS = (UP, DOWN, LEFT, RIGHT)


@dataclass
class Cursor:
    logical_col: int = 0
    logical_row: int = 0


class Viewport:
    """Cursor position plus the top-left corner and size of the text area."""
    def __init__(self, screen_rows: int, screen_cols: int):
        self.cursor = Cursor()
        self.row_offset = 0
        self.col_offset = 0
        self.screen_rows = max(1, screen_rows)
        self.screen_cols = max(1, screen_cols)
        # Render column of the cursor, recomputed by scroll() every frame
        self.render_col = 0

    def resize(self, screen_rows: int, screen_cols: int) -> None:
        """Set the text area size (terminal rows minus the bar lines)."""
        self.screen_rows = max(1, screen_rows)
        self.screen_cols = max(1, screen_cols)

    def scroll(self, buffer: Buffer) -> None:
        """
        Adjust row_offset / col_offset so the cursor is inside the visible
        rectangle. Rows and columns are clamped independently.
        """
        cur = self.cursor
        self.render_col = buffer.render_col(cur.logical_row, cur.logical_col)

        if cur.logical_row < self.row_offset:
            self.row_offset = cur.logical_row
        if cur.logical_row >= self.row_offset + self.screen_rows:
            self.row_offset = cur.logical_row - self.screen_rows + 1
        if self.render_col < self.col_offset:
            self.col_offset = self.render_col
        if self.render_col >= self.col_offset + self.screen_cols:
            self.col_offset = self.render_col - self.screen_cols + 1

        row = buffer.row_at(cur.logical_row)
        if row is not None:
            self._fit_cursor_cell(row.render)

    def _fit_cursor_cell(self, render: str) -> None:
        """Slide col_offset right until the cursor cell is inside screen_cols cells."""
        # Only wide characters can push the cursor past the edge after the clamps above
        cursor_cells = 1 if self.render_col >= len(render) else 0
        while (self.col_offset < self.render_col
               and display_width(render[self.col_offset:self.render_col + 1]) + cursor_cells > self.screen_cols):
            self.col_offset += 1

    def move_cursor(self, direction: str, buffer: Buffer) -> None:
        """Move the cursor one step; left/right wrap across line boundaries."""
        cur = self.cursor
        num_rows = buffer.num_rows
        row = buffer.row_at(cur.logical_row)

        if direction == LEFT:
            if cur.logical_col > 0:
                cur.logical_col -= 1
            elif cur.logical_row > 0:
                cur.logical_row -= 1
                cur.logical_col = buffer.row_len(cur.logical_row)
        elif direction == RIGHT:
            if row is not None and cur.logical_col < len(row):
                cur.logical_col += 1
            elif cur.logical_row < num_rows:
                cur.logical_row += 1
                cur.logical_col = 0
        elif direction == UP:
            if cur.logical_row > 0:
                cur.logical_row -= 1
        elif direction == DOWN:
            if cur.logical_row < num_rows:
                cur.logical_row += 1
        else:
            raise ValueError(f"unknown direction: {direction!r}")

        # A shorter (or virtual) row truncates the column
        row_len = buffer.row_len(cur.logical_row)
        if cur.logical_col > row_len:
            cur.logical_col = row_len
