"""
quill/ui/screen.py

Builds each frame of the viewer as one string of text and VT100 escape
sequences: the visible slice of the buffer, a status bar in inverse video, the
message bar, and the final cursor position. The finished frame goes to the
terminal in a single write so the screen never shows a half-drawn state.
"""
import time

from wcwidth import wcswidth, wcwidth

from quill.config import VERSION
from quill.buffer import ENCODING, ENCODING_ERRORS

# Escape sequences
HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"
CURSOR_HOME = "\x1b[H"
CLEAR_LINE = "\x1b[K"
INVERSE_VIDEO = "\x1b[7m"
RESET_ATTRIBUTES = "\x1b[m"
CURSOR_POSITION_FMT = "\x1b[{};{}H"
NEWLINE = "\r\n"

FILLER = "~"
NO_NAME = "[No Name]"
STATUS_FILENAME_MAX = 20
WELCOME = f"Quill Editor {VERSION}"

###############################################################################
# TEXT WIDTH HELPERS
###############################################################################

def display_width(text: str) -> int:
    """Number of terminal cells text occupies; unprintable characters count as zero."""
    width = wcswidth(text)
    if width >= 0:
        return width
    return sum(max(0, wcwidth(ch)) for ch in text)

def clip_to_width(text: str, width: int) -> str:
    """Cut text so it occupies at most width cells."""
    if display_width(text) <= width:
        return text
    used = 0
    for i, ch in enumerate(text):
        used += max(0, wcwidth(ch))
        if used > width:
            return text[:i]
    return text

def pad_line(text, width):
    """Pad or trim a string to match the visual width."""
    text = clip_to_width(text, width)
    return text + " " * (width - display_width(text))

###############################################################################
# APPEND BUFFER
###############################################################################

class AppendBuffer:
    """Growth-only accumulator for one frame; encoded once when the frame is done."""
    def __init__(self):
        self._chunks = []
        self._length = 0

    def append(self, text: str) -> None:
        self._chunks.append(text)
        self._length += len(text)

    def __len__(self) -> int:
        return self._length

    def getvalue(self) -> str:
        return "".join(self._chunks)

    def to_bytes(self) -> bytes:
        return self.getvalue().encode(ENCODING, ENCODING_ERRORS)

###############################################################################
# DRAWING
###############################################################################

def draw_welcome(ab: AppendBuffer, screen_cols: int) -> None:
    """Draw the centred banner shown when no file is loaded."""
    welcome = WELCOME[:screen_cols]
    padding = max(0, (screen_cols - len(welcome)) // 2 - 1)
    line = FILLER + " " * padding + welcome
    ab.append(line[:screen_cols])

def draw_rows(ab: AppendBuffer, context) -> None:
    """
    Draw one line per text-area row: the visible slice of a buffer row, the
    welcome banner, or a filler marker below the end of the buffer.
    """
    buffer = context.buffer
    vp = context.viewport
    for y in range(vp.screen_rows):
        filerow = y + vp.row_offset
        if filerow < buffer.num_rows:
            render = buffer.render_of(filerow)
            ab.append(clip_to_width(render[vp.col_offset:vp.col_offset + vp.screen_cols], vp.screen_cols))
        elif buffer.num_rows == 0 and y == vp.screen_rows // 2:
            draw_welcome(ab, vp.screen_cols)
        else:
            ab.append(FILLER)
        ab.append(CLEAR_LINE)
        # Without bars below it, the last text row must not scroll the terminal
        if context.bar_rows or y < vp.screen_rows - 1:
            ab.append(NEWLINE)

def status_texts(context):
    """Return the (left, right) texts of the status bar."""
    buffer = context.buffer
    name = (buffer.filename or NO_NAME)[:STATUS_FILENAME_MAX]
    left = f"{name} - {buffer.num_rows} lines"
    right = f"{context.viewport.cursor.logical_row + 1}/{buffer.num_rows}"
    return left, right

def draw_status_bar(ab: AppendBuffer, context) -> None:
    """
    Draw the inverse-video status bar spanning the whole width: file name and
    line count on the left, cursor line / total on the right.
    """
    width = context.viewport.screen_cols
    left, right = status_texts(context)
    left = clip_to_width(left, width)
    right_width = display_width(right)

    ab.append(INVERSE_VIDEO)
    # The right-hand text is only drawn when it fits after the left-hand text
    if width - display_width(left) >= right_width:
        ab.append(pad_line(left, width - right_width))
        ab.append(right)
    else:
        ab.append(pad_line(left, width))
    ab.append(RESET_ATTRIBUTES)
    if context.bar_rows > 1:
        ab.append(NEWLINE)

def draw_message_bar(ab: AppendBuffer, context, now: float) -> None:
    """Draw the status message while it is younger than the message timeout."""
    ab.append(CLEAR_LINE)
    msg = context.status_message
    if msg and now - context.status_message_time < context.settings.message_timeout:
        ab.append(clip_to_width(msg, context.viewport.screen_cols))

def draw_cursor(ab: AppendBuffer, context) -> None:
    """Place the terminal cursor over the logical cursor (1-based row;col)."""
    vp = context.viewport
    row = vp.cursor.logical_row - vp.row_offset + 1
    buffer_row = context.buffer.row_at(vp.cursor.logical_row)
    if buffer_row is None:
        col = 1
    else:
        # Count cells, not characters, so wide glyphs left of the cursor are accounted for
        col = display_width(buffer_row.render[vp.col_offset:vp.render_col]) + 1
    ab.append(CURSOR_POSITION_FMT.format(row, col))

def build_frame(context, now: float = None) -> bytes:
    """Scroll the viewport to the cursor and return the bytes of one full frame."""
    if now is None:
        now = time.time()
    context.viewport.scroll(context.buffer)

    ab = AppendBuffer()
    ab.append(HIDE_CURSOR)
    ab.append(CURSOR_HOME)
    draw_rows(ab, context)
    if context.bar_rows > 0:
        draw_status_bar(ab, context)
    if context.bar_rows > 1:
        draw_message_bar(ab, context, now)
    draw_cursor(ab, context)
    ab.append(SHOW_CURSOR)
    return ab.to_bytes()

def refresh_screen(context) -> None:
    """Redraw the whole screen with a single write."""
    context.terminal.write(build_frame(context))
