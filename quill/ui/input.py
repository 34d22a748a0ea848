"""
Input handling for Quill text viewer.

Turns raw bytes from the terminal into key codes (KeyDecoder) and maps key codes
to cursor movement or quit (process_keypress).
"""
from quill import logger
from quill.viewport import UP, DOWN, LEFT, RIGHT

ESCAPE = 27

# Arrow keys get codes outside the byte range so they never clash with a literal byte
ARROW_LEFT = 1000
ARROW_RIGHT = 1001
ARROW_UP = 1002
ARROW_DOWN = 1003

_ARROW_FINALS = {
    ord('A'): ARROW_UP,
    ord('B'): ARROW_DOWN,
    ord('C'): ARROW_RIGHT,
    ord('D'): ARROW_LEFT,
}

# Decoder states
IDLE = "idle"
SAW_ESCAPE = "saw_escape"
SAW_BRACKET = "saw_bracket"


def ctrl_key(ch: str) -> int:
    """Key code produced by holding Ctrl with ch."""
    return ord(ch) & 0x1f


QUIT = ctrl_key('q')

KEY_DIRECTIONS = {
    ARROW_UP: UP,
    ARROW_DOWN: DOWN,
    ARROW_LEFT: LEFT,
    ARROW_RIGHT: RIGHT,
    ord('k'): UP,
    ord('j'): DOWN,
    ord('h'): LEFT,
    ord('l'): RIGHT,
}


class KeyDecoder:
    """
    Small state machine for ``ESC [ <letter>`` arrow sequences.

    feed() takes one byte at a time and returns a key code once a key is
    complete, or None while a sequence is still pending. timeout() is called
    when a read comes back empty; a pending sequence then resolves to ESCAPE.
    """
    def __init__(self):
        self.state = IDLE

    def feed(self, byte: int):
        if self.state == IDLE:
            if byte == ESCAPE:
                self.state = SAW_ESCAPE
                return None
            return byte

        if self.state == SAW_ESCAPE:
            if byte == ord('['):
                self.state = SAW_BRACKET
                return None
            self.state = IDLE
            return ESCAPE

        # SAW_BRACKET: the final byte decides
        self.state = IDLE
        return _ARROW_FINALS.get(byte, ESCAPE)

    def timeout(self):
        if self.state == IDLE:
            return None
        self.state = IDLE
        return ESCAPE


def read_key(terminal, decoder: KeyDecoder, on_idle=None) -> int:
    """
    Block until a full key has been read from terminal. on_idle, if given, is
    called whenever a read times out with nothing pending.
    """
    while True:
        data = terminal.read_byte()
        if not data:
            key = decoder.timeout()
            if key is not None:
                return key
            if on_idle is not None:
                on_idle()
            continue
        key = decoder.feed(data[0])
        if key is not None:
            return key


def process_keypress(context, key: int) -> None:
    """Handle one key: Ctrl-Q quits, arrows and h/j/k/l move, anything else is ignored."""
    if key == QUIT:
        logger.log("Ctrl-Q: quit")
        context.graceful_exit()
        return

    direction = KEY_DIRECTIONS.get(key)
    if direction is not None:
        context.viewport.move_cursor(direction, context.buffer)
