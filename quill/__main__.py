"""
Main entry point and editor context for the Quill text viewer.
"""
import signal
import sys
import time

import quill.ui.input
import quill.ui.screen
from quill import buffer, config, logger, terminal, ui
from quill.viewport import Viewport

HELP_MESSAGE = "HELP: Ctrl-Q to quit"

# Status bar and message bar take the bottom two terminal lines
RESERVED_ROWS = 2

EXIT_OK = 0
EXIT_FAILURE = 1

# Signals that end the process; turned into SystemExit so raw mode is still undone
TERMINATING_SIGNALS = (signal.SIGTERM, signal.SIGHUP)


class EditorContext:
    """
    Holds the state of the viewer: the buffer being shown, the viewport onto it,
    the status message, and the terminal everything is drawn on.
    """
    def __init__(self, term, buf: buffer.Buffer, settings: config.Settings, rows: int, cols: int):
        self.terminal = term
        self.buffer = buf
        self.settings = settings
        self.viewport = Viewport(*self._layout(rows, cols))

        # Message bar text and when it was set
        self.status_message = ""
        self.status_message_time = 0.0

        # Set from the SIGWINCH handler, applied from the main loop
        self.resize_pending = False

        # Running flag
        self.exit_flag = False

    def _layout(self, rows: int, cols: int):
        """
        Split the terminal into text area and bars. At least one text row is
        kept, so on a terminal under three rows the message bar and then the
        status bar are dropped.
        """
        self.bar_rows = min(RESERVED_ROWS, max(0, rows - 1))
        return rows - self.bar_rows, cols

    def set_status_message(self, msg: str) -> None:
        """Show msg in the message bar for the configured timeout."""
        self.status_message = msg
        self.status_message_time = time.time()

    def graceful_exit(self) -> None:
        """Stop the main loop; run() clears the screen and restores the terminal."""
        logger.log("Viewer exited.")
        self.exit_flag = True

    def on_sigwinch(self, signum, frame) -> None:
        self.resize_pending = True

    def apply_pending_resize(self) -> bool:
        """Re-read the window size if a resize was signalled. Returns True if it was."""
        if not self.resize_pending:
            return False
        self.resize_pending = False
        rows, cols = self.terminal.get_window_size()
        self.viewport.resize(*self._layout(rows, cols))
        logger.log(f"resized to {rows}x{cols}")
        return True

    def on_idle(self) -> None:
        """Called when a key read times out; redraws after a resize."""
        if self.apply_pending_resize():
            ui.screen.refresh_screen(self)


def load_buffer(filename, settings: config.Settings) -> buffer.Buffer:
    """Open filename, or return an empty buffer when no file was given."""
    if filename is None:
        return buffer.Buffer(tab_stop=settings.tab_stop)
    buf = buffer.Buffer.open(filename, settings.tab_stop)
    logger.log(f"opened {filename} ({buf.num_rows} rows)")
    return buf


def editor_loop(context: EditorContext) -> None:
    """Alternate between drawing a frame and handling one key until quit."""
    decoder = ui.input.KeyDecoder()
    while not context.exit_flag:
        context.apply_pending_resize()
        ui.screen.refresh_screen(context)
        key = ui.input.read_key(context.terminal, decoder, on_idle=context.on_idle)
        ui.input.process_keypress(context, key)


def _clear_on_exit(term, primary) -> None:
    """Clear the screen on the way out without hiding the error that got us here."""
    try:
        term.clear_screen()
    except terminal.TerminalError as e:
        logger.log(f"could not clear screen: {e}")
        if primary is None:
            raise


def _exit_on_signal(signum, frame):
    logger.log(f"received signal {signum}, exiting")
    raise SystemExit(128 + signum)


def main(argv, settings: config.Settings, in_fd: int, out_fd: int) -> int:
    """
    Run the viewer on the given file descriptors. Raw mode is held only inside
    the with block, so the terminal is restored on every way out of it.
    """
    filename = argv[0] if argv else None
    with terminal.RawTerminal(in_fd, out_fd, settings.read_timeout) as term:
        prev_handlers = {signum: signal.signal(signum, _exit_on_signal) for signum in TERMINATING_SIGNALS}
        prev_handlers[signal.SIGWINCH] = signal.getsignal(signal.SIGWINCH)
        primary = None
        try:
            rows, cols = term.get_window_size()
            logger.log(f"starting: file={filename!r} size={rows}x{cols}")
            buf = load_buffer(filename, settings)

            context = EditorContext(term, buf, settings, rows, cols)
            signal.signal(signal.SIGWINCH, context.on_sigwinch)
            context.set_status_message(HELP_MESSAGE)
            editor_loop(context)
        except BaseException as e:
            primary = e
            raise
        finally:
            for signum, handler in prev_handlers.items():
                if handler is not None:
                    signal.signal(signum, handler)
            _clear_on_exit(term, primary)
    return EXIT_OK


def run(argv=None, stdin_fd=None, stdout_fd=None):
    """
    Console entry point. The only place that turns an error into a process exit:
    the terminal has already been restored by the time the diagnostic is printed.
    """
    argv = sys.argv[1:] if argv is None else argv
    stdin_fd = sys.stdin.fileno() if stdin_fd is None else stdin_fd
    stdout_fd = sys.stdout.fileno() if stdout_fd is None else stdout_fd
    settings = config.load_settings()
    try:
        status = main(argv, settings, stdin_fd, stdout_fd)
    except terminal.TerminalError as e:
        logger.log(f"fatal terminal error: {e}")
        print(f"quill: {e}", file=sys.stderr)
        status = EXIT_FAILURE
    except OSError as e:
        logger.log(f"fatal error: {e}")
        print(f"quill: {e.filename or 'error'}: {e.strerror or e}", file=sys.stderr)
        status = EXIT_FAILURE
    sys.exit(status)


if __name__ == "__main__":
    run()
