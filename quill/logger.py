"""
Logger module for the Quill text viewer.

Provides a simple file-based logger for debugging and error tracking. The terminal
is in raw mode while the viewer runs, so nothing may be printed to it; everything
diagnostic goes to the log file instead.
"""
import datetime
import os

# Define the log file path (QUILL_LOG="" turns logging off)
LOG_FILE_PATH = os.environ.get("QUILL_LOG", "quill.log")

def log(message: str) -> None:
    """Append a timestamped message to the log file."""
    if not LOG_FILE_PATH:
        return
    try:
        with open(LOG_FILE_PATH, 'a', encoding='utf-8') as f:
            timestamp = datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            f.write(f"[{timestamp}] {message}\n")
    except OSError:
        # If logging fails (e.g., file not writable), ignore to avoid crashing the viewer.
        pass
