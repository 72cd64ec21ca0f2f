from __future__ import annotations

"""Terminal output helpers for certharvest.

Results are plain lines on stdout so they can be piped; everything meant for
the operator goes to stderr through `err_console`.
"""

import sys
import threading

from rich.console import Console
from rich.markup import escape

err_console = Console(stderr=True)

_stdout_lock = threading.Lock()


def write_line(line: str) -> None:
    """Write one result line to stdout without interleaving across workers.

    Characters the stdout encoding cannot represent are backslash-escaped.
    """
    text = line + "\n"
    with _stdout_lock:
        try:
            try:
                sys.stdout.write(text)
            except UnicodeEncodeError:
                encoding = sys.stdout.encoding or "ascii"
                sys.stdout.write(text.encode(encoding, "backslashreplace").decode(encoding))
            sys.stdout.flush()
        except BrokenPipeError:
            # Reader went away (e.g. `| head`); drop remaining output quietly.
            return


def print_error(prefix: str, detail: object) -> None:
    err_console.print(f"[red]{escape(prefix)}[/red] {escape(str(detail))}", highlight=False)
