from __future__ import annotations

"""Line-oriented target input.

`open_source` acquires the input handle (a file path, or stdin when the path is
empty) and `iter_targets` lazily yields one target per line, in input order,
until end-of-stream.
"""

import contextlib
import sys
from pathlib import Path
from typing import IO, Iterator, Optional

from ..output import print_error
from . import logger


class SourceError(Exception):
    """Input file could not be opened; fatal before any work starts."""


@contextlib.contextmanager
def open_source(path: Optional[str]) -> Iterator[IO[str]]:
    """Yield the input handle and close it on every exit path.

    Undecodable bytes are replaced so one bad line cannot hide its neighbours.
    Standard input belongs to the interpreter and is left open.
    """
    if not path:
        reconfigure = getattr(sys.stdin, "reconfigure", None)
        if reconfigure is not None:
            reconfigure(errors="replace")
        yield sys.stdin
        return
    try:
        handle = Path(path).open("r", encoding="utf-8", errors="replace")
    except OSError as exc:
        raise SourceError(str(exc)) from exc
    with handle:
        yield handle


def iter_targets(handle: IO[str]) -> Iterator[str]:
    # Blank lines are passed through; they fail normalization downstream.
    count = 0
    try:
        for line in handle:
            count += 1
            yield line.strip()
    except (OSError, UnicodeDecodeError) as exc:
        print_error("error while scanning input:", exc)
    logger.debug("Input exhausted after %d targets", count)
