from __future__ import annotations

"""Command-line interface for certharvest.

This module translates CLI flags into a connection policy, opens the target
source and runs the dispatcher. Result lines go to stdout; diagnostics go to
stderr.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from .core import ConnectionPolicy, Dispatcher, SourceError, iter_targets, logger, open_source
from .engine.dispatcher import DEFAULT_CONCURRENCY
from .output import err_console, print_error, write_line
from .version import __version__

DEFAULT_TIMEOUT = 5

EXIT_OK = 0
EXIT_INPUT_ERROR = 1


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="certharvest",
        description=(
            f"certharvest v.{__version__} - Print the TLS certificate common name "
            "of each host read from a file or stdin."
        ),
    )
    parser.add_argument(
        "-f",
        dest="input",
        default="",
        help="path to list of urls or ip addresses, defaults to stdin if left blank",
    )
    parser.add_argument(
        "-c",
        dest="concurrency",
        type=int,
        default=DEFAULT_CONCURRENCY,
        help=f"number of concurrent requests to make (default: {DEFAULT_CONCURRENCY})",
    )
    parser.add_argument(
        "-t",
        dest="timeout",
        type=int,
        default=DEFAULT_TIMEOUT,
        help=f"timeout in seconds, 0 disables it (default: {DEFAULT_TIMEOUT})",
    )
    parser.add_argument("-r", dest="redirect", action="store_true", help="follow redirects")
    parser.add_argument("-u", dest="show_urls", action="store_true", help="show urls in output")
    parser.add_argument("--debug", action="store_true", help="log why each target was skipped (stderr)")
    parser.add_argument("--version", action="store_true", help="show version and exit")
    return parser


def validate_args(args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
    if args.concurrency < 1:
        parser.error("-c must be at least 1")
    if args.timeout < 0:
        parser.error("-t must be >= 0")


def build_policy(args: argparse.Namespace) -> ConnectionPolicy:
    return ConnectionPolicy(timeout=args.timeout, follow_redirects=args.redirect)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entrypoint; returns the process exit status."""
    parser = create_parser()
    args = parser.parse_args(argv)
    if args.version:
        print(f"certharvest version {__version__}")
        return EXIT_OK
    validate_args(args, parser)
    if args.debug:
        logger.setLevel(logging.DEBUG)

    policy = build_policy(args)
    show_urls = args.show_urls

    def emit(result) -> None:
        write_line(result.render(show_urls))

    try:
        with open_source(args.input) as handle:
            Dispatcher(policy, concurrency=args.concurrency, sink=emit).run(iter_targets(handle))
    except SourceError as exc:
        print_error("unable to open input file:", exc)
        return EXIT_INPUT_ERROR
    return EXIT_OK


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Interrupted[/yellow]")
        try:
            sys.exit(0)
        except SystemExit:
            os._exit(0)
