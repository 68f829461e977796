# Copyright 2025 Jesse Bate (https://github.com/jbatesy)
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Command-line interface for httplog.
"""

import argparse
import logging
import os
import sys
from typing import Optional

from http_codec import DecodeError, encode_transaction

from .capture import TransactionLog
from .export import to_json, to_yaml, transaction_to_dict
from .follow import FollowStream

LOGGER_NAMES = ("http_codec", "httplog")
LOG_FORMAT = "%(levelname)s %(name)s :: %(message)s"


def _resolve_level(verbose: bool, quiet: bool) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.ERROR
    return logging.WARNING


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Send package log records to stderr at the level chosen by -v/-q."""
    level = _resolve_level(verbose, quiet)
    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.propagate = False

        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="httplog",
        description="Decode HTTP/1.x transactions from an SSL/TLS interception log.",
        epilog="Examples:\n"
               "  httplog connection.log -o transactions.yaml\n"
               "  httplog connection.log --format json --no-body\n"
               "  httplog stream.yaml --input tshark-yaml --format raw -o canonical.log",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "log_file",
        metavar="LOG_FILE",
        help="Path to the input log file",
    )

    parser.add_argument(
        "-o", "--output",
        metavar="FILE",
        help="Output file (default: stdout)",
    )

    parser.add_argument(
        "-f", "--format",
        choices=("yaml", "json", "raw"),
        default="yaml",
        help="Output format; raw re-encodes transactions in canonical form (default: yaml)",
    )

    parser.add_argument(
        "--input",
        choices=("raw", "tshark-yaml"),
        default="raw",
        help="Input format: raw log bytes or tshark 'follow,tls,yaml' output (default: raw)",
    )

    parser.add_argument(
        "--indent",
        metavar="N",
        type=int,
        default=2,
        help="JSON indentation level (default: 2, use 0 for compact output)",
    )

    parser.add_argument(
        "--strict-framing",
        action="store_true",
        help="Fail on messages without Content-Length or chunked framing "
             "instead of assuming an empty body",
    )

    parser.add_argument(
        "--skip-errors",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Skip undecodable transactions and continue with the next request (default: on)",
    )

    parser.add_argument(
        "--no-body",
        action="store_true",
        help="Exclude bodies from yaml/json output",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress warnings and non-essential output",
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )

    return parser


def _load_log(args: argparse.Namespace) -> TransactionLog:
    options = dict(strict=args.strict_framing, skip_errors=args.skip_errors)
    if args.input == "tshark-yaml":
        stream = FollowStream.from_file(args.log_file)
        return TransactionLog(stream.payload, source=args.log_file, **options)
    return TransactionLog.from_file(args.log_file, **options)


def _render(log: TransactionLog, args: argparse.Namespace) -> bytes:
    if args.format == "raw":
        return b"".join(encode_transaction(tx) for tx in log)

    documents = [
        transaction_to_dict(tx, include_body=not args.no_body, offset=offset)
        for offset, tx in log.entries()
    ]
    if args.format == "json":
        text = to_json(documents, indent=args.indent) + "\n"
    else:
        text = to_yaml(documents)
    return text.encode("utf-8")


def main(args: Optional[list] = None) -> int:
    """
    Main entry point for the httplog CLI.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parsed_args = build_parser().parse_args(args)
    configure_logging(parsed_args.verbose, parsed_args.quiet)

    # Validate input file
    if not os.path.exists(parsed_args.log_file):
        print(f"Error: Log file not found: {parsed_args.log_file}", file=sys.stderr)
        return 1

    try:
        if parsed_args.verbose:
            print(f"Processing: {parsed_args.log_file}", file=sys.stderr)

        log = _load_log(parsed_args)
        output = _render(log, parsed_args)

        if parsed_args.output:
            with open(parsed_args.output, "wb") as f:
                f.write(output)
            if parsed_args.verbose:
                print(f"Output written to: {parsed_args.output}", file=sys.stderr)
        else:
            sys.stdout.buffer.write(output)
            sys.stdout.flush()

        if log.errors and not parsed_args.quiet:
            print(
                f"Warning: skipped {len(log.errors)} undecodable transaction(s)",
                file=sys.stderr,
            )

        return 0

    except DecodeError as e:
        print(f"Error: {type(e).__name__}: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130

    except (OSError, ValueError) as e:
        if parsed_args.verbose:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
