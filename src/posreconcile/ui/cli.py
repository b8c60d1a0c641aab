# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from posreconcile.adapters.import_file import ImportFileError
from posreconcile.adapters.sqlalchemy import StartupError
from posreconcile.app import check_import_file, detect_file_conflicts, preview_file
from posreconcile.config import ConfigurationError, configure_logging
from posreconcile.domain.ports import ExistingStateUnavailableError
from posreconcile.domain.reconciliation import PayloadLayout, availability_feedback

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Check point-of-sale import files against the existing store"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output, including every classified record",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser("validate", help="Report which data sections are usable")
    conflicts = subparsers.add_parser("conflicts", help="Detect conflicts against the store")
    preview = subparsers.add_parser("preview", help="Show counts, samples and conflicts")
    for subparser in (validate, conflicts, preview):
        subparser.add_argument("file", type=Path, help="JSON import file")
        subparser.add_argument(
            "--layout",
            choices=[layout.value for layout in PayloadLayout],
            default=PayloadLayout.ENVELOPE.value,
            help="Where the data sections live in the file (default: %(default)s)",
        )

    return parser.parse_args(list(argv))


def _print_json(document: object) -> None:
    print(json.dumps(document, indent=2, default=str))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    # argparse exits with EXIT_USAGE on invalid arguments
    parsed_args = _parse_args(args_list)

    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
    layout = PayloadLayout(parsed_args.layout)

    try:
        if parsed_args.command == "validate":
            result = check_import_file(parsed_args.file, layout=layout)
            print(availability_feedback(result))
            for line in (*result.validation_errors, *result.identifier_warnings):
                print(f"- {line}")
            sys.exit(EXIT_OK if result.is_valid else EXIT_FAILED)
        elif parsed_args.command == "conflicts":
            summary = detect_file_conflicts(parsed_args.file, layout=layout)
            _print_json(summary.to_dict())
        elif parsed_args.command == "preview":
            preview = preview_file(parsed_args.file, layout=layout)
            _print_json(preview.to_dict())
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except ImportFileError:
        log.exception("Could not load import file")
        sys.exit(EXIT_FAILED)
    except (ExistingStateUnavailableError, StartupError, ConfigurationError):
        log.exception("Could not determine conflicts")
        sys.exit(EXIT_FAILED)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console-script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
