from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from anonymiser.app import anonymise_subject, check_policies, load_registry
from anonymiser.config import configure_logging

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

log = logging.getLogger(__name__)

_ID_PARSERS: dict[str, Callable[[str], object]] = {
    "str": str,
    "int": int,
    "uuid": UUID,
}


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Anonymise records according to policies")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output, including every applied policy",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser("check", help="Validate every defined policy")
    check.add_argument(
        "target",
        type=str,
        help="Policy registry to load, as 'package.module:attribute'",
    )

    subject = subparsers.add_parser(
        "subject",
        help="Anonymise every record selected for a subject",
    )
    subject.add_argument(
        "target",
        type=str,
        help="Policy registry to load, as 'package.module:attribute'",
    )
    subject.add_argument("subject", type=str, help="Selector key, e.g. 'user_id'")
    subject.add_argument("subject_id", type=str, help="Identifier passed to the selectors")
    subject.add_argument(
        "--id-type",
        choices=sorted(_ID_PARSERS),
        default="str",
        help="How to interpret SUBJECT_ID (default: %(default)s)",
    )
    subject.add_argument(
        "--database-uri",
        type=str,
        default=None,
        help="SQLAlchemy database URI (defaults to DATABASE_URI)",
    )

    return parser.parse_args(list(argv))


def _parse_subject_id(value: str, id_type: str) -> object:
    try:
        return _ID_PARSERS[id_type](value)
    except ValueError as exc:
        raise ValueError(f"Invalid {id_type} subject id: {value}") from exc


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        subject_id: object = None
        if parsed_args.command == "subject":
            subject_id = _parse_subject_id(parsed_args.subject_id, parsed_args.id_type)
        registry = load_registry(parsed_args.target)
    except (ValueError, TypeError, ImportError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "check":
            if check_policies(registry):
                sys.exit(1)
        elif parsed_args.command == "subject":
            results = anonymise_subject(
                registry,
                parsed_args.subject,
                subject_id,
                database_uri=parsed_args.database_uri,
            )
            if any(result.is_failed for result in results):
                sys.exit(1)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during anonymisation")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
