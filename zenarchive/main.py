"""Command line entry point for ZenArchive."""

import argparse
import json
import logging
import sys
from typing import List, Optional

from zenarchive.__version__ import __version__
from zenarchive.models import FileAttachment
from zenarchive.utils.contributor_reconciler import creators_from_participants
from zenarchive.utils.identifiers import orcid_from_path
from zenarchive.utils.metadata_validator import apply_defaults
from zenarchive.utils.runtime_config import load_config
from zenarchive.workers.deposit_worker import DepositWorker


def setup_logging(level: int = logging.INFO):
    """Configure logging for the application."""
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler('zenarchive.log', encoding='utf-8'),
            logging.StreamHandler()
        ]
    )


def parse_creator(value: str) -> dict:
    """Parse ``Name`` or ``Name;ORCID`` from the command line."""
    name, _sep, orcid = value.partition(";")
    creator = {"name": name.strip()}
    orcid = orcid_from_path(orcid.strip())
    if orcid:
        creator["orcid"] = orcid
    return creator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zenarchive",
        description="Archive a discussion thread with a DOI on Zenodo or InvenioRDM."
    )
    parser.add_argument("--user", required=True, help="Internal id of the publishing user")
    parser.add_argument(
        "--mode",
        choices=["publish", "edit", "new_version"],
        default="publish",
        help="Create a new deposit, edit an archived one or publish a new version"
    )
    parser.add_argument("--title", help="Deposit title")
    parser.add_argument("--description", help="Deposit description")
    parser.add_argument("--keywords", help="Comma separated keywords")
    parser.add_argument(
        "--creator",
        action="append",
        default=[],
        metavar="NAME[;ORCID]",
        help="Creator in author order (repeatable)"
    )
    parser.add_argument("--file", action="append", default=[], help="File to upload (repeatable)")
    parser.add_argument("--record", help="JSON file with the stored provider response (edit, new_version)")
    parser.add_argument("--no-publish", action="store_true", help="Leave the new deposit as a draft")
    parser.add_argument("--env-file", help="Read configuration from this .env file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    args = build_parser().parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    logger = logging.getLogger(__name__)
    logger.info("Starting ZenArchive")

    config = load_config(args.env_file)

    stored_record = None
    if args.record:
        with open(args.record, 'r', encoding='utf-8') as f:
            stored_record = json.load(f)
    elif args.mode != "publish":
        print(f"--record is required for {args.mode}", file=sys.stderr)
        return 2

    metadata = {
        key: value for key, value in (
            ("title", args.title),
            ("description", args.description),
            ("keywords", args.keywords),
        ) if value is not None
    }
    if args.mode == "publish":
        metadata = apply_defaults(metadata)
    elif stored_record:
        metadata = {**(stored_record.get("metadata") or {}), **metadata}
        metadata.pop("creators", None)

    creators = creators_from_participants(parse_creator(c) for c in args.creator)

    worker = DepositWorker(
        args.user,
        args.mode,
        creators=creators,
        metadata=metadata,
        attachments=[FileAttachment(None, path) for path in args.file],
        stored_record=stored_record,
        config=config,
        auto_publish=not args.no_publish
    )

    outcome = {}
    worker.progress.connect(lambda msg: logger.info(msg))
    worker.deposit_published.connect(lambda doi, raw: outcome.update(doi=doi))
    worker.error_occurred.connect(lambda step, msg: outcome.update(error=(step, msg)))
    worker.coauthors_found.connect(
        lambda coauthors: logger.info(f"{len(coauthors)} co-authors have no ORCID iD yet")
    )

    # Direct connections: signals fire synchronously without an event loop
    worker.run()

    if "error" in outcome:
        step, message = outcome["error"]
        print(f"Failed at step '{step}': {message}", file=sys.stderr)
        return 1

    if outcome.get("doi"):
        print(outcome["doi"])
    elif worker.result is not None:
        print(f"Draft {worker.result.deposit.record_id} created")
    return 0


if __name__ == "__main__":
    sys.exit(main())
