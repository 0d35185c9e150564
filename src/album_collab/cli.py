# src/album_collab/cli.py

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from album_collab import actions
from album_collab.config import Settings, load_settings
from album_collab.domain.errors import AlbumCollabError, UserCancelled
from album_collab.io.responses_jsonl import iter_responses
from album_collab.io.workbook import AlbumWorkbook, WorkbookFormProvisioner
from album_collab.metadata.spotify_client import SpotifyAlbumResolver

logger = logging.getLogger(__name__)


class ConsolePrompt:
    """Prompts on stdin; end-of-input (Ctrl-D) cancels."""

    def ask(self, message: str) -> str | None:
        try:
            return input(f"{message}\n> ")
        except EOFError:
            print()
            return None

    def alert(self, message: str) -> None:
        print(message)


class ConsoleConfirmation:
    def __init__(self, *, assume_yes: bool = False) -> None:
        self._assume_yes = assume_yes

    def ask(self, question: str) -> bool:
        if self._assume_yes:
            logger.debug("Auto-confirming: %s", question)
            return True
        try:
            answer = input(f"{question} [y/N] ")
        except EOFError:
            print()
            return False
        return answer.strip().lower() in {"y", "yes"}


def main(argv: list[str] | None = None) -> None:
    """Entry point for the album-collab CLI."""
    args = _build_arg_parser().parse_args(argv)

    _configure_logging(verbose=args.verbose)

    settings = load_settings()
    if args.workbook:
        settings.workbook_path = Path(args.workbook)

    try:
        _dispatch(args, settings)
    except UserCancelled as exc:
        logger.info("Cancelled: %s", exc)
    except (AlbumCollabError, FileNotFoundError, ValueError) as exc:
        logger.error("%s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user. Exiting.")
        sys.exit(1)


def _dispatch(args: argparse.Namespace, settings: Settings) -> None:
    path = settings.workbook_path

    if args.command == "init":
        if path.exists() and not args.force:
            msg = f"{path} already exists; pass --force to overwrite it."
            raise ValueError(msg)
        AlbumWorkbook.initialize(path, args.submitters).save()
        return

    workbook = AlbumWorkbook.open(path)
    confirm = ConsoleConfirmation(assume_yes=args.yes)

    if args.command == "calculate":
        table = actions.calculate_summary(workbook)
        logger.info("Summary has %d albums.", len(table))
    elif args.command == "open":
        actions.open_workbook(workbook)
    elif args.command == "generate":
        actions.generate_order(workbook, confirm)
    elif args.command == "back":
        actions.previous_submitter(workbook, confirm)
    elif args.command in ("next", "new-album"):
        prompt = ConsolePrompt()
        provisioner = WorkbookFormProvisioner(workbook, settings.form_base_url)
        with SpotifyAlbumResolver(
            settings.spotify_client_id,
            settings.spotify_client_secret,
        ) as resolver:
            if args.command == "next":
                current = actions.next_submitter(
                    workbook,
                    confirm,
                    prompt,
                    resolver,
                    provisioner,
                    review_days=settings.review_days,
                )
            else:
                current = actions.new_album(
                    workbook,
                    prompt,
                    resolver,
                    provisioner,
                    args.submitter,
                    review_days=settings.review_days,
                )
        logger.info(
            "Current album: %s (submitted by %s, due %s). Form: %s",
            current.name,
            current.submitter,
            current.due_date,
            current.form_url,
        )
    elif args.command == "submit":
        actions.submit_responses(workbook, iter_responses(Path(args.responses)))
    else:
        msg = f"Unknown command: {args.command}"
        raise ValueError(msg)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="album-collab",
        description="Run the album collaborative: rotation, album forms and summary.",
    )

    parser.add_argument(
        "--workbook",
        help="Path to the workbook (default: $ALBUM_COLLAB_WORKBOOK or ./album_collaborative.xlsx).",
    )
    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Answer yes to confirmation questions (e.g. generating a new order).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
        help="Sub-command to run.",
    )

    init_parser = subparsers.add_parser(
        "init",
        help="Create a new workbook with the given submitters.",
    )
    init_parser.add_argument(
        "submitters",
        nargs="+",
        help="Submitter names in their initial order.",
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing workbook.",
    )

    subparsers.add_parser("next", help="Move to the next submitter and add their album.")
    subparsers.add_parser("back", help="Move the turn back to the previous submitter.")
    subparsers.add_parser("generate", help="Generate a new submitter order.")
    subparsers.add_parser("calculate", help="Recalculate the summary.")
    subparsers.add_parser("open", help="Refresh the workbook as when it is opened.")

    new_album_parser = subparsers.add_parser(
        "new-album",
        help="Add an album outside the rotation.",
    )
    new_album_parser.add_argument(
        "--submitter",
        help="Name of the submitter (prompted for if omitted).",
    )

    submit_parser = subparsers.add_parser(
        "submit",
        help="Record form responses from a JSONL file and recalculate.",
    )
    submit_parser.add_argument(
        "responses",
        help="Path to a JSONL file with one response per line.",
    )

    return parser


def _configure_logging(*, verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


if __name__ == "__main__":
    # python -m album_collab.cli -v init Alice Bob Carol
    # python -m album_collab.cli -v next
    main()
