# main.py

"""Entry point for the pricewatch tracker (scheduler or one-off commands)."""

import argparse
import logging
import sys

from pricewatch.config.logging_config import setup_logging

logger = logging.getLogger("pricewatch.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="pricewatch",
        description="Track product sizes and get told when they get cheaper.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("run", help="Start the periodic price checker.")
    sub.add_parser("check", help="Run a single check over all users.")

    sizes = sub.add_parser("sizes", help="List the sizes offered at a URL.")
    sizes.add_argument("url")

    add = sub.add_parser("add", help="Start tracking a size of a product.")
    add.add_argument("user_id")
    add.add_argument("name", help="Nickname that helps recognise the item.")
    add.add_argument("url")
    add.add_argument("size")

    list_cmd = sub.add_parser("list", help="Show the items a user tracks.")
    list_cmd.add_argument("user_id")

    history = sub.add_parser("history", help="Show an item's price history.")
    history.add_argument("user_id")
    history.add_argument("uuid")

    delete = sub.add_parser("delete", help="Stop tracking an item.")
    delete.add_argument("user_id")
    delete.add_argument("uuid")

    return parser


def _dispatch(args: argparse.Namespace) -> int:
    """Run the selected command and return its exit code."""
    from pricewatch.cli import runner

    if args.command == "run":
        return runner.run_scheduler()
    if args.command == "check":
        return runner.run_check()
    if args.command == "sizes":
        return runner.run_sizes(args.url)
    if args.command == "add":
        return runner.run_add(args.user_id, args.name, args.url, args.size)
    if args.command == "list":
        return runner.run_list(args.user_id)
    if args.command == "history":
        return runner.run_history(args.user_id, args.uuid)
    return runner.run_delete(args.user_id, args.uuid)


def main() -> None:
    """Parse arguments, set up logging and run the command."""
    log_file = setup_logging()
    logger.info("pricewatch starting, log file: %s", log_file)

    args = _build_parser().parse_args()
    try:
        exit_code = _dispatch(args)
    except Exception:
        logger.critical("Fatal error running '%s'", args.command, exc_info=True)
        raise
    finally:
        logger.info("pricewatch shutting down")
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
