"""CLI entrypoint for sre-assist."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from sre_assist import __version__
from sre_assist.alerts import COMMANDS
from sre_assist.errors import AssistError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sre-assist",
        description="Assist commands for collecting and analyzing diagnostics for OpenShift alerts.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(title="commands", dest="command", metavar="<command>")
    for cls in COMMANDS:
        sub = subparsers.add_parser(
            cls.name,
            aliases=list(cls.aliases),
            help=cls.help,
            description=cls.description,
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        cls.add_arguments(sub)
        sub.set_defaults(command_cls=cls)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entrypoint for sre-assist CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )
    logger = logging.getLogger("sre_assist")
    if not args.verbose:
        logger.setLevel(logging.WARNING)

    command_cls = getattr(args, "command_cls", None)
    if command_cls is None:
        parser.print_help()
        return 0

    try:
        command = command_cls(args)
        command.complete()
        command.run()
        return 0
    except AssistError as e:
        logger.debug("%s failed: %s", command_cls.name, e)
        Console(stderr=True, highlight=False).print(f"[red]Error: {escape(str(e))}[/red]", soft_wrap=True)
        return 1
    except Exception as e:
        logging.exception("Command failed")
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
