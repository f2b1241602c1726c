"""Subcommand dispatch for the capture tools."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from typing import Callable, Optional

from utils.error_tracker import CameraError, ErrorTracker
from utils.logger import Logger, LoggerType

ArgumentsHook = Callable[[argparse.ArgumentParser], None]

EXIT_NOTICE = "Program will now exit."


@dataclass
class Command:
    """A subcommand; ``handler`` returns the exit code, ``None`` meaning 0."""

    name: str
    handler: Callable[[argparse.Namespace], int | None]
    add_arguments: Optional[ArgumentsHook] = None
    help: str | None = None


@dataclass
class CommandDispatcher:
    """
    ``argparse`` front end for the capture commands.

    ``common_arguments`` is applied to every subcommand so options such as
    ``--config`` or ``--replay`` go after the command name. A
    :class:`CameraError` escaping a handler is a fatal camera fault: it is
    logged with the failing driver call and the run exits with code 1.
    """

    description: str
    commands: list[Command] = field(default_factory=list)
    common_arguments: Optional[ArgumentsHook] = None

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(description=self.description)
        subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
        for cmd in self.commands:
            sub = subparsers.add_parser(cmd.name, help=cmd.help, description=cmd.help)
            for hook in (self.common_arguments, cmd.add_arguments):
                if hook is not None:
                    hook(sub)
            sub.set_defaults(handler=cmd.handler)
        return parser

    def run(
        self,
        argv: Optional[list[str]] = None,
        *,
        logger: Optional[LoggerType] = None,
        track_exceptions: bool = True,
    ) -> int:
        """Parse ``argv``, run the chosen command and return its exit code."""
        logger = logger or Logger.get_logger("utils.cli")
        if track_exceptions:
            ErrorTracker.install_excepthook()
            ErrorTracker.install_signal_handlers()

        parser = self.build_parser()
        ns = parser.parse_args(argv)
        handler = getattr(ns, "handler", None)
        if handler is None:
            parser.print_help()
            return 0
        try:
            return handler(ns) or 0
        except CameraError as e:
            logger.error(f"{e.describe()}\n{EXIT_NOTICE}")
            return 1
