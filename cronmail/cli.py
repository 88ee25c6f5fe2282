#!/usr/bin/env python3
"""
cronmail command line entry point.

Wraps a command for cron: runs it, keeps its output under ./logs, and
emails the output when it fails.

Usage:
    cronmail [-e to-email] [-f from-email] [-a] [-h] <command...>

Examples:
    cronmail -f cron@example.com -e ops@example.com /opt/jobs/backup.sh
    cronmail -a -f cron@example.com python nightly_report.py --full
"""

import sys
import argparse
import logging

from cronmail import __version__
from cronmail.config import FROM_EMAIL_VAR, TO_EMAIL_VAR, load_config
from cronmail.errors import ArgumentError, ConfigurationError
from cronmail.runner.executor import CommandExecutor


logger = logging.getLogger("cronmail")


class WrapperArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting with status 2."""

    def error(self, message):
        raise ArgumentError(message)


def build_parser() -> WrapperArgumentParser:
    parser = WrapperArgumentParser(
        prog='cronmail',
        description='Run a command and email its output if it fails.'
    )
    parser.add_argument('-e', dest='to_email', metavar='to-email',
                        help=f'Recipient address (default: ${TO_EMAIL_VAR}, then the sender)')
    parser.add_argument('-f', dest='from_email', metavar='from-email',
                        help=f'Sender address (default: ${FROM_EMAIL_VAR})')
    parser.add_argument('-a', dest='always_notify', action='store_true', default=None,
                        help='Always send an email, even when the command succeeds')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('command', nargs=argparse.REMAINDER,
                        help='Command to run, with its arguments')
    return parser


def setup_logging(debug: bool = False) -> None:
    """Send cronmail's own logging to stderr."""
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)


def parse_args(parser: WrapperArgumentParser, argv=None) -> argparse.Namespace:
    args = parser.parse_args(argv)
    command = list(args.command)
    if command and command[0] == '--':
        command = command[1:]
    if not command:
        raise ArgumentError("no command given")
    args.command = command
    return args


def main(argv=None) -> int:
    parser = build_parser()

    try:
        args = parse_args(parser, argv)
    except ArgumentError as e:
        parser.print_usage(sys.stderr)
        print(f"cronmail: error: {e}", file=sys.stderr)
        return e.exit_code

    try:
        config = load_config(
            from_email=args.from_email,
            to_email=args.to_email,
            always_notify=args.always_notify
        )
        setup_logging(config.debug)
        executor = CommandExecutor(config)
    except ConfigurationError as e:
        setup_logging()
        logger.error(str(e))
        return e.exit_code

    return executor.run(args.command)


if __name__ == '__main__':
    sys.exit(main())
