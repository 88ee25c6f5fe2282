"""Errors raised by the wrapper itself (never by the wrapped command)."""


class CronmailError(Exception):
    """Base class for wrapper errors."""

    exit_code = 1


class ArgumentError(CronmailError):
    """Bad command line usage."""

    exit_code = 1


class ConfigurationError(CronmailError):
    """Required configuration is missing, e.g. no sender address."""

    exit_code = 2
