"""Exceptions raised by the session engine."""


class ClipError(Exception):
    """Base class for errors surfaced to the CLI."""


class SessionBusyError(ClipError):
    """A request is still in flight; the session cannot change yet."""


class SetupDeclinedError(ClipError):
    """The user refused to create the data directory."""
