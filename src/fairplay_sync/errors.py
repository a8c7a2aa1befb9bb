"""Exception hierarchy shared by the parser, reconciler and adapters."""

from __future__ import annotations


class FairplayError(Exception):
    """Base class for every error raised by this package."""


class MalformedInput(FairplayError):
    """The HTML does not contain a recognisable schedule table."""


class MissingIdentity(FairplayError):
    """Reconciliation was requested without a usable display name."""


class AmbiguousDate(FairplayError):
    """The active day cannot be turned into a concrete calendar date."""


class StorageFailure(FairplayError):
    """The booking store failed to look up or write a record."""


class FetchError(FairplayError):
    """The schedule page could not be downloaded from the portal."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
