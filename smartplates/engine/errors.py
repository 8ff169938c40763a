"""Exceptions raised by the recipe query engine and its upstream source."""

from typing import Optional


class UpstreamFetchError(Exception):
    """The upstream recipe source failed: network error or non-success status.

    Propagated verbatim to the caller. The engine never retries and never
    returns a partial result after this error.
    """

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class MalformedRecipeError(ValueError):
    """A candidate record lacks a title or carries an unusable identifier.

    Raised per record while parsing upstream batches. The engine drops the
    record and carries on with the rest.
    """
