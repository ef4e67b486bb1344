from __future__ import annotations


class PulseError(Exception):
    """Base class for data-acquisition failures."""

    kind = "error"


class UnsupportedCoin(PulseError):
    """The ticker has no provider mapping."""

    kind = "unsupported"


class NoData(PulseError):
    """A provider answered with an empty or degenerate series."""

    kind = "no-data"


class FetchFailed(PulseError):
    """Every attempt against every provider failed."""

    kind = "fetch-failed"


class InvalidDate(PulseError, ValueError):
    """Malformed window input."""

    kind = "invalid-date"


class ClassificationFailed(PulseError):
    """The classifier could not label a batch of news items."""

    kind = "classification-failed"
