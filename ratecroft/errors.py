"""Exceptions raised by the rates core."""


class RateCroftError(Exception):
    """Base class for all rates core errors."""


class InvalidLoanError(RateCroftError, ValueError):
    """Loan input that cannot be priced (e.g. non-positive principal)."""


class UpstreamError(RateCroftError):
    """The upstream series source could not provide data."""

    def __init__(self, series_id: str, message: str) -> None:
        super().__init__(f"{series_id}: {message}")
        self.series_id = series_id


class UpstreamUnavailableError(UpstreamError):
    """Timeout, transport failure or non-success response from upstream."""


class UpstreamEmptyError(UpstreamError):
    """Upstream answered but no usable observations remained."""


class UnknownSeriesError(RateCroftError, LookupError):
    """Unrecognized series, loan type or period key."""

    def __init__(self, kind: str, key: str, valid) -> None:
        self.kind = kind
        self.key = key
        self.valid = sorted(valid)
        super().__init__(f"Unknown {kind}: {key!r}. Valid: {', '.join(self.valid)}")
