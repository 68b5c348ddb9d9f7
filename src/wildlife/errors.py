"""
Error kinds raised by the analysis engines.

Engines raise; the pipeline assembler catches WildlifeError per animal and
records it in an error map so one animal's failure never stops the others.
"""


class WildlifeError(Exception):
    """Base class for all analysis errors."""


class MalformedFixError(WildlifeError):
    """A fix is missing a required field or carries a non-finite / out-of-range coordinate."""


class InsufficientDataError(WildlifeError):
    """Too few distinct points for the requested number of clusters (or an empty store)."""


class InsufficientHistoryError(WildlifeError):
    """The hourly series is too short to fit a forecasting model."""


class NonPositiveTimeDeltaError(WildlifeError):
    """Two consecutive fixes share a timestamp or are out of order.

    Recoverable: the movement engine catches it and nulls the segment speed.
    """


class ModelFitError(WildlifeError):
    """No candidate ARIMA order could be fitted."""


class SearchCancelledError(WildlifeError):
    """The caller asked the order search to stop."""
