from __future__ import annotations


class StatArbError(Exception):
    """Base class for backtest errors."""


class MisalignedInput(StatArbError, ValueError):
    """The two price series do not share the same time index."""


class InvalidPrice(StatArbError, ValueError):
    """A price needed to settle a trade is missing or non-positive."""


class RegressionError(StatArbError):
    """A single rolling window could not be fitted."""


class SingularWindow(RegressionError):
    """The regressor is constant over the window (zero variance)."""


class InsufficientData(RegressionError):
    """Too few observations to fit the window and estimate its residual error."""
