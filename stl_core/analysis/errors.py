from __future__ import annotations


class STLError(ValueError):
    """Base class for decomposition errors."""


class InvalidParameterError(STLError):
    """Config failed validation; build a new STLDecomposition with a fixed config."""


class InvalidArgumentError(STLError):
    """A numeric helper or decompose() received input it cannot accept."""


class DegenerateInputError(STLError):
    """A smoothing step had no usable weight (the fit would be NaN)."""
