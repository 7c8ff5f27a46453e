class PyStruSimError(ValueError):
    """Base class of the errors raised by pyStruSim. Subclasses ValueError given they all correspond to invalid input data."""

class DimensionMismatchError(PyStruSimError):
    """The two distance matrices, or the two residue identifier sequences backing them, have different sizes."""

class MissingDataError(PyStruSimError):
    """An operation was called before the distance matrices it needs exist."""

class InvalidThresholdSequenceError(PyStruSimError):
    """The thresholds given for global similarity are empty or not strictly ascending."""
