class DataCleanseError(Exception):
    """Base class for errors reported back to the caller as an error event."""


class ParseError(DataCleanseError):
    """The source could not be read or is not a supported tabular shape."""


class CleanseError(DataCleanseError):
    """A rule pipeline failed; the source dataset is left untouched."""
