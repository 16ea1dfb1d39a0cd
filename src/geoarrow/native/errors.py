class GeoArrowError(Exception):
    """Base class for errors raised by geoarrow.native

    Raised directly for contextual errors that do not fit one of the
    more specific subclasses (e.g., pushing into a finished builder).
    """


class IncorrectTypeError(GeoArrowError, TypeError):
    """A geometry of one type was passed where another type was required"""

    def __init__(self, message):
        super().__init__(f"Incorrect type passed to operation: {message}")


class NotYetImplementedError(GeoArrowError, NotImplementedError):
    """The geometry type or dimension combination is not supported"""

    def __init__(self, message):
        super().__init__(f"Not yet implemented: {message}")


class OffsetOverflowError(GeoArrowError, OverflowError):
    """An offset or byte count does not fit in the requested index width"""


class FormatError(GeoArrowError, ValueError):
    """Malformed well-known binary or well-known text

    The low-level parse error, if any, is available as ``__cause__``.
    ``position`` is the byte or character offset at which parsing failed,
    when known.
    """

    def __init__(self, message, position=None):
        if position is not None:
            message = f"{message} (at position {position})"
        super().__init__(message)
        self.position = position


class MetadataParseError(GeoArrowError, ValueError):
    """Extension metadata or CRS text that could not be parsed"""
