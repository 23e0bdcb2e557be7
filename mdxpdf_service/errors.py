"""
Error taxonomy for the MDX-PDF service.

Every error raised by the rendering pipeline derives from MdxPdfError so the
dispatch boundary can turn it into a uniform failure payload.
"""


class MdxPdfError(Exception):
    """Base class for all pipeline errors."""


class ArgumentError(MdxPdfError):
    """Missing, malformed or unsafe request arguments."""


class DocumentIOError(MdxPdfError):
    """Staging file, stylesheet or output directory I/O failure."""


class ConversionError(MdxPdfError):
    """The conversion engine failed or exceeded its timeout."""


class UnknownOperationError(MdxPdfError):
    """The requested tool/operation name is not recognized."""
