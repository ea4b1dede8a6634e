"""Exception types raised by texture export."""


class TexRepackError(RuntimeError):
    """Base class for export errors."""


class SourceFileMissingError(TexRepackError):
    """Raised when an asset's backing file does not exist on disk."""


class UnreadableSourceError(TexRepackError):
    """Raised when a source image cannot be decoded into pixels."""
