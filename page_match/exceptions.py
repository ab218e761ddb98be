"""
Exception hierarchy for page matching.

Every error raised while listing or hashing a directory names the path and
the operation that failed, so the CLI can report it without a traceback.
"""
from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]


class PageMatchError(Exception):
    """Base exception for all page matching errors."""

    def __init__(self, path: PathLike, operation: str, cause: Optional[BaseException] = None):
        self.path = Path(path)
        self.operation = operation
        self.cause = cause
        message = f"{operation} {self.path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class DirectoryAccessError(PageMatchError):
    """Raised when a directory cannot be listed or one of its entries stat'ed."""
    pass


class PageReadError(PageMatchError):
    """Raised when a page file cannot be opened or read."""
    pass


class PageDecodeError(PageMatchError):
    """Raised when page bytes are not a recognised or intact image."""
    pass


class MissingFilenameError(PageMatchError):
    """Raised when a listed entry has no filename component."""

    def __init__(self, path: PathLike):
        super().__init__(path, "missing filename")
