"""Exception types raised by XSPF Kit."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class XSPFError(Exception):
    """Base class for every error raised by this package."""


class InvalidValueError(XSPFError, ValueError):
    """A value was rejected by field validation.

    The field being assigned keeps whatever value it held before.
    """

    def __init__(self, field: str, value: object, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"invalid value for {field}: {value!r} ({reason})")


class ParseError(XSPFError):
    """The input is not a well-formed XSPF document."""

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        self.message = message
        self.line = line
        self.column = column
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        if self.column is None:
            return f"line {self.line}: {self.message}"
        return f"line {self.line}, column {self.column}: {self.message}"


class ExportError(XSPFError, OSError):
    """Base class for sink failures while writing a playlist."""

    phase = "export"

    def __init__(self, path: Path, cause: Optional[BaseException] = None) -> None:
        self.path = Path(path)
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{self.describe()} {self.path}{detail}")

    def describe(self) -> str:
        return "Failed to export"


class FileOpenError(ExportError):
    """The sink could not be opened; nothing was written."""

    phase = "open"

    def describe(self) -> str:
        return "Could not open file"


class FileWriteError(ExportError):
    """Writing failed; the sink may hold partial output."""

    phase = "write"

    def describe(self) -> str:
        return "Writing to file failed"


class FileCloseError(ExportError):
    """Everything was written but the sink failed to close or flush."""

    phase = "close"

    def describe(self) -> str:
        return "Failed to close file"
