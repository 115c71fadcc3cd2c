"""
Error types raised by the document readers.

Every error carries a message that is safe to show to the calling assistant.
The server boundary turns them into MCP tool errors prefixed with the tool name.
"""

from typing import Iterable, Optional, Union


class DocumentReaderError(Exception):
    """Base class for all document reader errors."""


class DocumentNotFoundError(DocumentReaderError):
    """The requested file or directory does not exist."""

    def __init__(self, path: str, kind: str = "File"):
        self.path = path
        super().__init__(f"{kind} not found: {path}")


class UnsupportedFormatError(DocumentReaderError):
    """The file extension is not one of the supported document kinds."""

    def __init__(self, extension: str, supported: Iterable[str]):
        self.extension = extension
        self.supported = list(supported)
        shown = f".{extension}" if extension else "(no extension)"
        super().__init__(
            f"Unsupported file type: {shown}. "
            f"Supported types: {', '.join('.' + ext for ext in self.supported)}"
        )


class PasswordRequiredError(DocumentReaderError):
    """The PDF is encrypted and no (or a wrong) password was supplied."""

    def __init__(self, path: str, password_given: bool = False):
        self.path = path
        self.password_given = password_given
        if password_given:
            message = f"Incorrect password for encrypted PDF: {path}"
        else:
            message = (
                f"PDF is password protected: {path}. "
                f"Retry with the 'password' argument."
            )
        super().__init__(message)


class SheetNotFoundError(DocumentReaderError):
    """A sheet name that does not exist in the workbook was requested."""

    def __init__(self, sheet_name: str, available: Iterable[str]):
        self.sheet_name = sheet_name
        self.available = list(available)
        super().__init__(
            f'Sheet "{sheet_name}" not found. '
            f"Available sheets: {', '.join(self.available)}"
        )


class UnitOutOfRangeError(DocumentReaderError):
    """A page/chunk/slide number outside 1..total was requested."""

    def __init__(self, requested: Union[int, str], total: int, label: str = "Page"):
        self.requested = requested
        self.total = total
        self.label = label
        super().__init__(f"{label} {requested} out of range (1 - {total})")


class MissingArgumentError(DocumentReaderError):
    """A required tool argument is absent or blank."""

    def __init__(self, argument: str):
        self.argument = argument
        super().__init__(f"Missing or invalid {argument} argument")


class ExtractionError(DocumentReaderError):
    """Wraps an underlying parsing library failure."""

    def __init__(self, tool_name: str, original: Optional[BaseException] = None, message: str = ""):
        self.tool_name = tool_name
        self.original = original
        super().__init__(message or (str(original) if original is not None else "extraction failed"))
