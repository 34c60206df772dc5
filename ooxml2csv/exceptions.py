class ConversionError(Exception):
    """Base class for all errors raised while converting a spreadsheet."""

    default_message = "Spreadsheet conversion failed"

    def __init__(self, message: str = None, *, cause: Exception = None):
        if message is None:
            message = self.default_message
        super().__init__(message)
        self.__cause__ = cause  # Optional chaining for debugging


class InputNotFoundError(ConversionError):
    """Raised when the source package does not exist."""

    def __init__(self, file_path: str, message: str = None, *, cause: Exception = None):
        self.file_path = file_path
        if message is None:
            message = f"Input file not found: {file_path}"
        super().__init__(message, cause=cause)


class ExtractionError(ConversionError):
    """Raised when the package cannot be opened or is not a valid archive."""

    default_message = "Unable to extract spreadsheet package"


class ZipBombError(ExtractionError):
    """Raised when the package looks like a ZIP bomb."""

    default_message = "ZIP container rejected"


class SheetNotFoundError(ExtractionError):
    """Raised when the requested worksheet part is missing from the package."""

    def __init__(self, sheet_number: int, message: str = None, *, cause: Exception = None):
        self.sheet_number = sheet_number
        if message is None:
            message = f"Worksheet {sheet_number} not found in package"
        super().__init__(message, cause=cause)


class DirectoryCreateError(ConversionError):
    """Raised when the destination or working directory cannot be created."""

    default_message = "Unable to create directory"


class OutputWriteError(ConversionError):
    """Raised when the destination CSV file cannot be opened for writing."""

    default_message = "Unable to write CSV output"


class XmlParseError(ConversionError):
    """Raised when a package part is not well-formed or lacks a coordinate."""

    default_message = "Malformed spreadsheet XML"
