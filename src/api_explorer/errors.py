"""Exception types raised while loading and normalizing API documents."""


class ApiExplorerError(Exception):
    """Base class for all api-explorer errors."""


class ValidationError(ApiExplorerError):
    """The document lacks the top-level structure needed to build a model."""


class ParseError(ApiExplorerError):
    """The document text is not valid JSON or YAML."""

    def __init__(self, message: str, line: int | None = None, column: int | None = None):
        self.line = line
        self.column = column
        if line is not None:
            location = f"line {line}" if column is None else f"line {line}, column {column}"
            message = f"{message} (at {location})"
        super().__init__(message)


class ReferenceResolutionError(ApiExplorerError):
    """A pointer could not be resolved. Never raised, only recorded as a warning."""

    def __init__(self, pointer: str, reason: str):
        self.pointer = pointer
        self.reason = reason
        super().__init__(f"Could not resolve reference {pointer!r}: {reason}")
