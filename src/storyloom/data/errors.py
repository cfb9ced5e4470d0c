"""Custom exceptions for graph loading and validation."""


class DataError(Exception):
    """Base exception for the data layer."""


class DataLoadError(DataError):
    """Raised when graph files are missing or are not valid JSON."""


class DataValidationError(DataError):
    """Raised when graph JSON cannot be parsed into the story graph schema."""
