"""Custom exceptions for episode loading and validation."""


class DataError(Exception):
    """Base exception for the data layer."""


class DataLoadError(DataError):
    """Raised when episode files are missing or invalid JSON."""


class DataValidationError(DataError):
    """Raised when episode content fails structural validation."""
