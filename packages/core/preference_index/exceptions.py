"""Custom exceptions for the preference index pipeline."""

from enum import Enum
from typing import Optional


class PreferenceIndexError(Exception):
    """Base exception for all pipeline errors."""
    pass


class ConfigurationError(PreferenceIndexError):
    """Raised when configuration is invalid."""
    pass


class InputFileError(PreferenceIndexError):
    """Raised when a required input file is missing or unreadable."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class RecordParseError(PreferenceIndexError):
    """Raised when a single input row cannot be parsed."""

    def __init__(self, message: str, line_number: Optional[int] = None, source: Optional[str] = None):
        super().__init__(message)
        self.line_number = line_number
        self.source = source


class ProfileValidationError(PreferenceIndexError):
    """Raised when a match record violates the conversation/reply invariants."""

    def __init__(self, message: str, field: Optional[str] = None, name: Optional[str] = None):
        super().__init__(message)
        self.field = field
        self.name = name


class ClassificationFailure(Enum):
    """Why an ethnicity set could not be mapped to a race."""
    EMPTY_ETHNICITY = "EmptyEthnicity"
    UNSUPPORTED_ONLY = "UnsupportedOnly"


class ClassificationError(PreferenceIndexError):
    """Raised when an ethnicity set has no race mapping."""

    def __init__(self, reason: ClassificationFailure, message: Optional[str] = None):
        super().__init__(message or reason.value)
        self.reason = reason


class BaselineError(PreferenceIndexError):
    """Raised when population baselines cannot be built. Always fatal."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class DegenerateDistributionError(PreferenceIndexError):
    """Raised when every preference weight is zero and nothing can be normalized."""
    pass


class InsufficientDataError(PreferenceIndexError):
    """Raised when a funnel ratio has a zero denominator."""

    def __init__(self, message: str, denominator: Optional[str] = None):
        super().__init__(message)
        self.denominator = denominator
