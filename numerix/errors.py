from typing import Optional


class NumerixError(Exception):
    """Base exception for the statistics and recommendation engine"""
    pass


class ValidationError(NumerixError):
    """Externally sourced data failed validation (AI responses, combinations, input files)."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ConfigurationError(NumerixError):
    """Unknown game type (strict lookup only) or AI provider."""
    pass


class ConstraintExhaustionError(NumerixError):
    """Bounded attempts ran out before the constraints were satisfied."""
    pass


class DataError(NumerixError):
    """Custom exception for history/combination file operations"""
    pass
