"""
Custom exceptions for the OBE portal.
"""

from typing import Optional, Any, Dict


class ObeException(Exception):
    """Base exception for all OBE portal errors."""

    status_code = 500

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ValidationError(ObeException):
    """Raised when submitted data fails validation."""

    status_code = 400


class ResourceNotFoundError(ObeException):
    """Raised when a requested resource or collection is not found."""

    status_code = 404


class DuplicateEntityError(ObeException):
    """Raised when attempting to create a duplicate entity."""

    status_code = 409


class PersistenceError(ObeException):
    """Raised when persistence operations fail."""
    pass


class ConfigurationError(ObeException):
    """Raised when configuration is invalid."""
    pass
