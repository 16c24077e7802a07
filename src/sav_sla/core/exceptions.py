"""
Core Exceptions
================

Error hierarchy of the SLA engine. Every error carries a message and a
details dict suitable for structured log extras.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""


class ValidationException(ApplicationException):
    """Exception for validation errors."""


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class ConfigurationError(ConfigurationException):
    """Raised when a business calendar or threshold table is invalid."""


class UnknownPriority(DomainException):
    """Exception when a priority is missing from the threshold table."""

    def __init__(self, priority: str, details: Optional[dict] = None):
        self.priority = priority
        super().__init__(
            f"No SLA threshold configured for priority '{priority}'",
            details or {"priority": priority}
        )
