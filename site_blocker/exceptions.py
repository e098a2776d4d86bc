#!/usr/bin/env python3
"""
Exception classes for the site blocker.

All exceptions inherit from SiteBlockerError and carry a message plus an
optional dictionary of details for logging.
"""

from typing import Optional


class SiteBlockerError(Exception):
    """Base exception for all site blocker errors."""

    def __init__(self, message: str, details: Optional[dict] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r})"


class DomainValidationError(SiteBlockerError, ValueError):
    """Raised when user input cannot be turned into a domain."""


class EmptyInputError(DomainValidationError):
    """Raised when the domain string is empty after trimming."""


class InvalidDomainError(DomainValidationError):
    """Raised when the normalized string does not look like a domain."""


class SafetyCheckError(SiteBlockerError):
    """Raised when the hosts file does not look like a real hosts file."""


class PrivilegedWriteError(SiteBlockerError):
    """Raised when the elevated command is denied, cancelled or fails."""

    def __init__(self, message: str, output: str = "", details: Optional[dict] = None) -> None:
        self.output = output
        super().__init__(message, details)


class ConfigReadError(SiteBlockerError):
    """Raised when the persisted config cannot be parsed."""


class ConfigWriteError(SiteBlockerError):
    """Raised when the config cannot be locked or persisted."""


class NoDomainsError(SiteBlockerError):
    """Raised when blocking is enabled with an empty domain list."""


class LoggerStartError(SiteBlockerError):
    """Raised when the access logger daemon could not be started."""


class LogParseError(SiteBlockerError):
    """Raised when an access log file cannot be parsed."""
