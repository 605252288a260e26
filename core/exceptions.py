"""Custom exceptions for the plugin scanner.

Fatal conditions (bad rules file, unreachable target) are raised as one of
these; recoverable ones (a missing readme) never leave the layer that hit them.
"""
from typing import Optional, Dict, Any


class ScannerError(Exception):
    """Base exception for all scanner errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigError(ScannerError):
    """Rules file is not well-formed or contains a disallowed type."""


class PatternError(ConfigError):
    """A rule carries a regex or XPath expression that does not compile."""

    def __init__(self, section: str, plugin: str, signal_type: str, field: str, reason: str):
        super().__init__(
            f"Invalid {field} for {section}/{plugin}/{signal_type}: {reason}",
            details={
                "section": section,
                "plugin": plugin,
                "signal_type": signal_type,
                "field": field,
                "reason": reason,
            },
        )


class FetchError(ScannerError):
    """The target page could not be retrieved."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to fetch {url}: {reason}", details={"url": url, "reason": reason})
        self.url = url
