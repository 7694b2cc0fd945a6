"""Exceptions raised by metalcal."""

from __future__ import annotations


class MetalcalError(Exception):
    """Base class for all metalcal errors."""


class FetchError(MetalcalError):
    """Raised when a source page cannot be fetched."""


class NoItemError(MetalcalError):
    """Raised when a required field or link is missing from a record."""


class ParseError(MetalcalError):
    """Raised when a date or number cannot be parsed."""


class DateParseError(ParseError):
    """Raised when a free-text release date cannot be parsed."""


class SelectorError(MetalcalError):
    """Raised when a CSS selector fails to compile or run."""


class StoreError(MetalcalError):
    """Raised when the calendar cannot be persisted."""


class PageLimitError(MetalcalError):
    """Raised when a listing keeps returning pages past the page cap."""
