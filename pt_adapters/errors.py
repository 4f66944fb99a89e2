# pt_adapters/errors.py

from __future__ import annotations


class SiteError(Exception):
    """Base class for every failure raised while talking to a single site."""


class ConfigurationError(SiteError):
    """Raised when a site configuration or ``config.ini`` is invalid."""


class FetchError(SiteError):
    """Raised when a page could not be retrieved after all attempts."""

    def __init__(self, url: str, attempts: int, cause: BaseException | None = None):
        self.url = url
        self.attempts = attempts
        self.cause = cause
        message = f"Failed to fetch {url} after {attempts} attempt(s)"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class FieldMissingError(SiteError):
    """Raised when no strategy in a fallback chain yields a value."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Field '{field}' not found")


class ParseError(SiteError):
    """Raised when a mandatory field cannot be resolved from a page."""

    def __init__(self, field: str, site: str = ""):
        self.field = field
        self.site = site
        prefix = f"{site}: " if site else ""
        super().__init__(f"{prefix}mandatory field '{field}' could not be parsed")


class NormalizationError(SiteError):
    """Base class for malformed input handed to a normalizer."""


class InvalidUnitError(NormalizationError):
    def __init__(self, unit: str):
        self.unit = unit
        super().__init__(f"Unrecognized size unit: {unit!r}")


class InvalidSizeError(NormalizationError):
    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Malformed size value: {value!r}")


class UnparseableDateError(NormalizationError):
    def __init__(self, precise: str | None, display: str | None):
        self.precise = precise
        self.display = display
        super().__init__(
            f"Unable to parse date (precise={precise!r}, display={display!r})"
        )
