from .errors import (
    ConfigurationError,
    FetchError,
    FieldMissingError,
    InvalidSizeError,
    InvalidUnitError,
    NormalizationError,
    ParseError,
    SiteError,
    UnparseableDateError,
)
from .models import AccountInfo, SearchResult, TorrentRecord
from .services.fetcher import DocumentFetcher, SiteSession
from .sites import ConfiguredSiteAdapter, SiteAdapter, build_adapter

__all__ = [
    "AccountInfo",
    "ConfigurationError",
    "ConfiguredSiteAdapter",
    "DocumentFetcher",
    "FetchError",
    "FieldMissingError",
    "InvalidSizeError",
    "InvalidUnitError",
    "NormalizationError",
    "ParseError",
    "SearchResult",
    "SiteAdapter",
    "SiteError",
    "SiteSession",
    "TorrentRecord",
    "UnparseableDateError",
    "build_adapter",
]
