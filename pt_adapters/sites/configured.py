from __future__ import annotations

import html
import re
import urllib.parse
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

import yaml  # type: ignore[import-untyped]
from bs4 import BeautifulSoup, Tag

from ..config import DEFAULT_MAX_RETRIES, logger
from ..errors import (
    ConfigurationError,
    FieldMissingError,
    NormalizationError,
    ParseError,
)
from ..models import AccountInfo, SearchResult, TorrentRecord
from ..services.fetcher import DocumentFetcher
from ..services.fields import (
    Strategy,
    compile_strategies,
    resolve_field,
    resolve_optional,
)
from ..services.sizes import parse_size_text
from ..services.tags import collect_tags
from ..services.timestamps import get_site_timezone, resolve_timestamp
from ..utils import encode_uri_component, parse_count
from .base import SiteAdapter

# Cache for site configurations to avoid repeated disk reads.
_config_cache: dict[Path, dict[str, Any]] = {}

REQUIRED_KEYS = {
    "site_id",
    "site_name",
    "base_url",
    "account_page",
    "search",
    "results_page_selectors",
}

# Keys of ``results_page_selectors`` that are not fallback chains.
_ROW_SETTINGS = {
    "result_row",
    "header_rows",
    "tags",
    "torrent_id_pattern",
    "published_at",
}

_DEFAULT_EXTERNAL_ID_PATTERN = r"tt\d+"
_DEFAULT_TORRENT_ID_PATTERN = r"id=(\d+)"


def load_site_config(config_path: Path) -> dict[str, Any]:
    """Load and minimally validate a YAML site configuration.

    Configuration files are cached in-memory after the first load. Subsequent
    calls with the same ``config_path`` return the cached data.
    """

    resolved_path = config_path.resolve()
    cached = _config_cache.get(resolved_path)
    if cached is not None:
        return cached

    if not resolved_path.exists():
        raise FileNotFoundError(f"Site config not found: {resolved_path}")

    with resolved_path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(f"Site config is not a mapping: {resolved_path}")
    missing = REQUIRED_KEYS - data.keys()
    if missing:
        raise ConfigurationError(f"Config missing keys: {', '.join(sorted(missing))}")

    _config_cache[resolved_path] = data
    return data


class ConfiguredSiteAdapter(SiteAdapter):
    """Site adapter driven entirely by a declarative configuration.

    Every field is described as an ordered fallback chain of selectors (see
    :class:`~pt_adapters.services.fields.Strategy`), so supporting a new
    NexusPHP-style tracker, or a markup revision of an existing one, means
    editing YAML rather than code. The adapter itself stays stateless between
    calls: the only thing it keeps is the compiled configuration and the
    fetch capability it was constructed with.
    """

    def __init__(
        self,
        site_config: dict[str, Any],
        fetcher: DocumentFetcher,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = site_config
        self.fetcher = fetcher
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self.site_id: str = str(site_config["site_id"])
        self.site_name: str = str(site_config["site_name"])
        self.base_url: str = self._normalize_base_url(site_config["base_url"])
        self.timezone = get_site_timezone(site_config.get("timezone"))
        self.max_retries = int(site_config.get("max_retries", DEFAULT_MAX_RETRIES))
        self.download_path: str | None = site_config.get("download_path")

        account = site_config["account_page"] or {}
        self.account_path: str = account.get("path", "")
        self.account_retries = int(account.get("max_retries", self.max_retries))
        self.account_fields: dict[str, tuple[Strategy, ...]] = {
            name: compile_strategies(name, raw)
            for name, raw in (account.get("selectors") or {}).items()
        }

        volume = site_config.get("seeding_volume") or {}
        self.seeding_volume_path: str | None = volume.get("path")
        self.seeding_volume_pattern: re.Pattern[str] | None = (
            re.compile(volume["pattern"]) if volume.get("pattern") else None
        )

        search = site_config["search"] or {}
        if "path" not in search:
            raise ConfigurationError(f"{self.site_name}: 'search.path' is required")
        self.search_path: str = search["path"]
        self.external_id_pattern = re.compile(
            search.get("external_id_pattern", _DEFAULT_EXTERNAL_ID_PATTERN)
        )
        self.search_areas: dict[str, Any] = search.get(
            "areas", {"external_id": 4, "title": 0}
        )

        results = site_config["results_page_selectors"] or {}
        row_selector = results.get("result_row")
        if not isinstance(row_selector, str):
            raise ConfigurationError(f"{self.site_name}: 'result_row' selector missing")
        self.row_selector: str = row_selector
        self.header_rows = int(results.get("header_rows", 0))
        self.tags_selector: str | None = results.get("tags")
        self.torrent_id_pattern = re.compile(
            results.get("torrent_id_pattern", _DEFAULT_TORRENT_ID_PATTERN)
        )
        published = results.get("published_at") or {}
        self.published_precise = compile_strategies(
            "published_at.precise", published.get("precise")
        )
        self.published_display = compile_strategies(
            "published_at.display", published.get("display")
        )
        self.row_fields: dict[str, tuple[Strategy, ...]] = {
            name: compile_strategies(name, raw)
            for name, raw in results.items()
            if name not in _ROW_SETTINGS
        }

    # --- Account -----------------------------------------------------------

    async def get_account_info(self) -> AccountInfo:
        url = self._absolute(self.account_path)
        logger.info(f"[ADAPTER] {self.site_name}: Fetching account page {url}")
        document = await self.fetcher.fetch(url, max_retries=self.account_retries)

        username = self._require(document, "username", self.account_fields)
        user_id = parse_count(self._require(document, "user_id", self.account_fields))
        if user_id is None:
            raise ParseError("user_id", self.site_name)

        uploaded = parse_size_text(
            self._require(document, "uploaded", self.account_fields)
        )
        downloaded = parse_size_text(
            self._require(document, "downloaded", self.account_fields)
        )
        seeding = self._optional_count(document, "seeding", self.account_fields)
        leeching = self._optional_count(document, "leeching", self.account_fields)
        seeding_volume = await self._fetch_seeding_volume(user_id)

        info = AccountInfo(
            username=username,
            user_id=user_id,
            uploaded_bytes=uploaded,
            downloaded_bytes=downloaded,
            seeding_count=seeding,
            leeching_count=leeching,
            seeding_volume_bytes=seeding_volume,
        )
        logger.info(f"[ADAPTER] {self.site_name}: Account info for '{username}' parsed")
        return info

    async def _fetch_seeding_volume(self, user_id: int) -> int:
        """Read the aggregate seeding size from the site's torrent-list fragment."""
        if not self.seeding_volume_path or self.seeding_volume_pattern is None:
            return 0

        url = self._absolute(self.seeding_volume_path.format(user_id=user_id))
        fragment = await self.fetcher.fetch(url, raw=True, max_retries=self.max_retries)
        match = self.seeding_volume_pattern.search(fragment)
        if not match:
            logger.debug(
                f"[ADAPTER] {self.site_name}: No seeding volume in fragment; assuming 0"
            )
            return 0

        size_text = html.unescape(match.group(1) if match.groups() else match.group(0))
        try:
            return parse_size_text(size_text)
        except NormalizationError as exc:
            logger.warning(
                f"[ADAPTER] {self.site_name}: Unreadable seeding volume "
                f"{size_text!r}: {exc}"
            )
            return 0

    # --- Search ------------------------------------------------------------

    def build_search_url(self, keyword: str) -> str:
        """Reproduce the site's search form for ``keyword``.

        IMDb-style ids switch the form to its external-id search area.
        """
        is_external_id = self.external_id_pattern.search(keyword) is not None
        area_key = "external_id" if is_external_id else "title"
        area = self.search_areas.get(area_key, "")
        path = self.search_path.format(query=encode_uri_component(keyword), area=area)
        return self._absolute(path)

    async def search_torrents(self, keyword: str) -> SearchResult:
        url = self.build_search_url(keyword)
        logger.info(f"[ADAPTER] {self.site_name}: Fetching search results from {url}")
        document = await self.fetcher.fetch(url, max_retries=self.max_retries)

        rows = [
            row for row in document.select(self.row_selector) if isinstance(row, Tag)
        ]
        logger.debug(
            f"[ADAPTER] {self.site_name}: Found {len(rows)} rows using selector "
            f"'{self.row_selector}'"
        )

        now = self._clock()
        torrents = tuple(
            self._parse_row(row, now) for row in rows[self.header_rows :]
        )
        logger.info(
            f"[ADAPTER] {self.site_name}: Parsed {len(torrents)} torrents "
            f"for '{keyword}'"
        )
        return SearchResult(site_id=self.site_id, torrent_list=torrents)

    def _parse_row(self, row: Tag, now: datetime) -> TorrentRecord:
        title = self._require(row, "title", self.row_fields)
        detail_link = urllib.parse.urljoin(
            self.base_url, self._require(row, "detail_link", self.row_fields)
        )
        id_match = self.torrent_id_pattern.search(detail_link)
        if not id_match:
            raise ParseError("torrent_id", self.site_name)
        torrent_id = int(id_match.group(1) if id_match.groups() else id_match.group(0))

        size_bytes = parse_size_text(self._require(row, "size", self.row_fields))

        precise = resolve_optional(row, "published_at.precise", self.published_precise)
        display = resolve_optional(row, "published_at.display", self.published_display)
        if precise is None and display is None:
            raise ParseError("published_at", self.site_name)
        published_at = resolve_timestamp(precise, display, now=now, tz=self.timezone)

        return TorrentRecord(
            site_id=self.site_id,
            title=title,
            subtitle=resolve_optional(
                row, "subtitle", self.row_fields.get("subtitle", ()), ""
            ),
            category=resolve_optional(
                row, "category", self.row_fields.get("category", ()), ""
            ),
            detail_link=detail_link,
            torrent_id=torrent_id,
            seeders=self._optional_count(row, "seeders", self.row_fields),
            leechers=self._optional_count(row, "leechers", self.row_fields),
            completed=self._optional_count(row, "completed", self.row_fields),
            size_bytes=size_bytes,
            published_at=published_at,
            tags=collect_tags(row, self.tags_selector),
        )

    # --- Helpers -----------------------------------------------------------

    def download_url(self, torrent_id: int) -> str:
        if not self.download_path:
            raise ConfigurationError(f"{self.site_name}: no download_path configured")
        return self._absolute(self.download_path.format(id=torrent_id))

    def _require(
        self,
        root: BeautifulSoup | Tag,
        field: str,
        chains: dict[str, tuple[Strategy, ...]],
    ) -> str:
        try:
            return resolve_field(root, field, chains.get(field, ()))
        except FieldMissingError as exc:
            logger.warning(
                f"[ADAPTER] {self.site_name}: Mandatory field '{field}' not found"
            )
            raise ParseError(field, self.site_name) from exc

    def _optional_count(
        self,
        root: BeautifulSoup | Tag,
        field: str,
        chains: dict[str, tuple[Strategy, ...]],
    ) -> int:
        text = resolve_optional(root, field, chains.get(field, ()))
        return parse_count(text) or 0

    def _absolute(self, path: str) -> str:
        return urllib.parse.urljoin(self.base_url, path.lstrip("/"))

    @staticmethod
    def _normalize_base_url(raw: Any) -> str:
        if not isinstance(raw, str) or not raw.strip():
            raise ConfigurationError("base_url must be a non-empty string")
        return raw.strip().rstrip("/") + "/"
