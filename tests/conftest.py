import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
from bs4 import BeautifulSoup

# Ensure root path is available for imports
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from pt_adapters.sites import CONFIG_DIR  # noqa: E402
from pt_adapters.sites.configured import (  # noqa: E402
    ConfiguredSiteAdapter,
    load_site_config,
)

FIXTURES = Path(__file__).resolve().parent / "fixtures"
PTTIME_BASE = "https://www.pttime.org/"


class FakeFetcher:
    """Serves canned pages by URL and records every fetch."""

    def __init__(self, pages: dict[str, str]):
        self.pages = pages
        self.calls: list[tuple[str, bool, int]] = []

    async def fetch(self, url: str, raw: bool = False, max_retries: int = 3):
        self.calls.append((url, raw, max_retries))
        text = self.pages[url]
        return text if raw else BeautifulSoup(text, "lxml")


@pytest.fixture
def load_fixture():
    def _load(name: str) -> str:
        return (FIXTURES / name).read_text(encoding="utf-8")

    return _load


@pytest.fixture
def pttime_config():
    return load_site_config(CONFIG_DIR / "pttime.yaml")


@pytest.fixture
def make_fetcher():
    def _make(pages: dict[str, str]) -> FakeFetcher:
        return FakeFetcher(pages)

    return _make


@pytest.fixture
def make_pttime_adapter(pttime_config):
    def _make(fetcher, now: datetime | None = None) -> ConfiguredSiteAdapter:
        fixed_now = now or datetime(2023, 5, 2, 15, 0, tzinfo=timezone.utc)
        return ConfiguredSiteAdapter(pttime_config, fetcher, clock=lambda: fixed_now)

    return _make
