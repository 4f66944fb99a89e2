# pt_adapters/sites/base.py

from abc import ABC, abstractmethod

from ..models import AccountInfo, SearchResult


class SiteAdapter(ABC):
    """
    Abstract base class for all site adapters.

    Implementations keep no request-scoped state between calls; everything a
    call needs is fetched and parsed inside it.
    """

    site_id: str
    site_name: str

    @abstractmethod
    async def get_account_info(self) -> AccountInfo:
        """
        Scrape the account statistics of the authenticated user.

        Returns:
            An ``AccountInfo`` with every byte figure converted to bytes.

        Raises:
            FetchError: A page could not be retrieved.
            ParseError: A mandatory field was not found.
        """

    @abstractmethod
    async def search_torrents(self, keyword: str) -> SearchResult:
        """
        Search the site's torrent listing for ``keyword``.

        Args:
            keyword: Free text, or an IMDb id such as ``tt1234567``.

        Returns:
            A ``SearchResult`` preserving the site's row order.
        """

    @abstractmethod
    def download_url(self, torrent_id: int) -> str:
        """Return the ``.torrent`` download URL for ``torrent_id``."""
