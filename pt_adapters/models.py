from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class AccountInfo:
    """Account statistics scraped from a site's landing page.

    Attributes:
        username: Name shown in the user-detail link.
        user_id: Tracker-assigned account id.
        uploaded_bytes: Total uploaded, in bytes.
        downloaded_bytes: Total downloaded, in bytes.
        seeding_count: Number of torrents currently seeded.
        leeching_count: Number of torrents currently leeched.
        seeding_volume_bytes: Combined size of the seeded torrents, 0 when
            the site does not report it.
    """

    username: str
    user_id: int
    uploaded_bytes: int
    downloaded_bytes: int
    seeding_count: int = 0
    leeching_count: int = 0
    seeding_volume_bytes: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TorrentRecord:
    """One listing row of a site's search results."""

    site_id: str
    title: str
    detail_link: str
    torrent_id: int
    size_bytes: int
    published_at: int
    subtitle: str = ""
    category: str = ""
    seeders: int = 0
    leechers: int = 0
    completed: int = 0
    tags: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["tags"] = list(self.tags)
        return data


@dataclass(frozen=True)
class SearchResult:
    site_id: str
    torrent_list: tuple[TorrentRecord, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "site_id": self.site_id,
            "torrent_list": [torrent.to_dict() for torrent in self.torrent_list],
        }
