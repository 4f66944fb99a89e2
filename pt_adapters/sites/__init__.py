from pathlib import Path

import yaml  # type: ignore[import-untyped]

from ..config import SiteSettings, logger
from ..errors import ConfigurationError
from ..services.fetcher import DocumentFetcher, SiteSession
from .base import SiteAdapter
from .configured import ConfiguredSiteAdapter, load_site_config

CONFIG_DIR = Path(__file__).resolve().parent / "configs"


def find_site_config(site_id: str, config_dir: Path = CONFIG_DIR) -> Path | None:
    """Locate a YAML config whose 'site_id' matches the given id.

    This scans ``config_dir`` for .yaml files and reads only the 'site_id'
    field to match quickly.
    """
    if not config_dir.exists():
        return None
    wanted = site_id.strip().lower()
    for path in sorted(config_dir.glob("*.yaml")):
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("[CONFIG] Skipping unreadable site config %s: %s", path, exc)
            continue
        if isinstance(data, dict) and str(data.get("site_id", "")).lower() == wanted:
            return path
    return None


def available_sites(config_dir: Path = CONFIG_DIR) -> list[str]:
    """Return the ids of every site that ships a configuration."""
    site_ids: list[str] = []
    for path in sorted(config_dir.glob("*.yaml")):
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError):
            continue
        if isinstance(data, dict) and data.get("site_id"):
            site_ids.append(str(data["site_id"]).lower())
    return site_ids


def build_adapter(
    settings: SiteSettings, config_dir: Path = CONFIG_DIR
) -> ConfiguredSiteAdapter:
    """Create the adapter for ``settings.site_id`` with its own fetcher."""
    config_path = find_site_config(settings.site_id, config_dir)
    if config_path is None:
        raise ConfigurationError(f"No site config found for '{settings.site_id}'")

    site_config = load_site_config(config_path)
    session = SiteSession(cookie=settings.cookie, user_agent=settings.user_agent)
    if settings.max_retries is not None:
        site_config = {**site_config, "max_retries": settings.max_retries}
    return ConfiguredSiteAdapter(site_config, DocumentFetcher(session))


__all__ = [
    "CONFIG_DIR",
    "ConfiguredSiteAdapter",
    "SiteAdapter",
    "available_sites",
    "build_adapter",
    "find_site_config",
    "load_site_config",
]
