# pt_adapters/config.py

import configparser
import logging
import os
import sys
from dataclasses import dataclass

from .errors import ConfigurationError

# --- Constants ---
DEFAULT_MAX_RETRIES = 3
DEFAULT_TIMEOUT = 30
DEFAULT_BACKOFF = 1.0
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/115.0 Safari/537.36"
)
SITE_SECTION_PREFIX = "site:"

# Setup basic logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)
logging.getLogger("httpx").setLevel(logging.WARNING)


@dataclass(frozen=True)
class SiteSettings:
    """Per-site runtime settings read from ``config.ini``."""

    site_id: str
    cookie: str
    user_agent: str = DEFAULT_USER_AGENT
    enabled: bool = True
    max_retries: int | None = None


def get_configuration(config_path: str = "config.ini") -> dict[str, SiteSettings]:
    """
    Reads the ``[site:<id>]`` sections of ``config_path``.

    Every section must carry a ``cookie``; the authenticated session itself is
    managed elsewhere, this file only hands the resulting cookie string over.
    """
    if not os.path.exists(config_path):
        logger.critical(
            f"Configuration file '{config_path}' not found. Please create it."
        )
        sys.exit(1)

    parser = configparser.ConfigParser(interpolation=None)
    with open(config_path, encoding="utf-8") as f:
        parser.read_string(f.read())

    sites: dict[str, SiteSettings] = {}
    for section in parser.sections():
        if not section.startswith(SITE_SECTION_PREFIX):
            continue
        site_id = section[len(SITE_SECTION_PREFIX) :].strip().lower()
        if not site_id:
            raise ConfigurationError(f"Section '[{section}]' has no site id.")
        sites[site_id] = _load_site_settings(parser, section, site_id)

    if not sites:
        logger.info("[CONFIG] No [site:...] sections found in '%s'.", config_path)
    else:
        logger.info("[CONFIG] Loaded settings for sites: %s", ", ".join(sites))
    return sites


def _load_site_settings(
    parser: configparser.ConfigParser, section: str, site_id: str
) -> SiteSettings:
    cookie = parser.get(section, "cookie", fallback="").strip()
    if not cookie:
        raise ConfigurationError(f"'cookie' is mandatory in section '[{section}]'.")

    user_agent = parser.get(section, "user_agent", fallback="").strip()
    try:
        enabled = parser.getboolean(section, "enabled", fallback=True)
        max_retries = parser.getint(section, "max_retries", fallback=None)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid value in '[{section}]': {exc}") from exc

    if max_retries is not None and max_retries < 1:
        raise ConfigurationError(
            f"'max_retries' must be at least 1 in section '[{section}]'."
        )

    return SiteSettings(
        site_id=site_id,
        cookie=cookie,
        user_agent=user_agent or DEFAULT_USER_AGENT,
        enabled=enabled,
        max_retries=max_retries,
    )
