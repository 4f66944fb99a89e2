"""
Dry-run entry point: query every configured site and print normalized JSON.

Run:
    python -m pt_adapters account [--site pttime] [--config config.ini]
    python -m pt_adapters search "keyword or tt1234567" [--site pttime]

Sites are queried concurrently; a failure on one site is logged and reported
in the output without affecting the others.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from typing import Any, Awaitable, Callable

from pt_adapters.config import get_configuration, logger
from pt_adapters.errors import SiteError
from pt_adapters.sites import SiteAdapter, available_sites, build_adapter
from pt_adapters.utils import format_bytes


def _failure_entry(exc: SiteError) -> dict[str, Any]:
    return {"ok": False, "error": type(exc).__name__, "detail": str(exc)}


async def collect_from_sites(
    adapters: list[SiteAdapter],
    call: Callable[[SiteAdapter], Awaitable[Any]],
) -> dict[str, dict[str, Any]]:
    """Run ``call`` against every adapter concurrently, isolating failures."""
    outcomes = await asyncio.gather(
        *(call(adapter) for adapter in adapters), return_exceptions=True
    )

    report: dict[str, dict[str, Any]] = {}
    for adapter, outcome in zip(adapters, outcomes):
        if isinstance(outcome, SiteError):
            logger.error(f"[CLI] {adapter.site_name}: {outcome}")
            report[adapter.site_id] = _failure_entry(outcome)
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            report[adapter.site_id] = {"ok": True, "data": outcome.to_dict()}
    return report


def _log_account_summary(report: dict[str, dict[str, Any]]) -> None:
    for site_id, entry in report.items():
        if not entry["ok"]:
            continue
        data = entry["data"]
        logger.info(
            f"[CLI] {site_id}: {data['username']} "
            f"up {format_bytes(data['uploaded_bytes'])} / "
            f"down {format_bytes(data['downloaded_bytes'])}, "
            f"seeding {data['seeding_count']} "
            f"({format_bytes(data['seeding_volume_bytes'])})"
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pt_adapters", description="Scrape PT site accounts and listings."
    )
    parser.add_argument("--config", default="config.ini", help="Path to config.ini")
    parser.add_argument(
        "--site", action="append", dest="sites", help="Limit to a site id"
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("account", help="Fetch account statistics")
    search = sub.add_parser("search", help="Search torrent listings")
    search.add_argument("keyword")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_configuration(args.config)

    wanted = {site.lower() for site in args.sites} if args.sites else None
    if wanted is not None:
        for site_id in sorted(wanted - settings.keys()):
            logger.warning(
                f"[CLI] Site '{site_id}' has no [site:{site_id}] section; "
                f"sites with a configuration: {', '.join(available_sites())}"
            )

    adapters: list[SiteAdapter] = []
    report: dict[str, dict[str, Any]] = {}
    for site_id, site_settings in settings.items():
        if wanted is not None and site_id not in wanted:
            continue
        if not site_settings.enabled:
            logger.info(f"[CLI] Skipping disabled site '{site_id}'")
            continue
        try:
            adapters.append(build_adapter(site_settings))
        except SiteError as exc:
            logger.error(f"[CLI] {site_id}: {exc}")
            report[site_id] = _failure_entry(exc)

    if not adapters and not report:
        logger.warning("[CLI] No enabled sites selected.")
        return 1

    if args.command == "account":
        report.update(
            asyncio.run(
                collect_from_sites(
                    adapters, lambda adapter: adapter.get_account_info()
                )
            )
        )
        _log_account_summary(report)
    else:
        keyword = args.keyword
        report.update(
            asyncio.run(
                collect_from_sites(
                    adapters, lambda adapter: adapter.search_torrents(keyword)
                )
            )
        )

    print(json.dumps(report, ensure_ascii=False, indent=2))
    return 0 if all(entry["ok"] for entry in report.values()) else 2


if __name__ == "__main__":
    raise SystemExit(main())
