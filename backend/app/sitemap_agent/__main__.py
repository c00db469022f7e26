"""
Command line entry point.

    python -m sitemap_agent build [--url URL] [--max-depth N] [--out PATH] [--headful] [--no-roles]
    python -m sitemap_agent show [--out PATH]
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from playwright.async_api import async_playwright

from .config import AgentSettings
from .core.errors import ConfigurationError, SiteMapAgentError
from .explorer.role_explorer import SiteMapExplorer, credentials_from_settings
from .knowledge.site_map_store import SiteMapStore
from .models import SiteMap

logger = logging.getLogger("sitemap_agent")


async def build_site_map(
    base_url: str,
    store: SiteMapStore,
    max_depth: int,
    headless: bool = True,
    roles=()
) -> SiteMap:
    """Launch Chromium, explore every role and save the merged map"""
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=headless)
        try:
            context = await browser.new_context()
            page = await context.new_page()
            explorer = SiteMapExplorer(page, store=store, max_depth=max_depth)
            return await explorer.generate(base_url, roles)
        finally:
            await browser.close()


def print_site_map(site_map: SiteMap):
    print(f"\n{'='*60}")
    print(f"Site map for {site_map.base_url} (captured {site_map.captured_at:%Y-%m-%d %H:%M})")
    print(f"{'='*60}")
    for section, nodes in site_map.sections.items():
        if not nodes:
            continue
        print(f"\n[{section.value}]")
        for root in nodes:
            for node in root.walk():
                print(f"  {'  ' * node.level}- {node.label} -> {node.path or '(not navigable)'}")
    print(f"\nPages captured: {len(site_map.pages)}")
    for page in site_map.pages:
        kinds = ", ".join(kind.value for kind in page.feature_kinds) or "none"
        print(f"  {page.url}  [{kinds}]")
    print()


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="sitemap-agent",
        description="Build and inspect the site map used by locator-driven tests"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Crawl the application and save its site map")
    build.add_argument("--url", help="Base URL (default: BASE_URL)")
    build.add_argument("--max-depth", type=int, help="Crawl depth (default: CRAWL_MAX_DEPTH or 2)")
    build.add_argument("--out", help="Site map path (default: SITE_MAP_PATH)")
    build.add_argument("--headful", action="store_true", help="Show the browser window")
    build.add_argument("--no-roles", action="store_true", help="Skip authenticated role crawls")

    show = subparsers.add_parser("show", help="Print a saved site map")
    show.add_argument("--out", help="Site map path (default: SITE_MAP_PATH)")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    settings = AgentSettings.from_env()
    store = SiteMapStore(args.out or settings.site_map_path)

    if args.command == "show":
        site_map = store.load()
        if site_map is None:
            print(f"No site map at {store.file_path}")
            sys.exit(1)
        print_site_map(site_map)
        return

    base_url = args.url or settings.base_url
    try:
        if not base_url:
            raise ConfigurationError("BASE_URL is not set and --url was not given", context={"missing": ["BASE_URL"]})
        roles = [] if args.no_roles else credentials_from_settings(settings)
        max_depth = args.max_depth if args.max_depth is not None else settings.crawl_max_depth
        site_map = asyncio.run(build_site_map(
            base_url,
            store,
            max_depth=max_depth,
            headless=not args.headful,
            roles=roles
        ))
    except SiteMapAgentError as e:
        logger.error(e.message)
        sys.exit(1)

    print_site_map(site_map)
    print(f"Saved to {store.file_path}")


if __name__ == "__main__":
    main()
