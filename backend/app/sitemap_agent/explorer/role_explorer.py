"""
Role Explorer

Generates the site map for a test run: the public map first, then one
map per configured role (each from a fresh builder after logging in),
merged together and saved once.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from ..config import AgentSettings, DEFAULT_CRAWL_DEPTH
from ..core.errors import NavigationFailedError
from ..core.waits import navigate_and_settle, wait_for_dom_stable, wait_for_network_settle
from ..knowledge.site_map_store import SiteMapStore, get_site_map_store
from ..knowledge.ui_selectors import LOGIN_SELECTORS
from ..models import DEFAULT_SECTIONS, SiteMap, SiteSection, merge_site_maps
from .site_map_builder import SiteMapBuilder

logger = logging.getLogger(__name__)

LOGIN_TIMEOUT = 10000


@dataclass
class RoleCredentials:
    """Login details for one authenticated role"""
    role: str
    username: str
    password: str
    login_path: str = "/login"
    expected_url: Optional[str] = None  # substring of the landing URL


def credentials_from_settings(settings: AgentSettings) -> List[RoleCredentials]:
    """Roles whose username and password are both configured"""
    roles = []
    if settings.user_email and settings.user_password:
        roles.append(RoleCredentials(
            role="user",
            username=settings.user_email,
            password=settings.user_password,
            login_path="/login",
            expected_url="/dashboard",
        ))
    if settings.admin_email and settings.admin_password:
        roles.append(RoleCredentials(
            role="admin",
            username=settings.admin_email,
            password=settings.admin_password,
            login_path="/admin/login",
            expected_url="/admin/members",
        ))
    return roles


async def login_with_credentials(page, base_url: str, credentials: RoleCredentials, timeout: int = LOGIN_TIMEOUT):
    """Log in through the login form; raises NavigationFailedError if the landing URL never appears"""
    login_url = base_url.rstrip("/") + credentials.login_path
    await navigate_and_settle(page, login_url)

    await page.locator(LOGIN_SELECTORS["email_input"]).first.fill(credentials.username, timeout=timeout)
    await page.locator(LOGIN_SELECTORS["password_input"]).first.fill(credentials.password, timeout=timeout)
    await page.locator(LOGIN_SELECTORS["login_button"]).first.click(timeout=timeout)

    if credentials.expected_url:
        expected = credentials.expected_url
        try:
            await page.wait_for_url(lambda url: expected in url, timeout=timeout)
        except Exception as e:
            raise NavigationFailedError(
                f"{credentials.role} login did not reach {expected}",
                context={"url": page.url}
            ) from e

    await wait_for_network_settle(page)
    await wait_for_dom_stable(page)
    logger.info(f"[SITEMAP] Logged in as {credentials.role}")


class SiteMapExplorer:
    """
    Multi-role site map generation.

    Each role gets its own SiteMapBuilder so visited sets and section
    caches never leak between privilege levels.
    """

    def __init__(
        self,
        page,
        store: Optional[SiteMapStore] = None,
        sections: Optional[Sequence[SiteSection]] = None,
        max_depth: int = DEFAULT_CRAWL_DEPTH,
        builder_factory: Optional[Callable[[object], SiteMapBuilder]] = None
    ):
        self.page = page
        self.store = store
        self.sections = list(sections) if sections else list(DEFAULT_SECTIONS)
        self.max_depth = max_depth
        self._builder_factory = builder_factory or self._default_builder

    def _default_builder(self, page) -> SiteMapBuilder:
        return SiteMapBuilder(page, sections=self.sections, max_depth=self.max_depth)

    async def explore(self, base_url: str, roles: Sequence[RoleCredentials] = ()) -> SiteMap:
        """Public map merged with one map per role; a failing role is skipped"""
        await navigate_and_settle(self.page, base_url)
        site_map = await self._builder_factory(self.page).build_and_crawl(self.max_depth)
        logger.info(f"[SITEMAP] Public map: {len(site_map.pages)} pages")

        for credentials in roles:
            try:
                await self._clear_session()
                await login_with_credentials(self.page, base_url, credentials)
                role_map = await self._builder_factory(self.page).build_and_crawl(self.max_depth)
                site_map = merge_site_maps(site_map, role_map)
                logger.info(f"[SITEMAP] Merged {credentials.role} map: {len(site_map.pages)} pages total")
            except Exception as e:
                logger.warning(f"[SITEMAP] Skipping role {credentials.role}: {e}")

        return site_map

    async def generate(self, base_url: str, roles: Sequence[RoleCredentials] = ()) -> SiteMap:
        """Clear the store cache, explore, and save the merged map once"""
        store = self.store or get_site_map_store()
        store.clear_cache()
        site_map = await self.explore(base_url, roles)
        store.save(site_map)
        return site_map

    async def _clear_session(self):
        try:
            await self.page.context.clear_cookies()
        except Exception as e:
            logger.debug(f"[SITEMAP] Could not clear cookies: {e}")
