"""
Wait Helpers

Bounded waits used between navigation and DOM probing. A wait that
times out returns False instead of raising; callers treat it as
"not ready" and move on.
"""

import asyncio
import logging
import time

logger = logging.getLogger(__name__)

# Timeouts in milliseconds
PROBE_TIMEOUT = 1000
NETWORK_SETTLE_TIMEOUT = 5000
NAVIGATION_TIMEOUT = 30000


async def wait_for_visible(locator, timeout: int = PROBE_TIMEOUT) -> bool:
    """Wait for the locator to become visible; False on timeout"""
    try:
        await locator.wait_for(state="visible", timeout=timeout)
        return True
    except Exception:
        return False


def first_visible(locator):
    """First visible match; hidden duplicates earlier in the DOM are skipped"""
    return locator.filter(visible=True).first


async def wait_for_network_settle(page, timeout: int = NETWORK_SETTLE_TIMEOUT) -> bool:
    """Wait for network idle, giving up quietly after timeout"""
    try:
        await page.wait_for_load_state("networkidle", timeout=timeout)
        return True
    except Exception as e:
        logger.debug(f"Network did not settle within {timeout}ms: {e}")
        return False


async def navigate_and_settle(page, url: str, timeout: int = NAVIGATION_TIMEOUT):
    """
    Navigate to a URL and wait for the network to settle.

    Navigation errors propagate; only the settle wait is best-effort.
    """
    await page.goto(url, wait_until="domcontentloaded", timeout=timeout)
    await wait_for_network_settle(page)


async def wait_for_dom_stable(page, timeout: int = 3000) -> bool:
    """Wait for DOM mutations to stop (useful for SPAs re-rendering menus)"""
    try:
        await page.evaluate("""
            window.__sitemap_dom_mutations = 0;
            if (!window.__sitemap_dom_observer) {
                window.__sitemap_dom_observer = new MutationObserver((mutations) => {
                    window.__sitemap_dom_mutations += mutations.length;
                });
                window.__sitemap_dom_observer.observe(document.body, {
                    childList: true,
                    subtree: true,
                    attributes: true
                });
            }
        """)

        check_interval = 100  # ms
        stable_checks = 0
        required_stable = 3
        last_count = 0

        start = time.monotonic()
        while (time.monotonic() - start) * 1000 < timeout:
            current = await page.evaluate("window.__sitemap_dom_mutations || 0")
            if current == last_count:
                stable_checks += 1
                if stable_checks >= required_stable:
                    break
            else:
                stable_checks = 0
                last_count = current
            await asyncio.sleep(check_interval / 1000)

        await page.evaluate("""
            if (window.__sitemap_dom_observer) {
                window.__sitemap_dom_observer.disconnect();
                delete window.__sitemap_dom_observer;
                delete window.__sitemap_dom_mutations;
            }
        """)
        return True

    except Exception:
        return False
