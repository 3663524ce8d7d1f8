# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Playwright-backed computed-style snapshots (optional ``browser`` extra).

Loads the markup into an isolated, offline Chromium page at the desktop
viewport width, reads ``getComputedStyle`` for every body element in
document order, and tears everything down before returning. Each call
gets its own browser context, so concurrent conversions never observe
each other's half-built tree.
"""

from __future__ import annotations

import logging
from contextlib import suppress
from dataclasses import dataclass
from functools import partial

from elementormap.config import DEFAULT_VIEWPORT_WIDTH
from elementormap.errors import BrowserError
from elementormap.styles import SNAPSHOT_INDEX_ATTR, ResolverFactory, SnapshotStyleResolver

logger = logging.getLogger(__name__)

# Every property the classifier and the custom-CSS extractor read
STYLE_PROPERTIES = (
    "display",
    "flex-direction",
    "flex-wrap",
    "background-color",
    "background-image",
    "box-shadow",
    "backdrop-filter",
    "border-radius",
    "color",
)

# Each element is stamped with its snapshot index; SnapshotStyleResolver
# matches the re-parsed markup on it, not on document order.
_COLLECT_STYLES_JS = """
({ props, marker }) => {
  const tags = [];
  const styles = [];
  const all = document.body ? document.body.querySelectorAll('*') : [];
  all.forEach((el, i) => {
    const cs = getComputedStyle(el);
    const entry = {};
    for (const p of props) {
      const v = cs.getPropertyValue(p);
      if (v) entry[p] = v;
    }
    tags.push(el.tagName.toLowerCase());
    styles.push(entry);
    el.setAttribute(marker, String(i));
  });
  return { tags, styles, html: document.documentElement.outerHTML };
}
"""


@dataclass
class BrowserConfig:
    """Browser launch configuration for style snapshots."""

    headless: bool = True
    viewport_width: int = DEFAULT_VIEWPORT_WIDTH
    viewport_height: int = 800
    timeout_ms: int = 30000


def chromium_launch_args() -> list[str]:
    """Hardened, offline-friendly Chromium arguments."""
    return [
        "--disable-extensions",
        "--disable-plugins",
        "--disable-dev-shm-usage",
        "--disable-background-networking",
        "--disable-sync",
        "--disable-gpu",
        "--no-first-run",
        "--disable-breakpad",
        "--no-pings",
        "--disable-component-update",
        "--noerrdialogs",
    ]


@dataclass(frozen=True)
class BrowserStyleSnapshot:
    """Browser-serialized markup plus computed styles of its body elements."""

    html: str
    tags: tuple[str, ...]
    styles: tuple[dict[str, str], ...]
    viewport_width: int

    def resolver_factory(self) -> ResolverFactory:
        return partial(SnapshotStyleResolver, self.styles, tags=self.tags)


async def _block_request(route) -> None:
    # Offline: no stylesheet, font or image fetches
    await route.abort("blockedbyclient")


async def snapshot_computed_styles(html: str, config: BrowserConfig | None = None) -> BrowserStyleSnapshot:
    """Render *html* offscreen and capture computed styles in document order.

    Raises:
        BrowserError: Chromium could not be launched or the page could not be evaluated.
    """
    from playwright.async_api import async_playwright

    cfg = config or BrowserConfig()
    playwright = await async_playwright().start()
    browser = None
    context = None
    try:
        try:
            browser = await playwright.chromium.launch(headless=cfg.headless, args=chromium_launch_args())
        except Exception as exc:
            if "executable doesn't exist" in str(exc).lower():
                raise BrowserError("Chromium is not installed. Please run: playwright install chromium") from exc
            raise
        context = await browser.new_context(
            viewport={"width": cfg.viewport_width, "height": cfg.viewport_height},
            java_script_enabled=False,
            service_workers="block",
            accept_downloads=False,
        )
        await context.route("**/*", _block_request)
        page = await context.new_page()
        await page.set_content(html, wait_until="domcontentloaded", timeout=cfg.timeout_ms)
        data = await page.evaluate(
            _COLLECT_STYLES_JS, {"props": list(STYLE_PROPERTIES), "marker": SNAPSHOT_INDEX_ATTR}
        )
    except BrowserError:
        raise
    except Exception as exc:
        raise BrowserError(f"Computed-style snapshot failed: {exc}") from exc
    finally:
        if context is not None:
            with suppress(Exception):
                await context.close()
        if browser is not None:
            with suppress(Exception):
                await browser.close()
        with suppress(Exception):
            await playwright.stop()

    snapshot = BrowserStyleSnapshot(
        html=data.get("html", ""),
        tags=tuple(data.get("tags", [])),
        styles=tuple(data.get("styles", [])),
        viewport_width=cfg.viewport_width,
    )
    logger.debug("Browser style snapshot: %d elements at %dpx", len(snapshot.styles), cfg.viewport_width)
    return snapshot
