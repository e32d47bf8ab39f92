"""Launch Chromium on a persistent profile for the outreach run.

A persistent profile keeps the operator logged in to Facebook between runs.
The context is also granted clipboard access for the start URL so the search
phrase can be staged for a manual paste without a permission prompt.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Tuple
from urllib.parse import urlparse

from playwright.sync_api import BrowserContext, Error as PlaywrightError, Page, Playwright, sync_playwright

CLIPBOARD_PERMISSIONS: Tuple[str, ...] = ("clipboard-read", "clipboard-write")


def _origin(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        return None
    return f"{parsed.scheme}://{parsed.netloc}"


def launch_persistent(
    start_url: Optional[str],
    profile_dir: str | Path,
    *,
    headless: bool = False,
    permissions: Sequence[str] = CLIPBOARD_PERMISSIONS,
) -> Tuple[Playwright, BrowserContext, Page]:
    """Start Playwright and open ``start_url`` in a Chromium context stored at ``profile_dir``.

    Parameters
    ----------
    start_url:
        Page to open right away. A failed navigation is reported but not
        raised; the operator can load the page by hand.
    profile_dir:
        Directory holding the Chromium profile. Created when missing.
    headless:
        Run without a window. The workflow needs a human at the keyboard, so
        this is only useful for smoke checks.
    permissions:
        Browser permissions granted to the start URL's origin.
    """

    profile_path = Path(profile_dir).expanduser()
    profile_path.mkdir(parents=True, exist_ok=True)

    playwright = sync_playwright().start()
    try:
        context = playwright.chromium.launch_persistent_context(
            str(profile_path),
            headless=headless,
        )
    except PlaywrightError:
        playwright.stop()
        raise

    origin = _origin(start_url)
    if permissions:
        try:
            context.grant_permissions(list(permissions), origin=origin)
        except PlaywrightError as exc:
            print(f"  • Could not grant {', '.join(permissions)}: {exc}")

    page = context.pages[0] if context.pages else context.new_page()

    if start_url:
        try:
            page.goto(start_url, wait_until="load")
        except PlaywrightError as exc:
            print(f"  • Opening {start_url} failed ({exc}); load it manually to continue.")

    return playwright, context, page


def shutdown(playwright: Optional[Playwright], context: Optional[BrowserContext]) -> None:
    """Close the context and stop Playwright, even if the context is already gone."""

    try:
        if context:
            context.close()
    except PlaywrightError as exc:
        print(f"  • Browser context already closed: {exc}")
    finally:
        if playwright:
            playwright.stop()
