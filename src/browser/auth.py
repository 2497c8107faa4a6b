"""Authentication management for the GPS portal.

This module decides whether the shared page is still logged in, and logs in
again when it is not.

Login flow: reuse live session → reload entry URL (cookie auto-login) →
fill login form → submit
"""

import asyncio
from typing import Any
from urllib.parse import urlsplit

import structlog
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from src.browser.dom import click_first_match, navigate
from src.browser.matchers import contains_any, rules_from_config
from src.browser.session import Session
from src.config import settings
from src.errors import LoginError
from src.models import Credentials

logger = structlog.get_logger(__name__)


def _path_of(url: str) -> str:
    return urlsplit(url).path.lower().rstrip("/")


class AuthManager:
    """Keeps the portal session authenticated.

    The session value is passed in and returned, the page is borrowed from
    BrowserManager; AuthManager holds neither.
    """

    def __init__(self, selectors: dict[str, Any]) -> None:
        auth = selectors["auth"]
        self.expiry_markers: list[str] = auth.get("expiry_markers", [])
        self.submit_rules = rules_from_config(auth.get("submit_rules", []))
        self.clickable_selector: str = auth["clickable_selector"]
        self.text_input: str = auth["text_input"]
        self.password_input: str = auth["password_input"]

    async def ensure_logged_in(
        self, page: Page, credentials: Credentials, session: Session
    ) -> Session:
        """Make sure ``page`` is inside the portal application.

        Args:
            page: The shared browser page.
            credentials: Portal credentials for this request.
            session: Current session state, updated in place.

        Returns:
            The updated session.

        Raises:
            LoginError: If the login form could not be completed. The session
                is left EXPIRED so the next call starts over.
        """
        is_login_page = await self.is_login_page(page)
        is_expired = await self.is_expired(page)

        if (
            not is_login_page
            and self.in_app_context(page.url)
            and session.is_active
            and not is_expired
        ):
            session.touch()
            logger.debug("session_reused", url=page.url)
            return session

        if is_expired:
            logger.info("session_expiry_detected", url=page.url)

        await navigate(page, settings.portal_entry_url)
        await asyncio.sleep(settings.redirect_delay_ms / 1000)

        if self.in_app_context(page.url) and not await self.is_login_page(page):
            logger.info("cookie_auto_login_detected", url=page.url)
            session.activate()
            return session

        session.require_login()
        logger.info("login_required", url=page.url)

        try:
            await self._submit_login(page, credentials)
        except Exception as e:
            if self.in_app_context(page.url):
                logger.warning(
                    "login_error_ignored_in_app_context",
                    url=page.url,
                    error=str(e),
                )
                session.activate()
                return session

            session.expire()
            logger.error("login_failed", url=page.url, error=str(e))
            raise LoginError(f"Login failed: {e}") from e

        session.activate()
        logger.info("login_successful", url=page.url)
        return session

    def in_app_context(self, url: str) -> bool:
        """Check whether ``url`` is a page inside the application.

        The entry page itself is excluded by exact path, so in-app pages that
        share its file name still count.
        """
        lowered = url.lower()
        if not any(marker.lower() in lowered for marker in settings.app_context_markers):
            return False
        return _path_of(url) != _path_of(settings.portal_entry_url)

    async def is_login_page(self, page: Page) -> bool:
        """A page is the login form when a text and a password input are visible."""
        try:
            has_text = await page.locator(self.text_input).count() > 0
            has_password = await page.locator(self.password_input).count() > 0
            return has_text and has_password
        except Exception as e:
            logger.debug("login_form_check_failed", error=str(e))
            return False

    async def is_expired(self, page: Page) -> bool:
        try:
            content = await page.content()
        except Exception as e:
            logger.debug("content_read_failed", error=str(e))
            return False
        return contains_any(content, self.expiry_markers)

    async def _submit_login(self, page: Page, credentials: Credentials) -> None:
        await page.wait_for_selector(
            self.text_input, state="visible", timeout=settings.login_input_timeout_ms
        )
        await page.wait_for_selector(
            self.password_input, state="visible", timeout=settings.login_input_timeout_ms
        )

        # Typed, not filled: the form validates on key events
        await page.fill(self.text_input, "")
        await page.type(
            self.text_input, credentials.username, delay=settings.keystroke_delay_ms
        )
        await page.fill(self.password_input, "")
        await page.type(
            self.password_input,
            credentials.password.get_secret_value(),
            delay=settings.keystroke_delay_ms,
        )

        # The submit starts the navigation, so the wait must be armed first
        try:
            async with page.expect_navigation(
                wait_until="networkidle", timeout=settings.navigation_timeout_ms
            ):
                rule = await click_first_match(
                    page, self.clickable_selector, self.submit_rules
                )
                if rule is None:
                    logger.debug("submit_control_not_found_pressing_enter")
                    await page.keyboard.press("Enter")
        except PlaywrightTimeoutError as e:
            logger.warning("login_navigation_timeout", url=page.url, error=str(e))
