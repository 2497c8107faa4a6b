"""Browser automation module for the GPS portal.

This module provides browser management, authentication, report refresh and
table extraction using Playwright with a single long-lived page.
"""

from src.browser.auth import AuthManager
from src.browser.context import BrowserManager
from src.browser.extractor import FrameTableExtractor
from src.browser.keepalive import KeepAlive
from src.browser.refresh import RefreshStrategy
from src.browser.scraper import PassengerScraper
from src.browser.session import Session, SessionState

__all__ = [
    "BrowserManager",
    "AuthManager",
    "RefreshStrategy",
    "FrameTableExtractor",
    "PassengerScraper",
    "KeepAlive",
    "Session",
    "SessionState",
]
