"""Browser backend for the companion process."""

from webterm.browser.bookmarks import BookmarkStore
from webterm.browser.session import BrowserSession, create_browser_session

__all__ = ["BookmarkStore", "BrowserSession", "create_browser_session"]
