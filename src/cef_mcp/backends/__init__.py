"""Browser backends and the startup-time selection between them."""

from typing import Awaitable, Callable

from cef_mcp.backends.base import BrowserConnection, KeyCode, Modifiers, MouseButton
from cef_mcp.config import Config

Connector = Callable[[str], Awaitable[BrowserConnection]]

__all__ = ["BrowserConnection", "Connector", "KeyCode", "Modifiers", "MouseButton", "create_connector"]


def create_connector(config: Config) -> Connector:
    """Return a coroutine function that connects to a provisioned address."""
    if config.backend == "playwright":
        from cef_mcp.backends.playwright_cdp import PlaywrightConnection

        async def connect_playwright(address: str) -> BrowserConnection:
            return await PlaywrightConnection.connect(
                address, timeout=config.request_timeout, headless=config.headless
            )

        return connect_playwright

    from cef_mcp.backends.cef_socket import CefConnection

    async def connect_cef(address: str) -> BrowserConnection:
        return await CefConnection.connect(
            address, timeout=config.request_timeout, max_size=config.max_message_size
        )

    return connect_cef
