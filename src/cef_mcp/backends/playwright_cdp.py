"""Playwright backend: drives a Chromium reachable over CDP, or a local one."""

import itertools
import logging
from typing import Dict, List, Optional, Tuple

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from cef_mcp.backends.base import BrowserConnection, KeyCode, Modifiers, number_elements
from cef_mcp.content import ClickableElement
from cef_mcp.errors import BackendError

logger = logging.getLogger(__name__)

# Address value that asks for a locally launched browser instead of CDP.
LOCAL_ADDRESS = "local"

_COLLECT_JS = """
() => {
  const selector = [
    'a[href]', 'button', 'input:not([type="hidden"])', 'select', 'textarea',
    'summary', '[role="button"]', '[role="link"]', '[role="tab"]', '[onclick]',
  ].join(', ');
  const visible = (el) => {
    const rect = el.getBoundingClientRect();
    const style = window.getComputedStyle(el);
    return rect.width > 0 && rect.height > 0
      && style.visibility !== 'hidden' && style.display !== 'none';
  };
  return Array.from(document.querySelectorAll(selector)).filter(visible);
}
"""

_ELEMENTS_JS = f"""
() => ({_COLLECT_JS})().map((el) => ({{
  tag: el.tagName.toLowerCase(),
  text: (el.innerText || el.value || el.getAttribute('aria-label') || '').trim().slice(0, 200),
}}))
"""

_CENTER_JS = f"""
(index) => {{
  const el = ({_COLLECT_JS})()[index];
  if (!el) return null;
  el.scrollIntoView({{block: 'center', inline: 'center'}});
  const rect = el.getBoundingClientRect();
  return {{x: rect.left + rect.width / 2, y: rect.top + rect.height / 2}};
}}
"""

_KEY_NAMES: Dict[int, str] = {
    KeyCode.BACKSPACE: "Backspace",
    KeyCode.TAB: "Tab",
    KeyCode.ENTER: "Enter",
    KeyCode.ESCAPE: "Escape",
    KeyCode.SPACE: " ",
    KeyCode.PAGE_UP: "PageUp",
    KeyCode.PAGE_DOWN: "PageDown",
    KeyCode.END: "End",
    KeyCode.HOME: "Home",
    KeyCode.LEFT: "ArrowLeft",
    KeyCode.UP: "ArrowUp",
    KeyCode.RIGHT: "ArrowRight",
    KeyCode.DOWN: "ArrowDown",
    KeyCode.DELETE: "Delete",
}

_MODIFIER_KEYS = (
    (Modifiers.SHIFT, "Shift"),
    (Modifiers.CONTROL, "Control"),
    (Modifiers.ALT, "Alt"),
    (Modifiers.COMMAND, "Meta"),
)


def key_name(code: int) -> str:
    if code in _KEY_NAMES:
        return _KEY_NAMES[code]
    # Letters and digits share their virtual key code with ASCII.
    if 48 <= code <= 57 or 65 <= code <= 90:
        return chr(code)
    raise ValueError(f"No Playwright key name for key code {code}")


class PlaywrightConnection(BrowserConnection):
    """Browser connection backed by Playwright pages."""

    def __init__(
        self,
        playwright: Playwright,
        browser: Browser,
        context: BrowserContext,
        timeout: Optional[float] = 30.0,
    ):
        self._playwright = playwright
        self._browser = browser
        self._context = context
        self._timeout_ms = timeout * 1000 if timeout else 0
        self._pages: Dict[int, Page] = {}
        self._ids = itertools.count(1)

    @classmethod
    async def connect(
        cls, address: str, timeout: Optional[float] = 30.0, headless: bool = True
    ) -> "PlaywrightConnection":
        playwright = await async_playwright().start()
        try:
            if address == LOCAL_ADDRESS:
                logger.info("Launching local Chromium (headless=%s)", headless)
                browser = await playwright.chromium.launch(headless=headless)
                context = await browser.new_context()
            else:
                logger.info("Connecting to Chromium over CDP at %s", address)
                browser = await playwright.chromium.connect_over_cdp(address)
                if browser.contexts:
                    context = browser.contexts[0]
                else:
                    context = await browser.new_context()
        except Exception:
            await playwright.stop()
            raise
        return cls(playwright, browser, context, timeout)

    def _page(self, tab_id: int) -> Page:
        try:
            return self._pages[tab_id]
        except KeyError:
            raise BackendError("page", f"unknown tab {tab_id}") from None

    async def open_tab(self, url: str) -> int:
        page = await self._context.new_page()
        page.set_default_timeout(self._timeout_ms)
        try:
            await page.goto(url)
        except Exception:
            await page.close()
            raise
        tab_id = next(self._ids)
        self._pages[tab_id] = page
        return tab_id

    async def clickable_elements(self, tab_id: int) -> List[ClickableElement]:
        raw = await self._page(tab_id).evaluate(_ELEMENTS_JS)
        return number_elements(raw)

    async def element_center(self, tab_id: int, index: int) -> Tuple[float, float]:
        center = await self._page(tab_id).evaluate(_CENTER_JS, index)
        if center is None:
            raise BackendError("elementCenter", f"no clickable element at index {index}")
        return center["x"], center["y"]

    async def click_element(self, tab_id: int, index: int) -> None:
        x, y = await self.element_center(tab_id, index)
        await self._page(tab_id).mouse.click(x, y)

    async def screenshot(self, tab_id: int, width: int, height: int) -> bytes:
        page = self._page(tab_id)
        await page.set_viewport_size({"width": width, "height": height})
        return await page.screenshot(type="png")

    async def key_event(self, tab_id: int, code: int, modifiers: int, is_down: bool) -> None:
        keyboard = self._page(tab_id).keyboard
        held = [name for flag, name in _MODIFIER_KEYS if modifiers & flag]
        if is_down:
            for name in held:
                await keyboard.down(name)
            await keyboard.down(key_name(code))
        else:
            await keyboard.up(key_name(code))
            for name in reversed(held):
                await keyboard.up(name)

    async def char_event(self, tab_id: int, code_point: int) -> None:
        await self._page(tab_id).keyboard.type(chr(code_point))

    async def scroll(
        self, tab_id: int, x: int, y: int, delta_x: float, delta_y: float
    ) -> None:
        mouse = self._page(tab_id).mouse
        await mouse.move(x, y)
        await mouse.wheel(delta_x, delta_y)

    async def mouse_move(self, tab_id: int, x: int, y: int) -> None:
        await self._page(tab_id).mouse.move(x, y)

    async def mouse_click(self, tab_id: int, x: int, y: int, button: str = "left") -> None:
        await self._page(tab_id).mouse.click(x, y, button=button)

    async def set_input_value(self, tab_id: int, selector: str, value: str) -> None:
        await self._page(tab_id).fill(selector, value)

    async def dom(self, tab_id: int) -> str:
        return await self._page(tab_id).content()

    async def close(self) -> None:
        """Close the browser context and stop Playwright."""
        try:
            await self._context.close()
        except Exception as exc:
            logger.error("Error closing browser context: %s", exc)
        try:
            await self._browser.close()
        except Exception as exc:
            logger.error("Error closing browser: %s", exc)
        try:
            await self._playwright.stop()
        except Exception as exc:
            logger.error("Error stopping playwright: %s", exc)
