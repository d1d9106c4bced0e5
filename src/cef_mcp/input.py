"""Timed keyboard input.

The backend treats event timing as part of input realism, so a key press is
a down event, a settle pause, and an up event, and typing emits one
character event per code point with a pause after each. Sequences run to
completion once started; there is no cancellation.
"""

import logging
from dataclasses import dataclass

from cef_mcp.backends import KeyCode, Modifiers
from cef_mcp.clock import Clock
from cef_mcp.session import TabHandle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyEvent:
    code: int
    modifiers: int
    is_down: bool


class InputSequencer:
    def __init__(self, clock: Clock, key_settle_delay: float = 0.1, char_delay: float = 0.05):
        self.clock = clock
        self.key_settle_delay = key_settle_delay
        self.char_delay = char_delay

    async def send_key(self, tab: TabHandle, event: KeyEvent) -> None:
        logger.debug(
            "tab %s key %s %s (modifiers=%s)",
            tab.tab_id,
            event.code,
            "down" if event.is_down else "up",
            event.modifiers,
        )
        await tab.key_event(event.code, event.modifiers, event.is_down)

    async def press_key(
        self, tab: TabHandle, code: int = KeyCode.ENTER, modifiers: int = Modifiers.NONE
    ) -> None:
        """Press and release one key with identical modifier state."""
        await self.send_key(tab, KeyEvent(code, modifiers, True))
        await self.clock.sleep(self.key_settle_delay)
        await self.send_key(tab, KeyEvent(code, modifiers, False))

    async def type_text(self, tab: TabHandle, text: str) -> int:
        """Type ``text`` one code point at a time; returns the events sent."""
        started = self.clock.monotonic()
        count = 0
        for char in text:
            code_point = ord(char)
            logger.debug("tab %s char U+%04X", tab.tab_id, code_point)
            await tab.char_event(code_point)
            count += 1
            await self.clock.sleep(self.char_delay)
        logger.debug(
            "tab %s typed %d characters in %.2fs", tab.tab_id, count, self.clock.monotonic() - started
        )
        return count
