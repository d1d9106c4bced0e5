"""Capability interface every browser backend implements."""

from abc import ABC, abstractmethod
from enum import IntEnum, IntFlag
from typing import Any, Dict, Iterable, List, Literal, Tuple

from cef_mcp.content import ClickableElement


class KeyCode(IntEnum):
    """Windows virtual key codes, as CEF expects them."""

    BACKSPACE = 8
    TAB = 9
    ENTER = 13
    ESCAPE = 27
    SPACE = 32
    PAGE_UP = 33
    PAGE_DOWN = 34
    END = 35
    HOME = 36
    LEFT = 37
    UP = 38
    RIGHT = 39
    DOWN = 40
    DELETE = 46


class Modifiers(IntFlag):
    """CEF event flag bits for held modifier keys."""

    NONE = 0
    SHIFT = 1 << 1
    CONTROL = 1 << 2
    ALT = 1 << 3
    COMMAND = 1 << 7


MouseButton = Literal["left", "middle", "right"]


def number_elements(raw: Iterable[Dict[str, Any]]) -> List[ClickableElement]:
    """Assign enumeration indices to raw ``{tag, text}`` records."""
    return [
        ClickableElement(index=i, tag=str(item.get("tag", "")), text=str(item.get("text", "")))
        for i, item in enumerate(raw)
    ]


class BrowserConnection(ABC):
    """One live connection to a browser.

    Tab identifiers are owned by the backend; callers treat them as opaque
    integers.
    """

    @abstractmethod
    async def open_tab(self, url: str) -> int:
        ...

    @abstractmethod
    async def clickable_elements(self, tab_id: int) -> List[ClickableElement]:
        ...

    @abstractmethod
    async def click_element(self, tab_id: int, index: int) -> None:
        ...

    @abstractmethod
    async def screenshot(self, tab_id: int, width: int, height: int) -> bytes:
        ...

    @abstractmethod
    async def key_event(self, tab_id: int, code: int, modifiers: int, is_down: bool) -> None:
        ...

    @abstractmethod
    async def char_event(self, tab_id: int, code_point: int) -> None:
        ...

    @abstractmethod
    async def scroll(
        self, tab_id: int, x: int, y: int, delta_x: float, delta_y: float
    ) -> None:
        ...

    @abstractmethod
    async def mouse_move(self, tab_id: int, x: int, y: int) -> None:
        ...

    @abstractmethod
    async def mouse_click(self, tab_id: int, x: int, y: int, button: MouseButton = "left") -> None:
        ...

    @abstractmethod
    async def set_input_value(self, tab_id: int, selector: str, value: str) -> None:
        ...

    @abstractmethod
    async def element_center(self, tab_id: int, index: int) -> Tuple[float, float]:
        ...

    @abstractmethod
    async def dom(self, tab_id: int) -> str:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...
