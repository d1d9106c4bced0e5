import asyncio
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from cef_mcp.backends.base import BrowserConnection, number_elements
from cef_mcp.clock import Clock
from cef_mcp.config import Config
from cef_mcp.content import ClickableElement, ContentBlock, TextBlock
from cef_mcp.context import DispatchContext, create_context
from cef_mcp.provisioning import ProvisioningClient
from cef_mcp.tools import registry

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
ADDRESS = "ws://127.0.0.1:9222/cef"


class ManualClock(Clock):
    """Virtual clock: sleeping advances time instantly and is recorded."""

    def __init__(self, timeline: Optional[List[Tuple]] = None):
        self.now = 0.0
        self.sleeps: List[float] = []
        self.timeline = timeline if timeline is not None else []

    def monotonic(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.timeline.append(("sleep", seconds))
        self.now += seconds
        # Yield so concurrent tasks get a chance to interleave.
        await asyncio.sleep(0)


class FakeConnection(BrowserConnection):
    """Records every backend call on a shared timeline."""

    def __init__(self, timeline: Optional[List[Tuple]] = None):
        self.timeline = timeline if timeline is not None else []
        self.elements: List[Dict[str, Any]] = [
            {"tag": "a", "text": "Home"},
            {"tag": "button", "text": "Go"},
        ]
        self.screenshot_data = PNG_BYTES
        self.html = "<html><body><a href='/'>Home</a></body></html>"
        self.closed = False
        # Backend-owned ids: deliberately not 0, 1, 2...
        self._next_id = 17

    def calls(self, name: str) -> List[Tuple]:
        return [entry for entry in self.timeline if entry[0] == name]

    async def open_tab(self, url: str) -> int:
        tab_id = self._next_id
        self._next_id += 5
        self.timeline.append(("open_tab", url, tab_id))
        return tab_id

    async def clickable_elements(self, tab_id: int) -> List[ClickableElement]:
        self.timeline.append(("clickable_elements", tab_id))
        return number_elements(self.elements)

    async def click_element(self, tab_id: int, index: int) -> None:
        self.timeline.append(("click_element", tab_id, index))

    async def screenshot(self, tab_id: int, width: int, height: int) -> bytes:
        self.timeline.append(("screenshot", tab_id, width, height))
        return self.screenshot_data

    async def key_event(self, tab_id: int, code: int, modifiers: int, is_down: bool) -> None:
        self.timeline.append(("key", tab_id, int(code), int(modifiers), is_down))

    async def char_event(self, tab_id: int, code_point: int) -> None:
        self.timeline.append(("char", tab_id, code_point))

    async def scroll(self, tab_id: int, x: int, y: int, delta_x: float, delta_y: float) -> None:
        self.timeline.append(("scroll", tab_id, x, y, delta_x, delta_y))

    async def mouse_move(self, tab_id: int, x: int, y: int) -> None:
        self.timeline.append(("mouse_move", tab_id, x, y))

    async def mouse_click(self, tab_id: int, x: int, y: int, button: str = "left") -> None:
        self.timeline.append(("mouse_click", tab_id, x, y, button))

    async def set_input_value(self, tab_id: int, selector: str, value: str) -> None:
        self.timeline.append(("set_input_value", tab_id, selector, value))

    async def element_center(self, tab_id: int, index: int) -> Tuple[float, float]:
        self.timeline.append(("element_center", tab_id, index))
        return 120.0, 45.5

    async def dom(self, tab_id: int) -> str:
        self.timeline.append(("dom", tab_id))
        return self.html

    async def close(self) -> None:
        self.closed = True


def provisioning_client(handler, requests: Optional[List[httpx.Request]] = None) -> ProvisioningClient:
    def recording(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return handler(request)

    return ProvisioningClient("http://provisioner.test", transport=httpx.MockTransport(recording))


def texts(blocks: List[ContentBlock]) -> List[str]:
    return [block.text for block in blocks if isinstance(block, TextBlock)]


@pytest.fixture
def timeline() -> List[Tuple]:
    return []


@pytest.fixture
def clock(timeline) -> ManualClock:
    return ManualClock(timeline)


@pytest.fixture
def connection(timeline) -> FakeConnection:
    return FakeConnection(timeline)


@pytest.fixture
def provisioning_requests() -> List[httpx.Request]:
    return []


@pytest.fixture
def provisioner(provisioning_requests) -> ProvisioningClient:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": {"address": ADDRESS}})

    return provisioning_client(handler, provisioning_requests)


@pytest.fixture
def connected_addresses() -> List[str]:
    return []


@pytest.fixture
def connector(connection, connected_addresses):
    async def connect(address: str) -> BrowserConnection:
        connected_addresses.append(address)
        return connection

    return connect


@pytest.fixture
def context(clock, provisioner, connector) -> DispatchContext:
    return create_context(Config(), clock=clock, provisioner=provisioner, connector=connector)


async def call(context: DispatchContext, name: str, **arguments: Any) -> List[ContentBlock]:
    return await registry.dispatch(name, arguments, context)


async def start(context: DispatchContext, profile: str = "work") -> None:
    await call(context, "start-session", profile=profile)


async def open_tab(context: DispatchContext, url: str = "https://example.com") -> int:
    handle = await context.tabs.open(url)
    return handle.tab_id
