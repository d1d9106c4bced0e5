"""Socket client for a CEF browser provisioned by the profile service.

Frames are JSON objects. Requests carry ``id``, ``method`` and ``params``;
the browser answers with the same ``id`` and either ``result`` or
``error.message``. Frames with other ids (browser-side events) are skipped.
"""

import asyncio
import base64
import itertools
import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import websockets

from cef_mcp.backends.base import BrowserConnection, number_elements
from cef_mcp.content import ClickableElement
from cef_mcp.errors import BackendError

logger = logging.getLogger(__name__)


def _websocket_url(address: str) -> str:
    if address.startswith(("ws://", "wss://")):
        return address
    if address.startswith("http://"):
        return "ws://" + address[len("http://"):]
    if address.startswith("https://"):
        return "wss://" + address[len("https://"):]
    return f"ws://{address}"


class CefConnection(BrowserConnection):
    """Browser connection speaking JSON frames over one websocket."""

    def __init__(self, websocket: Any, timeout: Optional[float] = 30.0):
        self._ws = websocket
        self._timeout = timeout
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    @classmethod
    async def connect(
        cls, address: str, timeout: Optional[float] = 30.0, max_size: Optional[int] = None
    ) -> "CefConnection":
        url = _websocket_url(address)
        logger.info("Connecting to CEF browser at %s", url)
        websocket = await websockets.connect(url, max_size=max_size, open_timeout=timeout)
        return cls(websocket, timeout)

    async def _call(self, method: str, params: Dict[str, Any]) -> Any:
        async with self._lock:
            msg_id = next(self._ids)
            await self._ws.send(json.dumps({"id": msg_id, "method": method, "params": params}))
            while True:
                raw = await asyncio.wait_for(self._ws.recv(), timeout=self._timeout)
                message = json.loads(raw)
                if message.get("id") != msg_id:
                    logger.debug("Skipping unrelated frame while waiting for %s: %s", method, raw)
                    continue
                if "error" in message:
                    error = message["error"] or {}
                    text = error.get("message") if isinstance(error, dict) else str(error)
                    raise BackendError(method, text or "Unknown error")
                return message.get("result")

    async def open_tab(self, url: str) -> int:
        result = await self._call("openTab", {"url": url})
        return int(result["id"])

    async def clickable_elements(self, tab_id: int) -> List[ClickableElement]:
        result = await self._call("clickableElements", {"tabId": tab_id})
        return number_elements(result or [])

    async def click_element(self, tab_id: int, index: int) -> None:
        await self._call("clickElement", {"tabId": tab_id, "index": index})

    async def screenshot(self, tab_id: int, width: int, height: int) -> bytes:
        result = await self._call(
            "screenshot", {"tabId": tab_id, "width": width, "height": height}
        )
        return base64.b64decode(result["data"])

    async def key_event(self, tab_id: int, code: int, modifiers: int, is_down: bool) -> None:
        await self._call(
            "key",
            {"tabId": tab_id, "code": int(code), "modifiers": int(modifiers), "down": is_down},
        )

    async def char_event(self, tab_id: int, code_point: int) -> None:
        await self._call("char", {"tabId": tab_id, "code": code_point})

    async def scroll(
        self, tab_id: int, x: int, y: int, delta_x: float, delta_y: float
    ) -> None:
        await self._call(
            "scroll",
            {"tabId": tab_id, "x": x, "y": y, "deltaX": delta_x, "deltaY": delta_y},
        )

    async def mouse_move(self, tab_id: int, x: int, y: int) -> None:
        await self._call("mouseMove", {"tabId": tab_id, "x": x, "y": y})

    async def mouse_click(self, tab_id: int, x: int, y: int, button: str = "left") -> None:
        await self._call("mouseClick", {"tabId": tab_id, "x": x, "y": y, "button": button})

    async def set_input_value(self, tab_id: int, selector: str, value: str) -> None:
        await self._call(
            "setInputValue", {"tabId": tab_id, "selector": selector, "value": value}
        )

    async def element_center(self, tab_id: int, index: int) -> Tuple[float, float]:
        result = await self._call("elementCenter", {"tabId": tab_id, "index": index})
        return result["x"], result["y"]

    async def dom(self, tab_id: int) -> str:
        result = await self._call("dom", {"tabId": tab_id})
        return result["html"]

    async def close(self) -> None:
        await self._ws.close()
