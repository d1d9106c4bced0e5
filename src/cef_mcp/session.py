"""Session and tab bookkeeping shared across tool calls."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from cef_mcp.backends import BrowserConnection, Connector
from cef_mcp.content import ClickableElement
from cef_mcp.errors import TabNotFoundError
from cef_mcp.provisioning import ProvisioningClient

logger = logging.getLogger(__name__)

SESSION_NOT_STARTED = "Browser session not started. Please start a session first."


@dataclass
class Session:
    """The single live browser connection of this process."""

    connection: BrowserConnection
    profile: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SessionManager:
    """Owns at most one session; starting again while active is a no-op."""

    def __init__(self, provisioner: ProvisioningClient, connector: Connector):
        self._provisioner = provisioner
        self._connector = connector
        self._session: Optional[Session] = None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    def is_active(self) -> bool:
        return self._session is not None

    async def start(self, profile: str) -> str:
        """Start a session for ``profile`` and describe the outcome."""
        if self._session is not None:
            return "Browser session already started"
        if not profile:
            return "No profile specified. Please provide a profile name."

        result = await self._provisioner.resolve(profile)
        if not result.ok:
            return f"Failed to start browser session: {result.error or 'Unknown error'}"

        connection = await self._connector(result.address)
        self._session = Session(connection=connection, profile=profile)
        logger.info("Browser session started for profile %s at %s", profile, result.address)
        return f"Browser session started for profile: {profile}"

    async def close(self) -> None:
        session, self._session = self._session, None
        if session is not None:
            logger.info("Closing browser session for profile %s", session.profile)
            await session.connection.close()


class TabHandle:
    """One open page, bound to the connection that created it.

    ``url`` is the address the tab was opened at. It is not updated when the
    page navigates afterwards.
    """

    def __init__(self, tab_id: int, url: str, connection: BrowserConnection):
        self.tab_id = tab_id
        self.url = url
        self._connection = connection

    def __repr__(self) -> str:
        return f"TabHandle(tab_id={self.tab_id!r}, url={self.url!r})"

    async def clickable_elements(self) -> List[ClickableElement]:
        return await self._connection.clickable_elements(self.tab_id)

    async def click_element(self, index: int) -> None:
        await self._connection.click_element(self.tab_id, index)

    async def screenshot(self, width: int, height: int) -> bytes:
        return await self._connection.screenshot(self.tab_id, width, height)

    async def key_event(self, code: int, modifiers: int, is_down: bool) -> None:
        await self._connection.key_event(self.tab_id, code, modifiers, is_down)

    async def char_event(self, code_point: int) -> None:
        await self._connection.char_event(self.tab_id, code_point)

    async def scroll(self, x: int, y: int, delta_x: float, delta_y: float) -> None:
        await self._connection.scroll(self.tab_id, x, y, delta_x, delta_y)

    async def mouse_move(self, x: int, y: int) -> None:
        await self._connection.mouse_move(self.tab_id, x, y)

    async def mouse_click(self, x: int, y: int, button: str = "left") -> None:
        await self._connection.mouse_click(self.tab_id, x, y, button)

    async def set_input_value(self, selector: str, value: str) -> None:
        await self._connection.set_input_value(self.tab_id, selector, value)

    async def element_center(self, index: int) -> Tuple[float, float]:
        return await self._connection.element_center(self.tab_id, index)

    async def dom(self) -> str:
        return await self._connection.dom(self.tab_id)


class TabRegistry:
    """Maps backend-assigned tab identifiers to handles."""

    def __init__(self, sessions: SessionManager):
        self._sessions = sessions
        self._tabs: Dict[int, TabHandle] = {}

    async def open(self, url: str) -> TabHandle:
        session = self._sessions.session
        if session is None:
            raise RuntimeError(SESSION_NOT_STARTED)
        tab_id = await session.connection.open_tab(url)
        handle = TabHandle(tab_id, url, session.connection)
        self._tabs[tab_id] = handle
        logger.info("Opened tab %s at %s", tab_id, url)
        return handle

    def get(self, tab_id: int) -> TabHandle:
        try:
            return self._tabs[tab_id]
        except KeyError:
            raise TabNotFoundError(tab_id) from None

    def all(self) -> List[TabHandle]:
        return list(self._tabs.values())

    def __len__(self) -> int:
        return len(self._tabs)
