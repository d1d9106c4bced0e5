"""State passed explicitly to every tool handler."""

import asyncio
from dataclasses import dataclass, field
from typing import Optional

from cef_mcp.backends import Connector, create_connector
from cef_mcp.clock import Clock, SystemClock
from cef_mcp.config import Config
from cef_mcp.input import InputSequencer
from cef_mcp.provisioning import ProvisioningClient
from cef_mcp.session import SessionManager, TabRegistry


@dataclass
class DispatchContext:
    """Everything a handler may read or mutate.

    ``lock`` serializes tool calls for the session: a typing sequence in
    flight finishes before the next call starts.
    """

    config: Config
    clock: Clock
    sessions: SessionManager
    tabs: TabRegistry
    input: InputSequencer
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def aclose(self) -> None:
        await self.sessions.close()


def create_context(
    config: Config,
    clock: Optional[Clock] = None,
    provisioner: Optional[ProvisioningClient] = None,
    connector: Optional[Connector] = None,
) -> DispatchContext:
    """Wire the collaborators described by ``config``."""
    clock = clock or SystemClock()
    provisioner = provisioner or ProvisioningClient(
        config.provisioning_url, timeout=config.request_timeout
    )
    sessions = SessionManager(provisioner, connector or create_connector(config))
    return DispatchContext(
        config=config,
        clock=clock,
        sessions=sessions,
        tabs=TabRegistry(sessions),
        input=InputSequencer(clock, config.key_settle_delay, config.char_delay),
    )
