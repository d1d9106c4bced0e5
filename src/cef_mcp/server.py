"""CEF MCP Server - stdio entry point."""

import argparse
import asyncio
import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Union

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from cef_mcp import __version__
from cef_mcp.config import BACKENDS, Config
from cef_mcp.content import to_mcp_content
from cef_mcp.context import DispatchContext, create_context
from cef_mcp.errors import CefMcpError
from cef_mcp.tools import registry

logger = logging.getLogger(__name__)

# Global configuration, replaced by main() from the command line
config = Config()


@asynccontextmanager
async def dispatch_lifespan(server: Server) -> AsyncIterator[DispatchContext]:
    """Own the dispatch context for the lifetime of the server."""
    logger.info("Starting CEF MCP server (backend=%s)...", config.backend)
    context = create_context(config)
    try:
        yield context
    finally:
        logger.info("Shutting down browser session...")
        await context.aclose()


server = Server(
    "CEF MCP Server",
    version=__version__,
    instructions="Provides access to a remote CEF browser. Start a session before opening pages.",
    lifespan=dispatch_lifespan,
)


def get_dispatch_context() -> DispatchContext:
    """Get the dispatch context of the current request."""
    return server.request_context.lifespan_context


@server.list_tools()
async def list_tools() -> List[types.Tool]:
    return [
        types.Tool(
            name=descriptor.name,
            description=descriptor.description,
            inputSchema=descriptor.input_schema(),
        )
        for descriptor in registry.list()
    ]


@server.call_tool()
async def call_tool(
    name: str, arguments: Dict[str, Any]
) -> List[Union[types.TextContent, types.ImageContent]]:
    """Dispatch one tool call; raised errors become protocol-level errors."""
    context = get_dispatch_context()
    try:
        blocks = await registry.dispatch(name, arguments, context)
    except CefMcpError as exc:
        logger.warning("Tool %s rejected: %s", name, exc)
        raise
    except Exception:
        logger.exception("Tool %s failed", name)
        raise
    return to_mcp_content(blocks)


async def serve() -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def build_parser() -> argparse.ArgumentParser:
    defaults = Config()
    parser = argparse.ArgumentParser(description="CEF MCP Server")
    parser.add_argument(
        "--backend",
        choices=BACKENDS,
        default=defaults.backend,
        help="Browser backend: 'cef' speaks to the provisioned socket, 'playwright' uses CDP",
    )
    parser.add_argument(
        "--provisioning-url",
        default=defaults.provisioning_url,
        help="Base URL of the profile provisioning service",
    )
    parser.add_argument(
        "--request-timeout",
        type=float,
        default=defaults.request_timeout,
        help="Per-call timeout in seconds for provisioning and backend commands",
    )
    parser.add_argument(
        "--page-settle-delay",
        type=float,
        default=defaults.page_settle_delay,
        help="Seconds to wait after opening a page before listing its elements",
    )
    parser.add_argument(
        "--key-settle-delay",
        type=float,
        default=defaults.key_settle_delay,
        help="Seconds between key-down and key-up of a key press",
    )
    parser.add_argument(
        "--char-delay",
        type=float,
        default=defaults.char_delay,
        help="Seconds between typed characters",
    )
    parser.add_argument(
        "--screenshot-width", type=int, default=defaults.screenshot_width, help="Screenshot width"
    )
    parser.add_argument(
        "--screenshot-height", type=int, default=defaults.screenshot_height, help="Screenshot height"
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window when the playwright backend launches Chromium locally",
    )
    parser.add_argument(
        "--log-level",
        default=defaults.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (logs go to stderr)",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> Config:
    return Config(
        backend=args.backend,
        provisioning_url=args.provisioning_url,
        request_timeout=args.request_timeout,
        page_settle_delay=args.page_settle_delay,
        key_settle_delay=args.key_settle_delay,
        char_delay=args.char_delay,
        screenshot_width=args.screenshot_width,
        screenshot_height=args.screenshot_height,
        headless=not args.headed,
        log_level=args.log_level,
    )


def main():
    """Main entry point for the server."""
    global config

    args = build_parser().parse_args()
    config = config_from_args(args)

    # stdout carries the protocol, so logs go to stderr
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )
    logger.info("Provisioning service: %s", config.provisioning_url)

    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")


if __name__ == "__main__":
    main()
