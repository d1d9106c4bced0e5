"""Browser tools exposed to agents."""

import functools
import re
from typing import Awaitable, Callable, Union
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cef_mcp.backends import KeyCode, Modifiers, MouseButton
from cef_mcp.content import ElementListing, Screenshot, ToolOutput
from cef_mcp.context import DispatchContext
from cef_mcp.errors import TabNotFoundError
from cef_mcp.registry import ToolRegistry
from cef_mcp.session import SESSION_NOT_STARTED, TabHandle

DEFAULT_URL = "https://www.google.com"

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*$")

registry = ToolRegistry()

Number = Union[int, float]


def _num(value: Number) -> Number:
    """Render whole floats without a trailing ``.0``."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


# Argument schemas


class ToolArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class NoArgs(ToolArgs):
    pass


class StartSessionArgs(ToolArgs):
    profile: str = Field(description="The browser profile to start a session for")


class OpenPageArgs(ToolArgs):
    url: str = Field(
        default=DEFAULT_URL,
        description="The URL to open in the browser",
        json_schema_extra={"format": "uri"},
    )

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if not parsed.scheme or not _SCHEME_RE.match(parsed.scheme):
            raise ValueError("must be an absolute URL")
        if parsed.scheme in ("http", "https", "ws", "wss", "ftp") and not parsed.netloc:
            raise ValueError("must include a host")
        if not (parsed.netloc or parsed.path):
            raise ValueError("must be an absolute URL")
        return value


class TabArgs(ToolArgs):
    tab_id: int = Field(alias="tabId", ge=0, description="The ID of the tab to act on")


class ElementArgs(TabArgs):
    index: int = Field(ge=0, description="The index of the element, as listed by get-clickable-elements")


class TypeArgs(TabArgs):
    text: str = Field(description="The text to type into the page")


class ScrollArgs(TabArgs):
    delta_x: Number = Field(default=0, alias="deltaX", description="The amount to scroll horizontally")
    delta_y: Number = Field(default=100, alias="deltaY", description="The amount to scroll vertically")


class PointArgs(TabArgs):
    x: int = Field(ge=0, description="Horizontal position in page pixels")
    y: int = Field(ge=0, description="Vertical position in page pixels")


class MouseClickArgs(PointArgs):
    button: MouseButton = Field(default="left", description="Mouse button")


class SetInputValueArgs(TabArgs):
    selector: str = Field(min_length=1, description="CSS selector of the input element")
    value: str = Field(description="Value to set")


TabHandler = Callable[[DispatchContext, TabArgs, TabHandle], Awaitable[ToolOutput]]


def per_tab(func: TabHandler):
    """Resolve ``args.tab_id`` first; unknown ids short-circuit as text."""

    @functools.wraps(func)
    async def wrapper(ctx: DispatchContext, args: TabArgs) -> ToolOutput:
        try:
            tab = ctx.tabs.get(args.tab_id)
        except TabNotFoundError as exc:
            return str(exc)
        return await func(ctx, args, tab)

    return wrapper


# Session and pages


@registry.tool("start-session", "Start a new browser session", StartSessionArgs)
async def start_session(ctx: DispatchContext, args: StartSessionArgs) -> ToolOutput:
    return await ctx.sessions.start(args.profile)


@registry.tool("open-page", "Open a new page in the browser", OpenPageArgs)
async def open_page(ctx: DispatchContext, args: OpenPageArgs) -> ToolOutput:
    if not ctx.sessions.is_active():
        return SESSION_NOT_STARTED

    tab = await ctx.tabs.open(args.url)
    # Give the page time to load before listing its elements.
    await ctx.clock.sleep(ctx.config.page_settle_delay)
    elements = await tab.clickable_elements()
    return ElementListing(
        status=f"Opened page with id: {tab.tab_id} at {args.url}\nClickable elements:",
        elements=elements,
    )


@registry.tool("list-tabs", "List the pages opened in this session with the URL each was opened at", NoArgs)
async def list_tabs(ctx: DispatchContext, args: NoArgs) -> ToolOutput:
    if not ctx.sessions.is_active():
        return SESSION_NOT_STARTED
    tabs = ctx.tabs.all()
    if not tabs:
        return "No open tabs"
    return "Open tabs:\n" + "\n".join(f"[{tab.tab_id}] {tab.url}" for tab in tabs)


# Inspection


@registry.tool("get-clickable-elements", "Get all clickable elements on the current page", TabArgs)
@per_tab
async def get_clickable_elements(ctx: DispatchContext, args: TabArgs, tab: TabHandle) -> ToolOutput:
    elements = await tab.clickable_elements()
    return ElementListing(status=f"Clickable elements on tab {args.tab_id}:", elements=elements)


@registry.tool("get-element-center", "Get the viewport center point of a clickable element", ElementArgs)
@per_tab
async def get_element_center(ctx: DispatchContext, args: ElementArgs, tab: TabHandle) -> ToolOutput:
    x, y = await tab.element_center(args.index)
    return f"Center of element {args.index} on tab {args.tab_id}: ({_num(x)}, {_num(y)})"


@registry.tool("get-dom", "Get the HTML of the current page", TabArgs)
@per_tab
async def get_dom(ctx: DispatchContext, args: TabArgs, tab: TabHandle) -> ToolOutput:
    html = await tab.dom()
    return f"DOM of tab {args.tab_id}:\n{html}"


@registry.tool("screenshot", "Get a screenshot of the current page", TabArgs)
@per_tab
async def screenshot(ctx: DispatchContext, args: TabArgs, tab: TabHandle) -> ToolOutput:
    data = await tab.screenshot(ctx.config.screenshot_width, ctx.config.screenshot_height)
    return Screenshot(caption=f"Screenshot taken in tab {args.tab_id} with data", data=data)


# Interaction


@registry.tool("click-element", "Click an element on the current page by its index", ElementArgs)
@per_tab
async def click_element(ctx: DispatchContext, args: ElementArgs, tab: TabHandle) -> ToolOutput:
    await tab.click_element(args.index)
    return f"Clicked element at index {args.index} on tab {args.tab_id}"


@registry.tool("press-enter", "Press the Enter key on the current page", TabArgs)
@per_tab
async def press_enter(ctx: DispatchContext, args: TabArgs, tab: TabHandle) -> ToolOutput:
    await ctx.input.press_key(tab, KeyCode.ENTER, Modifiers.NONE)
    return f"Pressed Enter on tab {args.tab_id}"


@registry.tool("type", "Type text into the current page", TypeArgs)
@per_tab
async def type_text(ctx: DispatchContext, args: TypeArgs, tab: TabHandle) -> ToolOutput:
    await ctx.input.type_text(tab, args.text)
    return f"Typed text '{args.text}' on tab {args.tab_id}"


@registry.tool("scroll", "Scroll the page", ScrollArgs)
@per_tab
async def scroll(ctx: DispatchContext, args: ScrollArgs, tab: TabHandle) -> ToolOutput:
    await tab.scroll(
        ctx.config.scroll_origin_x, ctx.config.scroll_origin_y, args.delta_x, args.delta_y
    )
    return f"Scrolled page in tab {args.tab_id} by ({_num(args.delta_x)}, {_num(args.delta_y)})"


@registry.tool("mouse-move", "Move the mouse pointer to a position on the page", PointArgs)
@per_tab
async def mouse_move(ctx: DispatchContext, args: PointArgs, tab: TabHandle) -> ToolOutput:
    await tab.mouse_move(args.x, args.y)
    return f"Moved mouse to ({args.x}, {args.y}) on tab {args.tab_id}"


@registry.tool("mouse-click", "Click a mouse button at a position on the page", MouseClickArgs)
@per_tab
async def mouse_click(ctx: DispatchContext, args: MouseClickArgs, tab: TabHandle) -> ToolOutput:
    await tab.mouse_click(args.x, args.y, args.button)
    return f"Clicked {args.button} mouse button at ({args.x}, {args.y}) on tab {args.tab_id}"


@registry.tool("set-input-value", "Set the value of an input element", SetInputValueArgs)
@per_tab
async def set_input_value(ctx: DispatchContext, args: SetInputValueArgs, tab: TabHandle) -> ToolOutput:
    await tab.set_input_value(args.selector, args.value)
    return f"Set value of '{args.selector}' on tab {args.tab_id}"
