import pytest

from cef_mcp.backends import KeyCode, Modifiers
from cef_mcp.backends.playwright_cdp import PlaywrightConnection, key_name
from cef_mcp.content import ClickableElement
from cef_mcp.errors import BackendError


class FakeKeyboard:
    def __init__(self, log):
        self.log = log

    async def down(self, key):
        self.log.append(("down", key))

    async def up(self, key):
        self.log.append(("up", key))

    async def type(self, text):
        self.log.append(("type", text))


class FakeMouse:
    def __init__(self, log):
        self.log = log

    async def move(self, x, y):
        self.log.append(("move", x, y))

    async def wheel(self, delta_x, delta_y):
        self.log.append(("wheel", delta_x, delta_y))

    async def click(self, x, y, button="left"):
        self.log.append(("click", x, y, button))


class FakePage:
    def __init__(self):
        self.log = []
        self.keyboard = FakeKeyboard(self.log)
        self.mouse = FakeMouse(self.log)
        self.url = "about:blank"
        self.timeout = None
        self.evaluate_results = []
        self.goto_error = None
        self.closed = False

    def set_default_timeout(self, timeout):
        self.timeout = timeout

    async def goto(self, url):
        if self.goto_error is not None:
            raise self.goto_error
        self.url = url

    async def close(self):
        self.closed = True

    async def evaluate(self, script, *args):
        self.log.append(("evaluate", args))
        return self.evaluate_results.pop(0)

    async def set_viewport_size(self, size):
        self.log.append(("viewport", size["width"], size["height"]))

    async def screenshot(self, type="png"):
        return b"png-bytes"

    async def fill(self, selector, value):
        self.log.append(("fill", selector, value))

    async def content(self):
        return "<html></html>"


class FakeContext:
    def __init__(self):
        self.pages = []
        self.closed = False
        self.goto_error = None

    async def new_page(self):
        page = FakePage()
        page.goto_error = self.goto_error
        self.pages.append(page)
        return page

    async def close(self):
        self.closed = True


class FakeBrowser:
    closed = False

    async def close(self):
        self.closed = True


class FakePlaywright:
    stopped = False

    async def stop(self):
        self.stopped = True


@pytest.fixture
def browser_context():
    return FakeContext()


@pytest.fixture
def connection(browser_context):
    return PlaywrightConnection(FakePlaywright(), FakeBrowser(), browser_context, timeout=30.0)


def test_key_names():
    assert key_name(KeyCode.ENTER) == "Enter"
    assert key_name(13) == "Enter"
    assert key_name(65) == "A"
    assert key_name(KeyCode.DOWN) == "ArrowDown"
    with pytest.raises(ValueError):
        key_name(255)


@pytest.mark.asyncio
async def test_open_tab_assigns_ids(connection, browser_context):
    first = await connection.open_tab("https://example.com")
    second = await connection.open_tab("https://example.org")

    assert first != second
    assert [page.url for page in browser_context.pages] == ["https://example.com", "https://example.org"]
    assert browser_context.pages[0].timeout == 30000


@pytest.mark.asyncio
async def test_failed_navigation_closes_page(connection, browser_context):
    browser_context.goto_error = RuntimeError("net::ERR_NAME_NOT_RESOLVED")

    with pytest.raises(RuntimeError):
        await connection.open_tab("https://unreachable.invalid")

    assert len(browser_context.pages) == 1
    assert browser_context.pages[0].closed

    browser_context.goto_error = None
    tab_id = await connection.open_tab("https://example.com")
    assert await connection.dom(tab_id) == "<html></html>"


@pytest.mark.asyncio
async def test_unknown_tab_raises(connection):
    with pytest.raises(BackendError):
        await connection.dom(99)


@pytest.mark.asyncio
async def test_key_events_wrap_modifiers(connection, browser_context):
    tab_id = await connection.open_tab("https://example.com")
    page = browser_context.pages[0]

    await connection.key_event(tab_id, KeyCode.TAB, Modifiers.SHIFT | Modifiers.CONTROL, True)
    await connection.key_event(tab_id, KeyCode.TAB, Modifiers.SHIFT | Modifiers.CONTROL, False)

    assert page.log == [
        ("down", "Shift"),
        ("down", "Control"),
        ("down", "Tab"),
        ("up", "Tab"),
        ("up", "Control"),
        ("up", "Shift"),
    ]


@pytest.mark.asyncio
async def test_char_event_types_code_point(connection, browser_context):
    tab_id = await connection.open_tab("https://example.com")

    await connection.char_event(tab_id, 0x1F600)

    assert browser_context.pages[0].log == [("type", "😀")]


@pytest.mark.asyncio
async def test_clickable_elements_are_numbered(connection, browser_context):
    tab_id = await connection.open_tab("https://example.com")
    browser_context.pages[0].evaluate_results.append(
        [{"tag": "a", "text": "Home"}, {"tag": "button", "text": "Go"}]
    )

    elements = await connection.clickable_elements(tab_id)

    assert elements == [
        ClickableElement(index=0, tag="a", text="Home"),
        ClickableElement(index=1, tag="button", text="Go"),
    ]


@pytest.mark.asyncio
async def test_click_element_clicks_center(connection, browser_context):
    tab_id = await connection.open_tab("https://example.com")
    page = browser_context.pages[0]
    page.evaluate_results.append({"x": 50, "y": 75})

    await connection.click_element(tab_id, 3)

    assert page.log == [("evaluate", (3,)), ("click", 50, 75, "left")]


@pytest.mark.asyncio
async def test_missing_element_raises(connection, browser_context):
    tab_id = await connection.open_tab("https://example.com")
    browser_context.pages[0].evaluate_results.append(None)

    with pytest.raises(BackendError):
        await connection.element_center(tab_id, 8)


@pytest.mark.asyncio
async def test_screenshot_sets_capture_size(connection, browser_context):
    tab_id = await connection.open_tab("https://example.com")

    data = await connection.screenshot(tab_id, 800, 600)

    assert data == b"png-bytes"
    assert browser_context.pages[0].log == [("viewport", 800, 600)]


@pytest.mark.asyncio
async def test_scroll_moves_then_wheels(connection, browser_context):
    tab_id = await connection.open_tab("https://example.com")

    await connection.scroll(tab_id, 100, 100, 0, 250)

    assert browser_context.pages[0].log == [("move", 100, 100), ("wheel", 0, 250)]


@pytest.mark.asyncio
async def test_close_shuts_everything_down(browser_context):
    playwright, browser = FakePlaywright(), FakeBrowser()
    connection = PlaywrightConnection(playwright, browser, browser_context)

    await connection.close()

    assert browser_context.closed
    assert browser.closed
    assert playwright.stopped
