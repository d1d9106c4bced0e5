"""Server configuration."""

from typing import Optional

BACKENDS = ("cef", "playwright")


class Config:
    """Server configuration."""

    def __init__(
        self,
        backend: str = "cef",
        provisioning_url: str = "http://localhost:3000",
        request_timeout: float = 30.0,
        page_settle_delay: float = 3.0,
        key_settle_delay: float = 0.1,
        char_delay: float = 0.05,
        screenshot_width: int = 800,
        screenshot_height: int = 600,
        scroll_origin_x: int = 100,
        scroll_origin_y: int = 100,
        headless: bool = True,
        log_level: str = "INFO",
        max_message_size: Optional[int] = 16 * 1024 * 1024,
    ):
        if backend not in BACKENDS:
            raise ValueError(f"Unknown backend {backend!r}, expected one of {', '.join(BACKENDS)}")
        self.backend = backend
        self.provisioning_url = provisioning_url.rstrip("/")
        # Per-call budget of the tool transport; also bounds each HTTP lookup.
        self.request_timeout = request_timeout
        self.page_settle_delay = page_settle_delay
        self.key_settle_delay = key_settle_delay
        self.char_delay = char_delay
        self.screenshot_width = screenshot_width
        self.screenshot_height = screenshot_height
        self.scroll_origin_x = scroll_origin_x
        self.scroll_origin_y = scroll_origin_y
        self.headless = headless
        self.log_level = log_level
        # Screenshots travel over the backend socket, so frames can be large.
        self.max_message_size = max_message_size
