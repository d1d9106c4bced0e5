"""Exceptions raised by the dispatch layer."""

from typing import List, Sequence


class CefMcpError(Exception):
    """Base class for all server errors."""


class DuplicateToolError(CefMcpError):
    def __init__(self, name: str):
        super().__init__(f"Tool already registered: {name}")
        self.name = name


class UnknownToolError(CefMcpError):
    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class ToolValidationError(CefMcpError):
    """Arguments did not match a tool's schema.

    ``fields`` lists the dotted paths of the offending arguments, in the
    order the validator reported them.
    """

    def __init__(self, tool: str, fields: Sequence[str], details: Sequence[str]):
        self.tool = tool
        self.fields: List[str] = list(fields)
        self.details: List[str] = list(details)
        summary = "; ".join(self.details) if self.details else "invalid arguments"
        super().__init__(f"Invalid arguments for tool {tool}: {summary}")


class TabNotFoundError(CefMcpError):
    """No tab is registered under the requested identifier.

    Handlers turn this into a plain text result; it never reaches the
    transport.
    """

    def __init__(self, tab_id: int):
        super().__init__(f"No tab found with ID {tab_id}")
        self.tab_id = tab_id


class ProvisioningError(CefMcpError):
    """The provisioning endpoint could not be reached at all."""


class BackendError(CefMcpError):
    """The browser backend answered a command with an error."""

    def __init__(self, method: str, message: str):
        super().__init__(f"Backend command {method} failed: {message}")
        self.method = method
