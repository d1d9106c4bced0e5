"""Tool registry and dispatcher."""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel, ValidationError

from cef_mcp.content import ContentBlock, ToolOutput, encode_result
from cef_mcp.context import DispatchContext
from cef_mcp.errors import DuplicateToolError, ToolValidationError, UnknownToolError

logger = logging.getLogger(__name__)

Handler = Callable[[DispatchContext, Any], Awaitable[ToolOutput]]


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    schema: Type[BaseModel]
    handler: Handler

    def input_schema(self) -> Dict[str, Any]:
        return self.schema.model_json_schema()


def _field_path(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "<root>"


class ToolRegistry:
    """Binds tool names to argument schemas and handlers."""

    def __init__(self) -> None:
        self._tools: Dict[str, ToolDescriptor] = {}

    def register(
        self, name: str, description: str, schema: Type[BaseModel], handler: Handler
    ) -> ToolDescriptor:
        if name in self._tools:
            raise DuplicateToolError(name)
        descriptor = ToolDescriptor(name, description, schema, handler)
        self._tools[name] = descriptor
        return descriptor

    def tool(self, name: str, description: str, schema: Type[BaseModel]):
        """Decorator form of :meth:`register`."""

        def decorator(handler: Handler) -> Handler:
            self.register(name, description, schema, handler)
            return handler

        return decorator

    def get(self, name: str) -> ToolDescriptor:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name) from None

    def list(self) -> List[ToolDescriptor]:
        return list(self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def validate(self, descriptor: ToolDescriptor, raw_args: Optional[Mapping[str, Any]]) -> BaseModel:
        try:
            return descriptor.schema.model_validate(dict(raw_args or {}))
        except ValidationError as exc:
            errors = exc.errors()
            fields = [_field_path(err["loc"]) for err in errors]
            details = [f"{_field_path(err['loc'])}: {err['msg']}" for err in errors]
            raise ToolValidationError(descriptor.name, fields, details) from exc

    async def dispatch(
        self,
        name: str,
        raw_args: Optional[Mapping[str, Any]],
        context: DispatchContext,
    ) -> List[ContentBlock]:
        """Validate, run the handler under the session lock, encode.

        Handler exceptions are not caught here.
        """
        descriptor = self.get(name)
        args = self.validate(descriptor, raw_args)
        logger.debug("Dispatching %s with %s", name, args)
        async with context.lock:
            output = await descriptor.handler(context, args)
        return encode_result(output)
