"""Tool host: the registration surface every tool group writes to."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Annotated, Any, Awaitable, Callable, Dict, List, Optional, Sequence, Type

from pydantic import BaseModel, Field, ValidationError

from buildersmcp.docs.schema import ToolResult

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Dict[str, Any]], Awaitable[ToolResult]]
HandlerWrapper = Callable[[str, ToolHandler], ToolHandler]


class DuplicateToolError(ValueError):
    """Raised when a tool name is registered twice on the same host."""


class EmptyParams(BaseModel):
    """Params model for tools that take no arguments."""


@dataclass
class RegisteredTool:
    name: str
    description: str
    params_model: Type[BaseModel]
    handler: ToolHandler


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "arguments"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


class ToolHost:
    """
    In-process tool registry.

    Wrappers are applied to each handler at registration time, in order, so
    cross-cutting concerns (call tracking) see every tool without patching
    the registration method.
    """

    def __init__(self, wrappers: Sequence[HandlerWrapper] = ()):
        self._wrappers = list(wrappers)
        self._tools: Dict[str, RegisteredTool] = {}

    def add_tool(
        self,
        name: str,
        description: str,
        params_model: Optional[Type[BaseModel]],
        handler: ToolHandler,
    ) -> RegisteredTool:
        if name in self._tools:
            raise DuplicateToolError(f"Tool already registered: {name}")

        wrapped = handler
        for wrapper in self._wrappers:
            wrapped = wrapper(name, wrapped)

        tool = RegisteredTool(
            name=name,
            description=description,
            params_model=params_model or EmptyParams,
            handler=wrapped,
        )
        self._publish(tool)
        self._tools[name] = tool
        return tool

    def _publish(self, tool: RegisteredTool) -> None:
        """Hook for subclasses that expose tools on an outer protocol."""

    def has_tool(self, name: str) -> bool:
        return name in self._tools

    def get(self, name: str) -> Optional[RegisteredTool]:
        return self._tools.get(name)

    def names(self) -> List[str]:
        return list(self._tools)

    async def call(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        """Validate ``arguments`` and run the tool. Bad input becomes an error result."""
        tool = self._tools.get(name)
        if tool is None:
            return ToolResult.from_text(f"Unknown tool: {name}", is_error=True)

        try:
            params = tool.params_model.model_validate(arguments or {})
        except ValidationError as exc:
            return ToolResult.from_text(
                f"Invalid arguments for {name}: {_validation_message(exc)}", is_error=True
            )

        return await tool.handler(params.model_dump(by_alias=True, exclude_none=True))


class FastMCPToolHost(ToolHost):
    """
    A ToolHost that also publishes every tool on a FastMCP server.

    FastMCP derives a tool's input schema from the function signature, so one
    is synthesised from the params model (aliases become parameter names).
    Calls are routed back through ``ToolHost.call`` so validation and wrappers
    behave identically in both paths.
    """

    def __init__(self, mcp, wrappers: Sequence[HandlerWrapper] = ()):
        super().__init__(wrappers)
        self.mcp = mcp

    def _publish(self, tool: RegisteredTool) -> None:
        from fastmcp.exceptions import ToolError
        from mcp.types import TextContent

        parameters = []
        annotations: Dict[str, Any] = {}
        for attr, field in tool.params_model.model_fields.items():
            param_name = field.alias or attr
            annotation = field.annotation
            if field.description:
                annotation = Annotated[annotation, Field(description=field.description)]
            default = inspect.Parameter.empty if field.is_required() else field.default
            parameters.append(
                inspect.Parameter(param_name, inspect.Parameter.KEYWORD_ONLY, default=default, annotation=annotation)
            )
            annotations[param_name] = annotation

        host = self
        tool_name = tool.name

        async def _invoke(**kwargs):
            result = await host.call(tool_name, kwargs)
            if result.is_error:
                raise ToolError(result.text)
            return [TextContent(type="text", text=block.as_text()) for block in result.content]

        _invoke.__name__ = tool_name
        _invoke.__doc__ = tool.description
        _invoke.__signature__ = inspect.Signature(parameters)
        _invoke.__annotations__ = annotations

        self.mcp.tool(name=tool.name, description=tool.description)(_invoke)
