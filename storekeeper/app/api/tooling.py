"""
Named tool dispatch shared by the cart and inventory routers.

A tool is an input schema plus an async handler. `ToolRegistry.call` validates
the raw payload, runs the handler inside `instrument_tool`, and renders the
outcome as a text envelope. Failures never escape as HTTP errors: they come
back as `Error: ...` text with isError set.
"""
import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from fastapi import HTTPException
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storekeeper.app.core.constants import SERVER_VERSION
from storekeeper.app.core.exceptions import ServiceError
from storekeeper.app.core.instrumentation import instrument_tool
from storekeeper.app.core.logging import get_logger
from storekeeper.app.schemas import TextContent, ToolDescription, ToolListResponse, ToolResponse

logger = get_logger(__name__)

STORE_ERROR_TEXT = "Internal store error"
INTERNAL_ERROR_TEXT = "Internal error"

Handler = Callable[..., Awaitable[Any]]


@dataclass
class Tool:
    name: str
    description: str
    input_model: Type[BaseModel]
    handler: Handler
    # Text rendered when the handler returns None (point lookups)
    none_text: Optional[str] = None


def text_response(text: str, is_error: bool = False) -> ToolResponse:
    return ToolResponse(content=[TextContent(text=text)], isError=is_error)


def error_response(message: str) -> ToolResponse:
    return text_response(f"Error: {message}", is_error=True)


async def _rollback(session: AsyncSession) -> None:
    try:
        await session.rollback()
    except Exception:
        logger.exception("Rollback failed")


def format_validation_error(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "input"
        parts.append(f"{loc}: {err.get('msg')}")
    return "Invalid input - " + "; ".join(parts)


class ToolRegistry:
    """Tools of one server, keyed by tool name."""

    def __init__(self, server: str, service_factory: Callable[[AsyncSession], Any]):
        self.server = server
        self.service_factory = service_factory
        self._tools: Dict[str, Tool] = {}

    def tool(self, name: str, input_model: Type[BaseModel], description: str, none_text: Optional[str] = None):
        def register(handler: Handler) -> Handler:
            if name in self._tools:
                raise ValueError(f"Tool {name!r} is already registered on {self.server}")
            self._tools[name] = Tool(name, description, input_model, handler, none_text)
            return handler
        return register

    def get(self, name: str) -> Tool:
        tool = self._tools.get(name)
        if tool is None:
            raise HTTPException(status_code=404, detail=f"Unknown tool: {name}")
        return tool

    @property
    def names(self) -> List[str]:
        return list(self._tools)

    def describe(self) -> ToolListResponse:
        return ToolListResponse(
            server=self.server,
            version=SERVER_VERSION,
            tools=[
                ToolDescription(
                    name=t.name,
                    description=t.description,
                    inputSchema=t.input_model.model_json_schema(by_alias=True),
                )
                for t in self._tools.values()
            ],
        )

    async def call(self, name: str, raw: Any, session: AsyncSession, **context: Any) -> ToolResponse:
        """
        Run one tool call.

        `context` carries request-scoped values resolved at the boundary
        (user_id for the cart); it is logged and passed to the handler.
        """
        tool = self.get(name)
        async with instrument_tool(self.server, tool.name, arguments=raw, **context) as call:
            try:
                data = tool.input_model.model_validate(raw if raw is not None else {})
            except ValidationError as e:
                message = format_validation_error(e)
                call.failed(message)
                return error_response(message)

            try:
                result = await tool.handler(self.service_factory(session), data, **context)
            except ServiceError as e:
                await _rollback(session)
                call.failed(e.message)
                return error_response(e.message)
            except SQLAlchemyError as e:
                # Driver messages can carry SQL and bound values; keep them in the log only
                await _rollback(session)
                logger.exception("Store error during tool call")
                call.failed(type(e).__name__)
                return error_response(STORE_ERROR_TEXT)
            except Exception as e:
                await _rollback(session)
                logger.exception("Unexpected tool error")
                call.failed(type(e).__name__)
                return error_response(INTERNAL_ERROR_TEXT)

            call.succeeded(result)
            if result is None:
                return text_response(tool.none_text or "null")
            return text_response(json.dumps(result, indent=2, ensure_ascii=False, default=str))
