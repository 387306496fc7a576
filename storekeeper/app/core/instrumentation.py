"""
Tool-call instrumentation: structured logs and Prometheus metrics around a
single tool invocation. Services stay free of logging; the dispatcher wraps
each call in `instrument_tool`.
"""
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from storekeeper.app.core.logging import get_logger, bind_request_context
from storekeeper.app.core.metrics import tool_calls_total, tool_call_duration_seconds

logger = get_logger(__name__)

OUTCOME_OK = "ok"
OUTCOME_SOFT_FAILURE = "soft_failure"
OUTCOME_ERROR = "error"


class ToolCall:
    """Outcome holder filled in by the dispatcher while the call runs."""

    def __init__(self, server: str, tool: str):
        self.server = server
        self.tool = tool
        self.outcome = OUTCOME_OK
        self.error: Optional[str] = None
        self.summary: dict[str, Any] = {}

    def succeeded(self, result: Any) -> None:
        if result is None or (isinstance(result, dict) and result.get("success") is False):
            self.outcome = OUTCOME_SOFT_FAILURE
        if isinstance(result, list):
            self.summary["result_count"] = len(result)
        elif isinstance(result, dict) and "message" in result:
            self.summary["result_message"] = result["message"]

    def failed(self, error: str) -> None:
        self.outcome = OUTCOME_ERROR
        self.error = error


@asynccontextmanager
async def instrument_tool(server: str, tool: str, arguments: Any = None, **context: Any) -> AsyncIterator[ToolCall]:
    bind_request_context(server=server, tool=tool, **context)
    call = ToolCall(server, tool)
    logger.info("Tool called", arguments=arguments)
    start = time.perf_counter()
    try:
        yield call
    except Exception as e:
        call.failed(str(e) or type(e).__name__)
        raise
    finally:
        duration = time.perf_counter() - start
        tool_calls_total.labels(server=server, tool=tool, outcome=call.outcome).inc()
        tool_call_duration_seconds.labels(server=server, tool=tool).observe(duration)
        if call.outcome == OUTCOME_ERROR:
            logger.warning("Tool failed", error=call.error, duration_ms=round(duration * 1000, 2))
        else:
            logger.info(
                "Tool completed",
                outcome=call.outcome,
                duration_ms=round(duration * 1000, 2),
                **call.summary,
            )
