"""
MCP Dispatcher - Resolve, validate and execute tool calls.

One call runs these steps in order and stops at the first failure:
1. Resolve the tool in the registry (ToolNotFoundError)
2. Validate arguments against the declared parameters (InvalidArgumentsError)
3. Invoke the handler with the validated, default-filled arguments
4. Bound the handler by its deadline (ToolTimeoutError)
5. Wrap handler exceptions (HandlerFailureError)
6. Wrap the handler output into a ToolCallResult

A handler runs at most once per call; retry policy belongs to the caller.
"""

import asyncio
import inspect
import json
import time
from typing import Any, Dict, Optional
from uuid import uuid4

import structlog

from .errors import (
    HandlerFailureError,
    InvalidArgumentsError,
    SchemaViolation,
    ToolNotFoundError,
    ToolTimeoutError,
)
from .metrics import metrics_collector
from .protocol import ErrorCode, TextContent, ToolCallResult
from .registry import ToolHandler, ToolRegistry
from .schema import validate_arguments
from .tool import ToolDefinition

logger = structlog.get_logger(__name__)


class Dispatcher:
    """Executes tool calls against one registry snapshot."""

    def __init__(
        self,
        registry: ToolRegistry,
        default_timeout_seconds: float = 30.0,
        strict_arguments: bool = False,
    ) -> None:
        """
        Initialize dispatcher.

        Args:
            registry: Registry to resolve tools from (read-only from here on)
            default_timeout_seconds: Deadline for tools without their own
            strict_arguments: Reject argument keys a schema does not declare
        """
        if default_timeout_seconds <= 0:
            raise ValueError("default_timeout_seconds must be positive")
        self.registry = registry
        self.default_timeout_seconds = default_timeout_seconds
        self.strict_arguments = strict_arguments

    async def call(
        self,
        tool_name: str,
        arguments: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> ToolCallResult:
        """
        Execute one tool call.

        Args:
            tool_name: Registered tool name
            arguments: Raw argument object (None means no arguments)
            timeout: Deadline in seconds, overriding tool and gateway defaults

        Returns:
            ToolCallResult with the handler output as content

        Raises:
            ToolNotFoundError, InvalidArgumentsError, ToolTimeoutError,
            HandlerFailureError
        """
        invocation_id = str(uuid4())
        log = logger.bind(tool=tool_name, invocation_id=invocation_id)

        try:
            tool = self.registry.get(tool_name)
        except ToolNotFoundError:
            log.warning("Requested MCP tool not found")
            raise

        started = time.perf_counter()
        log.info("Tool invocation started", provider=tool.provider)

        try:
            validated = self._validate(tool.definition, arguments)
        except InvalidArgumentsError as exc:
            log.warning("Tool invocation failed: invalid arguments", error=exc.reason, field=exc.field)
            metrics_collector.record_validation_failure(tool_name, ErrorCode.INVALID_ARGUMENTS.value)
            self._record(tool_name, started, "invalid_arguments")
            raise

        deadline = self._resolve_timeout(tool.definition, timeout)

        try:
            output = await self._run_with_deadline(tool_name, tool.handler, validated, deadline)
        except ToolTimeoutError:
            log.warning("Tool timed out", timeout_seconds=deadline)
            metrics_collector.record_tool_timeout(tool_name)
            self._record(tool_name, started, "timeout")
            raise
        except HandlerFailureError as exc:
            log.warning("Tool invocation failed: handler error", error=exc.message)
            self._record(tool_name, started, "handler_failure")
            if exc.tool_name is None:
                exc.tool_name = tool_name
                exc.details.setdefault("tool", tool_name)
            raise
        except Exception as exc:
            log.error(
                "Tool invocation failed: execution error",
                error=str(exc),
                exc_type=type(exc).__name__,
                exc_info=True,
            )
            self._record(tool_name, started, "handler_failure")
            raise HandlerFailureError(
                f"Tool '{tool_name}' failed: {exc}",
                tool_name=tool_name,
                details={"exc_type": type(exc).__name__, "reason": str(exc)},
            ) from exc

        try:
            result = self._wrap_output(tool_name, output)
        except HandlerFailureError as exc:
            log.warning("Tool invocation failed: unserializable output", error=exc.message)
            self._record(tool_name, started, "handler_failure")
            raise

        duration_ms = self._record(tool_name, started, "success")
        log.info("Tool invocation succeeded", duration_ms=duration_ms)
        return result

    def _validate(self, definition: ToolDefinition, arguments: Any) -> Dict[str, Any]:
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise InvalidArgumentsError("arguments must be a JSON object", tool_name=definition.name)
        try:
            return validate_arguments(definition.parameters, arguments, strict=self.strict_arguments)
        except SchemaViolation as violation:
            raise InvalidArgumentsError(
                str(violation),
                tool_name=definition.name,
                field=violation.path or None,
            ) from violation

    def _resolve_timeout(self, definition: ToolDefinition, timeout: Optional[float]) -> float:
        if timeout is not None:
            if timeout <= 0:
                raise ValueError("timeout must be positive")
            return timeout
        if definition.timeout_ms is not None:
            return definition.timeout_ms / 1000
        return self.default_timeout_seconds

    async def _run_with_deadline(
        self,
        tool_name: str,
        handler: ToolHandler,
        arguments: Dict[str, Any],
        deadline: float,
    ) -> Any:
        task = asyncio.ensure_future(self._invoke(handler, arguments))
        try:
            done, _ = await asyncio.wait({task}, timeout=deadline)
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task not in done:
            # Do not await the cancelled task: a handler that ignores
            # cancellation must not hold the caller past its deadline.
            task.cancel()
            task.add_done_callback(_consume_outcome)
            raise ToolTimeoutError(tool_name, deadline)

        return task.result()

    @staticmethod
    async def _invoke(handler: ToolHandler, arguments: Dict[str, Any]) -> Any:
        if inspect.iscoroutinefunction(handler) or inspect.iscoroutinefunction(
            getattr(handler, "__call__", None)
        ):
            return await handler(arguments)

        output = await asyncio.to_thread(handler, arguments)
        if inspect.isawaitable(output):
            output = await output
        return output

    @staticmethod
    def _wrap_output(tool_name: str, output: Any) -> ToolCallResult:
        if isinstance(output, ToolCallResult):
            return output
        if isinstance(output, str):
            return ToolCallResult(content=[TextContent(text=output)])
        try:
            text = json.dumps(output, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise HandlerFailureError(
                f"Tool '{tool_name}' returned a non-JSON result",
                tool_name=tool_name,
                details={"exc_type": type(exc).__name__, "reason": str(exc)},
            ) from exc
        return ToolCallResult(content=[TextContent(text=text)])

    @staticmethod
    def _record(tool_name: str, started: float, outcome: str) -> float:
        duration = time.perf_counter() - started
        metrics_collector.record_tool_invocation(
            tool=tool_name,
            status="success" if outcome == "success" else "error",
            duration_seconds=duration,
            outcome=outcome,
        )
        return duration * 1000


def _consume_outcome(task: "asyncio.Future[Any]") -> None:
    if not task.cancelled():
        task.exception()
