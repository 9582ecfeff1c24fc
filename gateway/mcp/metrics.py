"""
MCP Metrics - Prometheus metrics for tool dispatch.

Metrics Design:
- mcp_tool_invocations_total{tool, status}
- mcp_tool_duration_seconds{tool, outcome}
- mcp_tool_timeouts_total{tool}
- mcp_tool_validation_failures_total{tool, error_code}
- mcp_jsonrpc_requests_total{method, outcome}
"""

import structlog
from prometheus_client import Counter, Histogram

logger = structlog.get_logger(__name__)


tool_invocations_total = Counter(
    "mcp_tool_invocations_total",
    "Total MCP tool invocations",
    labelnames=["tool", "status"],
)

tool_duration_seconds = Histogram(
    "mcp_tool_duration_seconds",
    "MCP tool execution duration in seconds",
    labelnames=["tool", "outcome"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
)

tool_timeouts_total = Counter(
    "mcp_tool_timeouts_total",
    "Total MCP tool timeouts",
    labelnames=["tool"],
)

tool_validation_failures_total = Counter(
    "mcp_tool_validation_failures_total",
    "Total MCP tool argument validation failures",
    labelnames=["tool", "error_code"],
)

jsonrpc_requests_total = Counter(
    "mcp_jsonrpc_requests_total",
    "Total JSON-RPC requests handled by the front-end",
    labelnames=["method", "outcome"],
)


class MCPMetricsCollector:
    """Centralized metrics collector for dispatch and protocol events."""

    @staticmethod
    def record_tool_invocation(
        tool: str,
        status: str,  # "success" | "error"
        duration_seconds: float,
        outcome: str,  # "success" | "invalid_arguments" | "timeout" | "handler_failure"
    ):
        tool_invocations_total.labels(tool=tool, status=status).inc()
        tool_duration_seconds.labels(tool=tool, outcome=outcome).observe(duration_seconds)

        logger.debug(
            "Tool invocation metric recorded",
            tool=tool,
            status=status,
            duration_seconds=duration_seconds,
            outcome=outcome,
        )

    @staticmethod
    def record_tool_timeout(tool: str):
        tool_timeouts_total.labels(tool=tool).inc()

    @staticmethod
    def record_validation_failure(tool: str, error_code: str):
        tool_validation_failures_total.labels(tool=tool, error_code=error_code).inc()

    @staticmethod
    def record_request(method: str, outcome: str):
        """Record one JSON-RPC request; outcome is "ok" or an ErrorCode value."""
        jsonrpc_requests_total.labels(method=method, outcome=outcome).inc()


# Global collector instance
metrics_collector = MCPMetricsCollector()
