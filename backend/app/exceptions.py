from typing import Any

# JSON-RPC error codes used by MCP
INTERNAL_ERROR = -32603
METHOD_NOT_FOUND = -32601


class ToolError(Exception):
    """Base exception for tool invocation failures."""

    def __init__(self, message: str, code: int = INTERNAL_ERROR, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code

    def to_payload(self) -> dict[str, Any]:
        return {
            "detail": self.message,
            "error": {"code": self.code, "message": self.message},
        }


class ToolExecutionError(ToolError):
    """An operation failed: upstream call, file write, anything but an unknown tool."""

    def __init__(self, message: str):
        super().__init__(message, code=INTERNAL_ERROR, status_code=500)


class ToolNotFoundError(ToolError):
    def __init__(self, tool_name: str):
        super().__init__(f"Unknown tool: {tool_name}", code=METHOD_NOT_FOUND, status_code=404)
        self.tool_name = tool_name


def safe_error_code(e: BaseException) -> str:
    """
    Short identifier for an upstream failure. Aliyun SDK exceptions carry a
    `code` (e.g. "InvalidAccessKeyId.NotFound"); their string form may include
    request ids and signed URLs, which stay out of the logs.
    """
    code = getattr(e, "code", None)
    if isinstance(code, str) and code:
        return code
    return type(e).__name__
