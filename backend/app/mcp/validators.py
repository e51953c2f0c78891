from typing import Any

import structlog
from jsonschema import Draft202012Validator

from app.exceptions import ToolNotFoundError
from .tools import TOOLS_BY_NAME

log = structlog.get_logger()


def normalize_tool_arguments(tool_name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    """
    Keep only the arguments that satisfy their property schema.

    Out-of-range or wrongly typed values are dropped rather than rejected, so
    the caller falls back to the documented default. Unknown arguments are
    ignored. Integral floats (7.0) are narrowed to int.
    """
    tool = TOOLS_BY_NAME.get(tool_name)
    if not tool:
        raise ToolNotFoundError(tool_name)

    normalized: dict[str, Any] = {}
    for name, schema in tool["inputSchema"]["properties"].items():
        if name not in arguments:
            continue
        value = arguments[name]
        if not Draft202012Validator(schema).is_valid(value):
            log.warning("tool_argument_defaulted", tool=tool_name, argument=name, value=repr(value)[:80])
            continue
        if schema.get("type") == "integer":
            value = int(value)
        normalized[name] = value
    return normalized
