import json

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config import Settings, get_settings
from app.engine import ToolEngine
from app.exceptions import ToolError, ToolNotFoundError
from app.logging_config import configure_logging
from app.models.billing_models import (
    MCPToolCallRequest,
    MCPToolCallResponse,
    MCPToolsListResponse,
    HealthResponse,
)
from app.mcp.server import mcp_handler
from app.mcp.validators import normalize_tool_arguments

# Missing credentials stop the process here, before anything is served
settings = get_settings()
configure_logging(settings)

log = structlog.get_logger()

# ── Rate limiter ──────────────────────────────────────────────────────────────

def _get_user_identity(request: Request) -> str:
    """
    Identify the caller for rate limiting.
    Priority:
      1. X-Forwarded-For first hop, set by a fronting load balancer
      2. direct remote addr fallback (local dev)
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


limiter = Limiter(key_func=_get_user_identity)

# ── App ───────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="Aliyun Manager MCP Backend",
    description="FastAPI + MCP server for Aliyun ECS inventory and billing reports",
    version="1.0.0",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins_list,
    allow_credentials=True,
    allow_methods=["POST", "GET"],
    allow_headers=["*"],
)


@app.exception_handler(ToolError)
async def tool_error_handler(request: Request, exc: ToolError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def get_tool_engine(settings: Settings = Depends(get_settings)) -> ToolEngine:
    return ToolEngine(settings)


# ── MCP endpoints ─────────────────────────────────────────────────────────────

@app.post("/mcp/tools/list", response_model=MCPToolsListResponse)
async def mcp_list_tools():
    """MCP: return the Aliyun tools with their JSON schemas."""
    return MCPToolsListResponse(tools=mcp_handler.get_tools_list())


@app.post("/mcp/tools/call", response_model=MCPToolCallResponse)
@limiter.limit(f"{settings.rate_limit_per_hour}/hour")
async def mcp_call_tool(
    request: Request,
    body: MCPToolCallRequest,
    engine: ToolEngine = Depends(get_tool_engine),
):
    """MCP: normalise arguments and execute a tool, return result in MCP format."""
    tool_name = body.name

    if not mcp_handler.tool_exists(tool_name):
        raise ToolNotFoundError(tool_name)

    arguments = normalize_tool_arguments(tool_name, body.arguments)

    capability = mcp_handler.map_to_capability(tool_name)

    log.info("mcp_tool_call", tool=tool_name, capability=capability)

    result = await engine.execute(capability, arguments)
    text = result if isinstance(result, str) else json.dumps(result, indent=2, default=str)

    return MCPToolCallResponse(content=[{"type": "text", "text": text}])


# ── Health ────────────────────────────────────────────────────────────────────

@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(
        status="healthy",
        service="aliyun-manager-mcp",
    )


@app.get("/")
async def root():
    return {
        "service": "aliyun-manager-mcp backend",
        "docs": "/docs",
        "health": "/health",
        "mcp_tools": "/mcp/tools/list",
    }
