# MCP tool definitions with complete inputSchema per tool.

DEFAULT_REGION = "cn-hangzhou"
DEFAULT_PAGE_SIZE = 100
DEFAULT_DAYS = 7
DEFAULT_OUTPUT_PATH = "exported/aliyun_billing_report.html"

_DAYS_SCHEMA = {
    "type": "integer",
    "description": "Number of past days to fetch billing for (1-30)",
    "minimum": 1,
    "maximum": 30,
    "default": DEFAULT_DAYS,
}

ALIYUN_TOOLS: list[dict] = [
    {
        "name": "list_instances",
        "description": "List Aliyun ECS instances",
        "inputSchema": {
            "type": "object",
            "properties": {
                "region": {
                    "type": "string",
                    "description": "Aliyun region ID",
                    "pattern": r"\S",
                    "default": DEFAULT_REGION,
                },
                "pageSize": {
                    "type": "integer",
                    "description": "Number of instances per page",
                    "minimum": 1,
                    "maximum": 100,
                    "default": DEFAULT_PAGE_SIZE,
                },
            },
            "required": [],
        },
    },
    {
        "name": "get_billing_info",
        "description": (
            "Get detailed daily Aliyun billing breakdown (original, discount, actual) "
            "for the last N days, aggregated by date and product code."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "days": _DAYS_SCHEMA,
            },
            "required": [],
        },
    },
    {
        "name": "export_billing_report",
        "description": (
            "Fetch detailed Aliyun billing data (original, discount, actual) and export it "
            "as an HTML report styled with Tailwind CSS."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "days": _DAYS_SCHEMA,
                "output_path": {
                    "type": "string",
                    "description": "Path to save the HTML report file (relative to the export directory).",
                    "pattern": r"\S",
                    "default": DEFAULT_OUTPUT_PATH,
                },
            },
            "required": [],
        },
    },
]

# Quick lookup by name
TOOLS_BY_NAME: dict[str, dict] = {t["name"]: t for t in ALIYUN_TOOLS}
