from .tools import ALIYUN_TOOLS, TOOLS_BY_NAME

# Tool name → internal capability name.
TOOL_CAPABILITY_MAP: dict[str, str] = {
    "list_instances":        "list_instances",
    "get_billing_info":      "billing_details",
    "export_billing_report": "billing_report_export",
}


class MCPProtocolHandler:
    def get_tools_list(self) -> list[dict]:
        return ALIYUN_TOOLS

    def tool_exists(self, tool_name: str) -> bool:
        return tool_name in TOOLS_BY_NAME

    def map_to_capability(self, tool_name: str) -> str:
        return TOOL_CAPABILITY_MAP.get(tool_name, tool_name)


mcp_handler = MCPProtocolHandler()
