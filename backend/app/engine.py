from typing import Any

import structlog

from app.aliyun.clients import AliyunClientFactory
from app.billing.aggregator import aggregate_billing_items, to_jsonable
from app.billing.fetcher import BillingFetcher
from app.billing.report import render_billing_report, write_report
from app.config import Settings
from app.ecs.instances import list_instances
from app.exceptions import ToolError, ToolExecutionError, ToolNotFoundError
from app.mcp.tools import DEFAULT_DAYS, DEFAULT_OUTPUT_PATH, DEFAULT_PAGE_SIZE
from app.models.billing_models import AggregatedBillingData

log = structlog.get_logger()


class ToolEngine:
    """
    Runs one tool capability against Aliyun.

    Arguments are expected to be normalised already; anything missing takes
    its default here. Each call builds its own clients and accumulators.
    Results are JSON-ready dicts, or a plain string for the export.
    """

    def __init__(self, settings: Settings, clients: AliyunClientFactory | None = None):
        self.settings = settings
        self.clients = clients or AliyunClientFactory(settings)

    async def execute(self, capability: str, arguments: dict[str, Any]) -> dict[str, Any] | str:
        handlers = {
            "list_instances": (self.list_instances, "Failed to list ECS instances"),
            "billing_details": (self.billing_details, "Failed to get billing info"),
            "billing_report_export": (self.export_billing_report, "Failed to export billing report"),
        }
        if capability not in handlers:
            raise ToolNotFoundError(capability)

        handler, failure_prefix = handlers[capability]
        try:
            return await handler(arguments)
        except ToolError:
            raise
        except Exception as e:
            log.error("tool_execution_failed", capability=capability, error=type(e).__name__)
            raise ToolExecutionError(f"{failure_prefix}: {e}") from e

    async def list_instances(self, arguments: dict[str, Any]) -> dict[str, Any]:
        region = arguments.get("region") or self.settings.alibaba_cloud_region
        page_size = arguments.get("pageSize", DEFAULT_PAGE_SIZE)
        result = await list_instances(self.clients.ecs(region), region, page_size)
        return result.model_dump(by_alias=True)

    async def fetch_billing(self, days: int) -> AggregatedBillingData:
        fetcher = BillingFetcher(self.clients.billing(), page_size=self.settings.billing_page_size)
        items = await fetcher.fetch(days)
        if fetcher.failures:
            log.warning(
                "billing_fetch_incomplete",
                failed_dates=sorted({f.billing_date for f in fetcher.failures}),
            )
        return aggregate_billing_items(items)

    async def billing_details(self, arguments: dict[str, Any]) -> dict[str, Any]:
        days = arguments.get("days", DEFAULT_DAYS)
        return to_jsonable(await self.fetch_billing(days))

    async def export_billing_report(self, arguments: dict[str, Any]) -> str:
        days = arguments.get("days", DEFAULT_DAYS)
        output_path = arguments.get("output_path", DEFAULT_OUTPUT_PATH)

        html = render_billing_report(await self.fetch_billing(days))
        target = write_report(html, output_path, self.settings.export_base_dir)
        return f"Successfully exported billing report to: {target}"
