from datetime import date
from typing import Any

import structlog
from alibabacloud_bssopenapi20171214 import models as bss_models

from app.exceptions import safe_error_code
from app.models.billing_models import BillingLineItem, DateWindow, PageFailure

log = structlog.get_logger()

DEFAULT_PAGE_SIZE = 300  # DescribeInstanceBill MaxResults ceiling


def _page_items(data: dict[str, Any]) -> list[dict[str, Any]]:
    # Items arrive as a bare list, or wrapped as {"Item": [...]} by older API versions
    items = data.get("Items") or []
    if isinstance(items, dict):
        items = items.get("Item") or []
    return items


class BillingFetcher:
    """
    Collects every billing line item for the last N days.

    Days are fetched one after another and each day is paginated with the
    NextToken returned by DescribeInstanceBill. A failed page ends that day's
    pagination only; the failure is logged and kept in `failures`, and the
    remaining days are still fetched.
    """

    def __init__(self, client, page_size: int = DEFAULT_PAGE_SIZE):
        self.client = client
        self.page_size = page_size
        self.failures: list[PageFailure] = []

    async def fetch(self, days: int, today: date | None = None) -> list[BillingLineItem]:
        window = DateWindow.last_n_days(days, today)
        log.info(
            "billing_fetch_started",
            start=window.start.isoformat(),
            end=window.end.isoformat(),
            billing_cycles=window.billing_cycles(),
        )

        items: list[BillingLineItem] = []
        for day in window.days():
            items.extend(await self.fetch_day(day))

        log.info("billing_fetch_finished", items=len(items), failed_pages=len(self.failures))
        return items

    async def fetch_day(self, day: date) -> list[BillingLineItem]:
        billing_date = day.isoformat()
        billing_cycle = DateWindow.billing_cycle(day)
        items: list[BillingLineItem] = []
        next_token: str | None = None
        page = 1

        while True:
            request = bss_models.DescribeInstanceBillRequest(
                billing_cycle=billing_cycle,
                billing_date=billing_date,
                granularity="DAILY",
                is_billing_item=False,
                max_results=self.page_size,
                next_token=next_token,
            )
            try:
                response = await self.client.describe_instance_bill_async(request)
            except Exception as e:
                # Partial day data already collected stays; this day stops here
                error = safe_error_code(e)
                log.warning("billing_page_failed", billing_date=billing_date, page=page, error=error)
                self.failures.append(PageFailure(billing_date=billing_date, page=page, error=error))
                break

            data = (response.body.to_map() if response.body else {}).get("Data") or {}
            for raw in _page_items(data):
                # The request was for exactly this day
                if not raw.get("BillingDate"):
                    raw = {**raw, "BillingDate": billing_date}
                items.append(BillingLineItem.model_validate(raw))

            next_token = data.get("NextToken") or None
            if not next_token:
                break
            page += 1

        log.debug("billing_day_fetched", billing_date=billing_date, pages=page, items=len(items))
        return items
