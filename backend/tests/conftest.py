import os

# Test credentials must exist before app.main is imported
os.environ.setdefault("ALIBABA_CLOUD_ACCESS_KEY_ID", "test-access-key-id")
os.environ.setdefault("ALIBABA_CLOUD_ACCESS_KEY_SECRET", "test-access-key-secret")
os.environ.setdefault("LOG_JSON", "false")

from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest


def sdk_response(body: dict | None):
    """Mimic a Tea SDK response whose body exposes to_map()."""
    if body is None:
        return SimpleNamespace(body=None)
    return SimpleNamespace(body=SimpleNamespace(to_map=lambda: body))


def bill_page(items: list[dict], next_token: str | None = None):
    data = {"Items": items}
    if next_token:
        data["NextToken"] = next_token
    return sdk_response({"Code": "Success", "Data": data})


def bill_item(billing_date: str, product: str | None, gross: float, **discounts) -> dict:
    item = {"BillingDate": billing_date, "PretaxGrossAmount": gross}
    if product is not None:
        item["ProductCode"] = product
    item.update(discounts)
    return item


class FakeBillingClient:
    """Serves DescribeInstanceBill pages keyed by (billing_date, next_token)."""

    def __init__(self, pages: dict[tuple[str, str | None], object] | None = None):
        self.pages = pages or {}
        self.requests = []
        self.describe_instance_bill_async = AsyncMock(side_effect=self._serve)

    async def _serve(self, request):
        self.requests.append(request)
        page = self.pages.get((request.billing_date, request.next_token))
        if isinstance(page, Exception):
            raise page
        return page if page is not None else bill_page([])


class FakeClientFactory:
    def __init__(self, billing=None, ecs=None):
        self.billing_client = billing or FakeBillingClient()
        self.ecs_client = ecs
        self.ecs_regions = []

    def billing(self):
        return self.billing_client

    def ecs(self, region):
        self.ecs_regions.append(region)
        return self.ecs_client


@pytest.fixture
def today() -> date:
    return date(2024, 3, 2)


@pytest.fixture
def settings(tmp_path):
    from app.config import Settings
    return Settings(
        alibaba_cloud_access_key_id="test-access-key-id",
        alibaba_cloud_access_key_secret="test-access-key-secret",
        export_base_dir=tmp_path,
    )


@pytest.fixture(autouse=True)
def disable_rate_limiting():
    from app.main import limiter
    limiter.enabled = False
    yield
    limiter.enabled = True
