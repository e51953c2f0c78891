import json
from datetime import date
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient, ASGITransport

from app.engine import ToolEngine
from app.main import app, get_tool_engine
from conftest import FakeBillingClient, FakeClientFactory, bill_item, bill_page, sdk_response


@pytest.fixture
def factory():
    today = date.today().isoformat()
    ecs = AsyncMock()
    ecs.describe_instances_async.return_value = sdk_response({"Instances": {"Instance": [{"InstanceId": "i-1"}]}})
    billing = FakeBillingClient({
        (today, None): bill_page([bill_item(today, "ecs", 12.5, DeductedByPrepaidCard=2.5)]),
    })
    return FakeClientFactory(billing=billing, ecs=ecs)


@pytest.fixture
def engine_override(settings, factory):
    app.dependency_overrides[get_tool_engine] = lambda: ToolEngine(settings, factory)
    yield
    app.dependency_overrides.pop(get_tool_engine, None)


async def _call(name: str, arguments: dict | None = None):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        return await client.post("/mcp/tools/call", json={"name": name, "arguments": arguments or {}})


@pytest.mark.asyncio
async def test_health():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_mcp_tools_list_returns_3():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        r = await client.post("/mcp/tools/list")
    assert r.status_code == 200
    tools = r.json()["tools"]
    assert [t["name"] for t in tools] == ["list_instances", "get_billing_info", "export_billing_report"]
    days = tools[1]["inputSchema"]["properties"]["days"]
    assert (days["minimum"], days["maximum"], days["default"]) == (1, 30, 7)


@pytest.mark.asyncio
async def test_mcp_call_unknown_tool_returns_404():
    r = await _call("nonexistent_tool")
    assert r.status_code == 404
    body = r.json()
    assert body["detail"] == "Unknown tool: nonexistent_tool"
    assert body["error"]["code"] == -32601


@pytest.mark.asyncio
async def test_get_billing_info_returns_nested_json(engine_override, factory):
    r = await _call("get_billing_info", {"days": 2})
    assert r.status_code == 200
    content = r.json()["content"]
    assert content[0]["type"] == "text"
    data = json.loads(content[0]["text"])
    assert data[date.today().isoformat()]["ecs"] == {"original": 12.5, "discount": 2.5, "actual": 10.0}
    assert len(factory.billing_client.requests) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("days", [0, 31, "abc"])
async def test_out_of_range_days_fall_back_to_seven(engine_override, factory, days):
    r = await _call("get_billing_info", {"days": days})
    assert r.status_code == 200
    assert len({req.billing_date for req in factory.billing_client.requests}) == 7


@pytest.mark.asyncio
async def test_list_instances_json(engine_override, factory):
    r = await _call("list_instances", {"region": "cn-hangzhou", "pageSize": 0})
    assert r.status_code == 200
    data = json.loads(r.json()["content"][0]["text"])
    assert data["region"] == "cn-hangzhou"
    assert data["total"] == 1
    assert data["instances"][0]["publicIp"] is None
    request = factory.ecs_client.describe_instances_async.await_args.args[0]
    assert request.page_size == 100


@pytest.mark.asyncio
async def test_export_billing_report_returns_confirmation(engine_override, tmp_path):
    r = await _call("export_billing_report", {"days": 1, "output_path": "  "})
    assert r.status_code == 200
    text = r.json()["content"][0]["text"]
    target = (tmp_path / "exported" / "aliyun_billing_report.html").resolve()
    assert text == f"Successfully exported billing report to: {target}"
    assert target.exists()


@pytest.mark.asyncio
async def test_export_stays_inside_export_dir(engine_override, tmp_path):
    r = await _call("export_billing_report", {"days": 1, "output_path": "../../outside.html"})
    assert r.status_code == 200
    target = (tmp_path / "exported" / "aliyun_billing_report.html").resolve()
    assert r.json()["content"][0]["text"] == f"Successfully exported billing report to: {target}"
    assert not (tmp_path.parent.parent / "outside.html").exists()


@pytest.mark.asyncio
async def test_upstream_failure_returns_internal_error(engine_override, factory):
    factory.ecs_client.describe_instances_async.side_effect = RuntimeError("Forbidden.RAM")
    r = await _call("list_instances")
    assert r.status_code == 500
    body = r.json()
    assert body["detail"] == "Failed to list ECS instances: Forbidden.RAM"
    assert body["error"]["code"] == -32603
