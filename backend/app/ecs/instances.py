from typing import Any

import structlog
from alibabacloud_ecs20140526 import models as ecs_models

from app.models.ecs_models import EcsInstanceSummary, InstanceListResult

log = structlog.get_logger()


def _first(container: dict[str, Any] | None, key: str) -> Any:
    values = (container or {}).get(key) or []
    return values[0] if values else None


def summarize_instance(instance: dict[str, Any], region: str) -> EcsInstanceSummary:
    """Project a raw DescribeInstances record; absent fields become None."""
    interface = _first(instance.get("NetworkInterfaces"), "NetworkInterface") or {}
    return EcsInstanceSummary(
        id=instance.get("InstanceId"),
        name=instance.get("InstanceName"),
        status=instance.get("Status"),
        type=instance.get("InstanceType"),
        public_ip=_first(instance.get("PublicIpAddress"), "IpAddress"),
        private_ip=interface.get("PrimaryIpAddress"),
        region=region,
        creation_time=instance.get("CreationTime"),
        os_type=instance.get("OSType"),
        os_name=instance.get("OSName"),
        cpu=instance.get("Cpu"),
        memory=instance.get("Memory"),
    )


async def list_instances(client, region: str, page_size: int) -> InstanceListResult:
    # Single page only; callers wanting more than page_size must call again
    request = ecs_models.DescribeInstancesRequest(region_id=region, page_size=page_size)
    response = await client.describe_instances_async(request)

    body = response.body.to_map() if response.body else {}
    raw_instances = (body.get("Instances") or {}).get("Instance") or []
    log.info("ecs_instances_listed", region=region, count=len(raw_instances))

    instances = [summarize_instance(i, region) for i in raw_instances]
    return InstanceListResult(instances=instances, total=len(instances), region=region)
