from pydantic import BaseModel, ConfigDict, Field


class EcsInstanceSummary(BaseModel):
    """Flattened view of one DescribeInstances record. Serialised with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    name: str | None = None
    status: str | None = None
    type: str | None = None
    public_ip: str | None = Field(default=None, alias="publicIp")
    private_ip: str | None = Field(default=None, alias="privateIp")
    region: str | None = None
    creation_time: str | None = Field(default=None, alias="creationTime")
    os_type: str | None = Field(default=None, alias="osType")
    os_name: str | None = Field(default=None, alias="osName")
    cpu: int | None = None
    memory: int | None = None


class InstanceListResult(BaseModel):
    instances: list[EcsInstanceSummary]
    total: int
    region: str
