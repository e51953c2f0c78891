import structlog
from alibabacloud_bssopenapi20171214.client import Client as BssOpenApiClient
from alibabacloud_ecs20140526.client import Client as EcsClient
from alibabacloud_tea_openapi import models as open_api_models

from app.config import Settings

log = structlog.get_logger()


class AliyunClientFactory:
    """
    Builds Aliyun SDK clients from explicit settings.

    Every tool invocation asks for fresh clients; nothing is cached here.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def _config(self, endpoint: str) -> open_api_models.Config:
        return open_api_models.Config(
            access_key_id=self.settings.alibaba_cloud_access_key_id,
            access_key_secret=self.settings.alibaba_cloud_access_key_secret,
            endpoint=endpoint,
        )

    def ecs(self, region: str) -> EcsClient:
        endpoint = self.settings.ecs_endpoint(region)
        log.debug("aliyun_client_created", service="ecs", endpoint=endpoint)
        return EcsClient(self._config(endpoint))

    def billing(self) -> BssOpenApiClient:
        endpoint = self.settings.billing_endpoint
        log.debug("aliyun_client_created", service="bssopenapi", endpoint=endpoint)
        return BssOpenApiClient(self._config(endpoint))
