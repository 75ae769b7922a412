"""端点连接描述。

仅负责把配置中的端点列表映射为有序的候选 URL；负载均衡、签名鉴权等由外部组件处理。
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class BasicAuthConfig(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None

    def as_tuple(self) -> tuple[str, str] | None:
        if self.username and self.password:
            return (self.username, self.password)
        return None


class ConnectionConfig(BaseModel):
    """SPARQL/GSP 端点连接配置。

    参数：
        endpoints：端点地址列表，可为主机名（``"neptune-1.example.com"``）或完整 URL。
        port：主机名形式时使用的端口，默认 ``8182``。
        scheme：主机名形式时使用的协议，默认 ``"https"``。
        query_path：SPARQL 查询路径，默认 ``"/sparql"``。
        gsp_path：Graph Store Protocol 路径，默认 ``"/sparql/gsp/"``。
        timeout：单次读写超时（秒）。
        trace_header：携带 ``trace_id`` 的请求头名称。
    """

    endpoints: list[str] = Field(min_length=1)
    port: int = Field(default=8182, ge=1, le=65535)
    scheme: str = "https"
    query_path: str = "/sparql"
    gsp_path: str = "/sparql/gsp/"
    timeout: float = Field(default=300.0, gt=0)
    trace_header: str = "X-Trace-Id"
    auth: BasicAuthConfig = Field(default_factory=BasicAuthConfig)

    @field_validator("endpoints")
    @classmethod
    def _strip_endpoints(cls, value: list[str]) -> list[str]:
        cleaned = [item.strip() for item in value if item and item.strip()]
        if not cleaned:
            raise ValueError("at least one endpoint is required")
        return cleaned

    def endpoint_urls(self) -> list[str]:
        """按声明顺序返回候选端点的基础 URL（不含路径）。"""

        urls: list[str] = []
        for endpoint in self.endpoints:
            if "://" in endpoint:
                urls.append(endpoint.rstrip("/"))
            else:
                urls.append(f"{self.scheme}://{endpoint}:{self.port}")
        return urls
