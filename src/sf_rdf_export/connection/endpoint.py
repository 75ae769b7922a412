"""SPARQL / GSP 端点访问。

提供 :class:`SparqlEndpoint` 协议与基于 httpx 的 :class:`HttpSparqlEndpoint` 实现：

* ``bulk_dump``：通过 Graph Store Protocol 以 GET 方式拉取整图序列化内容，逐块返回原始字节；
* ``select``：以 ``application/sparql-query`` POST 元组查询，请求 TSV 结果并按 ``\\n`` 逐条解析。

两者均为异步生成器，结果不会在内存中整体物化。本模块不做重试，
网络层错误统一转换为平台异常后直接抛出。
"""
from __future__ import annotations

import time
from contextlib import aclosing, asynccontextmanager
from typing import AsyncIterator, Optional, Protocol
from urllib.parse import quote

import httpx
from rdflib.term import Node

from sf_rdf_export.common.exceptions import EndpointUnreachable, ErrorCode, ProtocolError, TransportError
from sf_rdf_export.common.logging import LoggerFactory
from sf_rdf_export.converter.tsv import iter_records, parse_header, parse_row

TSV_RESULTS = "text/tab-separated-values"


class SparqlEndpoint(Protocol):
    """导出引擎所需的端点最小协议。"""

    address: str

    def bulk_dump(self, target: str, *, accept: str, trace_id: str | None = None) -> AsyncIterator[bytes]:
        """按目标描述符（``"default"`` 或 ``"graph=<IRI>"``）流式返回整图内容。"""

    def select(self, query: str, *, trace_id: str | None = None) -> AsyncIterator[dict[str, Optional[Node]]]:
        """执行元组查询并逐行返回变量绑定。"""


class HttpSparqlEndpoint:
    """基于 HTTP 的端点实现。

    参数：
        address：端点基础 URL，例如 ``"https://neptune-1.example.com:8182"``。
        query_path：SPARQL 查询路径，默认 ``"/sparql"``。
        gsp_path：GSP 路径，默认 ``"/sparql/gsp/"``。
        timeout：单次读写超时（秒）。
        auth：可选的 Basic Auth 凭据或任意 ``httpx.Auth``。
        trace_header：携带 ``trace_id`` 的请求头名称。
        transport：可选的 httpx 传输层，便于注入 ``httpx.MockTransport``。
    """

    def __init__(
        self,
        address: str,
        *,
        query_path: str = "/sparql",
        gsp_path: str = "/sparql/gsp/",
        timeout: float = 300.0,
        auth: tuple[str, str] | httpx.Auth | None = None,
        trace_header: str = "X-Trace-Id",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.address = address.rstrip("/")
        self._query_path = query_path
        self._gsp_path = gsp_path
        self._timeout = httpx.Timeout(timeout, connect=min(timeout, 30.0))
        self._auth = httpx.BasicAuth(*auth) if isinstance(auth, tuple) else auth
        self.trace_header = trace_header
        self._transport = transport
        self._logger = LoggerFactory.create_default_logger(__name__)

    def __repr__(self) -> str:
        return f"HttpSparqlEndpoint({self.address!r})"

    async def bulk_dump(self, target: str, *, accept: str, trace_id: str | None = None) -> AsyncIterator[bytes]:
        """GET ``{address}{gsp_path}?{target}``，原样透传响应体。"""

        url = self.gsp_url(target)
        async with self._stream("GET", url, headers=self._headers(accept, trace_id)) as response:
            async for chunk in response.aiter_bytes():
                yield chunk

    async def select(self, query: str, *, trace_id: str | None = None) -> AsyncIterator[dict[str, Optional[Node]]]:
        url = f"{self.address}{self._query_path}"
        headers = self._headers(TSV_RESULTS, trace_id)
        headers["Content-Type"] = "application/sparql-query"
        header: list[str] | None = None
        async with self._stream("POST", url, headers=headers, content=query.encode("utf-8")) as response:
            async with aclosing(iter_records(response.aiter_bytes())) as records:
                async for line in records:
                    line = line.rstrip("\r")
                    if header is None:
                        header = parse_header(line)
                        continue
                    if not line:
                        continue
                    yield parse_row(header, line)
        if header is None:
            raise ProtocolError("查询响应缺少 TSV 表头", details={"endpoint": url})

    def gsp_url(self, target: str) -> str:
        """由目标描述符构造 GSP URL；``graph=`` 之后的 IRI 做百分号编码。"""

        key, sep, value = target.partition("=")
        query = f"{key}{sep}{quote(value, safe='')}" if sep else key
        return f"{self.address}{self._gsp_path}?{query}"

    # ---- 内部工具 -----------------------------------------------------

    def _headers(self, accept: str, trace_id: str | None) -> dict[str, str]:
        headers = {"Accept": accept}
        if trace_id:
            headers[self.trace_header] = trace_id
        return headers

    @asynccontextmanager
    async def _stream(self, method: str, url: str, *, headers: dict[str, str], content: bytes | None = None):
        """发起流式请求，校验状态码，并把 httpx 异常转换为平台异常。"""

        start = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                async with client.stream(method, url, headers=headers, content=content, auth=self._auth) as response:
                    if response.status_code >= 400:
                        await response.aread()
                        self._raise_http_error(response, url)
                    yield response
        except (httpx.ConnectError, httpx.ConnectTimeout) as exc:
            raise EndpointUnreachable(
                "端点连接失败",
                details={"endpoint": self.address, "url": url, "error": str(exc)},
            ) from exc
        except httpx.TransportError as exc:
            raise TransportError(
                ErrorCode.TRANSPORT_ERROR,
                "端点传输失败",
                details={"endpoint": self.address, "url": url, "reason": self._exception_reason(exc), "error": str(exc)},
            ) from exc
        finally:
            self._logger.debug("%s %s 耗时 %.1fms", method, url, (time.perf_counter() - start) * 1000)

    def _raise_http_error(self, response: httpx.Response, url: str) -> None:
        message = response.text
        raise ProtocolError(
            "端点返回错误响应",
            details={
                "status": response.status_code,
                "url": url,
                "message": message[:1024],
                "reason": self._response_reason(response.status_code),
            },
        )

    @staticmethod
    def _response_reason(status_code: int) -> str:
        if status_code >= 500:
            return "server_error"
        if status_code == 429:
            return "rate_limited"
        if status_code == 408:
            return "timeout"
        if status_code in {401, 403}:
            return "unauthorized"
        if status_code == 404:
            return "not_found"
        return "client_error"

    @staticmethod
    def _exception_reason(exc: Exception) -> str:
        if isinstance(exc, httpx.ReadTimeout):
            return "timeout"
        if isinstance(exc, httpx.WriteTimeout):
            return "write_timeout"
        if isinstance(exc, httpx.RemoteProtocolError):
            return "remote_protocol_error"
        if isinstance(exc, httpx.ReadError):
            return "read_error"
        return "unknown"
