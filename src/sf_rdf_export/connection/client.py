"""端点客户端：按能力选择导出策略、驱动端点并把结果写入输出资源。

执行流程：

1. 根据特性开关 ``no-bulk-protocol`` 选择 GSP 批量导出或元组查询；即席查询始终走元组查询；
2. 批量导出路径把响应体逐字节写入输出资源，不做重新序列化；
3. 元组查询路径逐行读取绑定并由 :class:`StatementWriter` 序列化为目标格式；
4. 首次请求时才通过 :class:`EndpointSelector` 选定活动端点，作业期间不再切换；
   端点不可达时将其标记并使当前单元失败，下一次选择会跳过该端点。

本组件不做任何重试，批量导出失败也不会自动回退到元组查询。
"""
from __future__ import annotations

import time
from contextlib import aclosing
from dataclasses import dataclass
from typing import Collection, Optional, Protocol, Sequence

from sf_rdf_export.common.exceptions import EndpointUnreachable
from sf_rdf_export.common.logging import LoggerFactory
from sf_rdf_export.common.observability import observe_bytes, observe_unit
from sf_rdf_export.connection.config import ConnectionConfig
from sf_rdf_export.connection.endpoint import HttpSparqlEndpoint, SparqlEndpoint
from sf_rdf_export.converter.formats import RdfFormat
from sf_rdf_export.converter.statement_writer import StatementWriter
from sf_rdf_export.features import FeatureToggles
from sf_rdf_export.query.compiler import BulkDump, CompiledUnit, QueryCompiler, Strategy, TupleQuery
from sf_rdf_export.scope.model import ExportUnit
from sf_rdf_export.sink.lifecycle import OutputSink


class EndpointSelector(Protocol):
    """活动端点选择策略。

    返回 ``None`` 表示没有可用端点。测试可注入返回桩端点的实现。
    """

    def choose(self, candidates: Sequence[SparqlEndpoint], unreachable: Collection[str]) -> Optional[SparqlEndpoint]:
        ...


class OrderedEndpointSelector:
    """按声明顺序选择第一个未被标记为不可达的端点。"""

    def choose(self, candidates: Sequence[SparqlEndpoint], unreachable: Collection[str]) -> Optional[SparqlEndpoint]:
        for candidate in candidates:
            if candidate.address not in unreachable:
                return candidate
        return None


@dataclass(frozen=True, slots=True)
class UnitOutcome:
    """单元执行统计。"""

    strategy: str
    endpoint: str
    bytes_written: int
    statements: Optional[int]
    duration_ms: float


class EndpointClient:
    """端点客户端。

    参数：
        candidates：有序的候选端点，至少一个。
        fmt：目标序列化格式。
        toggles：特性开关集合。
        selector：活动端点选择策略，默认 :class:`OrderedEndpointSelector`。
        compiler：查询编译器，默认 :class:`QueryCompiler`。
        batch_size：元组查询路径每批序列化的语句数。
    """

    def __init__(
        self,
        candidates: Sequence[SparqlEndpoint],
        *,
        fmt: RdfFormat = RdfFormat.NQUADS,
        toggles: Optional[FeatureToggles] = None,
        selector: Optional[EndpointSelector] = None,
        compiler: Optional[QueryCompiler] = None,
        batch_size: int = 1000,
    ) -> None:
        self._candidates: tuple[SparqlEndpoint, ...] = tuple(candidates)
        if not self._candidates:
            raise EndpointUnreachable("未配置任何候选端点")
        self._format = fmt
        self._toggles = toggles or FeatureToggles()
        self._selector = selector or OrderedEndpointSelector()
        self._compiler = compiler or QueryCompiler()
        self._batch_size = batch_size
        self._active: Optional[SparqlEndpoint] = None
        self._unreachable: set[str] = set()
        self._logger = LoggerFactory.create_default_logger(__name__)

    @classmethod
    def from_config(
        cls,
        config: ConnectionConfig,
        *,
        fmt: RdfFormat = RdfFormat.NQUADS,
        toggles: Optional[FeatureToggles] = None,
        selector: Optional[EndpointSelector] = None,
        batch_size: int = 1000,
    ) -> "EndpointClient":
        """根据连接配置构造 HTTP 端点候选列表。"""

        candidates = [
            HttpSparqlEndpoint(
                url,
                query_path=config.query_path,
                gsp_path=config.gsp_path,
                timeout=config.timeout,
                auth=config.auth.as_tuple(),
                trace_header=config.trace_header,
            )
            for url in config.endpoint_urls()
        ]
        return cls(candidates, fmt=fmt, toggles=toggles, selector=selector, batch_size=batch_size)

    @property
    def format(self) -> RdfFormat:
        return self._format

    @property
    def active_endpoint(self) -> Optional[SparqlEndpoint]:
        return self._active

    def select_strategy(self, compiled: CompiledUnit) -> Strategy:
        """根据特性开关在候选形式中选择执行策略。"""

        if compiled.bulk is not None and not self._toggles.bulk_protocol_disabled:
            return compiled.bulk
        return compiled.query

    async def execute_unit(
        self,
        unit: ExportUnit,
        sink: OutputSink,
        *,
        compiled: Optional[CompiledUnit] = None,
        trace_id: str | None = None,
    ) -> UnitOutcome:
        """执行一个导出单元并把结果写入 ``sink``。

        参数：
            unit：导出单元。
            sink：已获取的输出资源；本方法不负责关闭。
            compiled：预先编译的候选形式，缺省时现场编译。
            trace_id：链路追踪 ID。

        异常：
            EndpointUnreachable / TransportError：网络层失败。
            ProtocolError：端点返回错误或结果无法还原为语句。
            SinkError：写入输出资源失败。
        """

        compiled = compiled or self._compiler.compile(unit)
        strategy = self.select_strategy(compiled)
        endpoint = self._resolve_endpoint()
        start = time.perf_counter()
        self._logger.info(
            "开始导出 %s（策略 %s，端点 %s）",
            unit.describe(),
            strategy.name,
            endpoint.address,
            extra={"trace_id": trace_id},
        )
        status = "failed"
        try:
            if isinstance(strategy, BulkDump):
                written, statements = await self._bulk_dump(endpoint, strategy, sink, trace_id), None
            else:
                written, statements = await self._tuple_query(endpoint, strategy, sink, trace_id)
            status = "success"
        except EndpointUnreachable:
            self._mark_unreachable(endpoint)
            raise
        finally:
            duration = time.perf_counter() - start
            observe_unit(strategy.name, status, duration)
        observe_bytes(strategy.name, written)
        return UnitOutcome(
            strategy=strategy.name,
            endpoint=endpoint.address,
            bytes_written=written,
            statements=statements,
            duration_ms=duration * 1000,
        )

    # ---- 内部工具 -----------------------------------------------------

    def _resolve_endpoint(self) -> SparqlEndpoint:
        if self._active is not None:
            return self._active
        chosen = self._selector.choose(self._candidates, frozenset(self._unreachable))
        if chosen is None:
            raise EndpointUnreachable(
                "所有候选端点均不可达",
                details={"candidates": [candidate.address for candidate in self._candidates]},
            )
        self._active = chosen
        self._logger.info("选定活动端点 %s", chosen.address)
        return chosen

    def _mark_unreachable(self, endpoint: SparqlEndpoint) -> None:
        self._unreachable.add(endpoint.address)
        if self._active is endpoint:
            self._active = None
        self._logger.warning("端点 %s 不可达，后续作业将跳过该端点", endpoint.address)

    async def _bulk_dump(
        self,
        endpoint: SparqlEndpoint,
        strategy: BulkDump,
        sink: OutputSink,
        trace_id: str | None,
    ) -> int:
        written = 0
        async with aclosing(endpoint.bulk_dump(strategy.target, accept=self._format.mime_type, trace_id=trace_id)) as chunks:
            async for chunk in chunks:
                if chunk:
                    sink.write(chunk)
                    written += len(chunk)
        return written

    async def _tuple_query(
        self,
        endpoint: SparqlEndpoint,
        strategy: TupleQuery,
        sink: OutputSink,
        trace_id: str | None,
    ) -> tuple[int, int]:
        writer = StatementWriter(sink, self._format, batch_size=self._batch_size)
        async with aclosing(endpoint.select(strategy.query, trace_id=trace_id)) as rows:
            async for row in rows:
                writer.write_row(row)
        writer.flush()
        return writer.bytes_written, writer.statements
