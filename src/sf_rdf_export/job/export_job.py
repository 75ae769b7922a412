"""导出作业驱动。

状态机：``CREATED -> RUNNING -> {COMPLETED, FAILED}``。作业严格按计划顺序串行执行单元，
每个单元依次完成：获取输出资源 -> 编译候选形式 -> 端点执行。任一单元失败即整体失败，
不再继续后续单元；异常会携带出错单元信息后原样抛出。
"""
from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Union

from sf_rdf_export.common.config import ConfigManager, Settings
from sf_rdf_export.common.exceptions import ErrorCode, ExportError, JobStateError, ValidationError
from sf_rdf_export.common.logging import LoggerFactory
from sf_rdf_export.connection.client import EndpointClient, EndpointSelector, UnitOutcome
from sf_rdf_export.connection.config import ConnectionConfig
from sf_rdf_export.features import FeatureToggle, FeatureToggles
from sf_rdf_export.query.compiler import QueryCompiler
from sf_rdf_export.scope.model import CustomQuery, EdgesOnly, ExportPlan, ExportUnit, NamedGraphs, WholeGraph, build_plan
from sf_rdf_export.scope.resolver import ScopeSelection
from sf_rdf_export.sink.lifecycle import SinkLifecycle
from sf_rdf_export.sink.target import DirectorySinkFactory, RdfTargetConfig


class JobState(str, Enum):
    CREATED = "created"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ExportReport:
    """作业执行汇总。"""

    trace_id: str
    state: JobState
    outcomes: list[tuple[ExportUnit, UnitOutcome]] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def units(self) -> int:
        return len(self.outcomes)

    @property
    def bytes_written(self) -> int:
        return sum(outcome.bytes_written for _, outcome in self.outcomes)

    @property
    def statements(self) -> Optional[int]:
        """元组查询路径写出的语句数；存在批量导出单元时为 ``None``。"""

        counts = [outcome.statements for _, outcome in self.outcomes]
        if any(count is None for count in counts):
            return None
        return sum(counts)  # type: ignore[arg-type]


class ExportJob:
    """单个导出作业，不可重复执行。

    参数：
        plan：导出计划。
        client：端点客户端，由本作业独占。
        target：目标配置（格式 + 输出资源工厂）。
        compiler：可选的查询编译器。
        trace_id：链路追踪 ID，缺省时自动生成。
    """

    def __init__(
        self,
        plan: ExportPlan,
        client: EndpointClient,
        target: RdfTargetConfig,
        *,
        compiler: Optional[QueryCompiler] = None,
        trace_id: Optional[str] = None,
    ) -> None:
        self.plan = plan
        self.trace_id = trace_id or f"export-{uuid.uuid4().hex}"
        self._client = client
        self._target = target
        self._compiler = compiler or QueryCompiler()
        self._sinks = SinkLifecycle(target.sink_factory)
        self._logger = LoggerFactory.create_default_logger(__name__)
        self.state = JobState.CREATED
        self.error: Optional[ExportError] = None
        self.failed_unit: Optional[ExportUnit] = None
        self.report = ExportReport(trace_id=self.trace_id, state=self.state)

    async def run(self) -> ExportReport:
        """执行全部单元。

        返回：
            状态为 ``COMPLETED`` 的 :class:`ExportReport`。

        异常：
            JobStateError：作业已执行过。
            ExportError：任一单元失败；``error.unit`` 为出错单元。
        """

        if self.state is not JobState.CREATED:
            raise JobStateError("导出作业只能执行一次", details={"state": self.state.value})
        self._transition(JobState.RUNNING)
        start = time.perf_counter()
        self._logger.info(
            "导出作业开始，共 %d 个单元",
            len(self.plan),
            extra={"trace_id": self.trace_id},
        )
        for index, unit in enumerate(self.plan):
            try:
                outcome = await self._run_unit(unit, index)
            except ExportError as exc:
                self._fail(unit, exc, start)
                raise
            except Exception as exc:
                self._logger.exception("导出 %s 时发生未预期错误", unit.describe(), extra={"trace_id": self.trace_id})
                wrapped = ExportError(
                    ErrorCode.INTERNAL_ERROR,
                    "导出过程中发生未预期错误",
                    details={"error": repr(exc)[:1024], "type": type(exc).__name__},
                )
                self._fail(unit, wrapped, start)
                raise wrapped from exc
            self.report.outcomes.append((unit, outcome))
        self.report.duration_ms = (time.perf_counter() - start) * 1000
        self._transition(JobState.COMPLETED)
        self._logger.info(
            "导出作业完成：%d 个单元，%d 字节，耗时 %.1fms",
            self.report.units,
            self.report.bytes_written,
            self.report.duration_ms,
            extra={"trace_id": self.trace_id},
        )
        return self.report

    async def _run_unit(self, unit: ExportUnit, index: int) -> UnitOutcome:
        with self._sinks.scope(unit, index) as sink:
            compiled = self._compiler.compile(unit)
            return await self._client.execute_unit(unit, sink, compiled=compiled, trace_id=self.trace_id)

    def _fail(self, unit: ExportUnit, exc: ExportError, start: float) -> None:
        exc.unit = unit
        exc.details.setdefault("unit", unit.describe())
        self.error = exc
        self.failed_unit = unit
        self.report.duration_ms = (time.perf_counter() - start) * 1000
        self._transition(JobState.FAILED)
        self._logger.error(
            "导出 %s 失败，作业终止: %s",
            unit.describe(),
            exc.message,
            extra={"trace_id": self.trace_id, "code": exc.code.value},
        )

    def _transition(self, state: JobState) -> None:
        self.state = state
        self.report.state = state


ScopeInput = Union[ScopeSelection, ExportPlan, WholeGraph, NamedGraphs, EdgesOnly, CustomQuery]


def create_job(
    selection: ScopeInput,
    *,
    connection: Optional[ConnectionConfig] = None,
    target: Optional[RdfTargetConfig] = None,
    toggles: Optional[Iterable[FeatureToggle | str]] = None,
    selector: Optional[EndpointSelector] = None,
    client: Optional[EndpointClient] = None,
    settings: Optional[Settings] = None,
    trace_id: Optional[str] = None,
) -> ExportJob:
    """解析范围选择并构造导出作业。

    参数：
        selection：:class:`ScopeSelection`、已解析的 :class:`ExportPlan` 或范围变体。
        connection：连接配置，缺省取 ``settings.rdf``。
        target：目标配置，缺省按 ``settings.export.output_dir`` 与 ``format`` 创建目录输出。
        toggles：特性开关，缺省取 ``settings.export.feature_toggles``。
        selector：活动端点选择策略。
        client：直接注入的端点客户端；提供时忽略 ``connection``/``toggles``/``selector``。
        settings：配置快照，缺省读取 :class:`ConfigManager` 当前配置。
        trace_id：链路追踪 ID。

    异常：
        ValidationError：范围组合非法或缺少输出目录配置，在任何 I/O 之前抛出。
    """

    plan = _plan_from(selection)
    settings = settings or ConfigManager.current().settings
    export = settings.export
    if target is None:
        if not export.output_dir:
            raise ValidationError(ErrorCode.INVALID_CONFIG, "未提供导出目标，且配置中缺少 export.output_dir")
        target = RdfTargetConfig(export.format, DirectorySinkFactory(export.output_dir, export.format))
    if client is None:
        client = EndpointClient.from_config(
            connection or settings.rdf,
            fmt=target.format,
            toggles=FeatureToggles(export.feature_toggles if toggles is None else toggles),
            selector=selector,
            batch_size=export.batch_size,
        )
    return ExportJob(plan, client, target, trace_id=trace_id)


def _plan_from(selection: ScopeInput) -> ExportPlan:
    if isinstance(selection, ExportPlan):
        return selection
    if isinstance(selection, ScopeSelection):
        return selection.to_plan()
    return build_plan(selection)

