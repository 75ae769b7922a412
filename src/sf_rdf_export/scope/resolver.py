"""导出范围解析器。

把调用方的范围选择（``graph``/``edges``/``query``）与附带参数校验并编译为
:class:`~sf_rdf_export.scope.model.ExportPlan`。解析过程不产生任何 I/O，
所有组合错误都在这里以 :class:`ValidationError` 子类抛出。
"""
from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from sf_rdf_export.common.exceptions import (
    ErrorCode,
    InvalidScopeCombination,
    MissingQuery,
    UnknownScope,
    ValidationError,
)
from sf_rdf_export.common.logging import LoggerFactory
from sf_rdf_export.scope.model import (
    CustomQuery,
    EdgesOnly,
    ExportPlan,
    ExportScope,
    NamedGraphs,
    WholeGraph,
    build_plan,
)


class ScopeKind(str, Enum):
    GRAPH = "graph"
    EDGES = "edges"
    QUERY = "query"


class ScopeSelection(BaseModel):
    """调用方的范围选择。

    参数：
        scope：范围名称，默认 ``"graph"``。
        named_graphs：仅 ``graph`` 范围可用的命名图列表，例如 ``["http://example.com/g1"]``。
        query：``query`` 范围使用的 SPARQL 元组查询。
    """

    scope: str = "graph"
    named_graphs: list[str] = Field(default_factory=list)
    query: Optional[str] = None

    def to_plan(self, resolver: Optional["ScopeResolver"] = None) -> ExportPlan:
        return (resolver or ScopeResolver()).resolve(self.scope, self.named_graphs, self.query)


class ScopeResolver:
    """范围解析器，无状态，可在线程间复用。"""

    _NAMED_GRAPHS_ONLY_WITH_GRAPH = "`named_graphs` can only be used with the `graph` export scope"

    def __init__(self) -> None:
        self._logger = LoggerFactory.create_default_logger(__name__)

    def resolve(
        self,
        scope_kind: str | ScopeKind,
        named_graphs: Optional[Iterable[str]] = None,
        query_text: Optional[str] = None,
    ) -> ExportPlan:
        """校验参数组合并返回导出计划。

        参数：
            scope_kind：``"graph"``、``"edges"`` 或 ``"query"``（大小写不敏感）。
            named_graphs：命名图 IRI 列表，可为空。
            query_text：SPARQL 查询文本，仅 ``query`` 范围使用。

        返回：
            完整填充的 :class:`ExportPlan`。

        异常：
            InvalidScopeCombination：``edges``/``query`` 范围携带了命名图。
            MissingQuery：``query`` 范围缺少查询文本。
            UnknownScope：范围名称无法识别。
        """

        return build_plan(self.resolve_scope(scope_kind, named_graphs, query_text))

    def resolve_scope(
        self,
        scope_kind: str | ScopeKind,
        named_graphs: Optional[Iterable[str]] = None,
        query_text: Optional[str] = None,
    ) -> ExportScope:
        """仅做校验，返回范围变体而不展开单元。"""

        kind = self._parse_kind(scope_kind)
        graphs = self._normalize_graphs(named_graphs)

        if kind is ScopeKind.GRAPH:
            self._warn_unused_query(kind, query_text)
            # 指定命名图时只导出这些图，不含默认图（N 个单元而非 N+1）
            if graphs:
                return NamedGraphs(graphs)
            return WholeGraph()
        if kind is ScopeKind.EDGES:
            if graphs:
                raise InvalidScopeCombination(self._NAMED_GRAPHS_ONLY_WITH_GRAPH, details={"scope": kind.value})
            self._warn_unused_query(kind, query_text)
            return EdgesOnly()
        if kind is ScopeKind.QUERY:
            if graphs:
                raise InvalidScopeCombination(self._NAMED_GRAPHS_ONLY_WITH_GRAPH, details={"scope": kind.value})
            if query_text is None or not query_text.strip():
                raise MissingQuery("You must supply a SPARQL query if exporting from a query")
            return CustomQuery(query_text)
        raise UnknownScope(f"Unknown export scope: {scope_kind}")

    @staticmethod
    def _parse_kind(scope_kind: str | ScopeKind) -> ScopeKind:
        if isinstance(scope_kind, ScopeKind):
            return scope_kind
        try:
            return ScopeKind(str(scope_kind).strip().lower())
        except ValueError as exc:
            raise UnknownScope(
                f"Unknown export scope: {scope_kind}",
                details={"allowed": [kind.value for kind in ScopeKind]},
            ) from exc

    @staticmethod
    def _normalize_graphs(named_graphs: Optional[Iterable[str]]) -> tuple[str, ...]:
        if named_graphs is None:
            return ()
        graphs: list[str] = []
        for position, raw in enumerate(named_graphs):
            iri = (raw or "").strip()
            if not iri:
                raise ValidationError(
                    ErrorCode.INVALID_NAMED_GRAPH,
                    "命名图标识不能为空",
                    details={"position": position},
                )
            graphs.append(iri)
        return tuple(graphs)

    def _warn_unused_query(self, kind: ScopeKind, query_text: Optional[str]) -> None:
        if query_text and query_text.strip():
            self._logger.warning("导出范围 %s 不使用 SPARQL 查询，已忽略传入的查询文本", kind.value)


def resolve_scope(
    scope_kind: str | ScopeKind,
    named_graphs: Optional[Iterable[str]] = None,
    query_text: Optional[str] = None,
) -> ExportPlan:
    """:meth:`ScopeResolver.resolve` 的便捷函数形式。"""

    return ScopeResolver().resolve(scope_kind, named_graphs, query_text)
