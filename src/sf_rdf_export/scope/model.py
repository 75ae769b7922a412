"""导出范围、导出单元与导出计划的数据模型。

``ExportScope`` 是四个互斥变体组成的联合类型，导出计划只能由其中之一构建：

* :class:`WholeGraph`：默认图，加上调用方显式声明的命名图；
* :class:`NamedGraphs`：仅导出给定的命名图，不包含默认图；
* :class:`EdgesOnly`：仅导出对象非字面量的语句（边）；
* :class:`CustomQuery`：执行调用方提供的任意元组查询。

所有类型均为不可变 dataclass，可安全地在多个作业之间共享。
"""
from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass, field
from typing import Union

from sf_rdf_export.common.exceptions import ErrorCode, MissingQuery, ValidationError

#: 仅导出边（对象为 IRI 或空白节点的语句）时使用的查询。
EDGES_QUERY = "SELECT * WHERE { GRAPH ?g { ?s ?p ?o } FILTER(!isLiteral(?o)) }"

_SLUG_UNSAFE = re.compile(r"[^A-Za-z0-9_-]+")


@dataclass(frozen=True, slots=True)
class WholeGraph:
    """导出默认图；``named_graphs`` 中声明的命名图按顺序追加在默认图之后。"""

    named_graphs: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class NamedGraphs:
    graphs: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class EdgesOnly:
    pass


@dataclass(frozen=True, slots=True)
class CustomQuery:
    query: str


ExportScope = Union[WholeGraph, NamedGraphs, EdgesOnly, CustomQuery]


@dataclass(frozen=True, slots=True)
class DefaultGraphUnit:
    """默认图导出单元。"""

    def describe(self) -> str:
        return "default graph"

    @property
    def slug(self) -> str:
        return "default"


@dataclass(frozen=True, slots=True)
class NamedGraphUnit:
    """命名图导出单元，``iri`` 原样参与查询拼装，不做转义。"""

    iri: str

    def describe(self) -> str:
        return f"named graph <{self.iri}>"

    @property
    def slug(self) -> str:
        # IRI 可能过长或含路径分隔符，文件名使用可读前缀 + 摘要
        digest = hashlib.sha1(self.iri.encode("utf-8")).hexdigest()[:12]
        readable = _SLUG_UNSAFE.sub("_", self.iri.rsplit("/", 1)[-1])[:40].strip("_")
        return f"graph-{readable}-{digest}" if readable else f"graph-{digest}"


@dataclass(frozen=True, slots=True)
class QueryUnit:
    """即席查询导出单元；``label`` 区分 ``edges`` 与 ``query`` 两种来源。"""

    query: str
    label: str = "query"

    def describe(self) -> str:
        first_line = self.query.strip().splitlines()[0] if self.query.strip() else ""
        if len(first_line) > 80:
            first_line = first_line[:77] + "..."
        return f"{self.label} query `{first_line}`"

    @property
    def slug(self) -> str:
        return self.label


ExportUnit = Union[DefaultGraphUnit, NamedGraphUnit, QueryUnit]


@dataclass(frozen=True, slots=True)
class ExportPlan:
    """有序且非空的导出单元序列。"""

    scope: ExportScope
    units: tuple[ExportUnit, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.units:
            raise ValidationError(
                ErrorCode.INVALID_SCOPE_COMBINATION,
                "导出计划不能为空",
                details={"scope": type(self.scope).__name__},
            )

    def __iter__(self):
        return iter(self.units)

    def __len__(self) -> int:
        return len(self.units)


def build_plan(scope: ExportScope) -> ExportPlan:
    """将范围变体展开为导出计划。

    参数：
        scope：四种 :data:`ExportScope` 变体之一。

    返回：
        :class:`ExportPlan`，单元顺序为默认图在前、命名图按声明顺序。

    异常：
        ValidationError：命名图列表为空或查询为空白时抛出。
    """

    if isinstance(scope, WholeGraph):
        units: tuple[ExportUnit, ...] = (DefaultGraphUnit(),) + tuple(
            NamedGraphUnit(iri) for iri in scope.named_graphs
        )
        return ExportPlan(scope, units)
    if isinstance(scope, NamedGraphs):
        if not scope.graphs:
            raise ValidationError(ErrorCode.INVALID_NAMED_GRAPH, "命名图列表不能为空")
        return ExportPlan(scope, tuple(NamedGraphUnit(iri) for iri in scope.graphs))
    if isinstance(scope, EdgesOnly):
        return ExportPlan(scope, (QueryUnit(EDGES_QUERY, label="edges"),))
    if isinstance(scope, CustomQuery):
        if not scope.query or not scope.query.strip():
            raise MissingQuery("按查询导出时必须提供 SPARQL 查询")
        return ExportPlan(scope, (QueryUnit(scope.query, label="query"),))
    raise ValidationError(
        ErrorCode.UNKNOWN_SCOPE,
        f"Unknown export scope: {scope!r}",
    )
