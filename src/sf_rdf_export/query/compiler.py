"""导出单元到协议请求的编译。

编译器为每个导出单元同时产出两种候选形式：

* :class:`BulkDump`：GSP 批量导出请求的目标描述符（``"default"`` 或 ``"graph=<IRI>"``）；
* :class:`TupleQuery`：等价的 SPARQL 元组查询文本。

两个查询模板需逐字保持（含空白与标点），以兼容现有端点；选择哪一种由
:class:`~sf_rdf_export.connection.client.EndpointClient` 根据特性开关决定。
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from sf_rdf_export.common.exceptions import ErrorCode, ValidationError
from sf_rdf_export.scope.model import DefaultGraphUnit, ExportUnit, NamedGraphUnit, QueryUnit

DEFAULT_GRAPH_TARGET = "default"
ALL_QUADS_QUERY = "SELECT * WHERE { GRAPH ?g { ?s ?p ?o } }"
NAMED_GRAPH_QUERY_TEMPLATE = "SELECT * WHERE {{ GRAPH ?g {{ ?s ?p ?o }} FILTER(?g = <{iri}>) .}}"


@dataclass(frozen=True, slots=True)
class BulkDump:
    target: str

    name = "bulk"


@dataclass(frozen=True, slots=True)
class TupleQuery:
    query: str

    name = "tuple"


Strategy = Union[BulkDump, TupleQuery]


@dataclass(frozen=True, slots=True)
class CompiledUnit:
    """单元的候选执行形式；``bulk`` 为 ``None`` 表示不支持批量导出。"""

    unit: ExportUnit
    query: TupleQuery
    bulk: Optional[BulkDump] = None


class QueryCompiler:
    """无状态编译器。"""

    def compile(self, unit: ExportUnit) -> CompiledUnit:
        """编译导出单元。

        参数：
            unit：默认图、命名图或即席查询单元。

        返回：
            :class:`CompiledUnit`；即席查询单元永远不带 ``bulk`` 形式。
        """

        if isinstance(unit, DefaultGraphUnit):
            return CompiledUnit(unit, TupleQuery(ALL_QUADS_QUERY), BulkDump(DEFAULT_GRAPH_TARGET))
        if isinstance(unit, NamedGraphUnit):
            return CompiledUnit(
                unit,
                TupleQuery(named_graph_query(unit.iri)),
                BulkDump(named_graph_target(unit.iri)),
            )
        if isinstance(unit, QueryUnit):
            return CompiledUnit(unit, TupleQuery(unit.query))
        raise ValidationError(ErrorCode.UNKNOWN_SCOPE, f"Unsupported export unit: {unit!r}")


def named_graph_target(iri: str) -> str:
    return f"graph={iri}"


def named_graph_query(iri: str) -> str:
    # IRI 不做校验或转义，非法 IRI 由端点以查询错误返回
    return NAMED_GRAPH_QUERY_TEMPLATE.format(iri=iri)
