"""导出范围模型与解析器的公共导出。"""
from sf_rdf_export.scope.model import (
    EDGES_QUERY,
    CustomQuery,
    DefaultGraphUnit,
    EdgesOnly,
    ExportPlan,
    ExportScope,
    ExportUnit,
    NamedGraphs,
    NamedGraphUnit,
    QueryUnit,
    WholeGraph,
    build_plan,
)
from sf_rdf_export.scope.resolver import ScopeKind, ScopeResolver, ScopeSelection, resolve_scope

__all__ = [
    "EDGES_QUERY",
    "CustomQuery",
    "DefaultGraphUnit",
    "EdgesOnly",
    "ExportPlan",
    "ExportScope",
    "ExportUnit",
    "NamedGraphs",
    "NamedGraphUnit",
    "QueryUnit",
    "WholeGraph",
    "build_plan",
    "ScopeKind",
    "ScopeResolver",
    "ScopeSelection",
    "resolve_scope",
]
