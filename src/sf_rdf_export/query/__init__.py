"""查询编译器的便捷导出。"""
from sf_rdf_export.query.compiler import (
    ALL_QUADS_QUERY,
    DEFAULT_GRAPH_TARGET,
    BulkDump,
    CompiledUnit,
    QueryCompiler,
    Strategy,
    TupleQuery,
)

__all__ = [
    "ALL_QUADS_QUERY",
    "DEFAULT_GRAPH_TARGET",
    "BulkDump",
    "CompiledUnit",
    "QueryCompiler",
    "Strategy",
    "TupleQuery",
]
