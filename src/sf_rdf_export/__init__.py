from .common.exceptions import (
    EndpointUnreachable,
    ErrorCode,
    ExportError,
    InvalidScopeCombination,
    MissingQuery,
    ProtocolError,
    SinkError,
    TransportError,
    UnknownScope,
    ValidationError,
)
from .scope import (
    CustomQuery,
    DefaultGraphUnit,
    EdgesOnly,
    ExportPlan,
    NamedGraphs,
    NamedGraphUnit,
    QueryUnit,
    ScopeResolver,
    ScopeSelection,
    WholeGraph,
    resolve_scope,
)
from .query import BulkDump, CompiledUnit, QueryCompiler, TupleQuery
from .connection import ConnectionConfig, EndpointClient, HttpSparqlEndpoint, OrderedEndpointSelector
from .converter import RdfFormat
from .features import FeatureToggle, FeatureToggles
from .sink import DirectorySinkFactory, FileSink, RdfTargetConfig, SinkLifecycle, StreamSink
from .job import ExportJob, ExportReport, JobState, create_job

__all__ = [
    "EndpointUnreachable",
    "ErrorCode",
    "ExportError",
    "InvalidScopeCombination",
    "MissingQuery",
    "ProtocolError",
    "SinkError",
    "TransportError",
    "UnknownScope",
    "ValidationError",
    "CustomQuery",
    "DefaultGraphUnit",
    "EdgesOnly",
    "ExportPlan",
    "NamedGraphs",
    "NamedGraphUnit",
    "QueryUnit",
    "ScopeResolver",
    "ScopeSelection",
    "WholeGraph",
    "resolve_scope",
    "BulkDump",
    "CompiledUnit",
    "QueryCompiler",
    "TupleQuery",
    "ConnectionConfig",
    "EndpointClient",
    "HttpSparqlEndpoint",
    "OrderedEndpointSelector",
    "RdfFormat",
    "FeatureToggle",
    "FeatureToggles",
    "DirectorySinkFactory",
    "FileSink",
    "RdfTargetConfig",
    "SinkLifecycle",
    "StreamSink",
    "ExportJob",
    "ExportReport",
    "JobState",
    "create_job",
]
