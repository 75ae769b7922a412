"""端点连接与客户端的公共导出。"""
from sf_rdf_export.connection.client import EndpointClient, EndpointSelector, OrderedEndpointSelector, UnitOutcome
from sf_rdf_export.connection.config import BasicAuthConfig, ConnectionConfig
from sf_rdf_export.connection.endpoint import HttpSparqlEndpoint, SparqlEndpoint

__all__ = [
    "EndpointClient",
    "EndpointSelector",
    "OrderedEndpointSelector",
    "UnitOutcome",
    "BasicAuthConfig",
    "ConnectionConfig",
    "HttpSparqlEndpoint",
    "SparqlEndpoint",
]
