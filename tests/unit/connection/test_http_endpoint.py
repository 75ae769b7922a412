"""HttpSparqlEndpoint 单元测试（httpx.MockTransport，无真实网络）。"""
from __future__ import annotations

import httpx
import pytest
from rdflib import Literal, URIRef

from sf_rdf_export.common.exceptions import EndpointUnreachable, ErrorCode, ProtocolError, TransportError
from sf_rdf_export.connection import HttpSparqlEndpoint

EX = "http://example.com/"


def _endpoint(handler, **kwargs) -> HttpSparqlEndpoint:
    return HttpSparqlEndpoint("https://neptune.example.com:8182/", transport=httpx.MockTransport(handler), **kwargs)


async def _collect(iterator) -> list:
    return [item async for item in iterator]


@pytest.mark.asyncio
async def test_bulk_dump_streams_body_verbatim() -> None:
    body = b'<http://example.com/s> <http://example.com/p> "v" .\n' * 3
    captured: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["request"] = request
        return httpx.Response(200, content=body)

    endpoint = _endpoint(handler)
    chunks = await _collect(endpoint.bulk_dump("default", accept="application/n-quads", trace_id="trace-1"))

    request = captured["request"]
    assert b"".join(chunks) == body
    assert request.method == "GET"
    assert str(request.url) == "https://neptune.example.com:8182/sparql/gsp/?default"
    assert request.headers["Accept"] == "application/n-quads"
    assert request.headers["X-Trace-Id"] == "trace-1"


def test_gsp_url_encodes_graph_iri() -> None:
    endpoint = HttpSparqlEndpoint("https://neptune.example.com:8182")

    url = endpoint.gsp_url("graph=http://example.com/g?x=1")

    assert url == "https://neptune.example.com:8182/sparql/gsp/?graph=http%3A%2F%2Fexample.com%2Fg%3Fx%3D1"


@pytest.mark.asyncio
async def test_select_posts_query_and_parses_tsv_rows() -> None:
    captured: dict[str, httpx.Request] = {}
    tsv = (
        "?s\t?p\t?o\t?g\n"
        f"<{EX}s>\t<{EX}p>\t\"hello\"@en\t<{EX}g>\n"
        f"<{EX}s>\t<{EX}q>\t<{EX}o>\t\n"
    )

    def handler(request: httpx.Request) -> httpx.Response:
        captured["request"] = request
        return httpx.Response(200, content=tsv.encode("utf-8"))

    endpoint = _endpoint(handler, trace_header="X-Request-Id")
    rows = await _collect(endpoint.select("SELECT * WHERE { GRAPH ?g { ?s ?p ?o } }", trace_id="t-2"))

    request = captured["request"]
    assert request.method == "POST"
    assert str(request.url) == "https://neptune.example.com:8182/sparql"
    assert request.content == b"SELECT * WHERE { GRAPH ?g { ?s ?p ?o } }"
    assert request.headers["Content-Type"] == "application/sparql-query"
    assert request.headers["Accept"] == "text/tab-separated-values"
    assert request.headers["X-Request-Id"] == "t-2"
    assert rows == [
        {"s": URIRef(EX + "s"), "p": URIRef(EX + "p"), "o": Literal("hello", lang="en"), "g": URIRef(EX + "g")},
        {"s": URIRef(EX + "s"), "p": URIRef(EX + "q"), "o": URIRef(EX + "o"), "g": None},
    ]


@pytest.mark.asyncio
async def test_select_keeps_unicode_line_separators_inside_literals() -> None:
    tsv = (
        "?s\t?p\t?o\r\n"
        f"<{EX}s>\t<{EX}p>\t\"a\u2028b\"\r\n"
        f"<{EX}s>\t<{EX}p>\t\"c\x85d\x0ce\"\n"
    )
    endpoint = _endpoint(lambda request: httpx.Response(200, content=tsv.encode("utf-8")))

    rows = await _collect(endpoint.select("SELECT ?s ?p ?o WHERE { ?s ?p ?o }"))

    assert [row["o"] for row in rows] == [Literal("a\u2028b"), Literal("c\x85d\x0ce")]


@pytest.mark.asyncio
async def test_error_status_raises_protocol_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="MalformedQueryException")

    endpoint = _endpoint(handler)

    with pytest.raises(ProtocolError) as exc_info:
        await _collect(endpoint.select("SELECT broken"))

    assert exc_info.value.details["status"] == 500
    assert exc_info.value.details["reason"] == "server_error"
    assert "MalformedQueryException" in exc_info.value.details["message"]


@pytest.mark.asyncio
async def test_empty_select_response_is_protocol_error() -> None:
    endpoint = _endpoint(lambda request: httpx.Response(200, content=b""))

    with pytest.raises(ProtocolError):
        await _collect(endpoint.select("SELECT * WHERE { ?s ?p ?o }"))


@pytest.mark.asyncio
async def test_connect_error_raises_endpoint_unreachable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    endpoint = _endpoint(handler)

    with pytest.raises(EndpointUnreachable) as exc_info:
        await _collect(endpoint.bulk_dump("default", accept="text/turtle"))

    assert exc_info.value.code == ErrorCode.ENDPOINT_UNREACHABLE
    assert exc_info.value.details["endpoint"] == "https://neptune.example.com:8182"


@pytest.mark.asyncio
async def test_read_timeout_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    endpoint = _endpoint(handler)

    with pytest.raises(TransportError) as exc_info:
        await _collect(endpoint.select("SELECT * WHERE { ?s ?p ?o }"))

    assert not isinstance(exc_info.value, EndpointUnreachable)
    assert exc_info.value.details["reason"] == "timeout"


@pytest.mark.asyncio
async def test_basic_auth_is_applied() -> None:
    captured: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["request"] = request
        return httpx.Response(200, content=b"")

    endpoint = _endpoint(handler, auth=("user", "secret"))
    await _collect(endpoint.bulk_dump("default", accept="application/n-triples"))

    assert captured["request"].headers["Authorization"].startswith("Basic ")
