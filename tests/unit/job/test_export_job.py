"""ExportJob 端到端场景测试（内存端点 + 记录型输出资源）。"""
from __future__ import annotations

from pathlib import Path

import pytest
from rdflib import Dataset, Literal, URIRef

from sf_rdf_export import (
    ConnectionConfig,
    CustomQuery,
    EndpointClient,
    ErrorCode,
    ExportError,
    ExportJob,
    FeatureToggles,
    JobState,
    ProtocolError,
    RdfFormat,
    RdfTargetConfig,
    ScopeSelection,
    SinkError,
    ValidationError,
    WholeGraph,
    create_job,
)
from sf_rdf_export.common.config import ConfigManager
from sf_rdf_export.common.exceptions import InvalidScopeCombination, JobStateError
from sf_rdf_export.scope import DefaultGraphUnit, NamedGraphUnit, QueryUnit

EX = "http://example.com/"


def _default_graph_dataset(count: int) -> Dataset:
    dataset = Dataset()
    for index in range(count):
        dataset.add((URIRef(f"{EX}resource/{index}"), URIRef(EX + "value"), Literal(f"v{index}")))
    return dataset


def _job(selection, endpoint, recorder, *toggles: str, fmt: RdfFormat = RdfFormat.NQUADS) -> ExportJob:
    client = EndpointClient([endpoint], fmt=fmt, toggles=FeatureToggles(toggles))
    return create_job(selection, client=client, target=RdfTargetConfig(fmt, recorder), trace_id="trace-test")


@pytest.mark.asyncio
async def test_whole_graph_export_completes(endpoint_factory, sink_recorder) -> None:
    endpoint = endpoint_factory(_default_graph_dataset(5))
    job = _job(ScopeSelection(scope="graph"), endpoint, sink_recorder)

    assert job.state is JobState.CREATED
    report = await job.run()

    assert job.state is JobState.COMPLETED
    assert report.state is JobState.COMPLETED
    assert report.units == 1
    assert endpoint.bulk_requests == [("default", "application/n-quads")]
    assert endpoint.queries == []
    [sink] = sink_recorder.sinks
    lines = sink.lines()
    assert len(lines) == 5
    assert len(set(lines)) == 5
    assert sink.close_calls == 1
    assert report.bytes_written == len(sink.buffer)


@pytest.mark.asyncio
async def test_query_export_failure_reports_protocol_error(endpoint_factory, sink_recorder) -> None:
    endpoint = endpoint_factory(fail_with=ProtocolError("query rejected", details={"status": 400}))
    job = _job(ScopeSelection(scope="query", query="SELECT * WHERE { ?s ?p ?o }"), endpoint, sink_recorder)

    with pytest.raises(ProtocolError) as exc_info:
        await job.run()

    assert job.state is JobState.FAILED
    assert job.error is exc_info.value
    assert isinstance(job.failed_unit, QueryUnit)
    assert exc_info.value.unit == job.failed_unit
    assert exc_info.value.details["unit"].startswith("query")
    assert "unit:" in str(exc_info.value)
    assert [sink.close_calls for sink in sink_recorder.sinks] == [1]


@pytest.mark.asyncio
async def test_unexpected_error_is_wrapped_with_unit_context(endpoint_factory, sink_recorder) -> None:
    boom = RuntimeError("store exploded")
    endpoint = endpoint_factory(fail_with=boom)
    job = _job(ScopeSelection(scope="edges"), endpoint, sink_recorder)

    with pytest.raises(ExportError) as exc_info:
        await job.run()

    error = exc_info.value
    assert error.code == ErrorCode.INTERNAL_ERROR
    assert error.__cause__ is boom
    assert job.error is error
    assert job.state is JobState.FAILED
    assert error.unit == job.failed_unit
    assert error.details["type"] == "RuntimeError"
    assert error.details["unit"] == job.failed_unit.describe()
    assert [sink.close_calls for sink in sink_recorder.sinks] == [1]


@pytest.mark.asyncio
async def test_units_run_in_plan_order(endpoint_factory, sink_recorder) -> None:
    endpoint = endpoint_factory(_default_graph_dataset(1))
    selection = WholeGraph(named_graphs=(EX + "g2", EX + "g1"))
    job = _job(selection, endpoint, sink_recorder)

    report = await job.run()

    assert [target for target, _ in endpoint.bulk_requests] == ["default", f"graph={EX}g2", f"graph={EX}g1"]
    assert [unit for unit, _ in report.outcomes] == [
        DefaultGraphUnit(),
        NamedGraphUnit(EX + "g2"),
        NamedGraphUnit(EX + "g1"),
    ]
    assert [sink.name for sink in sink_recorder.sinks][0] == "0-default"
    assert all(sink.close_calls == 1 for sink in sink_recorder.sinks)


@pytest.mark.asyncio
async def test_failure_stops_remaining_units(endpoint_factory, sink_recorder) -> None:
    class _FailOnSecondGraph:
        def __init__(self, inner) -> None:
            self.inner = inner
            self.address = inner.address

        def bulk_dump(self, target, *, accept, trace_id=None):
            if target == f"graph={EX}bad":
                raise ProtocolError("graph export failed")
            return self.inner.bulk_dump(target, accept=accept, trace_id=trace_id)

        def select(self, query, *, trace_id=None):
            return self.inner.select(query, trace_id=trace_id)

    inner = endpoint_factory(_default_graph_dataset(1))
    job = _job(
        ScopeSelection(scope="graph", named_graphs=[EX + "ok", EX + "bad", EX + "never"]),
        _FailOnSecondGraph(inner),
        sink_recorder,
    )

    with pytest.raises(ProtocolError) as exc_info:
        await job.run()

    assert exc_info.value.unit == NamedGraphUnit(EX + "bad")
    assert [target for target, _ in inner.bulk_requests] == [f"graph={EX}ok"]
    assert len(sink_recorder.sinks) == 2
    assert all(sink.close_calls == 1 for sink in sink_recorder.sinks)
    assert job.report.units == 1


@pytest.mark.asyncio
async def test_no_bulk_toggle_exports_all_quads_query(endpoint_factory, sink_recorder) -> None:
    dataset = Dataset()
    graph = dataset.graph(URIRef(EX + "g"))
    graph.add((URIRef(EX + "s"), URIRef(EX + "p"), Literal("o")))
    endpoint = endpoint_factory(dataset)
    job = _job(ScopeSelection(), endpoint, sink_recorder, "no-bulk-protocol")

    report = await job.run()

    assert endpoint.bulk_requests == []
    assert endpoint.queries == ["SELECT * WHERE { GRAPH ?g { ?s ?p ?o } }"]
    assert report.statements == 1
    assert sink_recorder.sinks[0].lines() == [f'<{EX}s> <{EX}p> "o" <{EX}g> .']


@pytest.mark.asyncio
async def test_sink_write_failure_fails_job_and_closes_sink(endpoint_factory, sink_recorder_factory) -> None:
    recorder = sink_recorder_factory(fail_on_write=SinkError("disk full"))
    endpoint = endpoint_factory(_default_graph_dataset(2))
    job = _job(ScopeSelection(), endpoint, recorder)

    with pytest.raises(SinkError):
        await job.run()

    assert job.state is JobState.FAILED
    assert recorder.sinks[0].close_calls == 1


@pytest.mark.asyncio
async def test_close_failure_after_successful_unit_fails_job(endpoint_factory, sink_recorder_factory) -> None:
    recorder = sink_recorder_factory(fail_on_close=SinkError("close failed"))
    endpoint = endpoint_factory(_default_graph_dataset(2))
    job = _job(ScopeSelection(), endpoint, recorder)

    with pytest.raises(SinkError):
        await job.run()

    assert job.state is JobState.FAILED
    assert job.failed_unit == DefaultGraphUnit()


@pytest.mark.asyncio
async def test_job_runs_only_once(endpoint_factory, sink_recorder) -> None:
    job = _job(ScopeSelection(), endpoint_factory(_default_graph_dataset(1)), sink_recorder)
    await job.run()

    with pytest.raises(JobStateError):
        await job.run()


def test_invalid_selection_fails_before_io(endpoint_factory, sink_recorder) -> None:
    endpoint = endpoint_factory()

    with pytest.raises(InvalidScopeCombination):
        _job(ScopeSelection(scope="edges", named_graphs=[EX + "g"]), endpoint, sink_recorder)
    with pytest.raises(ValidationError):
        _job(CustomQuery(""), endpoint, sink_recorder)
    assert endpoint.bulk_requests == [] and endpoint.queries == []


@pytest.mark.asyncio
async def test_create_job_from_settings_writes_files(tmp_path: Path, endpoint_factory) -> None:
    config_path = tmp_path / "export.yaml"
    config_path.write_text(
        "rdf:\n"
        "  endpoints: [neptune-1.example.com]\n"
        "export:\n"
        "  format: ntriples\n"
        f"  output_dir: {tmp_path / 'out'}\n",
        encoding="utf-8",
    )
    ConfigManager.load(override_path=str(config_path))
    stub = endpoint_factory(_default_graph_dataset(3))

    class _Selector:
        def choose(self, candidates, unreachable):
            assert [candidate.address for candidate in candidates] == ["https://neptune-1.example.com:8182"]
            return stub

    job = create_job(ScopeSelection(), selector=_Selector())
    await job.run()

    exported = (tmp_path / "out" / "0000-default.nt").read_text(encoding="utf-8")
    assert len(exported.strip().splitlines()) == 3
    assert stub.bulk_requests == [("default", "application/n-triples")]


def test_create_job_requires_target(endpoint_factory) -> None:
    ConfigManager.load()

    with pytest.raises(ValidationError) as exc_info:
        create_job(ScopeSelection(), connection=ConnectionConfig(endpoints=["localhost"]))

    assert exc_info.value.code == ErrorCode.INVALID_CONFIG
