"""导出引擎单元测试公共夹具。

* ``InMemoryEndpoint``：以 rdflib ``Dataset`` 为后端的 :class:`SparqlEndpoint` 桩，
  记录所有批量导出目标与元组查询，便于断言请求形态；
* ``RecordingSink``：记录写入内容与关闭次数的输出资源。

所有用例均不访问网络。
"""
from __future__ import annotations

from typing import Any, AsyncIterator, Optional

import pytest
from rdflib import Dataset, Graph, URIRef
from rdflib.term import Node

from sf_rdf_export.common.config import ConfigManager


class InMemoryEndpoint:
    """内存端点桩。

    参数：
        dataset：后端数据集。
        address：端点地址，用于选择策略与日志。
        fail_with：若设置，任何请求都抛出该异常。
    """

    def __init__(self, dataset: Optional[Dataset] = None, *, address: str = "memory://store", fail_with: Exception | None = None) -> None:
        self.dataset = dataset if dataset is not None else Dataset()
        self.address = address
        self.fail_with = fail_with
        self.bulk_requests: list[tuple[str, str]] = []
        self.queries: list[str] = []

    async def bulk_dump(self, target: str, *, accept: str, trace_id: str | None = None) -> AsyncIterator[bytes]:
        self.bulk_requests.append((target, accept))
        if self.fail_with is not None:
            raise self.fail_with
        if target == "default":
            graph: Graph = self.dataset.default_context
        else:
            graph = self.dataset.graph(URIRef(target.removeprefix("graph=")))
        yield graph.serialize(format="nt").encode("utf-8")

    async def select(self, query: str, *, trace_id: str | None = None) -> AsyncIterator[dict[str, Optional[Node]]]:
        self.queries.append(query)
        if self.fail_with is not None:
            raise self.fail_with
        for row in self.dataset.query(query):
            yield row.asdict()


class RecordingSink:
    """记录写入与关闭次数的输出资源。"""

    def __init__(self, name: str, *, fail_on_close: Exception | None = None, fail_on_write: Exception | None = None) -> None:
        self.name = name
        self.buffer = bytearray()
        self.close_calls = 0
        self._closed = False
        self._fail_on_close = fail_on_close
        self._fail_on_write = fail_on_write

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, data: bytes) -> None:
        assert not self._closed, "write after close"
        if self._fail_on_write is not None:
            raise self._fail_on_write
        self.buffer.extend(data)

    def flush(self) -> None:
        return None

    def close(self) -> None:
        self.close_calls += 1
        if self._closed:
            return
        self._closed = True
        if self._fail_on_close is not None:
            raise self._fail_on_close

    def text(self) -> str:
        return self.buffer.decode("utf-8")

    def lines(self) -> list[str]:
        return [line for line in self.text().splitlines() if line.strip()]


class SinkRecorder:
    """输出资源工厂，记录每次创建的资源。"""

    def __init__(self, **sink_kwargs: Any) -> None:
        self.sinks: list[RecordingSink] = []
        self._sink_kwargs = sink_kwargs

    def __call__(self, unit: Any, index: int) -> RecordingSink:
        sink = RecordingSink(f"{index}-{unit.slug}", **self._sink_kwargs)
        self.sinks.append(sink)
        return sink


@pytest.fixture()
def endpoint_factory():
    return InMemoryEndpoint


@pytest.fixture()
def sink_recorder() -> SinkRecorder:
    return SinkRecorder()


@pytest.fixture()
def sink_recorder_factory():
    return SinkRecorder


@pytest.fixture(autouse=True)
def _reset_config(monkeypatch: pytest.MonkeyPatch):
    """每个用例使用独立的全局配置。"""

    monkeypatch.delenv("SF_RDF_EXPORT_CONFIG", raising=False)
    ConfigManager.reset()
    yield
    ConfigManager.reset()
