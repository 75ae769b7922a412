"""元组查询结果到 RDF 语句序列化。

``StatementWriter`` 把每一行 ``?s ?p ?o [?g]`` 绑定渲染为一条 N-Triples/N-Quads 语句，
按结果顺序写出，重复行保留为重复语句。渲染后的文本按批写入输出资源，内存占用与结果集规模无关。

* N-Quads：携带 ``?g`` 的语句输出四元组，未绑定 ``?g`` 的语句按默认图输出三元组；
* N-Triples / Turtle：忽略图信息。N-Triples 语句本身就是合法的 Turtle，
  空白节点统一输出为带标签的 ``_:`` 形式，跨批次仍指向同一节点。
"""
from __future__ import annotations

from typing import Mapping, Optional

from rdflib import BNode, Literal, URIRef
from rdflib.term import Node

from sf_rdf_export.common.exceptions import ProtocolError
from sf_rdf_export.converter.formats import RdfFormat
from sf_rdf_export.sink.lifecycle import OutputSink

_ESCAPES = str.maketrans({"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r"})


def render_term(term: Node) -> str:
    """按 N-Triples 语法渲染单个 RDF 项，例如 ``Literal("a\\nb")`` -> ``"a\\\\nb"``。"""

    if isinstance(term, Literal):
        text = f'"{str(term).translate(_ESCAPES)}"'
        if term.language:
            return f"{text}@{term.language}"
        if term.datatype is not None:
            return f"{text}^^<{term.datatype}>"
        return text
    if isinstance(term, (URIRef, BNode)):
        try:
            return term.n3()
        except Exception as exc:  # noqa: BLE001 - rdflib 对非法 IRI 抛出通用异常
            raise ProtocolError("IRI 无法按 N-Triples 语法输出", details={"term": str(term)[:256]}) from exc
    raise ProtocolError("无法渲染的 RDF 项", details={"term": repr(term)[:256]})


class StatementWriter:
    """逐行渲染语句并分批写入 :class:`OutputSink`。

    参数：
        sink：目标输出资源。
        fmt：目标序列化格式。
        batch_size：每批缓存的语句数量，示例 ``1000``。
    """

    def __init__(self, sink: OutputSink, fmt: RdfFormat, *, batch_size: int = 1000) -> None:
        self._sink = sink
        self._format = fmt
        self._batch_size = max(1, int(batch_size))
        self._pending: list[str] = []
        self._statements = 0
        self._bytes = 0

    @property
    def statements(self) -> int:
        """已写入输出资源的语句数。"""

        return self._statements

    @property
    def bytes_written(self) -> int:
        return self._bytes

    def write_row(self, row: Mapping[str, Optional[Node]]) -> None:
        """写入一行查询绑定，要求至少绑定 ``s``、``p``、``o``。"""

        subject, predicate, obj = row.get("s"), row.get("p"), row.get("o")
        if subject is None or predicate is None or obj is None:
            raise ProtocolError(
                "查询结果缺少 ?s/?p/?o 绑定，无法还原为 RDF 语句",
                details={"variables": sorted(row)},
            )
        self.add(subject, predicate, obj, row.get("g"))

    def add(self, subject: Node, predicate: Node, obj: Node, graph: Optional[Node] = None) -> None:
        if not isinstance(subject, (URIRef, BNode)) or not isinstance(predicate, URIRef):
            raise ProtocolError(
                "查询结果中的主语或谓语不是合法的 RDF 项",
                details={"subject": str(subject), "predicate": str(predicate)},
            )
        terms = [render_term(subject), render_term(predicate), render_term(obj)]
        if graph is not None and self._format.supports_graphs:
            if not isinstance(graph, (URIRef, BNode)):
                raise ProtocolError("?g 绑定必须为 IRI", details={"graph": str(graph)})
            terms.append(render_term(graph))
        self._pending.append(" ".join(terms) + " .\n")
        if len(self._pending) >= self._batch_size:
            self.flush()

    def flush(self) -> None:
        """写出当前批次。"""

        if not self._pending:
            return
        data = "".join(self._pending).encode("utf-8")
        self._sink.write(data)
        self._bytes += len(data)
        self._statements += len(self._pending)
        self._pending = []
