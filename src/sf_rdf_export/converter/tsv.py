"""SPARQL TSV 结果解析。

TSV 结果格式中每个单元格以 Turtle/N-Triples 语法编码 RDF 项，因此可以逐行解析、
无需缓存完整结果集。空单元格表示变量未绑定。
"""
from __future__ import annotations

from typing import Any, AsyncIterable, AsyncIterator, Optional

from rdflib.term import Node
from rdflib.util import from_n3

from sf_rdf_export.common.exceptions import ProtocolError


async def iter_records(chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
    """按 ``\\n`` 切分响应字节流并逐条解码为 UTF-8 文本。

    字面量中可以原样出现 U+2028、U+0085 等字符，它们不是记录分隔符，
    因此不能使用 ``str.splitlines`` 语义的按行读取。
    """

    pending = b""
    async for chunk in chunks:
        pending += chunk
        *records, pending = pending.split(b"\n")
        for record in records:
            yield _decode(record)
    if pending:
        yield _decode(pending)


def parse_header(line: str) -> list[str]:
    """解析表头行，例如 ``"?s\\t?p\\t?o"`` -> ``["s", "p", "o"]``。"""

    names: list[str] = []
    for column in line.rstrip("\r\n").split("\t"):
        name = column.strip()
        if name.startswith("?") or name.startswith("$"):
            name = name[1:]
        if not name:
            raise ProtocolError("TSV 结果表头包含空变量名", details={"header": line[:256]})
        names.append(name)
    return names


def parse_row(header: list[str], line: str) -> dict[str, Optional[Node]]:
    """把一行 TSV 转换为变量名到 rdflib 项的映射。

    异常：
        ProtocolError：列数与表头不一致或单元格无法解析。
    """

    cells = line.rstrip("\r\n").split("\t")
    if len(cells) != len(header):
        raise ProtocolError(
            "TSV 结果列数与表头不一致",
            details={"expected": len(header), "actual": len(cells), "row": line[:256]},
        )
    row: dict[str, Optional[Node]] = {}
    for name, cell in zip(header, cells):
        row[name] = _parse_term(cell.strip())
    return row


def _decode(record: bytes) -> str:
    try:
        return record.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ProtocolError("TSV 结果不是合法的 UTF-8", details={"row": record[:256].hex(), "error": str(exc)}) from exc


def _parse_term(cell: str) -> Optional[Node]:
    if not cell:
        return None
    try:
        term: Any = from_n3(cell)
    except Exception as exc:  # noqa: BLE001 - rdflib 对非法输入抛出多种异常
        raise ProtocolError("无法解析 TSV 单元格", details={"cell": cell[:256], "error": str(exc)}) from exc
    if term is None:
        raise ProtocolError("无法解析 TSV 单元格", details={"cell": cell[:256]})
    return term
