"""导出序列化格式枚举。"""
from __future__ import annotations

from enum import Enum


class RdfFormat(str, Enum):
    """支持的 RDF 序列化格式。

    每个格式同时定义 GSP 请求使用的 ``Accept`` 头与文件扩展名。
    """

    NTRIPLES = "ntriples"
    NQUADS = "nquads"
    TURTLE = "turtle"

    @property
    def mime_type(self) -> str:
        return _MIME_TYPES[self]

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]

    @property
    def supports_graphs(self) -> bool:
        """格式能否携带命名图（第四元）。"""

        return self is RdfFormat.NQUADS


_MIME_TYPES = {
    RdfFormat.NTRIPLES: "application/n-triples",
    RdfFormat.NQUADS: "application/n-quads",
    RdfFormat.TURTLE: "text/turtle",
}

_EXTENSIONS = {
    RdfFormat.NTRIPLES: "nt",
    RdfFormat.NQUADS: "nq",
    RdfFormat.TURTLE: "ttl",
}
