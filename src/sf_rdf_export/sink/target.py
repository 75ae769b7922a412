"""导出目标配置。"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from sf_rdf_export.converter.formats import RdfFormat
from sf_rdf_export.sink.lifecycle import FileSink, OutputSink, SinkFactory


@dataclass(frozen=True)
class RdfTargetConfig:
    """目标序列化格式与输出资源工厂。"""

    format: RdfFormat
    sink_factory: SinkFactory


class DirectorySinkFactory:
    """在目录下为每个导出单元创建一个文件，例如 ``0000-default.nq``。"""

    def __init__(self, directory: str | Path, fmt: RdfFormat) -> None:
        self.directory = Path(directory)
        self.format = fmt

    def path_for(self, unit, index: int) -> Path:
        return self.directory / f"{index:04d}-{unit.slug}.{self.format.extension}"

    def __call__(self, unit, index: int) -> OutputSink:
        return FileSink(self.path_for(unit, index))
