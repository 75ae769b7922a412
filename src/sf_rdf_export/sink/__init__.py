"""输出资源与目标配置的公共导出。"""
from sf_rdf_export.sink.lifecycle import FileSink, OutputSink, SinkFactory, SinkLifecycle, StreamSink
from sf_rdf_export.sink.target import DirectorySinkFactory, RdfTargetConfig

__all__ = [
    "FileSink",
    "OutputSink",
    "SinkFactory",
    "SinkLifecycle",
    "StreamSink",
    "DirectorySinkFactory",
    "RdfTargetConfig",
]
