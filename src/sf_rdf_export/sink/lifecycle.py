"""输出资源及其生命周期管理。

每个导出单元独占一个 :class:`OutputSink`。:class:`SinkLifecycle` 以作用域方式获取资源，
无论操作正常结束、提前返回还是抛出异常，都保证资源被刷新并关闭且仅关闭一次。
"""
from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Awaitable, BinaryIO, Callable, Iterator, Protocol, TypeVar

from sf_rdf_export.common.exceptions import ExportError, SinkError
from sf_rdf_export.common.logging import LoggerFactory

T = TypeVar("T")


class OutputSink(Protocol):
    """可写输出资源的最小协议。"""

    name: str

    @property
    def closed(self) -> bool:
        ...

    def write(self, data: bytes) -> None:
        ...

    def flush(self) -> None:
        ...

    def close(self) -> None:
        """刷新并关闭资源；重复调用必须为空操作。"""


SinkFactory = Callable[[Any, int], OutputSink]


class StreamSink:
    """包装调用方提供的二进制流。

    参数：
        stream：可写二进制流，例如 ``io.BytesIO()`` 或 ``sys.stdout.buffer``。
        name：用于日志的资源名称。
        close_stream：关闭 sink 时是否同时关闭底层流；写入标准输出时应为 ``False``。
    """

    def __init__(self, stream: BinaryIO, *, name: str = "stream", close_stream: bool = False) -> None:
        self.name = name
        self._stream = stream
        self._close_stream = close_stream
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, data: bytes) -> None:
        if self._closed:
            raise SinkError("输出资源已关闭", details={"sink": self.name})
        try:
            self._stream.write(data)
        except (OSError, ValueError) as exc:
            raise SinkError("写入输出资源失败", details={"sink": self.name, "error": str(exc)}) from exc

    def flush(self) -> None:
        if self._closed:
            return
        try:
            self._stream.flush()
        except (OSError, ValueError) as exc:
            raise SinkError("刷新输出资源失败", details={"sink": self.name, "error": str(exc)}) from exc

    def close(self) -> None:
        """刷新并关闭；刷新失败时仍会关闭底层流，随后抛出 :class:`SinkError`。"""

        if self._closed:
            return
        self._closed = True
        try:
            try:
                self._stream.flush()
            finally:
                if self._close_stream:
                    self._stream.close()
        except (OSError, ValueError) as exc:
            raise SinkError("关闭输出资源失败", details={"sink": self.name, "error": str(exc)}) from exc


class FileSink(StreamSink):
    """写入本地文件的输出资源，构造时即打开文件。"""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            handle = self.path.open("wb")
        except OSError as exc:
            raise SinkError("无法创建输出文件", details={"path": str(self.path), "error": str(exc)}) from exc
        super().__init__(handle, name=str(self.path), close_stream=True)


class SinkLifecycle:
    """按导出单元获取并释放输出资源。

    参数：
        factory：资源工厂，签名为 ``factory(unit, index) -> OutputSink``。
    """

    def __init__(self, factory: SinkFactory) -> None:
        self._factory = factory
        self._logger = LoggerFactory.create_default_logger(__name__)

    @contextmanager
    def scope(self, unit: Any, index: int = 0) -> Iterator[OutputSink]:
        """获取资源并在作用域退出时释放。

        释放失败时：若作用域内操作成功则抛出 :class:`SinkError`；若作用域内已有异常，
        记录释放失败日志后继续传播原始异常。
        """

        sink = self._acquire(unit, index)
        try:
            yield sink
        except BaseException:
            self._release_after_failure(sink, unit)
            raise
        self._release(sink)

    async def run(self, unit: Any, operation: Callable[[OutputSink], Awaitable[T]], index: int = 0) -> T:
        """在资源作用域内执行异步操作并返回其结果。"""

        with self.scope(unit, index) as sink:
            return await operation(sink)

    def _acquire(self, unit: Any, index: int) -> OutputSink:
        try:
            sink = self._factory(unit, index)
        except ExportError:
            raise
        except OSError as exc:
            raise SinkError("无法创建输出资源", details={"error": str(exc)}) from exc
        self._logger.debug("已获取输出资源 %s", sink.name)
        return sink

    def _release(self, sink: OutputSink) -> None:
        try:
            sink.close()
        except ExportError:
            raise
        except OSError as exc:
            raise SinkError("关闭输出资源失败", details={"sink": sink.name, "error": str(exc)}) from exc
        self._logger.debug("已关闭输出资源 %s", sink.name)

    def _release_after_failure(self, sink: OutputSink, unit: Any) -> None:
        try:
            self._release(sink)
        except ExportError as exc:
            self._logger.error(
                "导出失败后关闭输出资源同样失败: %s",
                exc,
                extra={"unit": getattr(unit, "describe", lambda: str(unit))()},
            )
