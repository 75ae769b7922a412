"""导出引擎统一异常定义。

所有异常均携带 :class:`ErrorCode` 与 ``details`` 字典，便于日志与上层调用方统一处理：

* ``ValidationError``：导出范围/参数组合非法，在任何 I/O 之前抛出；
* ``TransportError`` / ``EndpointUnreachable``：网络层失败；
* ``ProtocolError``：端点返回错误或无法解析的响应；
* ``SinkError``：输出资源写入或关闭失败；
* ``JobStateError``：导出作业状态机被非法驱动。
* ``INTERNAL_ERROR``：作业执行中出现的非平台异常，原异常保存在 ``__cause__``。
"""
from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """错误码枚举。"""

    INVALID_SCOPE_COMBINATION = "INVALID_SCOPE_COMBINATION"
    MISSING_QUERY = "MISSING_QUERY"
    UNKNOWN_SCOPE = "UNKNOWN_SCOPE"
    INVALID_NAMED_GRAPH = "INVALID_NAMED_GRAPH"
    UNKNOWN_FEATURE_TOGGLE = "UNKNOWN_FEATURE_TOGGLE"
    INVALID_CONFIG = "INVALID_CONFIG"
    ENDPOINT_UNREACHABLE = "ENDPOINT_UNREACHABLE"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    SINK_ERROR = "SINK_ERROR"
    JOB_STATE_ERROR = "JOB_STATE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ExportError(Exception):
    """导出引擎异常基类。

    参数：
        code：错误码，例如 ``ErrorCode.PROTOCOL_ERROR``。
        message：面向用户的错误描述。
        details：附加上下文，例如 ``{"status": 500}``。

    属性 ``unit`` 在作业层被填充为出错时正在执行的导出单元。
    """

    def __init__(self, code: ErrorCode, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details: dict[str, Any] = dict(details or {})
        self.unit: Any = None

    def __str__(self) -> str:
        if self.unit is not None:
            return f"[{self.code.value}] {self.message} (unit: {self.unit.describe()})"
        return f"[{self.code.value}] {self.message}"


class ValidationError(ExportError):
    """参数或范围组合校验失败。"""


class InvalidScopeCombination(ValidationError):
    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.INVALID_SCOPE_COMBINATION, message, details=details)


class MissingQuery(ValidationError):
    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.MISSING_QUERY, message, details=details)


class UnknownScope(ValidationError):
    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.UNKNOWN_SCOPE, message, details=details)


class TransportError(ExportError):
    """网络层失败（读写超时、连接中断等）。"""


class EndpointUnreachable(TransportError):
    """端点无法建立连接。"""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.ENDPOINT_UNREACHABLE, message, details=details)


class ProtocolError(ExportError):
    """端点返回错误状态或响应格式非法。"""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.PROTOCOL_ERROR, message, details=details)


class SinkError(ExportError):
    """输出资源写入或关闭失败。"""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.SINK_ERROR, message, details=details)


class JobStateError(ExportError):
    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.JOB_STATE_ERROR, message, details=details)
