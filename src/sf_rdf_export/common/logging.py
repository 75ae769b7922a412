"""日志工厂。

统一创建模块级 logger，并提供与导出工具 ``--log-level`` 取值一致的全局级别设置。
"""
from __future__ import annotations

import logging
import sys

_LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

_ROOT_LOGGER = "sf_rdf_export"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class LoggerFactory:
    """模块级 logger 构造器。"""

    _configured = False

    @staticmethod
    def create_default_logger(name: str) -> logging.Logger:
        """返回名为 ``name`` 的 logger；首次调用时挂载默认处理器。"""

        if not LoggerFactory._configured:
            LoggerFactory.configure()
        return logging.getLogger(name)

    @staticmethod
    def configure(level: str = "error") -> None:
        """设置导出引擎日志级别。

        参数：
            level：``trace``/``debug``/``info``/``warn``/``error`` 之一，大小写不敏感。

        异常：
            ValueError：级别名称不被支持时抛出。
        """

        key = level.strip().lower()
        if key not in _LEVELS:
            raise ValueError(f"Unsupported log level: {level}")
        root = logging.getLogger(_ROOT_LOGGER)
        if not root.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(logging.Formatter(_FORMAT))
            root.addHandler(handler)
        root.setLevel(_LEVELS[key])
        LoggerFactory._configured = True
