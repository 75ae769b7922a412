"""导出引擎配置。

配置以 YAML 文件描述并由 Pydantic v2 模型校验。加载顺序：

1. ``ConfigManager.load(override_path=...)`` 显式传入的路径；
2. 环境变量 ``SF_RDF_EXPORT_CONFIG`` 指向的路径；
3. 均未提供时使用模型默认值。

示例::

    rdf:
      endpoints: ["neptune-1.example.com", "neptune-2.example.com"]
      port: 8182
    export:
      format: nquads
      feature_toggles: ["no-bulk-protocol"]
    logging:
      level: info
"""
from __future__ import annotations

import os
from pathlib import Path
from threading import Lock
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from sf_rdf_export.common.exceptions import ErrorCode, ValidationError
from sf_rdf_export.common.logging import LoggerFactory
from sf_rdf_export.connection.config import ConnectionConfig
from sf_rdf_export.converter.formats import RdfFormat

CONFIG_ENV_VAR = "SF_RDF_EXPORT_CONFIG"


class ExportConfig(BaseModel):
    """导出行为配置。"""

    format: RdfFormat = RdfFormat.NQUADS
    feature_toggles: list[str] = Field(default_factory=list)
    batch_size: int = Field(default=1000, ge=1, le=100_000, description="元组查询路径每批序列化的语句数")
    output_dir: Optional[str] = None


class LoggingConfig(BaseModel):
    level: Literal["trace", "debug", "info", "warn", "error"] = "error"


class Settings(BaseModel):
    """配置根模型。"""

    rdf: ConnectionConfig = Field(default_factory=lambda: ConnectionConfig(endpoints=["localhost"]))
    export: ExportConfig = Field(default_factory=ExportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class ConfigManager:
    """全局配置持有者。"""

    _current: Optional["ConfigManager"] = None
    _lock = Lock()

    def __init__(self, settings: Settings, source: Optional[str] = None) -> None:
        self.settings = settings
        self.source = source

    @classmethod
    def load(cls, override_path: Optional[str] = None) -> "ConfigManager":
        """加载配置并设置为当前全局配置。

        参数：
            override_path：YAML 配置文件路径，例如 ``"config/export.yaml"``。

        异常：
            ValidationError：文件不存在或内容不符合配置模型时抛出。
        """

        path = override_path or os.environ.get(CONFIG_ENV_VAR)
        data: dict[str, Any] = {}
        if path:
            data = cls._read_yaml(Path(path))
        try:
            settings = Settings.model_validate(data)
        except PydanticValidationError as exc:
            raise ValidationError(
                ErrorCode.INVALID_CONFIG,
                "导出配置校验失败",
                details={"source": path, "errors": exc.errors(include_url=False)},
            ) from exc
        LoggerFactory.configure(settings.logging.level)
        manager = cls(settings, path)
        with cls._lock:
            cls._current = manager
        return manager

    @classmethod
    def current(cls) -> "ConfigManager":
        """返回当前配置；尚未加载时按默认规则加载。"""

        with cls._lock:
            manager = cls._current
        if manager is None:
            manager = cls.load()
        return manager

    @classmethod
    def reset(cls) -> None:
        with cls._lock:
            cls._current = None

    @staticmethod
    def _read_yaml(path: Path) -> dict[str, Any]:
        if not path.is_file():
            raise ValidationError(ErrorCode.INVALID_CONFIG, "配置文件不存在", details={"source": str(path)})
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        if not isinstance(data, dict):
            raise ValidationError(ErrorCode.INVALID_CONFIG, "配置文件顶层必须为映射", details={"source": str(path)})
        return data
